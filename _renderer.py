# _renderer.py
"""
wgpu 드로잉 백엔드

행렬 기반 변형(SquareRenderer, TexturedCubeRenderer)은 투영/모델뷰 행렬을 유니폼으로 넘기고
래스터화는 GPU 에 맡깁니다. WireframeRenderer 는 _scene 에서 직접 투영한 2D 선분을
화면 좌표 그대로 업로드하여 line list 로 그립니다.

셰이더 컴파일이나 파이프라인 생성에 실패하면 단계 이름과 백엔드 진단 로그를 담은
RendererSetupError 가 발생하고 초기화는 중단됩니다.
"""

import time

import numpy as np
import wgpu

from _frame import (
    AnimationState,
    VertexAttribute,
    cube_model_view,
    pack_uniforms,
    projection_for_viewport,
    square_model_view,
    step,
    vertex_buffer_layouts,
)
from _mesh import (
    CUBE_EDGES,
    checkerboard_texture,
    create_wireframe_indices,
    cube_indices,
    cube_positions,
    cube_texture_coords,
    interleave,
    square_colors,
    square_positions,
)
from _scene import LineCollector, Scene, default_field_of_view, draw_scene

# WebGPU 셰이더 소스
# 행렬은 GL 규약([-1, 1] 깊이)으로 만들어지므로 정점 셰이더에서 WebGPU 의 [0, 1] 로 옮깁니다.
COLOR_SHADER_SOURCE = """
struct Uniforms {
    projection : mat4x4<f32>,
    model_view : mat4x4<f32>,
};

@group(0) @binding(0) var<uniform> u : Uniforms;

struct VertexOut {
    @builtin(position) pos : vec4<f32>,
    @location(0) color : vec4<f32>,
};

@vertex
fn vs_main(@location(0) position : vec2<f32>, @location(1) color : vec4<f32>) -> VertexOut {
    var out : VertexOut;
    var clip = u.projection * u.model_view * vec4<f32>(position, 0.0, 1.0);
    clip.z = (clip.z + clip.w) * 0.5;
    out.pos = clip;
    out.color = color;
    return out;
}

@fragment
fn fs_main(in : VertexOut) -> @location(0) vec4<f32> {
    return in.color;
}
"""

TEXTURE_SHADER_SOURCE = """
struct Uniforms {
    projection : mat4x4<f32>,
    model_view : mat4x4<f32>,
};

@group(0) @binding(0) var<uniform> u : Uniforms;
@group(0) @binding(1) var u_sampler : sampler;
@group(0) @binding(2) var u_texture : texture_2d<f32>;

struct VertexOut {
    @builtin(position) pos : vec4<f32>,
    @location(0) uv : vec2<f32>,
};

@vertex
fn vs_main(@location(0) position : vec3<f32>, @location(1) uv : vec2<f32>) -> VertexOut {
    var out : VertexOut;
    var clip = u.projection * u.model_view * vec4<f32>(position, 1.0);
    clip.z = (clip.z + clip.w) * 0.5;
    out.pos = clip;
    out.uv = uv;
    return out;
}

@fragment
fn fs_main(in : VertexOut) -> @location(0) vec4<f32> {
    return textureSample(u_texture, u_sampler, in.uv);
}

@fragment
fn fs_wire(in : VertexOut) -> @location(0) vec4<f32> {
    return vec4<f32>(0.0, 0.0, 0.0, 1.0);  // 검은색 와이어프레임
}
"""

# 화면 좌표(픽셀, y 아래 방향) -> NDC
LINE_SHADER_SOURCE = """
struct Viewport {
    size : vec2<f32>,
    _pad : vec2<f32>,
};

@group(0) @binding(0) var<uniform> u_viewport : Viewport;

@vertex
fn vs_main(@location(0) position : vec2<f32>) -> @builtin(position) vec4<f32> {
    let ndc = vec2<f32>(
        position.x / u_viewport.size.x * 2.0 - 1.0,
        1.0 - position.y / u_viewport.size.y * 2.0,
    );
    return vec4<f32>(ndc, 0.0, 1.0);
}

@fragment
fn fs_main() -> @location(0) vec4<f32> {
    return vec4<f32>(0.9, 0.9, 0.95, 1.0);
}
"""


class RendererSetupError(RuntimeError):
    """셰이더/파이프라인 초기화 실패. 부분 렌더링 모드는 없습니다."""

    def __init__(self, stage: str, log: str):
        self.stage = stage
        self.log = log
        super().__init__(f"{stage} 단계 실패:\n{log}")


class ShaderCompileError(RendererSetupError):
    pass


class PipelineLinkError(RendererSetupError):
    pass


def compile_shader(device, source: str, stage: str):
    """셰이더 모듈을 생성합니다. 실패하면 ShaderCompileError."""
    try:
        return device.create_shader_module(label=stage, code=source)
    except wgpu.GPUError as err:
        raise ShaderCompileError(f"셰이더 컴파일 ({stage})", str(err)) from err


def link_pipeline(device, stage: str, **descriptor):
    """렌더 파이프라인을 생성합니다. 실패하면 PipelineLinkError."""
    try:
        return device.create_render_pipeline(label=stage, **descriptor)
    except wgpu.GPUError as err:
        raise PipelineLinkError(f"파이프라인 링크 ({stage})", str(err)) from err


class _BaseRenderer:
    """공통 초기화: 유니폼 버퍼, 깊이 텍스처, 로그."""

    UNIFORM_BYTE_SIZE = 128  # projection + model_view (mat4x4<f32> * 2)
    DEPTH_FORMAT = wgpu.TextureFormat.depth24plus
    CLEAR_COLOR = (0.0, 0.0, 0.0, 1.0)

    def __init__(self, device, texture_format, verbose: bool = False):
        self.device = device
        self.texture_format = texture_format
        self.verbose = verbose
        self.depth_texture = None

        usage = wgpu.BufferUsage.UNIFORM | wgpu.BufferUsage.COPY_DST
        self.uniform_buffer = device.create_buffer(size=self.UNIFORM_BYTE_SIZE, usage=usage)

    def _log(self, message: str):
        """로그 출력"""
        if self.verbose:
            print(message)

    def _create_buffer(self, data: np.ndarray, usage):
        return self.device.create_buffer_with_data(data=np.ascontiguousarray(data).tobytes(), usage=usage)

    def _ensure_depth_texture(self, width: int, height: int):
        """깊이 텍스처 관리 (크기 변경 시 재생성)"""
        if self.depth_texture is None or self.depth_texture.size[:2] != (width, height):
            self.depth_texture = self.device.create_texture(
                size=(width, height, 1),
                usage=wgpu.TextureUsage.RENDER_ATTACHMENT,
                format=self.DEPTH_FORMAT,
            )
            self._log(f"깊이 텍스처 재생성: {width}x{height}")
        return self.depth_texture

    def _color_attachment(self, view) -> dict:
        return {
            "view": view,
            "resolve_target": None,
            "load_op": wgpu.LoadOp.clear,
            "clear_value": self.CLEAR_COLOR,
            "store_op": wgpu.StoreOp.store,
        }

    def _depth_attachment(self, width: int, height: int) -> dict:
        return {
            "view": self._ensure_depth_texture(width, height).create_view(),
            "depth_load_op": wgpu.LoadOp.clear,
            "depth_clear_value": 1.0,
            "depth_store_op": wgpu.StoreOp.store,
        }

    def _depth_state(self, write: bool, compare) -> dict:
        return {
            "format": self.DEPTH_FORMAT,
            "depth_write_enabled": write,
            "depth_compare": compare,
        }


class SquareRenderer(_BaseRenderer):
    """정점 색상을 보간하는 정적 사각형 (triangle strip)."""

    POSITION = VertexAttribute(location=0, components=2, dtype="float32")
    COLOR = VertexAttribute(location=1, components=4, dtype="float32")

    def __init__(self, device, texture_format, verbose: bool = False):
        super().__init__(device, texture_format, verbose)

        self.position_buffer = self._create_buffer(square_positions(), wgpu.BufferUsage.VERTEX)
        self.color_buffer = self._create_buffer(square_colors(), wgpu.BufferUsage.VERTEX)
        self.vertex_count = len(square_positions())

        self.bgl = device.create_bind_group_layout(
            entries=[{
                "binding": 0,
                "visibility": wgpu.ShaderStage.VERTEX,
                "buffer": {"type": wgpu.BufferBindingType.uniform},
            }]
        )
        self.bind_group = device.create_bind_group(
            layout=self.bgl,
            entries=[{"binding": 0, "resource": {"buffer": self.uniform_buffer, "offset": 0, "size": self.UNIFORM_BYTE_SIZE}}],
        )

        shader = compile_shader(device, COLOR_SHADER_SOURCE, "color")
        self.pipeline = link_pipeline(
            device,
            "square",
            layout=device.create_pipeline_layout(bind_group_layouts=[self.bgl]),
            vertex={
                "module": shader,
                "entry_point": "vs_main",
                "buffers": vertex_buffer_layouts([[self.POSITION], [self.COLOR]]),
            },
            primitive={
                "topology": wgpu.PrimitiveTopology.triangle_strip,
                "front_face": wgpu.FrontFace.ccw,
                "cull_mode": wgpu.CullMode.none,
            },
            depth_stencil=self._depth_state(True, wgpu.CompareFunction.less_equal),
            multisample={"count": 1, "mask": 0xFFFFFFFF, "alpha_to_coverage_enabled": False},
            fragment={
                "module": shader,
                "entry_point": "fs_main",
                "targets": [{"format": texture_format}],
            },
        )
        self._log("SquareRenderer 초기화 완료")

    def draw_frame(self, context) -> None:
        current_texture = context.get_current_texture()
        width, height, _ = current_texture.size

        projection = projection_for_viewport(width, height)
        self.device.queue.write_buffer(self.uniform_buffer, 0, pack_uniforms(projection, square_model_view()))

        encoder = self.device.create_command_encoder()
        render_pass = encoder.begin_render_pass(
            color_attachments=[self._color_attachment(current_texture.create_view())],
            depth_stencil_attachment=self._depth_attachment(width, height),
        )
        render_pass.set_pipeline(self.pipeline)
        render_pass.set_bind_group(0, self.bind_group)
        render_pass.set_vertex_buffer(0, self.position_buffer)
        render_pass.set_vertex_buffer(1, self.color_buffer)
        render_pass.draw(self.vertex_count, 1, 0, 0)
        render_pass.end()
        self.device.queue.submit([encoder.finish()])


class TexturedCubeRenderer(_BaseRenderer):
    """텍스처를 입힌 회전 큐브 (indexed triangle list + 선택적 와이어프레임)."""

    # 한 버퍼에 3 pos + 2 uv = 5 floats * 4 bytes
    POSITION = VertexAttribute(location=0, components=3, dtype="float32", stride=5 * 4, offset=0)
    TEXCOORD = VertexAttribute(location=1, components=2, dtype="float32", stride=5 * 4, offset=12)

    def __init__(self, device, texture_format, wireframe: bool = False,
                 texture_size: int = 64, verbose: bool = False):
        super().__init__(device, texture_format, verbose)
        self.wireframe = wireframe
        self.state = AnimationState()

        # 1. 메쉬 데이터 및 버퍼 생성
        self.vertex_data = interleave(cube_positions(), cube_texture_coords())
        self.vertex_buffer = self._create_buffer(self.vertex_data, wgpu.BufferUsage.VERTEX)

        self.indices = cube_indices()
        self.index_buffer = self._create_buffer(self.indices, wgpu.BufferUsage.INDEX)
        self.wire_indices = create_wireframe_indices(self.indices)
        self.wire_index_buffer = self._create_buffer(self.wire_indices, wgpu.BufferUsage.INDEX)

        # 2. 텍스처 / 샘플러
        self.texture = self._create_texture(checkerboard_texture(texture_size))
        self.sampler = device.create_sampler()

        # 3. 바인드 그룹
        self.bgl = device.create_bind_group_layout(
            entries=[
                {
                    "binding": 0,
                    "visibility": wgpu.ShaderStage.VERTEX,
                    "buffer": {"type": wgpu.BufferBindingType.uniform},
                },
                {
                    "binding": 1,
                    "visibility": wgpu.ShaderStage.FRAGMENT,
                    "sampler": {"type": wgpu.SamplerBindingType.filtering},
                },
                {
                    "binding": 2,
                    "visibility": wgpu.ShaderStage.FRAGMENT,
                    "texture": {
                        "sample_type": wgpu.TextureSampleType.float,
                        "view_dimension": wgpu.TextureViewDimension.d2,
                    },
                },
            ]
        )
        self.bind_group = device.create_bind_group(
            layout=self.bgl,
            entries=[
                {"binding": 0, "resource": {"buffer": self.uniform_buffer, "offset": 0, "size": self.UNIFORM_BYTE_SIZE}},
                {"binding": 1, "resource": self.sampler},
                {"binding": 2, "resource": self.texture.create_view()},
            ],
        )

        # 4. 파이프라인 생성
        shader = compile_shader(device, TEXTURE_SHADER_SOURCE, "texture")
        self.solid_pipeline = self._create_pipeline(
            shader, "textured-cube", "fs_main",
            wgpu.PrimitiveTopology.triangle_list,
            self._depth_state(True, wgpu.CompareFunction.less_equal),
        )
        self.wireframe_pipeline = None
        if wireframe:
            # 와이어프레임은 깊이 버퍼를 쓰지 않고 솔리드 위에 그려지도록
            self.wireframe_pipeline = self._create_pipeline(
                shader, "textured-cube-wireframe", "fs_wire",
                wgpu.PrimitiveTopology.line_list,
                self._depth_state(False, wgpu.CompareFunction.less_equal),
            )
        self._log(f"TexturedCubeRenderer 초기화 완료 (인덱스 {len(self.indices)}개, 와이어프레임 {wireframe})")

    def _create_texture(self, pixels: np.ndarray):
        height, width, _ = pixels.shape
        texture = self.device.create_texture(
            size=(width, height, 1),
            usage=wgpu.TextureUsage.TEXTURE_BINDING | wgpu.TextureUsage.COPY_DST,
            format=wgpu.TextureFormat.rgba8unorm,
        )
        self.device.queue.write_texture(
            {"texture": texture, "mip_level": 0, "origin": (0, 0, 0)},
            np.ascontiguousarray(pixels).tobytes(),
            {"offset": 0, "bytes_per_row": width * 4, "rows_per_image": height},
            (width, height, 1),
        )
        return texture

    def _create_pipeline(self, shader, stage: str, fragment_entry: str, topology, depth_stencil):
        return link_pipeline(
            self.device,
            stage,
            layout=self.device.create_pipeline_layout(bind_group_layouts=[self.bgl]),
            vertex={
                "module": shader,
                "entry_point": "vs_main",
                "buffers": vertex_buffer_layouts([[self.POSITION, self.TEXCOORD]]),
            },
            primitive={
                "topology": topology,
                "front_face": wgpu.FrontFace.ccw,
                "cull_mode": wgpu.CullMode.none,
            },
            depth_stencil=depth_stencil,
            multisample={"count": 1, "mask": 0xFFFFFFFF, "alpha_to_coverage_enabled": False},
            fragment={
                "module": shader,
                "entry_point": fragment_entry,
                "targets": [{"format": self.texture_format}],
            },
        )

    def draw_frame(self, context, now: float = None) -> None:
        """프레임을 렌더링하고 회전 각도를 경과 시간만큼 누적합니다."""
        if now is None:
            now = time.perf_counter()
        current_texture = context.get_current_texture()
        width, height, _ = current_texture.size

        projection = projection_for_viewport(width, height)
        model_view = cube_model_view(self.state.rotation)
        self.device.queue.write_buffer(self.uniform_buffer, 0, pack_uniforms(projection, model_view))

        encoder = self.device.create_command_encoder()
        render_pass = encoder.begin_render_pass(
            color_attachments=[self._color_attachment(current_texture.create_view())],
            depth_stencil_attachment=self._depth_attachment(width, height),
        )
        render_pass.set_bind_group(0, self.bind_group)
        render_pass.set_vertex_buffer(0, self.vertex_buffer)

        # 1. Solid 렌더링
        render_pass.set_pipeline(self.solid_pipeline)
        render_pass.set_index_buffer(self.index_buffer, wgpu.IndexFormat.uint16)
        render_pass.draw_indexed(len(self.indices), 1, 0, 0, 0)

        # 2. Wireframe 렌더링
        if self.wireframe_pipeline is not None:
            render_pass.set_pipeline(self.wireframe_pipeline)
            render_pass.set_index_buffer(self.wire_index_buffer, wgpu.IndexFormat.uint32)
            render_pass.draw_indexed(len(self.wire_indices), 1, 0, 0, 0)

        render_pass.end()
        self.device.queue.submit([encoder.finish()])

        self.state, _ = step(self.state, now)


class WireframeRenderer(_BaseRenderer):
    """CPU 에서 직접 투영한 와이어프레임 큐브 선분들을 그립니다."""

    UNIFORM_BYTE_SIZE = 16  # vec2 viewport + padding
    POSITION = VertexAttribute(location=0, components=2, dtype="float32")

    def __init__(self, device, texture_format, scene: Scene,
                 field_of_view: float = None, verbose: bool = False):
        super().__init__(device, texture_format, verbose)
        self.scene = scene
        self.field_of_view = field_of_view
        self.sink = LineCollector()

        # 모든 큐브가 보일 때의 최대 정점 수만큼 미리 할당
        max_vertices = max(len(scene), 1) * len(CUBE_EDGES) * 2
        self.vertex_buffer = self.device.create_buffer(
            size=max_vertices * self.POSITION.byte_size,
            usage=wgpu.BufferUsage.VERTEX | wgpu.BufferUsage.COPY_DST,
        )

        self.bgl = device.create_bind_group_layout(
            entries=[{
                "binding": 0,
                "visibility": wgpu.ShaderStage.VERTEX,
                "buffer": {"type": wgpu.BufferBindingType.uniform},
            }]
        )
        self.bind_group = device.create_bind_group(
            layout=self.bgl,
            entries=[{"binding": 0, "resource": {"buffer": self.uniform_buffer, "offset": 0, "size": self.UNIFORM_BYTE_SIZE}}],
        )

        shader = compile_shader(device, LINE_SHADER_SOURCE, "line")
        self.pipeline = link_pipeline(
            device,
            "wireframe-cubes",
            layout=device.create_pipeline_layout(bind_group_layouts=[self.bgl]),
            vertex={
                "module": shader,
                "entry_point": "vs_main",
                "buffers": vertex_buffer_layouts([[self.POSITION]]),
            },
            primitive={
                "topology": wgpu.PrimitiveTopology.line_list,
                "front_face": wgpu.FrontFace.ccw,
                "cull_mode": wgpu.CullMode.none,
            },
            depth_stencil=None,
            multisample={"count": 1, "mask": 0xFFFFFFFF, "alpha_to_coverage_enabled": False},
            fragment={
                "module": shader,
                "entry_point": "fs_main",
                "targets": [{"format": texture_format}],
            },
        )
        self._log(f"WireframeRenderer 초기화 완료 (큐브 {len(scene)}개)")

    def draw_frame(self, context, logical_size=None) -> int:
        """
        화면을 지우고 장면 순서대로 큐브를 그립니다. 그려진 큐브 수를 반환합니다.

        logical_size 가 주어지면 투영과 화면 중심을 논리 좌표로 계산합니다.
        (field_of_view 와 같은 단위. 셰이더는 이 크기로 나눠 NDC 로 옮기므로
        물리 픽셀 크기와 달라도 됩니다.)
        """
        current_texture = context.get_current_texture()
        if logical_size is None:
            width, height, _ = current_texture.size
        else:
            width, height = logical_size

        field_of_view = self.field_of_view
        if field_of_view is None:
            field_of_view = default_field_of_view(width)
        drawn = draw_scene(self.scene, self.sink, width, height, field_of_view)

        vertices = self.sink.as_array()
        if len(vertices):
            self.device.queue.write_buffer(self.vertex_buffer, 0, vertices.tobytes())
        viewport = np.array([width, height, 0.0, 0.0], dtype=np.float32)
        self.device.queue.write_buffer(self.uniform_buffer, 0, viewport.tobytes())

        encoder = self.device.create_command_encoder()
        render_pass = encoder.begin_render_pass(
            color_attachments=[self._color_attachment(current_texture.create_view())],
        )
        if len(vertices):
            render_pass.set_pipeline(self.pipeline)
            render_pass.set_bind_group(0, self.bind_group)
            render_pass.set_vertex_buffer(0, self.vertex_buffer)
            render_pass.draw(len(vertices), 1, 0, 0)
        render_pass.end()
        self.device.queue.submit([encoder.finish()])
        return drawn
