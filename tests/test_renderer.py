from unittest import mock

import numpy as np
import pytest
import wgpu

from _frame import cube_model_view, pack_uniforms, projection_for_viewport, square_model_view
from _renderer import (
    COLOR_SHADER_SOURCE,
    PipelineLinkError,
    RendererSetupError,
    ShaderCompileError,
    SquareRenderer,
    TexturedCubeRenderer,
    WireframeRenderer,
    compile_shader,
    link_pipeline,
)
from _scene import Cube, Scene

NAGA_LOG = "error: expected ';', found '}'\n  ┌─ wgsl:12:5"


@pytest.fixture
def device():
    device = mock.MagicMock(name="device")
    # 버퍼마다 다른 객체
    device.create_buffer.side_effect = lambda **kwargs: mock.MagicMock(name="buffer")
    device.create_buffer_with_data.side_effect = lambda **kwargs: mock.MagicMock(name="buffer")
    return device


def make_context(width, height):
    context = mock.MagicMock(name="context")
    context.get_current_texture.return_value.size = (width, height, 1)
    return context


def render_pass_of(device):
    return device.create_command_encoder.return_value.begin_render_pass.return_value


def last_uniform_upload(device, buffer):
    uploads = [c.args for c in device.queue.write_buffer.call_args_list if c.args[0] is buffer]
    return uploads[-1][2]


class TestCompileShader:
    def test_success_passes_through(self, device):
        module = compile_shader(device, COLOR_SHADER_SOURCE, "color")
        assert module is device.create_shader_module.return_value
        device.create_shader_module.assert_called_once_with(label="color", code=COLOR_SHADER_SOURCE)

    def test_failure_carries_stage_and_log(self, device):
        device.create_shader_module.side_effect = wgpu.GPUValidationError(NAGA_LOG)
        with pytest.raises(ShaderCompileError) as excinfo:
            compile_shader(device, "broken", "color")
        err = excinfo.value
        assert isinstance(err, RendererSetupError)
        assert "color" in err.stage
        assert NAGA_LOG in err.log
        assert NAGA_LOG in str(err)


class TestLinkPipeline:
    def test_failure(self, device):
        device.create_render_pipeline.side_effect = wgpu.GPUValidationError("entry point not found")
        with pytest.raises(PipelineLinkError) as excinfo:
            link_pipeline(device, "square", layout=None)
        assert "square" in excinfo.value.stage
        assert "entry point not found" in str(excinfo.value)


class TestSetupAborts:
    def test_square_renderer_shader_failure(self, device):
        device.create_shader_module.side_effect = wgpu.GPUValidationError(NAGA_LOG)
        with pytest.raises(ShaderCompileError):
            SquareRenderer(device, wgpu.TextureFormat.bgra8unorm)
        device.create_render_pipeline.assert_not_called()

    def test_wireframe_renderer_link_failure(self, device):
        device.create_render_pipeline.side_effect = wgpu.GPUValidationError("bad layout")
        with pytest.raises(PipelineLinkError):
            WireframeRenderer(device, wgpu.TextureFormat.bgra8unorm, Scene([Cube(0, 0, 0, 10)]))


class TestWireframeFrame:
    def test_draws_visible_cubes(self, device):
        scene = Scene([Cube(0, 0, 0, 10), Cube(0, 0, -700, 10)])
        renderer = WireframeRenderer(device, wgpu.TextureFormat.bgra8unorm, scene, field_of_view=400)

        context = mock.MagicMock(name="context")
        context.get_current_texture.return_value.size = (800, 600, 1)

        assert renderer.draw_frame(context) == 1
        render_pass = device.create_command_encoder.return_value.begin_render_pass.return_value
        render_pass.draw.assert_called_once_with(24, 1, 0, 0)
        device.queue.submit.assert_called_once()

    def test_logical_size_drives_projection_and_viewport(self, device):
        scene = Scene([Cube(0, 0, 0, 10)])
        renderer = WireframeRenderer(device, wgpu.TextureFormat.bgra8unorm, scene, field_of_view=400)

        # 물리 텍스처는 논리 크기의 2배 (HiDPI)
        renderer.draw_frame(make_context(1600, 1200), logical_size=(800, 600))

        viewport = np.frombuffer(last_uniform_upload(device, renderer.uniform_buffer), dtype=np.float32)
        np.testing.assert_array_equal(viewport, [800, 600, 0, 0])
        (x0, y0), _ = renderer.sink.segments[0]
        assert x0 == pytest.approx(-10 * 400 / 390 + 400)
        assert y0 == pytest.approx(-10 * 400 / 390 + 300)


class TestSquareFrame:
    def test_triangle_strip_pipeline(self, device):
        SquareRenderer(device, wgpu.TextureFormat.bgra8unorm)
        kwargs = device.create_render_pipeline.call_args.kwargs
        assert kwargs["primitive"]["topology"] == wgpu.PrimitiveTopology.triangle_strip
        assert [b["array_stride"] for b in kwargs["vertex"]["buffers"]] == [8, 16]

    def test_draw_frame(self, device):
        renderer = SquareRenderer(device, wgpu.TextureFormat.bgra8unorm)
        renderer.draw_frame(make_context(640, 480))

        expected = pack_uniforms(projection_for_viewport(640, 480), square_model_view())
        assert last_uniform_upload(device, renderer.uniform_buffer) == expected
        render_pass_of(device).draw.assert_called_once_with(4, 1, 0, 0)
        device.queue.submit.assert_called_once()


class TestTexturedCubeFrame:
    def test_single_pipeline_without_wireframe(self, device):
        renderer = TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm)
        assert renderer.wireframe_pipeline is None
        assert device.create_render_pipeline.call_count == 1

    def test_wireframe_pipeline_when_requested(self, device):
        renderer = TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm, wireframe=True)
        assert renderer.wireframe_pipeline is not None
        topologies = [c.kwargs["primitive"]["topology"] for c in device.create_render_pipeline.call_args_list]
        assert topologies == [wgpu.PrimitiveTopology.triangle_list, wgpu.PrimitiveTopology.line_list]

    def test_interleaved_vertex_buffer(self, device):
        TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm)
        (layout,) = device.create_render_pipeline.call_args.kwargs["vertex"]["buffers"]
        assert layout["array_stride"] == 20
        assert [a["offset"] for a in layout["attributes"]] == [0, 12]

    def test_rotation_follows_elapsed_time(self, device):
        renderer = TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm)
        context = make_context(640, 480)

        renderer.draw_frame(context, now=1.0)
        renderer.draw_frame(context, now=1.5)
        assert renderer.state.rotation == pytest.approx(0.5)

        # 세 번째 프레임은 누적된 0.5 rad 로 모델뷰를 올린 뒤 0.75초를 더함
        renderer.draw_frame(context, now=2.25)
        expected = pack_uniforms(projection_for_viewport(640, 480), cube_model_view(0.5))
        assert last_uniform_upload(device, renderer.uniform_buffer) == expected
        assert renderer.state.rotation == pytest.approx(1.25)

    def test_indexed_draws(self, device):
        renderer = TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm)
        renderer.draw_frame(make_context(640, 480), now=0.0)

        render_pass = render_pass_of(device)
        render_pass.set_index_buffer.assert_called_once_with(renderer.index_buffer, wgpu.IndexFormat.uint16)
        render_pass.draw_indexed.assert_called_once_with(36, 1, 0, 0, 0)

    def test_indexed_draws_with_wireframe(self, device):
        renderer = TexturedCubeRenderer(device, wgpu.TextureFormat.bgra8unorm, wireframe=True)
        renderer.draw_frame(make_context(640, 480), now=0.0)

        render_pass = render_pass_of(device)
        assert render_pass.set_index_buffer.call_args_list == [
            mock.call(renderer.index_buffer, wgpu.IndexFormat.uint16),
            mock.call(renderer.wire_index_buffer, wgpu.IndexFormat.uint32),
        ]
        assert render_pass.draw_indexed.call_args_list == [
            mock.call(36, 1, 0, 0, 0),
            mock.call(72, 1, 0, 0, 0),
        ]
