# _frame.py
"""
프레임 단위 상태 전이와 행렬 기반(Matrix-Driven) 변환 계산

GPU 없이 테스트할 수 있도록 렌더러에서 분리된 순수 함수들입니다.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from _math import deg_to_rad, identity, perspective, rotate, to_gpu, translate

# 카메라 기본값
FIELD_OF_VIEW_DEGREES = 45.0
Z_NEAR = 0.1
Z_FAR = 100.0
CAMERA_OFFSET = (0.0, 0.0, -6.0)

# 초당 회전량 (rad/s). 보조 축은 주 축의 0.7배
PRIMARY_SPEED = 1.0
SECONDARY_RATIO = 0.7

Z_AXIS = (0.0, 0.0, 1.0)
Y_AXIS = (0.0, 1.0, 0.0)


@dataclass(frozen=True)
class AnimationState:
    """렌더 루프가 소유하는 누적 회전 각도와 직전 프레임 시각 (초)."""
    rotation: float = 0.0
    then: Optional[float] = None


def step(state: AnimationState, now: float) -> Tuple[AnimationState, float]:
    """
    now(초) 시점의 다음 상태와 경과 시간(delta)을 반환합니다.

    첫 호출은 delta 0 으로 시각만 기록합니다.
    """
    delta = 0.0 if state.then is None else now - state.then
    return AnimationState(rotation=state.rotation + delta * PRIMARY_SPEED, then=now), delta


def projection_for_viewport(width: float, height: float,
                            fov_degrees: float = FIELD_OF_VIEW_DEGREES,
                            near: float = Z_NEAR, far: Optional[float] = Z_FAR) -> np.ndarray:
    """매 프레임 현재 화면 크기로 종횡비를 다시 계산한 투영 행렬."""
    aspect = width / max(height, 1)
    return perspective(deg_to_rad(fov_degrees), aspect, near, far)


def square_model_view() -> np.ndarray:
    return translate(identity(), CAMERA_OFFSET)


def cube_model_view(rotation: float, offset=CAMERA_OFFSET) -> np.ndarray:
    """이동 후 Z축, Y축 순서로 회전. 큐브는 이동된 자기 위치를 중심으로 돕니다."""
    m = translate(identity(), offset)
    m = rotate(m, rotation, Z_AXIS)
    m = rotate(m, rotation * SECONDARY_RATIO, Y_AXIS)
    return m


def pack_uniforms(projection, model_view) -> bytes:
    """WGSL `struct { projection: mat4x4<f32>, model_view: mat4x4<f32> }` 레이아웃 (128 bytes)."""
    return np.concatenate([to_gpu(projection), to_gpu(model_view)]).tobytes()


# 정점 속성 레이아웃
_FORMATS = {
    # (dtype, normalize) -> wgpu 포맷 접두사
    ("float32", False): "float32",
    ("uint8", True): "unorm8",
    ("uint8", False): "uint8",
    ("uint16", True): "unorm16",
    ("uint16", False): "uint16",
    ("int16", True): "snorm16",
    ("int16", False): "sint16",
    ("uint32", False): "uint32",
}

_SIZES = {"float32": 4, "uint8": 1, "uint16": 2, "int16": 2, "uint32": 4}


@dataclass(frozen=True)
class VertexAttribute:
    """버퍼에서 속성 하나를 읽는 방법 (요소 수, 자료형, 정규화 여부, stride, offset)."""
    location: int
    components: int
    dtype: str = "float32"
    normalize: bool = False
    stride: int = 0
    offset: int = 0

    @property
    def format(self) -> str:
        try:
            prefix = _FORMATS[(self.dtype, self.normalize)]
        except KeyError:
            raise ValueError(f"지원하지 않는 정점 속성: dtype={self.dtype}, normalize={self.normalize}")
        if not 1 <= self.components <= 4 or (_SIZES[self.dtype] < 4 and self.components == 3):
            # 8/16비트 포맷은 1, 2, 4 요소만 존재
            raise ValueError(f"지원하지 않는 정점 속성: dtype={self.dtype}, components={self.components}")
        if self.components == 1:
            return prefix
        return f"{prefix}x{self.components}"

    @property
    def byte_size(self) -> int:
        return _SIZES[self.dtype] * self.components


def vertex_buffer_layout(attributes: Iterable[VertexAttribute]) -> dict:
    """
    한 버퍼를 공유하는 속성들을 wgpu 의 vertex buffer layout dict 로 변환합니다.

    stride 가 0 이면 (촘촘히 붙은 배열) 속성 크기의 합을 stride 로 씁니다.
    """
    attributes = list(attributes)
    stride = attributes[0].stride or sum(a.byte_size for a in attributes)
    return {
        "array_stride": stride,
        "step_mode": "vertex",
        "attributes": [
            {"format": a.format, "offset": a.offset, "shader_location": a.location}
            for a in attributes
        ],
    }


def vertex_buffer_layouts(buffers: Iterable[Iterable[VertexAttribute]]) -> List[dict]:
    return [vertex_buffer_layout(attrs) for attrs in buffers]
