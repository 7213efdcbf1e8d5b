# _scene.py
"""
수동 투영(Manual Projection) 와이어프레임 큐브 장면

GPU 행렬을 쓰지 않고 각 꼭짓점을 직접 원근 나눗셈하여 2D 화면 좌표로 변환합니다.

    scale   = fov / (fov + z)
    screenX = x * scale + width / 2
    screenY = y * scale + height / 2

fov 는 초점 거리 역할을 하는 상수 하나입니다 (탄젠트 기반 FOV 가 아님).
큐브 사이의 깊이 정렬이나 z-buffer 는 없습니다. 그리는 순서 = 장면에 들어간 순서이므로
겹치는 와이어프레임은 순서대로 덧그려집니다.
"""
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Protocol, Tuple

import numpy as np

from _mesh import CUBE_CORNERS, CUBE_EDGES

# 기본 장면 설정
DEFAULT_CUBE_COUNT = 100
FOV_FACTOR = 0.8  # field_of_view = 화면 너비 * FOV_FACTOR

Point2D = Tuple[float, float]
Segment = Tuple[Point2D, Point2D]


class Projection(NamedTuple):
    size: float
    x: float
    y: float


@dataclass(frozen=True)
class Cube:
    """월드 위치 (x, y, z) 와 크기 radius 를 가진 와이어프레임 큐브."""
    x: float
    y: float
    z: float
    radius: float

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def world_corners(self) -> np.ndarray:
        """position + radius * 로컬 꼭짓점 ([8, 3])"""
        return self.position + self.radius * CUBE_CORNERS


def random_cube(rng: np.random.Generator, extent: float) -> Cube:
    """각 축 [-extent/2, extent/2) 범위에 무작위 배치, radius 는 10~21 정수."""
    x, y, z = (rng.random(3) - 0.5) * extent
    radius = float(np.floor(rng.random() * 12 + 10))
    return Cube(float(x), float(y), float(z), radius)


class Scene:
    """고정 크기의 큐브 목록. 생성 후 변경되지 않습니다."""

    def __init__(self, cubes):
        self.cubes: Tuple[Cube, ...] = tuple(cubes)

    @classmethod
    def random(cls, count: int = DEFAULT_CUBE_COUNT, extent: float = 800.0,
               seed: Optional[int] = None) -> "Scene":
        rng = np.random.default_rng(seed)
        return cls(random_cube(rng, extent) for _ in range(count))

    def __len__(self) -> int:
        return len(self.cubes)

    def __iter__(self):
        return iter(self.cubes)


def default_field_of_view(width: float) -> float:
    return width * FOV_FACTOR


def project(x: float, y: float, z: float, field_of_view: float,
            width: float, height: float) -> Projection:
    """
    3D 점 하나를 화면 좌표로 투영합니다.

    z == -field_of_view 이면 예외 없이 size 가 inf 가 됩니다.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        size = np.float64(field_of_view) / np.float64(field_of_view + z)
        sx = x * size + width / 2
        sy = y * size + height / 2
    return Projection(size=float(size), x=float(sx), y=float(sy))


def is_culled(cube: Cube, field_of_view: float) -> bool:
    """카메라 뒤로 충분히 넘어가서 투영이 뒤집히거나 발산하는 큐브인지 판정합니다."""
    return cube.z < -field_of_view + cube.radius


def cube_segments(cube: Cube, field_of_view: float,
                  width: float, height: float) -> List[Segment]:
    """큐브의 12개 모서리를 화면 좌표 선분으로 변환합니다. (컬링 검사 없음)"""
    corners = cube.world_corners()
    projected = [project(cx, cy, cz, field_of_view, width, height) for cx, cy, cz in corners]

    segments = []
    for a, b in CUBE_EDGES:
        p0, p1 = projected[a], projected[b]
        segments.append(((p0.x, p0.y), (p1.x, p1.y)))
    return segments


class LineSink(Protocol):
    """2D 선분을 받아 그리는 외부 드로잉 백엔드."""

    def clear(self, width: float, height: float) -> None: ...

    def line(self, p0: Point2D, p1: Point2D) -> None: ...


class LineCollector:
    """선분을 메모리에 모으는 LineSink. (GPU 업로드용 / 테스트용)"""

    def __init__(self):
        self.width = 0.0
        self.height = 0.0
        self.segments: List[Segment] = []

    def clear(self, width: float, height: float) -> None:
        self.width, self.height = width, height
        self.segments = []

    def line(self, p0: Point2D, p1: Point2D) -> None:
        self.segments.append((tuple(p0), tuple(p1)))

    def as_array(self) -> np.ndarray:
        """[N * 2, 2] float32 정점 배열 (line list 순서)."""
        if not self.segments:
            return np.zeros((0, 2), dtype=np.float32)
        return np.asarray(self.segments, dtype=np.float32).reshape(-1, 2)


def draw_scene(scene: Scene, sink: LineSink, width: float, height: float,
               field_of_view: Optional[float] = None) -> int:
    """
    한 프레임을 그립니다: 화면 전체를 지우고 장면 순서대로 각 큐브를 그립니다.

    Returns
    -------
    int
        실제로 그려진(컬링되지 않은) 큐브 수
    """
    if field_of_view is None:
        field_of_view = default_field_of_view(width)

    sink.clear(width, height)
    drawn = 0
    for cube in scene:
        if is_culled(cube, field_of_view):
            continue
        for p0, p1 in cube_segments(cube, field_of_view, width, height):
            sink.line(p0, p1)
        drawn += 1
    return drawn
