# _mesh.py
"""큐브 / 사각형 지오메트리 데이터 (전부 numpy.ndarray)."""
import numpy as np

from _math import is_power_of_2

# 와이어프레임 큐브: 8개 꼭짓점 ({-1, 1}^3)
CUBE_CORNERS = np.array(
    [
        [-1, -1, -1],
        [1, -1, -1],
        [-1, 1, -1],
        [1, 1, -1],
        [-1, -1, 1],
        [1, -1, 1],
        [-1, 1, 1],
        [1, 1, 1],
    ],
    dtype=np.float64,
)
CUBE_CORNERS.flags.writeable = False

# 12개 모서리 (꼭짓점 인덱스 쌍)
CUBE_EDGES = np.array(
    [
        [0, 1], [1, 3], [3, 2], [2, 0],
        [2, 6], [3, 7], [0, 4], [1, 5],
        [6, 7], [6, 4], [7, 5], [4, 5],
    ],
    dtype=np.uint16,
)
CUBE_EDGES.flags.writeable = False


def cube_positions() -> np.ndarray:
    """텍스처 큐브 정점 위치 (면당 4개, 총 24개 * xyz)."""
    return np.array(
        [
            # 앞면
            [-1.0, -1.0, 1.0], [1.0, -1.0, 1.0], [1.0, 1.0, 1.0], [-1.0, 1.0, 1.0],
            # 뒷면
            [-1.0, -1.0, -1.0], [-1.0, 1.0, -1.0], [1.0, 1.0, -1.0], [1.0, -1.0, -1.0],
            # 윗면
            [-1.0, 1.0, -1.0], [-1.0, 1.0, 1.0], [1.0, 1.0, 1.0], [1.0, 1.0, -1.0],
            # 아랫면
            [-1.0, -1.0, -1.0], [1.0, -1.0, -1.0], [1.0, -1.0, 1.0], [-1.0, -1.0, 1.0],
            # 오른쪽
            [1.0, -1.0, -1.0], [1.0, 1.0, -1.0], [1.0, 1.0, 1.0], [1.0, -1.0, 1.0],
            # 왼쪽
            [-1.0, -1.0, -1.0], [-1.0, -1.0, 1.0], [-1.0, 1.0, 1.0], [-1.0, 1.0, -1.0],
        ],
        dtype=np.float32,
    )


def cube_texture_coords() -> np.ndarray:
    """면마다 같은 (0,0)-(1,1) 텍스처 좌표."""
    face = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]]
    return np.array(face * 6, dtype=np.float32)


def cube_indices() -> np.ndarray:
    """면당 삼각형 2개, 총 36개의 uint16 인덱스 (triangle list)."""
    indices = []
    for face in range(6):
        base = face * 4
        indices.extend([base, base + 1, base + 2, base, base + 2, base + 3])
    return np.array(indices, dtype=np.uint16)


def square_positions() -> np.ndarray:
    """triangle strip 으로 그리는 2D 사각형."""
    return np.array(
        [
            [1.0, 1.0],
            [-1.0, 1.0],
            [1.0, -1.0],
            [-1.0, -1.0],
        ],
        dtype=np.float32,
    )


def square_colors() -> np.ndarray:
    return np.array(
        [
            [1.0, 1.0, 1.0, 1.0],  # white
            [1.0, 0.0, 0.0, 1.0],  # red
            [0.0, 1.0, 0.0, 1.0],  # green
            [0.0, 0.0, 1.0, 1.0],  # blue
        ],
        dtype=np.float32,
    )


def interleave(*arrays: np.ndarray) -> np.ndarray:
    """정점별 속성 배열들을 한 버퍼용 float32 배열로 합칩니다. ([N, a] + [N, b] -> [N, a+b])"""
    return np.hstack([np.asarray(a, dtype=np.float32) for a in arrays]).astype(np.float32)


def create_wireframe_indices(triangle_indices: np.ndarray) -> np.ndarray:
    """삼각형 리스트 인덱스에서 와이어프레임(라인 리스트) 인덱스를 생성합니다."""
    tris = np.asarray(triangle_indices).reshape(-1, 3)
    indices = []
    for v0, v1, v2 in tris:
        indices.extend([v0, v1, v1, v2, v2, v0])
    return np.array(indices, dtype=np.uint32)


def checkerboard_texture(size: int = 64, cells: int = 8) -> np.ndarray:
    """
    RGBA8 체커보드 텍스처를 생성합니다. (이미지 파일 없이 큐브에 입힐 용도)

    size 는 2의 거듭제곱이어야 합니다.
    """
    if not is_power_of_2(size):
        raise ValueError(f"텍스처 크기는 2의 거듭제곱이어야 합니다: {size}")
    if cells <= 0 or size % cells != 0:
        raise ValueError(f"cells 는 size 의 약수여야 합니다: size={size}, cells={cells}")

    step = size // cells
    yy, xx = np.mgrid[0:size, 0:size]
    mask = ((xx // step) + (yy // step)) % 2 == 0

    tex = np.empty((size, size, 4), dtype=np.uint8)
    tex[mask] = (235, 235, 245, 255)
    tex[~mask] = (40, 70, 200, 255)
    return tex
