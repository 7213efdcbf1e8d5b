# _math.py
"""
4x4 행렬 / 3D 벡터 연산 모듈

모든 행렬은 길이 16의 numpy 배열이며 컬럼-주요(Column-Major) 순서로 저장됩니다.
(인덱스 12, 13, 14 가 translation 성분)

반환되는 행렬은 항상 새 배열이고 읽기 전용입니다. 입력 행렬은 절대 수정하지 않습니다.
"""
import math
from math import cos, sin, tan

import numpy as np

MATRIX_SIZE = 16


class InvalidParameterError(ValueError):
    """check=True 로 호출했을 때 잘못된 인자를 알려주는 예외."""

    def __init__(self, name: str, value, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"잘못된 인자 '{name}'={value!r}: {reason}")


def _freeze(values) -> np.ndarray:
    m = np.array(values, dtype=np.float64).reshape(MATRIX_SIZE)
    m.flags.writeable = False
    return m


# 행렬 생성 함수 (전부 numpy.ndarray 반환)
def identity() -> np.ndarray:
    """단위 행렬을 생성합니다."""
    return _freeze(np.eye(4).reshape(-1, order="F"))


def perspective(fovy_radians: float, aspect: float, near: float, far=None, check: bool = False) -> np.ndarray:
    """
    원근 투영 행렬을 생성합니다.

    far 가 None 또는 inf 이면 무한 원평면(infinite far plane) 행렬을 만듭니다.
    기본적으로 인자를 검사하지 않으므로 잘못된 입력은 inf/nan 이 섞인 행렬이 됩니다.
    check=True 이면 InvalidParameterError 를 발생시킵니다.
    """
    infinite = far is None or math.isinf(far)
    if check:
        _check_perspective(fovy_radians, aspect, near, None if infinite else far)

    with np.errstate(divide="ignore", invalid="ignore"):
        f = np.float64(1.0) / np.float64(tan(fovy_radians / 2.0))
        m = np.zeros(MATRIX_SIZE, dtype=np.float64)
        m[0] = f / np.float64(aspect)
        m[5] = f
        m[11] = -1.0
        if not infinite:
            nf = np.float64(1.0) / np.float64(near - far)
            m[10] = (far + near) * nf
            m[14] = 2 * far * near * nf
        else:
            m[10] = -1.0
            m[14] = -2 * near
    m.flags.writeable = False
    return m


def _check_perspective(fovy_radians, aspect, near, far):
    if not math.isfinite(fovy_radians) or not 0.0 < fovy_radians < math.pi:
        raise InvalidParameterError("fovy_radians", fovy_radians, "(0, pi) 범위여야 합니다")
    if not math.isfinite(aspect) or aspect <= 0.0:
        raise InvalidParameterError("aspect", aspect, "양수여야 합니다")
    if not math.isfinite(near) or near <= 0.0:
        raise InvalidParameterError("near", near, "양수여야 합니다")
    if far is not None and (math.isnan(far) or far <= near):
        raise InvalidParameterError("far", far, "near 보다 커야 합니다")


def rotate(m, rad: float, axis, check: bool = False) -> np.ndarray:
    """
    주어진 축(axis)을 기준으로 rad 만큼 회전한 행렬을 반환합니다.

    축은 내부에서 정규화됩니다. 결과는 (입력의 회전 부분) * (새 회전) 이며
    translation 열(12~15)은 그대로 유지됩니다.
    """
    a = np.asarray(m, dtype=np.float64).reshape(MATRIX_SIZE)
    x, y, z = (float(c) for c in axis)
    if check:
        length = math.hypot(x, y, z)
        if not math.isfinite(length) or length == 0.0:
            raise InvalidParameterError("axis", tuple(axis), "길이가 0 이 아닌 유한한 벡터여야 합니다")

    with np.errstate(divide="ignore", invalid="ignore"):
        inv_len = np.float64(1.0) / np.float64(math.hypot(x, y, z))
        x, y, z = x * inv_len, y * inv_len, z * inv_len

    s, c = sin(rad), cos(rad)
    t = 1.0 - c

    # Rodrigues 회전 블록 (컬럼-주요, b[col][row])
    b = np.array(
        [
            [x * x * t + c, y * x * t + z * s, z * x * t - y * s],
            [x * y * t - z * s, y * y * t + c, z * y * t + x * s],
            [x * z * t + y * s, y * z * t - x * s, z * z * t + c],
        ],
        dtype=np.float64,
    )
    cols = a[:12].reshape(3, 4)

    out = np.empty(MATRIX_SIZE, dtype=np.float64)
    out[:12] = (b @ cols).reshape(-1)
    out[12:] = a[12:]
    out.flags.writeable = False
    return out


def translate(m, v) -> np.ndarray:
    """
    이동(Translation)을 적용한 행렬을 반환합니다.

    이동량은 행렬의 로컬(회전된) 좌표계 기준으로 적용됩니다.
    """
    a = np.asarray(m, dtype=np.float64).reshape(MATRIX_SIZE)
    x, y, z = (float(c) for c in v)

    out = a.copy()
    out[12:] = a[0:4] * x + a[4:8] * y + a[8:12] * z + a[12:16]
    out.flags.writeable = False
    return out


def as_matrix(m) -> np.ndarray:
    """컬럼-주요 16 원소 배열을 [row, col] 으로 접근 가능한 4x4 배열로 변환합니다."""
    return np.asarray(m, dtype=np.float64).reshape(4, 4, order="F")


def translation_of(m) -> np.ndarray:
    return np.array(np.asarray(m)[12:15], dtype=np.float64)


def transform_point(m, point) -> np.ndarray:
    """점 (x, y, z, w=1) 에 행렬을 곱한 동차 좌표(4 원소)를 반환합니다."""
    p = np.append(np.asarray(point, dtype=np.float64)[:3], 1.0)
    return as_matrix(m) @ p


def to_gpu(m) -> np.ndarray:
    """유니폼 업로드용 float32 사본 (컬럼-주요 순서 유지)."""
    return np.ascontiguousarray(m, dtype=np.float32).reshape(MATRIX_SIZE)


def deg_to_rad(deg: float) -> float:
    return deg * math.pi / 180


def rad_to_deg(rad: float) -> float:
    return rad * 180 / math.pi


def is_power_of_2(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0
