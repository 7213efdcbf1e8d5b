import math

import numpy as np
import pytest

from _frame import (
    AnimationState,
    VertexAttribute,
    cube_model_view,
    pack_uniforms,
    projection_for_viewport,
    square_model_view,
    step,
    vertex_buffer_layout,
)
from _math import identity, perspective, rotate, transform_point, translate, translation_of


class TestStep:
    def test_first_frame_has_no_delta(self):
        state, delta = step(AnimationState(), 12.5)
        assert delta == 0.0
        assert state == AnimationState(rotation=0.0, then=12.5)

    def test_rotation_accumulates_elapsed_time(self):
        state = AnimationState()
        for now in (1.0, 1.25, 1.5, 2.0):
            state, _ = step(state, now)
        assert state.rotation == pytest.approx(1.0)
        assert state.then == 2.0

    def test_previous_state_is_untouched(self):
        before = AnimationState(rotation=0.5, then=1.0)
        after, delta = step(before, 1.1)
        assert before.rotation == 0.5
        assert delta == pytest.approx(0.1)
        assert after.rotation == pytest.approx(0.6)


class TestProjectionForViewport:
    def test_aspect_follows_viewport(self):
        wide = projection_for_viewport(1600, 800)
        square = projection_for_viewport(800, 800)
        assert wide[5] == pytest.approx(square[5])
        assert wide[0] == pytest.approx(square[0] / 2)

    def test_matches_perspective(self):
        expected = perspective(math.radians(45), 640 / 480, 0.1, 100.0)
        np.testing.assert_allclose(projection_for_viewport(640, 480), expected)

    def test_zero_height_is_guarded(self):
        assert np.all(np.isfinite(projection_for_viewport(640, 0)))


class TestModelView:
    def test_square_is_pushed_back(self):
        np.testing.assert_array_equal(translation_of(square_model_view()), [0, 0, -6])

    def test_cube_rotates_about_its_own_position(self):
        m = cube_model_view(1.3)
        np.testing.assert_array_equal(translation_of(m), [0, 0, -6])
        np.testing.assert_allclose(transform_point(m, (0, 0, 0)), [0, 0, -6, 1])

    def test_composition_order(self):
        r = 0.8
        expected = rotate(rotate(translate(identity(), (0, 0, -6)), r, (0, 0, 1)), r * 0.7, (0, 1, 0))
        np.testing.assert_allclose(cube_model_view(r), expected)


class TestUniforms:
    def test_pack_layout(self):
        proj = projection_for_viewport(640, 480)
        mv = cube_model_view(0.2)
        data = pack_uniforms(proj, mv)
        assert len(data) == 128
        floats = np.frombuffer(data, dtype=np.float32)
        np.testing.assert_allclose(floats[:16], proj, rtol=1e-6)
        np.testing.assert_allclose(floats[16:], mv, rtol=1e-6, atol=1e-6)


class TestVertexLayout:
    def test_formats(self):
        assert VertexAttribute(0, 3).format == "float32x3"
        assert VertexAttribute(0, 1).format == "float32"
        assert VertexAttribute(0, 4, dtype="uint8", normalize=True).format == "unorm8x4"

    def test_unsupported(self):
        with pytest.raises(ValueError):
            VertexAttribute(0, 2, dtype="float32", normalize=True).format

    @pytest.mark.parametrize(
        "dtype, normalize, components",
        [("uint8", True, 3), ("uint8", False, 3), ("uint16", True, 3), ("int16", False, 3), ("float32", False, 5), ("float32", False, 0)],
    )
    def test_nonexistent_component_counts(self, dtype, normalize, components):
        with pytest.raises(ValueError):
            VertexAttribute(0, components, dtype=dtype, normalize=normalize).format

    def test_three_component_float(self):
        assert VertexAttribute(0, 3, dtype="uint32").format == "uint32x3"

    def test_packed_stride(self):
        layout = vertex_buffer_layout([
            VertexAttribute(0, 3),
            VertexAttribute(1, 2, offset=12),
        ])
        assert layout["array_stride"] == 20
        assert layout["attributes"] == [
            {"format": "float32x3", "offset": 0, "shader_location": 0},
            {"format": "float32x2", "offset": 12, "shader_location": 1},
        ]

    def test_explicit_stride(self):
        layout = vertex_buffer_layout([VertexAttribute(0, 2, stride=32)])
        assert layout["array_stride"] == 32
