"""Tests for affine transforms.

Tests cover:
- Translation, scaling, rotation and shearing of points and vectors
- Composition order of chain()
- Inversion and validation of malformed or singular matrices
- Device-side point, vector and normal transforms
"""

import math

import numpy as np
import pytest
import taichi as ti

from lumentrace.core.transform import (
    as_matrix4,
    chain,
    identity,
    inverse,
    is_identity,
    rotation_x,
    rotation_y,
    rotation_z,
    scaling,
    shearing,
    translation,
)


def point(x, y, z):
    return np.array([x, y, z, 1.0])


def vector(x, y, z):
    return np.array([x, y, z, 0.0])


class TestBuilders:
    def test_translation_moves_points(self):
        np.testing.assert_allclose(translation(5, -3, 2) @ point(-3, 4, 5), point(2, 1, 7))

    def test_inverse_translation(self):
        np.testing.assert_allclose(inverse(translation(5, -3, 2)) @ point(-3, 4, 5), point(-8, 7, 3))

    def test_translation_leaves_vectors(self):
        np.testing.assert_allclose(translation(5, -3, 2) @ vector(-3, 4, 5), vector(-3, 4, 5))

    def test_scaling(self):
        np.testing.assert_allclose(scaling(2, 3, 4) @ point(-4, 6, 8), point(-8, 18, 32))
        np.testing.assert_allclose(scaling(2, 3, 4) @ vector(-4, 6, 8), vector(-8, 18, 32))

    def test_inverse_scaling(self):
        np.testing.assert_allclose(inverse(scaling(2, 3, 4)) @ vector(-4, 6, 8), vector(-2, 2, 2))

    def test_reflection_is_negative_scaling(self):
        np.testing.assert_allclose(scaling(-1, 1, 1) @ point(2, 3, 4), point(-2, 3, 4))

    @pytest.mark.parametrize(
        "rotation, start, quarter",
        [
            (rotation_x, (0, 1, 0), (0, 0, 1)),
            (rotation_y, (0, 0, 1), (1, 0, 0)),
            (rotation_z, (0, 1, 0), (-1, 0, 0)),
        ],
    )
    def test_quarter_rotations(self, rotation, start, quarter):
        half = math.sqrt(2.0) / 2.0
        eighth = rotation(math.pi / 4.0) @ point(*start)
        np.testing.assert_allclose(eighth[:3], half * (np.array(start) + np.array(quarter)), atol=1e-12)
        np.testing.assert_allclose(rotation(math.pi / 2.0) @ point(*start), point(*quarter), atol=1e-12)

    def test_inverse_rotation_turns_back(self):
        half = math.sqrt(2.0) / 2.0
        np.testing.assert_allclose(inverse(rotation_x(math.pi / 4.0)) @ point(0, 1, 0), point(0, half, -half))

    @pytest.mark.parametrize(
        "factors, expected",
        [
            ((1, 0, 0, 0, 0, 0), (5, 3, 4)),
            ((0, 1, 0, 0, 0, 0), (6, 3, 4)),
            ((0, 0, 1, 0, 0, 0), (2, 5, 4)),
            ((0, 0, 0, 1, 0, 0), (2, 7, 4)),
            ((0, 0, 0, 0, 1, 0), (2, 3, 6)),
            ((0, 0, 0, 0, 0, 1), (2, 3, 7)),
        ],
    )
    def test_shearing(self, factors, expected):
        np.testing.assert_allclose(shearing(*factors) @ point(2, 3, 4), point(*expected))


class TestChain:
    def test_applies_first_argument_first(self):
        p = point(1, 0, 1)
        a = rotation_x(math.pi / 2.0)
        b = scaling(5, 5, 5)
        c = translation(10, 5, 7)

        np.testing.assert_allclose(chain(a, b, c) @ p, c @ (b @ (a @ p)), atol=1e-12)
        np.testing.assert_allclose(chain(a, b, c) @ p, point(15, 0, 7), atol=1e-12)

    def test_order_matters(self):
        p = point(1, 0, 0)
        np.testing.assert_allclose(chain(scaling(2, 2, 2), translation(1, 0, 0)) @ p, point(3, 0, 0))
        np.testing.assert_allclose(chain(translation(1, 0, 0), scaling(2, 2, 2)) @ p, point(4, 0, 0))

    def test_empty_chain_is_identity(self):
        assert is_identity(chain())

    def test_inverse_undoes_chain(self):
        m = chain(scaling(1, 2, 3), shearing(1, 0, 0, 0, 0, 1), rotation_y(0.7), translation(4, -2, 1))
        np.testing.assert_allclose(inverse(m) @ m, identity(), atol=1e-12)


class TestValidation:
    def test_accepts_nested_lists(self):
        m = as_matrix4(translation(1, 2, 3).tolist())
        assert m.dtype == np.float64

    def test_wrong_shape(self):
        with pytest.raises(ValueError, match="4x4"):
            as_matrix4(np.eye(3))

    def test_non_finite(self):
        m = identity()
        m[0, 3] = np.nan
        with pytest.raises(ValueError, match="finite"):
            as_matrix4(m)

    def test_projective_bottom_row(self):
        m = identity()
        m[3, 2] = 1.0
        with pytest.raises(ValueError, match="affine"):
            as_matrix4(m)

    @pytest.mark.parametrize("m", [scaling(0, 1, 1), scaling(1, 1e-5, 1e-8)])
    def test_singular(self, m):
        with pytest.raises(ValueError, match="singular"):
            inverse(m)

    def test_name_in_message(self):
        with pytest.raises(ValueError, match="pattern_transform"):
            inverse(scaling(0, 0, 0), "pattern_transform")


class TestDeviceTransforms:
    def _apply(self, m):
        from lumentrace.core.transform import (
            to_ti_mat4,
            transform_normal,
            transform_point,
            transform_vector,
            vec3,
        )

        out = ti.Vector.field(3, dtype=ti.f32, shape=3)
        mat = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        mat[None] = to_ti_mat4(m)

        @ti.kernel
        def test_kernel():
            out[0] = transform_point(mat[None], vec3(1.0, 2.0, 3.0))
            out[1] = transform_vector(mat[None], vec3(1.0, 2.0, 3.0))
            out[2] = transform_normal(mat[None], vec3(0.0, 1.0, 0.0))

        test_kernel()
        return out.to_numpy()

    def test_point_and_vector(self):
        p, v, _ = self._apply(chain(scaling(2, 2, 2), translation(1, 1, 1)))
        np.testing.assert_allclose(p, [3.0, 5.0, 7.0], atol=1e-6)
        np.testing.assert_allclose(v, [2.0, 4.0, 6.0], atol=1e-6)

    def test_normal_uses_inverse_transpose(self):
        """A sphere squashed in y keeps a unit normal that leans toward y."""
        m = chain(scaling(1.0, 0.5, 1.0), rotation_z(math.pi / 5.0))
        _, _, n = self._apply(inverse(m))

        expected = (inverse(m).T @ vector(0, 1, 0))[:3]
        np.testing.assert_allclose(n, expected / np.linalg.norm(expected), atol=1e-5)
        assert abs(np.linalg.norm(n) - 1.0) < 1e-5

    def test_translation_does_not_move_normals(self):
        _, _, n = self._apply(inverse(translation(0, 0, 5)))
        np.testing.assert_allclose(n, [0.0, 1.0, 0.0], atol=1e-6)
