"""Unit tests for vector helpers.

Tests cover:
- Host-side conversion and normalization (NumPy)
- Device-side dot, cross, normalize, near_zero, lerp
- Reflection and refraction
- Schlick reflectance
- Random sampling stays inside its domain
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestHostHelpers:
    """Tests for NumPy-side helpers."""

    def test_as_vec3_accepts_tuples(self):
        from lumentrace.core.vector import as_vec3

        v = as_vec3((1, 2, 3))
        assert v.dtype == np.float64
        np.testing.assert_array_equal(v, [1.0, 2.0, 3.0])

    def test_as_vec3_rejects_wrong_length(self):
        from lumentrace.core.vector import as_vec3

        with pytest.raises(ValueError, match="exactly 3 components"):
            as_vec3((1.0, 2.0))

    def test_as_vec3_rejects_non_finite(self):
        from lumentrace.core.vector import as_vec3

        with pytest.raises(ValueError, match="finite"):
            as_vec3((1.0, float("nan"), 0.0))

    def test_unit_vector_has_length_one(self):
        from lumentrace.core.vector import unit_vector

        v = unit_vector((3.0, 0.0, 4.0))
        np.testing.assert_allclose(v, [0.6, 0.0, 0.8])

    def test_unit_vector_zero_raises(self):
        """Normalizing the zero vector is a reported error, not NaN."""
        from lumentrace.core.vector import DegenerateVectorError, unit_vector

        with pytest.raises(DegenerateVectorError):
            unit_vector((0.0, 0.0, 0.0))

    def test_degenerate_error_is_value_error(self):
        from lumentrace.core.vector import DegenerateVectorError

        assert issubclass(DegenerateVectorError, ValueError)


class TestDeviceArithmetic:
    """Tests for Taichi vector functions."""

    def test_dot_and_cross(self):
        from lumentrace.core.vector import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 12.0) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6

    def test_length_and_normalize(self):
        from lumentrace.core.vector import length, length_squared, normalize, vec3

        len_result = ti.field(dtype=ti.f32, shape=())
        len_sq_result = ti.field(dtype=ti.f32, shape=())
        unit_result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(0.0, 3.0, 4.0)
            len_result[None] = length(v)
            len_sq_result[None] = length_squared(v)
            unit_result[None] = normalize(v)

        test_kernel()
        assert abs(len_result[None] - 5.0) < 1e-6
        assert abs(len_sq_result[None] - 25.0) < 1e-5
        u = unit_result[None]
        assert abs(u[1] - 0.6) < 1e-6
        assert abs(u[2] - 0.8) < 1e-6

    def test_near_zero(self):
        from lumentrace.core.vector import near_zero, vec3

        small = ti.field(dtype=ti.i32, shape=())
        large = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            small[None] = near_zero(vec3(1e-9, -1e-9, 0.0))
            large[None] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert small[None] == 1
        assert large[None] == 0

    def test_lerp_endpoints(self):
        from lumentrace.core.vector import lerp, vec3

        at_zero = ti.Vector.field(3, dtype=ti.f32, shape=())
        at_half = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            a = vec3(1.0, 1.0, 1.0)
            b = vec3(0.5, 0.7, 1.0)
            at_zero[None] = lerp(a, b, 0.0)
            at_half[None] = lerp(a, b, 0.5)

        test_kernel()
        np.testing.assert_allclose(at_zero.to_numpy(), [1.0, 1.0, 1.0], atol=1e-6)
        np.testing.assert_allclose(at_half.to_numpy(), [0.75, 0.85, 1.0], atol=1e-6)


class TestReflectRefract:
    """Tests for reflection, refraction and Schlick reflectance."""

    def test_reflect_about_normal(self):
        from lumentrace.core.vector import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        np.testing.assert_allclose(result.to_numpy(), [1.0, 1.0, 0.0], atol=1e-6)

    def test_refract_unit_ratio_is_straight_through(self):
        from lumentrace.core.vector import normalize, refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        incident = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(1.0, -2.0, 0.5))
            incident[None] = d
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        np.testing.assert_allclose(result.to_numpy(), incident.to_numpy(), atol=1e-5)

    def test_refract_total_internal_reflection_gives_zero(self):
        from lumentrace.core.vector import normalize, refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            # Grazing ray leaving glass (eta = 1.5)
            d = normalize(vec3(1.0, -0.1, 0.0))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        np.testing.assert_allclose(result.to_numpy(), [0.0, 0.0, 0.0], atol=1e-6)

    def test_refract_obeys_snell(self):
        from lumentrace.core.vector import normalize, refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result.to_numpy()
        sin_i = math.sin(math.radians(45.0))
        sin_t = abs(r[0]) / np.linalg.norm(r)
        assert abs(sin_i - 1.5 * sin_t) < 1e-4
        assert abs(np.linalg.norm(r) - 1.0) < 1e-5

    @pytest.mark.parametrize(
        "cosine,ratio,expected",
        [
            (1.0, 1.0 / 1.5, 0.04),
            (0.0, 1.0 / 1.5, 1.0),
            (0.3, 1.0, 0.0),
        ],
    )
    def test_schlick_reflectance(self, cosine, ratio, expected):
        from lumentrace.core.vector import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(c: ti.f32, r: ti.f32):
            result[None] = schlick_reflectance(c, r)

        test_kernel(cosine, ratio)
        assert abs(result[None] - expected) < 1e-5


class TestRandomSampling:
    """Random samplers stay inside their domains."""

    def test_random_unit_vector_length(self):
        from lumentrace.core.vector import random_unit_vector

        n = 256
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                lengths[i] = random_unit_vector().norm()

        test_kernel()
        np.testing.assert_allclose(lengths.to_numpy(), 1.0, atol=1e-5)

    def test_random_in_unit_sphere_inside(self):
        from lumentrace.core.vector import random_in_unit_sphere

        n = 256
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                lengths[i] = random_in_unit_sphere().norm()

        test_kernel()
        values = lengths.to_numpy()
        assert np.all(values < 1.0)
        assert np.all(values > 0.0)

    def test_random_in_unit_disk_is_planar(self):
        from lumentrace.core.vector import random_in_unit_disk

        n = 256
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                points[i] = random_in_unit_disk()

        test_kernel()
        values = points.to_numpy()
        np.testing.assert_array_equal(values[:, 2], 0.0)
        assert np.all(values[:, 0] ** 2 + values[:, 1] ** 2 < 1.0)
