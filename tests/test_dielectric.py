"""Tests for the dielectric (glass) material.

Tests cover:
- Refraction ratio depends on which side the ray arrives from
- Total internal reflection
- Index-matched material (ior = 1) passes rays straight through
- Reflection probability follows Schlick's approximation
- White attenuation and hit-point origin
- Material registry and validation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _scatter(ior, incident, normal, front_face, n=1):
    from lumentrace.materials.dielectric import scatter_dielectric, vec3

    direction = ti.Vector.field(3, dtype=ti.f32, shape=n)
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=n)
    scattered = ti.field(dtype=ti.i32, shape=n)

    @ti.kernel
    def test_kernel(eta: ti.f32, d: vec3, nrm: vec3, ff: ti.i32):
        for i in range(n):
            rec = scatter_dielectric(eta, d, vec3(1.0, 2.0, 3.0), nrm, ff)
            direction[i] = rec.direction
            attenuation[i] = rec.attenuation
            scattered[i] = rec.scattered

    test_kernel(ior, vec3(*incident), vec3(*normal), front_face)
    return scattered.to_numpy(), direction.to_numpy(), attenuation.to_numpy()


class TestRefractionRatio:
    def test_ratio_by_face(self):
        from lumentrace.materials.dielectric import refraction_ratio

        results = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = refraction_ratio(1.5, 1)
            results[1] = refraction_ratio(1.5, 0)

        test_kernel()
        assert abs(results[0] - 1.0 / 1.5) < 1e-6
        assert abs(results[1] - 1.5) < 1e-6

    def test_will_reflect_inside_at_grazing_angle(self):
        from lumentrace.materials.dielectric import vec3, will_reflect

        results = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            d = vec3(1.0, -0.1, 0.0).normalized()
            n = vec3(0.0, 1.0, 0.0)
            results[0] = will_reflect(1.5, d, n, 0)  # leaving glass
            results[1] = will_reflect(1.5, d, n, 1)  # entering glass

        test_kernel()
        assert results[0] == 1
        assert results[1] == 0


class TestDielectricScatter:
    def test_always_scatters_white(self):
        scattered, _, attenuation = _scatter(1.5, (0.3, -1.0, 0.2), (0.0, 1.0, 0.0), 1, n=64)

        assert np.all(scattered == 1)
        np.testing.assert_allclose(attenuation, 1.0)

    def test_index_matched_passes_straight_through(self):
        """ior = 1 never reflects and never bends the ray."""
        n = 256
        incident = np.array([2.0, -3.0, 1.0])
        _, direction, _ = _scatter(1.0, tuple(incident), (0.0, 1.0, 0.0), 1, n=n)

        expected = incident / np.linalg.norm(incident)
        np.testing.assert_allclose(direction, np.tile(expected, (n, 1)), atol=1e-5)

    def test_index_matched_back_face_passes_straight_through(self):
        n = 256
        incident = np.array([2.0, -3.0, 1.0])
        _, direction, _ = _scatter(1.0, tuple(incident), (0.0, 1.0, 0.0), 0, n=n)

        expected = incident / np.linalg.norm(incident)
        np.testing.assert_allclose(direction, np.tile(expected, (n, 1)), atol=1e-5)

    @pytest.mark.parametrize("front_face", [1, 0])
    def test_index_matched_grazing_passes_straight_through(self, front_face):
        n = 256
        incident = np.array([1.0, -0.01, 0.0])
        _, direction, _ = _scatter(1.0, tuple(incident), (0.0, 1.0, 0.0), front_face, n=n)

        expected = incident / np.linalg.norm(incident)
        np.testing.assert_allclose(direction, np.tile(expected, (n, 1)), atol=1e-4)

    def test_total_internal_reflection(self):
        n = 64
        incident = np.array([1.0, -0.1, 0.0])
        _, direction, _ = _scatter(1.5, tuple(incident), (0.0, 1.0, 0.0), 0, n=n)

        unit = incident / np.linalg.norm(incident)
        mirror = unit * np.array([1.0, -1.0, 1.0])
        np.testing.assert_allclose(direction, np.tile(mirror, (n, 1)), atol=1e-5)

    def test_normal_incidence_mostly_refracts(self):
        """Schlick reflectance at normal incidence for glass is 4%."""
        n = 20000
        _, direction, _ = _scatter(1.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, n=n)

        reflected = direction[:, 1] > 0.0
        assert abs(reflected.mean() - 0.04) < 0.01
        # Refracted rays continue straight down
        np.testing.assert_allclose(direction[~reflected], np.tile([0.0, -1.0, 0.0], ((~reflected).sum(), 1)), atol=1e-5)

    def test_refracted_direction_obeys_snell(self):
        n = 4096
        incident = np.array([math.sin(math.radians(30.0)), -math.cos(math.radians(30.0)), 0.0])
        _, direction, _ = _scatter(1.5, tuple(incident), (0.0, 1.0, 0.0), 1, n=n)

        refracted = direction[direction[:, 1] < 0.0]
        assert len(refracted) > 0
        sin_t = refracted[:, 0] / np.linalg.norm(refracted, axis=1)
        np.testing.assert_allclose(sin_t, 0.5 / 1.5, atol=1e-4)


class TestDielectricRegistry:
    def test_add_and_count(self):
        from lumentrace.materials.dielectric import add_dielectric_material, get_dielectric_material_count

        assert add_dielectric_material(1.5) == 0
        assert add_dielectric_material(1.0) == 1
        assert get_dielectric_material_count() == 2

    def test_ior_below_one_rejected(self):
        from lumentrace.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="less than 1.0"):
            add_dielectric_material(0.9)

    def test_scatter_by_id(self):
        from lumentrace.materials.dielectric import add_dielectric_material, scatter_dielectric_by_id, vec3

        idx = add_dielectric_material(1.0)
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat: ti.i32):
            rec = scatter_dielectric_by_id(mat, vec3(0.0, -4.0, 0.0), vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 1)
            direction[None] = rec.direction

        test_kernel(idx)
        np.testing.assert_allclose(direction.to_numpy(), [0.0, -1.0, 0.0], atol=1e-6)


class TestCriticalAngle:
    def test_no_degenerate_direction_near_critical_angle(self):
        """Rays leaving glass near the critical angle reflect or refract, never vanish."""
        from lumentrace.materials.dielectric import scatter_dielectric, vec3

        critical = math.asin(1.0 / 1.5)
        angles = np.linspace(critical - 5e-4, critical + 5e-4, 20001).astype(np.float32)
        n = len(angles)

        theta = ti.field(dtype=ti.f32, shape=n)
        theta.from_numpy(angles)
        direction = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d = vec3(ti.sin(theta[i]), -ti.cos(theta[i]), 0.0)
                rec = scatter_dielectric(1.5, d, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0)
                direction[i] = rec.direction

        test_kernel()
        lengths = np.linalg.norm(direction.to_numpy(), axis=1)
        assert np.all(lengths > 0.99)
        assert np.all(lengths < 1.01)

    def test_will_reflect_matches_refract(self):
        """TIR is reported exactly when refract() has no solution."""
        from lumentrace.core.vector import refract
        from lumentrace.materials.dielectric import vec3, will_reflect

        critical = math.asin(1.0 / 1.5)
        angles = np.linspace(critical - 5e-4, critical + 5e-4, 20001).astype(np.float32)
        n = len(angles)

        theta = ti.field(dtype=ti.f32, shape=n)
        theta.from_numpy(angles)
        tir = ti.field(dtype=ti.i32, shape=n)
        refracted_length = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d = vec3(ti.sin(theta[i]), -ti.cos(theta[i]), 0.0)
                nrm = vec3(0.0, 1.0, 0.0)
                tir[i] = will_reflect(1.5, d, nrm, 0)
                refracted_length[i] = refract(d, nrm, 1.5).norm()

        test_kernel()
        tir_np = tir.to_numpy()
        lengths = refracted_length.to_numpy()
        assert tir_np.any() and not tir_np.all()
        assert np.all(lengths[tir_np == 0] > 0.5)
