"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Ray tangent to sphere
- Interval bounds and unnormalized directions
"""

import taichi as ti


def _run_hit(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from lumentrace.core.ray import make_interval, make_ray
    from lumentrace.core.vector import vec3
    from lumentrace.geometry.sphere import hit_sphere, make_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, r: ti.f32, lo: ti.f32, hi: ti.f32):
        rec = hit_sphere(make_ray(o, d), make_sphere(c, r), make_interval(lo, hi))
        hit[None] = rec.hit
        t_val[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal
        front_face[None] = rec.front_face

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point.to_numpy(),
        "normal": normal.to_numpy(),
        "front_face": front_face[None],
    }


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from lumentrace.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        # Should hit at z=1 (front of sphere), so t=4
        assert abs(rec["t"] - 4.0) < 1e-5
        p = rec["point"]
        assert abs(p[0]) < 1e-5
        assert abs(p[1]) < 1e-5
        assert abs(p[2] - 1.0) < 1e-5
        # Normal should point outward: (0, 0, 1)
        n = rec["normal"]
        assert abs(n[2] - 1.0) < 1e-5
        assert rec["front_face"] == 1

    def test_hit_sphere_miss(self):
        """Test ray missing sphere entirely."""
        rec = _run_hit((5.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_hit_sphere_inside(self):
        """Ray starting at the center hits the back face at t = radius."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 1.0) < 1e-5
        # Normal is flipped to face the ray
        assert abs(rec["normal"][2] + 1.0) < 1e-5
        assert rec["front_face"] == 0

    def test_hit_sphere_behind_ray(self):
        """Sphere entirely behind the origin is not hit."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_hit_sphere_tangent_is_miss(self):
        """A ray grazing the sphere (zero discriminant) does not hit."""
        rec = _run_hit((1.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_hit_sphere_unnormalized_direction(self):
        """t is measured in units of the direction vector."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-5
        assert abs(rec["point"][2] - 1.0) < 1e-5

    def test_hit_sphere_interval_excludes_near_root(self):
        """If the near root is outside the interval, the far root is used."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_min=4.5)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 6.0) < 1e-5
        assert rec["front_face"] == 0

    def test_hit_sphere_interval_excludes_both_roots(self):
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=3.0)
        assert rec["hit"] == 0

    def test_normal_is_unit_and_faces_ray(self):
        rec = _run_hit((0.3, 0.2, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        n = rec["normal"]
        assert rec["hit"] == 1
        assert abs((n**2).sum() - 1.0) < 1e-5
        # dot(normal, direction) <= 0
        assert -n[2] <= 0.0

    def test_large_distant_sphere(self):
        """Numerical stability for a huge sphere far away."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.0, -100.5, -1.0), 100.0)

        assert rec["hit"] == 1
        assert rec["front_face"] == 1
        assert 0.4 < rec["t"] < 0.6
