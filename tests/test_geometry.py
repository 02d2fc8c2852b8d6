import math

import pytest

from glaciersim.geometry import Box2, Box3, Ray, Vector2, Vector3


def close2(a, b):
    return math.isclose(a.x, b.x, abs_tol=1e-12) and math.isclose(a.y, b.y, abs_tol=1e-12)


def close3(a, b):
    return all(math.isclose(p, q, abs_tol=1e-12) for p, q in zip(a, b))


def test_vector2_arithmetic_round_trips():
    u, v = Vector2(1.5, -2.0), Vector2(0.25, 4.0)
    assert (u + v) - v == u
    assert u * 2 == u + u
    assert 2 * u == u * 2
    assert close2((u * 3) / 3, u)
    assert -u + u == Vector2()


def test_vector2_indexing_and_unpacking():
    u = Vector2(3.0, 7.0)
    assert u[0] == 3.0 and u[1] == 7.0
    assert tuple(u) == (3.0, 7.0)
    with pytest.raises(IndexError):
        u[2]


def test_vector2_norms():
    u = Vector2(3.0, -4.0)
    assert u.squared_norm() == pytest.approx(u.norm() ** 2)
    assert u.normalized().norm() == pytest.approx(1.0)


def test_vector3_arithmetic_round_trips():
    u, v = Vector3(1.0, 2.0, 3.0), Vector3(-0.5, 0.0, 9.0)
    assert (u + v) - v == u
    assert 3 * u == u + u + u
    assert -u + u == Vector3()
    assert close3((u * 5) / 5, u)


def test_vector3_cross_is_orthogonal():
    u, v = Vector3(1.0, 2.0, 3.0), Vector3(-2.0, 0.5, 4.0)
    w = u.cross(v)
    assert w.dot(u) == pytest.approx(0.0)
    assert w.dot(v) == pytest.approx(0.0)
    assert v.cross(u) == -w


def test_vector3_basis_cross():
    ex, ey, ez = Vector3(1, 0, 0), Vector3(0, 1, 0), Vector3(0, 0, 1)
    assert ex.cross(ey) == ez
    assert ey.cross(ez) == ex


def test_vector3_normalized_and_norms():
    u = Vector3(2.0, -3.0, 6.0)
    assert u.squared_norm() == pytest.approx(u.norm() ** 2)
    assert u.normalized().norm() == pytest.approx(1.0)


def test_rgb_conversion_clamps():
    assert Vector3(2.0, -1.0, 1.0).to_rgb() == (255, 0, 255)
    assert Vector3.from_rgb(255, 0, 255).to_rgb() == (255, 0, 255)
    assert Vector3.from_rgb(255, 255, 255) == Vector3(1.0, 1.0, 1.0)


def test_box2_around():
    c = Vector2(2.0, 3.0)
    box = Box2.around(c, 1.5)
    assert box.width() == pytest.approx(3.0)
    assert box.height() == pytest.approx(3.0)
    assert box.center() == c


def test_box2_radius_is_half_diagonal():
    box = Box2(Vector2(0.0, 0.0), Vector2(3.0, 4.0))
    assert box.radius() == pytest.approx(0.5 * (box.bmax - box.bmin).norm())


@pytest.mark.parametrize(
    "s0,s1,entry_x,exit_x",
    [
        (Vector2(-1.0, 0.5), Vector2(2.0, 0.5), 0.0, 1.0),
        (Vector2(2.0, 0.5), Vector2(-1.0, 0.5), 1.0, 0.0),
    ],
)
def test_box2_intersect_hits_boundaries(s0, s1, entry_x, exit_x):
    box = Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
    hit = box.intersect(s0, s1)
    assert hit is not None
    tmin, tmax = hit
    assert tmin < tmax
    d = s1 - s0
    assert (s0 + tmin * d).x == pytest.approx(entry_x)
    assert (s0 + tmax * d).x == pytest.approx(exit_x)


def test_box2_intersect_miss():
    box = Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
    assert box.intersect(Vector2(-1.0, 2.0), Vector2(2.0, 2.0)) is None
    assert box.intersect(Vector2(-1.0, -1.0), Vector2(3.0, -0.5)) is None


def test_box2_intersect_diagonal_consistent():
    box = Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
    s0, s1 = Vector2(-1.0, -1.0), Vector2(2.0, 2.0)
    tmin, tmax = box.intersect(s0, s1)
    assert tmin == pytest.approx(1.0 / 3.0)
    assert tmax == pytest.approx(2.0 / 3.0)
    d = s1 - s0
    entry = s0 + tmin * d
    exit_ = s0 + tmax * d
    assert (entry.x, entry.y) == pytest.approx((0.0, 0.0), abs=1e-12)
    assert (exit_.x, exit_.y) == pytest.approx((1.0, 1.0), abs=1e-12)


def test_box3_dimensions():
    box = Box3(Vector3(0.0, 0.0, 0.0), Vector3(2.0, 3.0, 4.0))
    assert box.width() == 2.0
    assert box.height() == 3.0
    assert box.depth() == 4.0
    assert box.center() == 0.5 * box.bmax
    assert box.radius() == pytest.approx(0.5 * box.bmax.norm())


def test_ray_evaluation():
    o, d = Vector3(1.0, 2.0, 3.0), Vector3(0.0, 1.0, -1.0)
    ray = Ray(o, d)
    assert ray(0.0) == o
    assert ray(1.0) == o + d
    assert ray(2.5) == o + 2.5 * d


def test_ray_reflect_perpendicular_direction():
    ray = Ray(Vector3(), Vector3(1.0, 0.0, 0.0))
    p, n = Vector3(5.0, 5.0, 0.0), Vector3(0.0, 0.0, 1.0)
    reflected = ray.reflect(p, n)
    assert reflected.origin == p
    assert reflected.direction == n