import math

import numpy as np
import pytest
from PIL import Image

from glaciersim.geometry import Box2, Vector2
from glaciersim.palette import ColorPalette
from glaciersim.scalarfield import ScalarField2

DOMAIN = Box2(Vector2(0.0, 0.0), Vector2(8.0, 6.0))
NX, NY = 9, 7
SLOPE_X, SLOPE_Y, OFFSET = 2.0, 3.0, 5.0


def linear(p):
    return SLOPE_X * p.x + SLOPE_Y * p.y + OFFSET


def linear_field(nx=NX, ny=NY):
    f = ScalarField2(DOMAIN, nx, ny)
    for j in range(ny):
        for i in range(nx):
            f[i, j] = linear(f.domain_coords(i, j))
    return f


def bumpy_field():
    f = ScalarField2(DOMAIN, NX, NY)
    for j in range(NY):
        for i in range(NX):
            f[i, j] = math.sin(i * 0.7) + math.cos(j * 1.3) * i
    return f


def test_constructor_fills_value():
    f = ScalarField2(DOMAIN, NX, NY, 2.5)
    assert len(f) == NX * NY
    assert all(f[k] == 2.5 for k in range(len(f)))


def test_domain_coords_span_domain():
    f = ScalarField2(DOMAIN, NX, NY)
    assert f.domain_coords(0, 0) == DOMAIN.bmin
    last = f.domain_coords(NX - 1, NY - 1)
    assert last.x == pytest.approx(DOMAIN.bmax.x)
    assert last.y == pytest.approx(DOMAIN.bmax.y)


def test_default_field_is_empty():
    f = ScalarField2()
    assert len(f) == 0
    with pytest.raises(ValueError):
        f.value_range()


def test_vertex_index_and_flat_access_agree():
    f = bumpy_field()
    for j in range(NY):
        for i in range(NX):
            assert f[f.vertex_index(i, j)] == f.at(i, j)


def test_index_errors():
    f = ScalarField2(DOMAIN, NX, NY)
    with pytest.raises(IndexError):
        f.at(NX, 0)
    with pytest.raises(IndexError):
        f[NX * NY]
    with pytest.raises(IndexError):
        f[-1, 0] = 1.0


def test_valid_index_excludes_last_row_and_column():
    f = ScalarField2(DOMAIN, NX, NY)
    assert f.valid_index(0, 0)
    assert f.valid_index(NX - 2, NY - 2)
    assert not f.valid_index(NX - 1, 0)
    assert not f.valid_index(0, NY - 1)
    assert not f.valid_index(-1, 0)


def test_cell_coords_consistent_with_integer_coords():
    f = ScalarField2(DOMAIN, NX, NY)
    p = Vector2(3.25, 4.75)
    i, j, u, v = f.cell_coords(p)
    assert (i, j) == f.cell_integer_coords(p)
    assert 0.0 <= u < 1.0 and 0.0 <= v < 1.0
    back = f.domain_coords(i, j) + Vector2(u * f.cell_size.x, v * f.cell_size.y)
    assert back.x == pytest.approx(p.x)
    assert back.y == pytest.approx(p.y)


def test_value_at_vertices_matches_stored():
    f = bumpy_field()
    for j in range(NY - 1):
        for i in range(NX - 1):
            assert f.value(f.domain_coords(i, j)) == pytest.approx(f.at(i, j))


def test_value_reproduces_linear_function():
    f = linear_field()
    for p in (Vector2(0.3, 0.4), Vector2(3.7, 2.2), Vector2(7.5, 5.9)):
        assert f.value(p) == pytest.approx(linear(p))


def test_value_outside_is_zero():
    f = ScalarField2(DOMAIN, NX, NY, 4.0)
    assert f.value(Vector2(20.0, 1.0)) == 0.0
    assert f.value(Vector2(1.0, 30.0)) == 0.0


def test_value_range():
    f = bumpy_field()
    lo, hi = f.value_range()
    values = [f[k] for k in range(len(f))]
    assert lo == min(values)
    assert hi == max(values)


def test_vertex_carries_value_as_elevation():
    f = bumpy_field()
    p = f.vertex(3, 2)
    q = f.domain_coords(3, 2)
    assert (p.x, p.y) == (q.x, q.y)
    assert p.z == f.at(3, 2)


@pytest.mark.parametrize("i", [0, 4, NX - 1])
@pytest.mark.parametrize("j", [0, 3, NY - 1])
def test_normal_of_flat_field_points_up(i, j):
    f = ScalarField2(DOMAIN, NX, NY, 1.0)
    n = f.normal(i, j)
    assert n.x == pytest.approx(0.0)
    assert n.y == pytest.approx(0.0)
    assert n.z == pytest.approx(1.0)


@pytest.mark.parametrize("i", [0, 4, NX - 1])
@pytest.mark.parametrize("j", [0, 3, NY - 1])
def test_normal_of_slope_is_unit_and_leans_downhill(i, j):
    f = linear_field()
    n = f.normal(i, j)
    assert n.norm() == pytest.approx(1.0)
    assert n.x < 0 and n.y < 0 and n.z > 0
    assert n.x / n.z == pytest.approx(-SLOPE_X)
    assert n.y / n.z == pytest.approx(-SLOPE_Y)


@pytest.mark.parametrize("i", [0, 3, NX - 1])
@pytest.mark.parametrize("j", [0, 2, NY - 1])
def test_gradient_of_linear_field(i, j):
    g = linear_field().gradient(i, j)
    assert g.x == pytest.approx(SLOPE_X)
    assert g.y == pytest.approx(SLOPE_Y)


def test_gradient_field_matches_gradient():
    f = bumpy_field()
    gf = f.gradient_field()
    for j in range(NY):
        for i in range(NX):
            assert gf.at(i, j) == f.gradient(i, j)


def test_fill():
    f = bumpy_field()
    f.fill(-1.5)
    assert f.value_range() == (-1.5, -1.5)


def test_smooth_keeps_constant_field():
    f = ScalarField2(DOMAIN, NX, NY, 7.0)
    f.smooth(3)
    assert all(f[k] == pytest.approx(7.0) for k in range(len(f)))


def test_smooth_keeps_interior_of_linear_field():
    f = linear_field()
    original = f.copy()
    f.smooth(1)
    for j in range(1, NY - 1):
        for i in range(1, NX - 1):
            assert f.at(i, j) == pytest.approx(original.at(i, j))


def test_smooth_reduces_spread():
    f = bumpy_field()
    lo, hi = f.value_range()
    f.smooth(1)
    slo, shi = f.value_range()
    assert slo >= lo and shi <= hi
    assert shi - slo < hi - lo


def test_gaussian_blur_keeps_constant_field():
    f = ScalarField2(DOMAIN, NX, NY, 3.0)
    f.gaussian_blur()
    assert all(f[k] == pytest.approx(3.0) for k in range(len(f)))


def test_gaussian_blur_stays_within_range():
    f = bumpy_field()
    lo, hi = f.value_range()
    f.gaussian_blur()
    blo, bhi = f.value_range()
    assert blo >= lo - 1e-12 and bhi <= hi + 1e-12


def test_step():
    f = linear_field()
    a, b = 10.0, 20.0
    original = f.copy()
    f.step(a, b)
    for k in range(len(f)):
        x = original[k]
        if x < a:
            assert f[k] == 0.0
        elif x > b:
            assert f[k] == 1.0
        else:
            assert f[k] * (b - a) + a == pytest.approx(x)


def test_normalize():
    f = bumpy_field()
    f.normalize()
    lo, hi = f.value_range()
    assert lo == pytest.approx(0.0)
    assert hi == pytest.approx(1.0)


def test_normalize_constant_gives_ones():
    f = ScalarField2(DOMAIN, NX, NY, 4.0)
    f.normalize()
    assert f.value_range() == (1.0, 1.0)


def test_add_gaussian():
    domain = Box2(Vector2(0.0, 0.0), Vector2(10.0, 10.0))
    f = ScalarField2(domain, 11, 11)
    f.add_gaussian(Vector2(5.0, 5.0), 2.0, 3.0)
    assert f.at(5, 5) == pytest.approx(3.0)
    assert f.at(0, 0) == 0.0
    assert f.at(5, 9) == 0.0
    assert f.at(4, 5) == pytest.approx(f.at(6, 5))
    assert 0.0 < f.at(4, 5) < f.at(5, 5)
    lo, hi = f.value_range()
    assert lo >= 0.0 and hi <= 3.0


def test_set_resolution_same_size_is_identity():
    f = bumpy_field()
    g = f.set_resolution(NX, NY)
    for k in range(len(f)):
        assert g[k] == pytest.approx(f[k])


def test_set_resolution_upsamples_linear_field():
    f = linear_field()
    g = f.set_resolution(17, 13)
    assert (g.size_x, g.size_y) == (17, 13)
    assert g.domain == f.domain
    for j in range(13):
        for i in range(17):
            assert g.at(i, j) == pytest.approx(linear(g.domain_coords(i, j)))


def test_set_resolution_keeps_corners():
    f = bumpy_field()
    g = f.set_resolution(5, 4)
    assert g.at(0, 0) == f.at(0, 0)
    assert g.at(4, 0) == f.at(NX - 1, 0)
    assert g.at(0, 3) == f.at(0, NY - 1)
    assert g.at(4, 3) == f.at(NX - 1, NY - 1)


def test_create_image_grayscale_extremes():
    f = linear_field()
    img = f.create_image(grayscale=True)
    assert img.size == (NX, NY)
    assert img.getpixel((0, 0)) == (0, 0, 0)
    assert img.getpixel((NX - 1, NY - 1)) == (255, 255, 255)


def test_color_image_round_trip():
    f = bumpy_field()
    lo, hi = f.value_range()
    img = f.create_image(lo, hi, grayscale=False)
    g = ScalarField2.from_image(DOMAIN, img, lo, hi, grayscale=False)
    assert (g.size_x, g.size_y) == (NX, NY)
    for k in range(len(f)):
        assert g[k] == pytest.approx(f[k], abs=(hi - lo) * 1e-6)


def test_grayscale_image_round_trip():
    f = bumpy_field()
    f.normalize()
    img = f.create_image(0.0, 1.0, grayscale=True)
    g = ScalarField2.from_image(DOMAIN, img, 0.0, 1.0, grayscale=True)
    for k in range(len(f)):
        assert abs(g[k] - f[k]) <= 1.0 / 255.0 + 1e-12


def test_from_image_16_bit():
    data = np.array([[0, 65535], [65535, 0]], dtype=np.uint16)
    img = Image.fromarray(data)
    f = ScalarField2.from_image(Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0)), img, -2.0, 6.0)
    assert f.at(0, 0) == pytest.approx(-2.0)
    assert f.at(1, 0) == pytest.approx(6.0)
    assert f.at(0, 1) == pytest.approx(6.0)


def test_palette_image_uses_palette_ends():
    f = linear_field()
    palette = ColorPalette.cool_warm()
    img = f.create_palette_image(palette)
    assert img.getpixel((0, 0)) == palette.color(0.0).to_rgb()
    assert img.getpixel((NX - 1, NY - 1)) == palette.color(1.0).to_rgb()


def test_add_fields_and_scalars():
    f = bumpy_field()
    g = linear_field()
    h = f + g
    for k in range(len(h)):
        assert h[k] == pytest.approx(f[k] + g[k])
    before = f.copy()
    f += 2.0
    f *= 3.0
    for k in range(len(f)):
        assert f[k] == pytest.approx((before[k] + 2.0) * 3.0)


def test_add_mismatched_sizes_raises():
    f = ScalarField2(DOMAIN, NX, NY, 1.0)
    g = ScalarField2(DOMAIN, NX + 1, NY, 2.0)
    with pytest.raises(ValueError) as excinfo:
        total = f + g
        assert len(total) == NX * NY
    assert excinfo.type is ValueError
    assert f.value_range() == (1.0, 1.0)
    assert len(f) == NX * NY


def test_copy_is_independent():
    f = bumpy_field()
    g = f.copy()
    g[0, 0] = f.at(0, 0) + 10.0
    assert g.at(0, 0) - f.at(0, 0) == pytest.approx(10.0)