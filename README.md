# glaciersim

A library for glacier terrains on regular grids: a bedrock heightfield, an
ice-thickness layer, an equilibrium-line-altitude (ELA) map and an
accumulation map, together with the shallow-ice quantities derived from
them.

## Modules

- `glaciersim.mathutils` — scalar helpers: `linear_step`, `clamp`, `lerp`,
  `bilinear`, `cubic_smooth`, `integer`, `ridge`, `degree_to_radian`,
  `radian_to_degree`.
- `glaciersim.geometry` — immutable `Vector2` and `Vector3` (arithmetic,
  `norm`, `normalized`, `dot`, `cross`, `from_rgb`/`to_rgb`), `Box2`,
  `Box3` and `Ray`. `Box2.intersect(s0, s1)` clips the line through `s0`
  and `s1` against the box and returns `(tmin, tmax)`, or `None` when the
  line misses it.
- `glaciersim.noise` — deterministic 2D `SimplexNoise`; `at(x, y)` returns
  values in `[-1, 1]`.
- `glaciersim.scalarfield` — `ScalarField2`, values at the vertices of an
  `nx` by `ny` grid over a `Box2`. Indexing with `field[i, j]` or a flat
  index, bilinear lookup with `value(p)`, `gradient`, `normal`,
  `gradient_field`, `smooth`, `gaussian_blur`, `step`, `normalize`,
  `add_gaussian`, resampling with `set_resolution`, `+`, `+=` and `*=`.
  `grid` is a writable numpy view shaped `(ny, nx)`.
  `ScalarField2.from_image` reads a Pillow image (16-bit or 8-bit
  grayscale, or RGB packed into 24 bits); `create_image` and
  `create_palette_image` produce RGB Pillow images.
- `glaciersim.vectorfield` — `VectorField2`, a grid of `Vector2` values,
  as returned by `ScalarField2.gradient_field()`.
- `glaciersim.palette` — `ColorPalette`, a piecewise linear colour ramp,
  with the `cool_warm()` and `relief()` presets.
- `glaciersim.camera` — a look-at `Camera` with orbit (`up_down_round`,
  `left_right_round`), dolly (`back_forth`) and pan (`up_down_plane`,
  `left_right_plane`) moves; `pixel_to_ray` turns a viewport pixel into a
  `Ray`, and `Camera.view(box)` frames a `Box3`.
- `glaciersim.terrain` — `GlacierTerrain`: ice volume, glaciated area,
  yearly ice balance, surface gradient, basal stress, deformation and
  sliding speeds, velocity, the stable explicit time step
  (`adaptive_timestep`), remapping the ice surface onto a finer bedrock
  (`remap_ice_surface`), and ray marching against the terrain
  (`intersect`, returning `(t, point)` or `None`).
- `glaciersim.shaders` — preparation of multi-stage GLSL program files.
  `read_source` loads a file; `prepare_source` inserts definitions after
  the `#version` line and raises `ShaderSourceError` when there is no
  `#version` directive or more than one; `stage_sources` returns a prepared
  source for every `ShaderStage` whose key (`VERTEX_SHADER`,
  `COMPUTE_SHADER`, ...) appears in the text; `format_error_log` interleaves
  a compiler log with the numbered source lines it points at and returns
  the report and the first reported line.

## Installing

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from glaciersim.geometry import Box2, Vector2
from glaciersim.scalarfield import ScalarField2
from glaciersim.terrain import GlacierTerrain

domain = Box2(Vector2(0, 0), Vector2(1000, 1000))
bedrock = ScalarField2(domain, 64, 64, 0.0)
bedrock.add_gaussian(Vector2(500, 500), 400.0, 2000.0)

ice = ScalarField2(domain, 64, 64, 0.0)
ice.add_gaussian(Vector2(500, 500), 200.0, 50.0)

terrain = GlacierTerrain(bedrock, ice)
ela = ScalarField2(domain, 64, 64, 1500.0)
accum = ScalarField2(domain, 64, 64, 1.0)
terrain.configure_simulation(ela, accum, 0.001, 0.002, 1.0, 1.0)

print("ice volume:", terrain.ice_volume())
print("glaciated area:", terrain.glaciated_area())
print("yearly ice:", terrain.yearly_ice(True))
print("speed at centre:", terrain.ice_speed(32, 32))
print("time step:", terrain.adaptive_timestep())
```

Fields can be written out as images:

```python
from glaciersim.palette import ColorPalette

image = terrain.heightfield().create_palette_image(ColorPalette.relief(), 0.0, 2500.0)
image.save("relief.png")
```

`configure_simulation` reports its parameters through the standard
`logging` module at INFO level.

## What it does not do

- It does not advance the ice over time. `GlacierTerrain` holds the maps
  and parameters, evaluates the flow quantities and the stable time step,
  but has no time-stepping of the ice thickness; `diffusivity` stays as
  set by the caller.
- It does not compile, link or run shaders. `glaciersim.shaders` only
  prepares source text and formats logs that a GL driver produced.
- It has no viewer, window or command-line program; it is a library.
- It has no file format of its own for terrains beyond reading and
  writing images through Pillow.