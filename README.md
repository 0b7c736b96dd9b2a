# mintengine

The core pieces of a small 3D game engine, in pure Python with no
runtime dependencies.

## Modules

- `mintengine.vector`: the frozen dataclasses `Vec2`, `Vec3`, `Vec4` and
  `Rect`, the constants `PI`, `DEG2RAD`, `RAD2DEG` and `EPSILON`, and the
  helpers `sign`, `clamp`, `clamp01`, `clamp_vec3`, `lerp` and `lerp_vec3`.
  `Vec3` carries `dot`, `cross`, `project`, `project_on_plane`, `reflect`
  and `angle` (in degrees); `Vec4.splat` fills all four components.
- `mintengine.transform`: `Quat` and `Mat4`.
  `Quat.euler`, `Quat.from_euler` and `Quat.axis_angle` take degrees,
  while `Quat.to_euler` returns roll, pitch and yaw in radians. There are
  also `from_to`, `lerp`, `nlerp`, `slerp`, `angle`, `look`, `inverse`,
  `to_mat4` and the `right`, `up` and `forward` axes. `quat * vec3`
  rotates a vector, `quat * quat` composes rotations.
  `Mat4` holds 16 floats with the translation in elements 12–14; it has
  `identity`, `zero`, `from_trs`, `translate`, `perspective` (field of view
  in radians), `ortho`, `lookat`, `inversed` (raises `ValueError` for a
  singular matrix), `to_quat`, `multiply_point`, `multiply_point_3x4`,
  `multiply_vector` and `get_position`. Matrices multiply with `@`, and
  `mat4 @ vec4` transforms a `Vec4`.
- `mintengine.geometry`: `Transform` (position, rotation, scale, with
  `to_mat4`), `Ray`, axis-aligned `Bounds` (`from_min_max`, `encapsulate`,
  `intersects`, `contains`) and `Plane` (`from_points`, `get_side`,
  `signed_distance_to`).
- `mintengine.rng`: `Rng`, a seeded xorshift128 generator with `random`,
  `uniform`, `randint` (upper bound excluded), `in_circle`, `in_sphere`
  and `cone`.
- `mintengine.input`: `Input`, a per-frame key-state table with mouse
  tracking, up to four gamepad slots and named actions per player; the
  `Key` codes, `InputDevice`, `GamepadState` and `pad_key`, which maps a
  first-player gamepad key to another player's.
- `mintengine.model`: `Vertex`, `SubMesh`, `Mesh`, `Bone`,
  `AnimationClip` and `Model`, with readers for Wavefront `.obj` meshes
  (triangles and quads) and binary `.smd` models with bones and animation
  clips: `parse_obj`, `load_obj`, `parse_smd`, `load_smd`, `load_mesh`
  and `load_model`. A path of the form `file.smd@name` picks a model by
  name. `Model.update_pose` poses the skeleton at a frame of a clip.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Vectors and rotations:

```python
from mintengine.vector import Vec3
from mintengine.transform import Quat, Mat4

q = Quat.axis_angle(Vec3(0, 1, 0), 90.0)
print(q * Vec3(1, 0, 0))

m = Mat4.from_trs(Vec3(1, 2, 3), q, Vec3(1, 1, 1))
print(m.multiply_point(Vec3(0, 0, 0)))
```

Reproducible randomness:

```python
from mintengine.rng import Rng

rng = Rng()
rng.set_seed(42)
print(rng.uniform(0.0, 10.0), rng.randint(0, 6))
```

Input actions. The host program feeds key states each frame:

```python
from mintengine.input import Input, Key

inp = Input()
inp.register("jump", Key.SPACE, 0)
inp.register_1d("move", Key.D, Key.A, 0)

inp.set_key_state(Key.SPACE, 1.0)
print(inp.action_hit("jump", 0))        # True on the frame it is pressed
print(inp.action_axis_1d("move", 0))
```

Loading models:

```python
from mintengine.model import load_mesh, load_model

mesh = load_mesh("crate.obj")
model = load_model("hero.smd")
```

Malformed model files raise `ModelFormatError`, a subclass of `ValueError`.

## What it does not do

- It opens no window and polls no devices. `Input.update` is given the
  cursor position, window size and whether the application is active;
  gamepads are fed through `Input.apply_gamepad` with a `GamepadState`;
  cursor warping and visibility go through optional callbacks passed to
  `Input`.
- It does not draw anything: there is no renderer, no GPU upload of
  meshes, and no materials, shaders or textures.
- It keeps no resource cache: every `load_*` call reads the file again.
- There is no animation player; pick a clip and frame yourself and call
  `Model.update_pose`.