"""Meshes, skeletons and animation clips, with OBJ and SMD loaders."""

from __future__ import annotations

import os
import struct
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence, TypeVar

from mintengine.geometry import Transform
from mintengine.transform import Mat4, Quat
from mintengine.vector import EPSILON, Vec2, Vec3, Vec4

SMD_VERTEX_COLOR = 1
SMD_VERTEX_UV2 = 2
SMD_VERTEX_SKINNED = 4

_WHITE = Vec4(1.0, 1.0, 1.0, 1.0)
_T = TypeVar("_T")


class ModelFormatError(ValueError):
    """Raised when model data cannot be read."""


@dataclass(frozen=True)
class Vertex:
    """One mesh vertex with optional skinning data."""

    position: Vec3 = Vec3()
    normal: Vec3 = Vec3()
    uv: Vec2 = Vec2()
    color: Vec4 = _WHITE
    bones: tuple[int, int, int, int] = (0, 0, 0, 0)
    weights: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


@dataclass
class SubMesh:
    """Vertices and the triangle indices drawn from them."""

    vertices: list[Vertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)


@dataclass
class Mesh:
    """Geometry made of one or more sub-meshes."""

    submeshes: list[SubMesh] = field(default_factory=list)


@dataclass
class Bone:
    """Skeleton joint; ``parent`` is None for a root."""

    name: str
    matrix: Mat4 = field(default_factory=Mat4.identity)
    inv_matrix: Mat4 = field(default_factory=Mat4.identity)
    children: list[int] = field(default_factory=list)
    parent: Optional[int] = None


@dataclass
class AnimationClip:
    """Per-bone keyframes, keyed by bone name."""

    name: str
    frame_rate: int
    frame_count: int
    keys: dict[str, list[Transform]] = field(default_factory=dict)


@dataclass
class Model:
    """A mesh together with its skeleton and animations."""

    name: str = ""
    mesh: Optional[Mesh] = None
    bones: list[Bone] = field(default_factory=list)
    animations: dict[str, AnimationClip] = field(default_factory=dict)
    current_animation: Optional[AnimationClip] = None

    def update_pose(self, clip: AnimationClip, frame: int) -> None:
        """Pose the skeleton at ``frame`` of ``clip``; frames past the end hold the last key."""
        if frame < 0:
            raise ValueError(f"frame must not be negative, got {frame}")
        roots: deque[int] = deque()
        for index, bone in enumerate(self.bones):
            keys = clip.keys.get(bone.name)
            if not keys:
                continue
            bone.matrix = keys[min(frame, len(keys) - 1)].to_mat4()
            if bone.parent is None:
                roots.append(index)

        while roots:
            parent = self.bones[roots.popleft()]
            for child_index in parent.children:
                child = self.bones[child_index]
                child.matrix = child.matrix @ parent.matrix
                roots.append(child_index)


# helpers -------------------------------------------------------------------


def _split_name(filename: str | os.PathLike) -> tuple[str, Optional[str]]:
    """Split ``path@name`` into the file path and the optional object name."""
    text = os.fspath(filename)
    at = text.rfind("@")
    if at < 0:
        return text, None
    return text[:at], text[at + 1:]


def _extension(path: str) -> str:
    dot = path.rfind(".")
    return path[dot:] if dot >= 0 else ""


def _chunks(values: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


# OBJ -----------------------------------------------------------------------


def _obj_floats(tokens: Sequence[str], count: int, name: str, line_number: int) -> list[float]:
    try:
        values = [float(t) for t in tokens[:count]]
    except ValueError as exc:
        raise ModelFormatError(f"{name}:{line_number}: bad number") from exc
    return values + [0.0] * (count - len(values))


def _obj_lookup(items: Sequence[_T], token: str, what: str, name: str, line_number: int) -> _T:
    try:
        index = int(token)
    except ValueError as exc:
        raise ModelFormatError(f"{name}:{line_number}: bad {what} index {token!r}") from exc
    if not 1 <= index <= len(items):
        raise ModelFormatError(f"{name}:{line_number}: {what} index {index} out of range")
    return items[index - 1]


def parse_obj(lines: Iterable[str], name: str = "<obj>") -> Mesh:
    """Build a mesh from Wavefront OBJ text made of triangles and quads."""
    positions: list[Vec3] = []
    uvs: list[Vec2] = []
    normals: list[Vec3] = []
    vertices: list[Vertex] = []
    indices: list[int] = []

    for line_number, line in enumerate(lines, 1):
        tokens = line.split()
        if not tokens:
            continue
        kind = tokens[0]
        if kind == "v":
            positions.append(Vec3(*_obj_floats(tokens[1:], 3, name, line_number)))
        elif kind == "vt":
            uvs.append(Vec2(*_obj_floats(tokens[1:], 2, name, line_number)))
        elif kind == "vn":
            normals.append(Vec3(*_obj_floats(tokens[1:], 3, name, line_number)))
        elif kind == "f":
            spaces = line.split("\n", 1)[0][:256].count(" ")
            if spaces not in (3, 4):
                raise ModelFormatError(
                    f"{name}:{line_number}: the model must consist of triangles or rectangles"
                )
            corners = tokens[1:1 + spaces]
            if len(corners) != spaces:
                raise ModelFormatError(f"{name}:{line_number}: incomplete face")

            offset = len(vertices)
            for corner in corners:
                parts = corner.split("/")
                position = _obj_lookup(positions, parts[0], "vertex", name, line_number)
                uv = (
                    _obj_lookup(uvs, parts[1], "uv", name, line_number)
                    if len(parts) > 1 and parts[1]
                    else Vec2()
                )
                normal = (
                    _obj_lookup(normals, parts[2], "normal", name, line_number)
                    if len(parts) > 2 and parts[2]
                    else Vec3()
                )
                vertices.append(Vertex(position=position, normal=normal, uv=uv, color=_WHITE))

            indices.extend((offset, offset + 1, offset + 2))
            if spaces == 4:
                indices.extend((offset, offset + 2, offset + 3))

    return Mesh([SubMesh(vertices, indices)])


def load_obj(filename: str | os.PathLike) -> Mesh:
    """Read an OBJ file; a ``@name`` suffix on the path is ignored."""
    path, _ = _split_name(filename)
    with open(path, encoding="utf-8", errors="replace") as handle:
        return parse_obj(handle, os.fspath(filename))


# SMD -----------------------------------------------------------------------


class _Reader:
    """Little-endian cursor over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.offset = 0

    def read(self, fmt: str) -> tuple:
        fmt = "<" + fmt
        size = struct.calcsize(fmt)
        if self.offset < 0 or self.offset + size > len(self._data):
            raise ModelFormatError("unexpected end of model data")
        values = struct.unpack_from(fmt, self._data, self.offset)
        self.offset += size
        return values

    def u8(self) -> int:
        return self.read("B")[0]

    def u32(self) -> int:
        return self.read("I")[0]

    def i32(self) -> int:
        return self.read("i")[0]

    def floats(self, count: int) -> tuple[float, ...]:
        return self.read(f"{count}f")

    def text(self, count: int) -> str:
        if count < 0:
            raise ModelFormatError(f"negative string length {count}")
        raw = bytes(self.read(f"{count}s")[0])
        return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _read_smd_mesh(reader: _Reader, vertex_count: int, submesh_count: int, flags: int) -> Mesh:
    positions = [Vec3(*c) for c in _chunks(reader.floats(3 * vertex_count), 3)]
    normals = [Vec3(*c) for c in _chunks(reader.floats(3 * vertex_count), 3)]
    uvs = [Vec2(*c) for c in _chunks(reader.floats(2 * vertex_count), 2)]

    if flags & SMD_VERTEX_COLOR:
        colors = [Vec4(*c) for c in _chunks(reader.floats(4 * vertex_count), 4)]
    else:
        colors = [_WHITE] * vertex_count

    if flags & SMD_VERTEX_SKINNED:
        bone_ids = list(_chunks(reader.read(f"{4 * vertex_count}B"), 4))
        weights = []
        for chunk in _chunks(reader.floats(4 * vertex_count), 4):
            if all(w <= EPSILON for w in chunk):
                chunk = (1.0,) + tuple(chunk[1:])
            weights.append(tuple(chunk))
    else:
        bone_ids = [(0, 0, 0, 0)] * vertex_count
        weights = [(0.0, 0.0, 0.0, 0.0)] * vertex_count

    vertices = [
        Vertex(p, n, uv, c, tuple(b), w)
        for p, n, uv, c, b, w in zip(positions, normals, uvs, colors, bone_ids, weights)
    ]

    submeshes = []
    for _ in range(submesh_count):
        count = reader.u32()
        source_indices = reader.read(f"{count}I")
        try:
            verts = [vertices[i] for i in source_indices]
        except IndexError as exc:
            raise ModelFormatError("sub-mesh index out of range") from exc
        submeshes.append(SubMesh(verts, list(range(count))))
    return Mesh(submeshes)


def _read_smd_model(reader: _Reader) -> Model:
    name = reader.text(reader.u32())
    vertex_count = reader.u32()
    submesh_count = reader.u32()
    flags = reader.u8()

    mesh = None
    if vertex_count > 0:
        mesh = _read_smd_mesh(reader, vertex_count, submesh_count, flags)

    bones = []
    for _ in range(reader.u8()):
        bone_name = reader.text(reader.u32())
        matrix = Mat4(reader.floats(16))
        try:
            inverse = matrix.inversed()
        except ValueError as exc:
            raise ModelFormatError(f"bone {bone_name!r} has a singular matrix") from exc
        children = list(reader.read(f"{reader.u8()}B"))
        bones.append(Bone(bone_name, matrix, inverse, children))

    for index, bone in enumerate(bones):
        for child in bone.children:
            if child >= len(bones):
                raise ModelFormatError(f"bone {bone.name!r} has unknown child {child}")
            bones[child].parent = index

    animations: dict[str, AnimationClip] = {}
    current = None
    for number in range(reader.i32()):
        clip_name = reader.text(reader.i32())
        frame_rate = reader.u32()
        frame_count = reader.u32()
        clip = AnimationClip(clip_name, frame_rate, frame_count)
        for bone in bones:
            clip.keys[bone.name] = [
                Transform(Vec3(*c[0:3]), Quat(*c[3:7]), Vec3(*c[7:10]))
                for c in _chunks(reader.floats(10 * frame_count), 10)
            ]
        animations.setdefault(clip_name, clip)
        if number == 0:
            current = clip

    return Model(name, mesh, bones, animations, current)


def parse_smd(data: bytes) -> list[Model]:
    """Read every model stored in SMD data, in file order."""
    reader = _Reader(bytes(data))
    reader.read("4s")  # signature
    reader.u8()  # version
    count = reader.u32()
    table = reader.offset

    models = []
    for index in range(count):
        reader.offset = table + 4 * index
        reader.offset = reader.u32()
        models.append(_read_smd_model(reader))
    return models


def load_smd(filename: str | os.PathLike) -> Model:
    """Load a model from an SMD file; ``path@name`` picks a model by name."""
    path, name = _split_name(filename)
    with open(path, "rb") as handle:
        models = parse_smd(handle.read())
    if not models:
        raise ModelFormatError(f"{path}: no models")
    if name is None:
        return models[0]
    for model in models:
        if model.name == name:
            return model
    raise ModelFormatError(f"{path}: no model named {name!r}")


# dispatch ------------------------------------------------------------------


def load_mesh(filename: str | os.PathLike) -> Mesh:
    """Load a mesh chosen by file extension."""
    path, _ = _split_name(filename)
    if _extension(path) == ".obj":
        return load_obj(filename)
    raise ModelFormatError(f"unsupported mesh format: {os.fspath(filename)}")


def load_model(filename: str | os.PathLike) -> Model:
    """Load a model chosen by file extension."""
    path, name = _split_name(filename)
    ext = _extension(path)
    if ext == ".obj":
        return Model(name=name or "", mesh=load_obj(filename))
    if ext == ".smd":
        return load_smd(filename)
    raise ModelFormatError(f"unsupported model format: {os.fspath(filename)}")