import struct

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mintengine.geometry import Transform
from mintengine.model import (
    SMD_VERTEX_COLOR,
    SMD_VERTEX_SKINNED,
    Bone,
    Model,
    ModelFormatError,
    load_mesh,
    load_model,
    load_obj,
    load_smd,
    parse_obj,
    parse_smd,
)
from mintengine.transform import Mat4
from mintengine.vector import Vec2, Vec3, Vec4

TRIANGLE_OBJ = [
    "v 0.0 0.0 0.0\n",
    "v 1.0 0.0 0.0\n",
    "v 0.0 1.0 0.0\n",
    "vt 0.0 0.0\n",
    "vt 1.0 0.0\n",
    "vt 0.0 1.0\n",
    "vn 0.0 0.0 1.0\n",
    "f 1/1/1 2/2/1 3/3/1\n",
]

QUAD_OBJ = [
    "v 0 0 0\n",
    "v 1 0 0\n",
    "v 1 1 0\n",
    "v 0 1 0\n",
    "vn 0 0 1\n",
    "f 1//1 2//1 3//1 4//1\n",
]


def _text(value):
    raw = value.encode()
    return struct.pack("<I", len(raw)) + raw


def _model_blob(
    name,
    positions=(),
    normals=(),
    uvs=(),
    submeshes=(),
    flags=0,
    colors=(),
    bone_ids=(),
    weights=(),
    bones=(),
    animations=(),
):
    out = _text(name) + struct.pack("<IIB", len(positions), len(submeshes), flags)
    if positions:
        for group in (positions, normals, uvs):
            for item in group:
                out += struct.pack(f"<{len(item)}f", *item)
        if flags & SMD_VERTEX_COLOR:
            for item in colors:
                out += struct.pack("<4f", *item)
        if flags & SMD_VERTEX_SKINNED:
            out += struct.pack(f"<{len(bone_ids)}B", *bone_ids)
            out += struct.pack(f"<{len(weights)}f", *weights)
        for sub in submeshes:
            out += struct.pack(f"<I{len(sub)}I", len(sub), *sub)
    out += struct.pack("<B", len(bones))
    for bone_name, matrix, children in bones:
        out += _text(bone_name) + struct.pack("<16f", *matrix.m)
        out += struct.pack(f"<B{len(children)}B", len(children), *children)
    out += struct.pack("<i", len(animations))
    for clip_name, rate, per_bone in animations:
        out += _text(clip_name) + struct.pack("<II", rate, len(per_bone[0]))
        for frames in per_bone:
            for t in frames:
                out += struct.pack("<10f", *t.pos, *t.rot, *t.scale)
    return out


def _smd(*blobs):
    header = b"SMD\0" + bytes([1]) + struct.pack("<I", len(blobs))
    start = len(header) + 4 * len(blobs)
    table = b""
    body = b""
    for blob in blobs:
        table += struct.pack("<I", start + len(body))
        body += blob
    return header + table + body


POSITIONS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 2.0, 0.0)]
NORMALS = [(0.0, 0.0, 1.0)] * 3
UVS = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]

ROOT_FRAMES = [Transform(pos=Vec3(1.0, 0.0, 0.0)), Transform(pos=Vec3(3.0, 0.0, 0.0))]
CHILD_FRAMES = [Transform(pos=Vec3(0.0, 2.0, 0.0)), Transform(pos=Vec3(0.0, 4.0, 0.0))]


def _skeleton_blob(name="body"):
    return _model_blob(
        name,
        POSITIONS,
        NORMALS,
        UVS,
        [[2, 0, 1]],
        bones=[
            ("root", Mat4.translate(Vec3(1.0, 0.0, 0.0)), [1]),
            ("child", Mat4.translate(Vec3(0.0, 2.0, 0.0)), []),
        ],
        animations=[("walk", 30, [ROOT_FRAMES, CHILD_FRAMES])],
    )


def _assert_mat_close(a, b):
    assert list(a.m) == pytest.approx(list(b.m), abs=1e-5)


# OBJ -----------------------------------------------------------------------


def test_parse_obj_triangle_with_uv_and_normal():
    mesh = parse_obj(TRIANGLE_OBJ)
    sub = mesh.submeshes[0]
    assert sub.indices == [0, 1, 2]
    assert [v.position for v in sub.vertices] == [
        Vec3(0.0, 0.0, 0.0),
        Vec3(1.0, 0.0, 0.0),
        Vec3(0.0, 1.0, 0.0),
    ]
    assert [v.uv for v in sub.vertices] == [Vec2(0.0, 0.0), Vec2(1.0, 0.0), Vec2(0.0, 1.0)]
    assert all(v.normal == Vec3(0.0, 0.0, 1.0) for v in sub.vertices)
    assert all(v.color == Vec4(1.0, 1.0, 1.0, 1.0) for v in sub.vertices)


def test_parse_obj_quad_splits_into_two_triangles():
    sub = parse_obj(QUAD_OBJ).submeshes[0]
    assert len(sub.vertices) == 4
    assert sub.indices == [0, 1, 2, 0, 2, 3]
    assert all(v.uv == Vec2() for v in sub.vertices)


def test_parse_obj_offsets_following_faces():
    lines = TRIANGLE_OBJ + ["f 3/3/1 2/2/1 1/1/1\n"]
    sub = parse_obj(lines).submeshes[0]
    assert sub.indices == [0, 1, 2, 3, 4, 5]
    assert sub.vertices[3].position == sub.vertices[2].position


def test_parse_obj_rejects_polygon_with_five_corners():
    lines = QUAD_OBJ[:4] + ["v 2 2 0\n", "vn 0 0 1\n", "f 1//1 2//1 3//1 4//1 5//1\n"]
    with pytest.raises(ModelFormatError):
        parse_obj(lines)


def test_parse_obj_rejects_out_of_range_index():
    with pytest.raises(ModelFormatError):
        parse_obj(TRIANGLE_OBJ[:-1] + ["f 1/1/1 2/2/1 9/3/1\n"])


def test_parse_obj_rejects_bad_number():
    with pytest.raises(ModelFormatError):
        parse_obj(["v 1.0 abc 0.0\n"])


@settings(max_examples=30)
@given(
    st.lists(
        st.tuples(*[st.floats(-100, 100, allow_nan=False)] * 9),
        min_size=1,
        max_size=5,
    )
)
def test_parse_obj_triangles_keep_positions(triangles):
    lines = []
    faces = []
    for t, coords in enumerate(triangles):
        for corner in range(3):
            x, y, z = coords[corner * 3:corner * 3 + 3]
            lines.append(f"v {x!r} {y!r} {z!r}\n")
        base = t * 3
        faces.append(f"f {base + 1} {base + 2} {base + 3}\n")
    sub = parse_obj(lines + faces).submeshes[0]
    assert len(sub.indices) == 3 * len(triangles)
    assert sub.indices == list(range(3 * len(triangles)))
    flat = [c for coords in triangles for c in coords]
    assert [c for v in sub.vertices for c in v.position] == flat


def test_load_obj_ignores_object_suffix(tmp_path):
    path = tmp_path / "tri.obj"
    path.write_text("".join(TRIANGLE_OBJ))
    mesh = load_obj(f"{path}@thing")
    assert mesh.submeshes[0].indices == [0, 1, 2]


def test_load_mesh_dispatches_on_extension(tmp_path):
    path = tmp_path / "quad.obj"
    path.write_text("".join(QUAD_OBJ))
    assert load_mesh(str(path)).submeshes[0].indices == [0, 1, 2, 0, 2, 3]
    with pytest.raises(ModelFormatError):
        load_mesh(str(tmp_path / "quad.fbx"))


# SMD -----------------------------------------------------------------------


def test_parse_smd_reorders_submesh_vertices():
    (model,) = parse_smd(_smd(_skeleton_blob()))
    assert model.name == "body"
    sub = model.mesh.submeshes[0]
    assert sub.indices == [0, 1, 2]
    assert [tuple(v.position) for v in sub.vertices] == [POSITIONS[2], POSITIONS[0], POSITIONS[1]]
    assert [tuple(v.uv) for v in sub.vertices] == [UVS[2], UVS[0], UVS[1]]
    assert all(v.color == Vec4(1.0, 1.0, 1.0, 1.0) for v in sub.vertices)


def test_parse_smd_reads_skeleton():
    (model,) = parse_smd(_smd(_skeleton_blob()))
    root, child = model.bones
    assert (root.name, child.name) == ("root", "child")
    assert root.parent is None
    assert child.parent == 0
    assert root.children == [1]
    _assert_mat_close(root.inv_matrix @ root.matrix, Mat4.identity())
    _assert_mat_close(child.matrix, Mat4.translate(Vec3(0.0, 2.0, 0.0)))


def test_parse_smd_reads_animation():
    (model,) = parse_smd(_smd(_skeleton_blob()))
    clip = model.animations["walk"]
    assert model.current_animation is clip
    assert clip.frame_rate == 30
    assert clip.frame_count == 2
    assert clip.keys["root"] == ROOT_FRAMES
    assert clip.keys["child"] == CHILD_FRAMES


def test_parse_smd_colors_flag():
    colors = [(0.5, 0.25, 1.0, 1.0)] * 3
    blob = _model_blob(
        "tinted", POSITIONS, NORMALS, UVS, [[0, 1, 2]], flags=SMD_VERTEX_COLOR, colors=colors
    )
    (model,) = parse_smd(_smd(blob))
    assert all(tuple(v.color) == colors[0] for v in model.mesh.submeshes[0].vertices)


def test_parse_smd_skinning_defaults_empty_weights():
    weights = [0.0] * 4 + [0.5, 0.5, 0.0, 0.0] + [0.0] * 4
    blob = _model_blob(
        "skin",
        POSITIONS,
        NORMALS,
        UVS,
        [[0, 1, 2]],
        flags=SMD_VERTEX_SKINNED,
        bone_ids=list(range(12)),
        weights=weights,
    )
    (model,) = parse_smd(_smd(blob))
    verts = model.mesh.submeshes[0].vertices
    assert verts[0].weights == (1.0, 0.0, 0.0, 0.0)
    assert verts[1].weights == (0.5, 0.5, 0.0, 0.0)
    assert verts[1].bones == (4, 5, 6, 7)


def test_parse_smd_model_without_vertices_has_no_mesh():
    (model,) = parse_smd(_smd(_model_blob("empty")))
    assert model.mesh is None
    assert model.bones == []
    assert model.current_animation is None


def test_parse_smd_truncated_data():
    with pytest.raises(ModelFormatError):
        parse_smd(_smd(_skeleton_blob())[:-3])


def test_parse_smd_unknown_child_bone():
    blob = _model_blob("bad", bones=[("root", Mat4.identity(), [5])])
    with pytest.raises(ModelFormatError):
        parse_smd(_smd(blob))


def test_update_pose_composes_child_with_parent():
    (model,) = parse_smd(_smd(_skeleton_blob()))
    clip = model.current_animation
    model.update_pose(clip, 0)
    expected = CHILD_FRAMES[0].to_mat4() @ ROOT_FRAMES[0].to_mat4()
    _assert_mat_close(model.bones[1].matrix, expected)
    _assert_mat_close(model.bones[0].matrix, ROOT_FRAMES[0].to_mat4())


def test_update_pose_clamps_to_last_frame():
    (model,) = parse_smd(_smd(_skeleton_blob()))
    model.update_pose(model.current_animation, 10)
    expected = CHILD_FRAMES[-1].to_mat4() @ ROOT_FRAMES[-1].to_mat4()
    _assert_mat_close(model.bones[1].matrix, expected)


def test_update_pose_rejects_negative_frame():
    model = Model(bones=[Bone("root")])
    (loaded,) = parse_smd(_smd(_skeleton_blob()))
    with pytest.raises(ValueError):
        model.update_pose(loaded.current_animation, -1)


def test_load_smd_selects_model_by_name(tmp_path):
    path = tmp_path / "pack.smd"
    path.write_bytes(_smd(_skeleton_blob("first"), _skeleton_blob("second")))
    assert load_smd(str(path)).name == "first"
    assert load_smd(f"{path}@second").name == "second"
    with pytest.raises(ModelFormatError):
        load_smd(f"{path}@missing")


def test_load_smd_without_models(tmp_path):
    path = tmp_path / "none.smd"
    path.write_bytes(_smd())
    with pytest.raises(ModelFormatError):
        load_smd(path)


def test_load_model_dispatches_on_extension(tmp_path):
    smd_path = tmp_path / "pack.smd"
    smd_path.write_bytes(_smd(_skeleton_blob("hero")))
    obj_path = tmp_path / "tri.obj"
    obj_path.write_text("".join(TRIANGLE_OBJ))
    assert load_model(str(smd_path)).name == "hero"
    assert load_model(str(obj_path)).mesh.submeshes[0].indices == [0, 1, 2]
    with pytest.raises(ModelFormatError):
        load_model(str(tmp_path / "hero.fbx"))