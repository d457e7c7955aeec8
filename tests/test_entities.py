from __future__ import annotations

import math

import pytest

from dxfgeom.entities import DEFAULT_ENTITY_PARSERS, SUPPORTED_ENTITY_TYPES

from _dxf_helpers import parse_entities


def _only(*pairs) -> object:
    drawing = parse_entities(list(pairs))
    assert len(drawing.entities) == 1, drawing.warnings
    return drawing.entities[0]


def _xy(vertex) -> tuple[float, float]:
    return (vertex.x, vertex.y)


def test_parser_table_covers_supported_types() -> None:
    assert set(SUPPORTED_ENTITY_TYPES) <= set(DEFAULT_ENTITY_PARSERS)
    assert DEFAULT_ENTITY_PARSERS["MLEADER"] is DEFAULT_ENTITY_PARSERS["MULTILEADER"]


def test_common_properties() -> None:
    entity = _only(
        (0, "LINE"),
        (5, "2F"),
        (8, "WALLS"),
        (6, "DASHED"),
        (48, 2.0),
        (60, 1),
        (62, 3),
        (370, 25),
        (420, 0xFF00FF),
        (10, 0.0),
        (20, 0.0),
        (11, 1.0),
        (21, 1.0),
    )

    assert entity.handle == "2F"
    assert entity.layer == "WALLS"
    assert entity.dxf["line_type"] == "DASHED"
    assert entity.dxf["line_type_scale"] == 2.0
    assert entity.dxf["visible"] is False
    assert entity.color_index == 3
    assert entity.true_color == 0xFF00FF
    assert entity.dxf["lineweight"] == 25


def test_arc_angles_are_stored_in_radians() -> None:
    entity = _only(
        (0, "ARC"),
        (10, 1.0),
        (20, 2.0),
        (40, 3.0),
        (50, 90.0),
        (51, 180.0),
    )
    assert entity.dxf["radius"] == 3.0
    assert entity.dxf["start_angle"] == pytest.approx(math.pi / 2)
    assert entity.dxf["angle_length"] == pytest.approx(math.pi / 2)


def test_lwpolyline_vertices_with_bulge() -> None:
    entity = _only(
        (0, "LWPOLYLINE"),
        (8, "0"),
        (90, 3),
        (70, 1),
        (10, 0.0),
        (20, 0.0),
        (42, 1.0),
        (10, 10.0),
        (20, 0.0),
        (10, 10.0),
        (20, 10.0),
    )

    vertices = entity.dxf["vertices"]
    assert [_xy(v) for v in vertices] == [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]
    assert vertices[0].bulge == 1.0
    assert vertices[1].bulge is None
    assert entity.dxf["shape"] is True


def test_lwpolyline_hands_unknown_codes_back_to_the_entity() -> None:
    entity = _only(
        (0, "LWPOLYLINE"),
        (90, 3),
        (10, 0.0),
        (20, 0.0),
        (10, 5.0),
        (20, 5.0),
        (8, "LATE"),
    )

    assert [_xy(v) for v in entity.dxf["vertices"]] == [(0.0, 0.0), (5.0, 5.0)]
    assert entity.layer == "LATE"


def test_lwpolyline_keeps_only_vertices_present_when_count_is_short() -> None:
    entity = _only(
        (0, "LWPOLYLINE"),
        (90, 4),
        (10, 0.0),
        (20, 0.0),
        (10, 5.0),
        (20, 0.0),
    )

    assert [_xy(v) for v in entity.dxf["vertices"]] == [(0.0, 0.0), (5.0, 0.0)]


def test_lwpolyline_without_vertex_count_is_damaged() -> None:
    drawing = parse_entities(
        [(0, "LWPOLYLINE"), (90, 0), (10, 0.0), (20, 0.0)],
        [(0, "POINT"), (10, 1.0), (20, 1.0)],
    )
    assert [e.dxftype for e in drawing.entities] == ["POINT"]
    assert "Damaged LWPOLYLINE" in drawing.warnings[0]


def test_polyline_reads_vertices_until_seqend() -> None:
    drawing = parse_entities(
        [
            (0, "POLYLINE"),
            (8, "0"),
            (66, 1),
            (70, 1),
            (10, 0.0),
            (20, 0.0),
            (30, 0.0),
            (0, "VERTEX"),
            (8, "0"),
            (10, 0.0),
            (20, 0.0),
            (42, 0.5),
            (0, "VERTEX"),
            (10, 5.0),
            (20, 0.0),
            (0, "VERTEX"),
            (10, 5.0),
            (20, 5.0),
            (0, "SEQEND"),
            (8, "0"),
        ],
        [(0, "POINT"), (10, 1.0), (20, 1.0)],
    )

    polyline, point = drawing.entities
    assert point.dxftype == "POINT"
    vertices = polyline.dxf["vertices"]
    assert [_xy(v) for v in vertices] == [(0.0, 0.0), (5.0, 0.0), (5.0, 5.0)]
    assert vertices[0].bulge == 0.5
    assert polyline.dxf["shape"] is True
    assert polyline.dxf["is_polyface_mesh"] is False


def test_polyface_vertices_keep_face_indices() -> None:
    entity = _only(
        (0, "POLYLINE"),
        (70, 64),
        (0, "VERTEX"),
        (10, 0.0),
        (20, 0.0),
        (70, 192),
        (0, "VERTEX"),
        (10, 0.0),
        (20, 0.0),
        (70, 128),
        (71, 1),
        (72, 2),
        (73, 3),
        (0, "SEQEND"),
    )
    assert entity.dxf["is_polyface_mesh"] is True
    assert entity.dxf["vertices"][1].faces == (1, 2, 3)


def test_spline_fields() -> None:
    pairs = [(0, "SPLINE"), (70, 8), (71, 3), (72, 8), (73, 4)]
    pairs += [(40, value) for value in (0, 0, 0, 0, 1, 1, 1, 1)]
    for x, y in ((0, 0), (1, 2), (3, 2), (4, 0)):
        pairs += [(10, float(x)), (20, float(y)), (30, 0.0)]

    entity = _only(*pairs)

    assert entity.dxf["degree"] == 3
    assert entity.dxf["knot_values"] == [0, 0, 0, 0, 1, 1, 1, 1]
    assert [_xy(v) for v in entity.dxf["control_points"]] == [(0, 0), (1, 2), (3, 2), (4, 0)]
    assert entity.dxf["planar"] is True
    assert "closed" not in entity.dxf


def test_text_and_mtext() -> None:
    drawing = parse_entities(
        [
            (0, "TEXT"),
            (1, "Hello"),
            (10, 1.0),
            (20, 2.0),
            (40, 2.5),
            (50, 30.0),
            (72, 1),
            (73, 2),
        ],
        [
            (0, "MTEXT"),
            (3, "first part"),
            (1, "+second"),
            (10, 0.0),
            (20, 0.0),
            (40, 3.0),
            (71, 5),
        ],
    )

    text, mtext = drawing.entities
    assert text.dxf["text"] == "Hello"
    assert _xy(text.dxf["start_point"]) == (1.0, 2.0)
    assert (text.dxf["halign"], text.dxf["valign"]) == (1, 2)
    assert mtext.dxf["text"] == "first part+second"
    assert mtext.dxf["attachment_point"] == 5


def test_dimension_points() -> None:
    entity = _only(
        (0, "DIMENSION"),
        (2, "*D1"),
        (10, 0.0),
        (20, 5.0),
        (30, 0.0),
        (11, 5.0),
        (21, 5.0),
        (31, 0.0),
        (70, 32),
        (1, "<>"),
        (13, 0.0),
        (23, 0.0),
        (33, 0.0),
        (14, 10.0),
        (24, 0.0),
        (34, 0.0),
        (42, 10.0),
    )

    assert entity.dxf["block"] == "*D1"
    assert entity.dxf["dimension_type"] == 32
    assert _xy(entity.dxf["anchor_point"]) == (0.0, 5.0)
    assert _xy(entity.dxf["middle_of_text"]) == (5.0, 5.0)
    assert _xy(entity.dxf["linear_or_angular_point2"]) == (10.0, 0.0)
    assert entity.dxf["actual_measurement"] == 10.0


def test_insert_fields() -> None:
    entity = _only(
        (0, "INSERT"),
        (2, "DOOR"),
        (41, 2.0),
        (42, 3.0),
        (50, 90.0),
        (70, 2),
        (71, 3),
        (44, 10.0),
        (45, 20.0),
        (10, 5.0),
        (20, 6.0),
    )

    assert entity.dxf["name"] == "DOOR"
    assert (entity.dxf["x_scale"], entity.dxf["y_scale"]) == (2.0, 3.0)
    assert entity.dxf["rotation"] == 90.0
    assert (entity.dxf["column_count"], entity.dxf["row_count"]) == (2, 3)
    assert (entity.dxf["column_spacing"], entity.dxf["row_spacing"]) == (10.0, 20.0)
    assert _xy(entity.dxf["position"]) == (5.0, 6.0)


def test_solid_corners_are_ordered_by_code() -> None:
    entity = _only(
        (0, "SOLID"),
        (12, 0.0),
        (22, 1.0),
        (10, 0.0),
        (20, 0.0),
        (13, 1.0),
        (23, 1.0),
        (11, 1.0),
        (21, 0.0),
    )
    assert [_xy(v) for v in entity.dxf["points"]] == [(0, 0), (1, 0), (0, 1), (1, 1)]


def _hatch_header(solid: bool, name: str) -> list:
    return [
        (0, "HATCH"),
        (8, "0"),
        (10, 0.0),
        (20, 0.0),
        (30, 0.0),
        (210, 0.0),
        (220, 0.0),
        (230, 1.0),
        (2, name),
        (70, 1 if solid else 0),
        (71, 0),
        (91, 1),
    ]


def test_hatch_closed_polyline_boundary_repeats_first_vertex() -> None:
    entity = _only(
        *_hatch_header(True, "SOLID"),
        (92, 2),
        (72, 0),
        (73, 1),
        (93, 4),
        (10, 0.0),
        (20, 0.0),
        (10, 10.0),
        (20, 0.0),
        (10, 10.0),
        (20, 10.0),
        (10, 0.0),
        (20, 10.0),
        (97, 0),
        (75, 0),
        (76, 1),
        (98, 0),
    )

    assert entity.dxf["solid"] is True
    assert entity.dxf["pattern_name"] == "SOLID"
    (path,) = entity.dxf["boundary_paths"]
    assert path["is_closed"] is True
    vertices = path["polyline_vertices"]
    assert len(vertices) == 5
    assert _xy(vertices[-1]) == _xy(vertices[0])


def test_hatch_edge_boundary_and_pattern_lines() -> None:
    entity = _only(
        *_hatch_header(False, "ANSI31"),
        (92, 1),
        (93, 2),
        (72, 1),
        (10, 0.0),
        (20, 0.0),
        (11, 10.0),
        (21, 0.0),
        (72, 2),
        (10, 5.0),
        (20, 0.0),
        (40, 5.0),
        (50, 0.0),
        (51, 180.0),
        (73, 1),
        (97, 0),
        (75, 1),
        (76, 1),
        (52, 0.0),
        (41, 1.0),
        (77, 0),
        (78, 1),
        (53, 45.0),
        (43, 0.0),
        (44, 0.0),
        (45, -2.2),
        (46, 2.2),
        (79, 2),
        (49, 1.0),
        (49, -0.5),
        (98, 0),
    )

    assert entity.dxf["solid"] is False
    line_edge, arc_edge = entity.dxf["boundary_paths"][0]["edges"]
    assert line_edge["type"] == "line"
    assert _xy(line_edge["end"]) == (10.0, 0.0)
    assert arc_edge["type"] == "arc"
    assert arc_edge["radius"] == 5.0
    assert arc_edge["end_angle"] == 180.0
    assert arc_edge["ccw"] is True
    (pattern,) = entity.dxf["pattern_lines"]
    assert pattern["angle"] == 45.0
    assert _xy(pattern["offset"]) == (-2.2, 2.2)
    assert pattern["dashes"] == [1.0, -0.5]
    assert entity.dxf["hatch_style"] == 1


def test_leader_vertices_and_arrow_flag() -> None:
    entity = _only(
        (0, "LEADER"),
        (71, 1),
        (76, 2),
        (10, 0.0),
        (20, 0.0),
        (30, 0.0),
        (10, 5.0),
        (20, 5.0),
        (30, 0.0),
    )
    assert entity.dxf["arrow_head_flag"] == 1
    assert [_xy(v) for v in entity.dxf["vertices"]] == [(0.0, 0.0), (5.0, 5.0)]


@pytest.mark.parametrize("name", ["MULTILEADER", "MLEADER"])
def test_multileader_context(name: str) -> None:
    entity = _only(
        (0, name),
        (8, "NOTES"),
        (300, "CONTEXT_DATA{"),
        (40, 2.5),
        (41, 1.5),
        (304, "Note"),
        (12, 5.0),
        (22, 5.0),
        (32, 0.0),
        (301, "LEADER{"),
        (10, 4.0),
        (20, 4.0),
        (30, 0.0),
        (11, 1.0),
        (21, 0.0),
        (31, 0.0),
        (40, 2.0),
        (302, "LEADER_LINE{"),
        (10, 0.0),
        (20, 0.0),
        (30, 0.0),
        (10, 2.0),
        (20, 2.0),
        (30, 0.0),
        (305, "}"),
        (305, "}"),
        (301, "}"),
        (171, 0),
    )

    assert entity.dxftype == name
    assert entity.dxf["text"] == "Note"
    assert entity.dxf["text_height"] == 2.5
    assert entity.dxf["arrow_size"] == 1.5
    assert _xy(entity.dxf["text_position"]) == (5.0, 5.0)
    assert entity.dxf["has_arrow_head"] is False
    (leader,) = entity.dxf["leaders"]
    assert _xy(leader["last_leader_point"]) == (4.0, 4.0)
    assert _xy(leader["dogleg_vector"]) == (1.0, 0.0)
    assert [[_xy(v) for v in line] for line in leader["lines"]] == [[(0.0, 0.0), (2.0, 2.0)]]
