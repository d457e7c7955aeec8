from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from .entity import Vertex
from .reader import check_common_entity_properties, parse_point
from .scanner import Group, Scanner

EntityParser = Callable[[Scanner, Group], dict[str, Any]]


def _entity_groups(scanner: Scanner) -> Iterator[Group]:
    group = scanner.next()
    while not scanner.is_eof() and group.code != 0:
        yield group
        group = scanner.next()


def _new_entity(group: Group, **fields: Any) -> dict[str, Any]:
    entity: dict[str, Any] = {"type": group.value}
    entity.update(fields)
    return entity


def _parse_line(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, vertices=[])
    for group in _entity_groups(scanner):
        if group.code == 10:
            entity["vertices"].insert(0, parse_point(scanner))
        elif group.code == 11:
            entity["vertices"].append(parse_point(scanner))
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_circle(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        if group.code == 10:
            entity["center"] = parse_point(scanner)
        elif group.code == 40:
            entity["radius"] = group.value
        elif group.code == 39:
            entity["thickness"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_arc(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        if group.code == 10:
            entity["center"] = parse_point(scanner)
        elif group.code == 40:
            entity["radius"] = group.value
        elif group.code == 50:
            entity["start_angle"] = math.radians(group.value)
        elif group.code == 51:
            entity["end_angle"] = math.radians(group.value)
        elif group.code == 39:
            entity["thickness"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    if "start_angle" in entity and "end_angle" in entity:
        entity["angle_length"] = entity["end_angle"] - entity["start_angle"]
    return entity


def _parse_ellipse(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        if group.code == 10:
            entity["center"] = parse_point(scanner)
        elif group.code == 11:
            entity["major_axis_end_point"] = parse_point(scanner)
        elif group.code == 40:
            entity["axis_ratio"] = group.value
        elif group.code == 41:
            entity["start_angle"] = group.value
        elif group.code == 42:
            entity["end_angle"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_point_entity(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        if group.code == 10:
            entity["position"] = parse_point(scanner)
        elif group.code == 39:
            entity["thickness"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_lwpolyline(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, vertices=[])
    vertex_count = 0
    for group in _entity_groups(scanner):
        if group.code == 38:
            entity["elevation"] = group.value
        elif group.code == 39:
            entity["depth"] = group.value
        elif group.code == 70:
            entity["shape"] = (group.value & 1) == 1
            entity["has_continuous_linetype_pattern"] = (group.value & 128) == 128
        elif group.code == 90:
            vertex_count = group.value
        elif group.code == 10:
            entity["vertices"] = _parse_lwpolyline_vertices(vertex_count, scanner)
        elif group.code == 43:
            if group.value != 0:
                entity["width"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_lwpolyline_vertices(count: int, scanner: Scanner) -> list[Vertex]:
    # An unexpected code hands control back to the entity loop, which re-reads
    # it after the rewind. Only vertices that saw their X code are kept.
    if count <= 0:
        raise ValueError("n must be greater than 0 vertices")
    vertices: list[Vertex] = []
    group = scanner.last_read_group
    for _ in range(count):
        vertex = Vertex()
        started = False
        while not scanner.is_eof() and group.code != 0:
            code = group.code
            if code == 10:
                if started:
                    break
                vertex.x = group.value
                started = True
            elif code == 20:
                vertex.y = group.value
            elif code == 30:
                vertex.z = group.value
            elif code == 40:
                vertex.start_width = group.value
            elif code == 41:
                vertex.end_width = group.value
            elif code == 42:
                if group.value != 0:
                    vertex.bulge = group.value
            else:
                scanner.rewind()
                if started:
                    vertices.append(vertex)
                return vertices
            group = scanner.next()
        if started:
            vertices.append(vertex)
    scanner.rewind()
    return vertices


def _polyline_flags_info(flags: int) -> dict[str, bool]:
    return {
        "shape": bool(flags & 0x01),
        "includes_curve_fit_vertices": bool(flags & 0x02),
        "includes_spline_fit_vertices": bool(flags & 0x04),
        "is_3d_polyline": bool(flags & 0x08),
        "is_3d_polygon_mesh": bool(flags & 0x10),
        "is_3d_polygon_mesh_closed": bool(flags & 0x20),
        "is_polyface_mesh": bool(flags & 0x40),
        "has_continuous_linetype_pattern": bool(flags & 0x80),
    }


def _parse_polyline(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, vertices=[])
    for group in _entity_groups(scanner):
        if group.code in (10, 20, 30, 40, 41, 71, 72, 73, 74, 75):
            continue
        if group.code == 39:
            entity["thickness"] = group.value
        elif group.code == 70:
            entity.update(_polyline_flags_info(group.value))
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    entity["vertices"] = _parse_polyline_vertices(scanner)
    return entity


def _parse_polyline_vertices(scanner: Scanner) -> list[Vertex]:
    vertices: list[Vertex] = []
    group = scanner.last_read_group
    while group is not None and not scanner.is_eof():
        if group.code != 0:
            group = scanner.next()
            continue
        if group.value == "VERTEX":
            vertices.append(_parse_vertex(scanner))
            group = scanner.last_read_group
        elif group.value == "SEQEND":
            for seqend_group in _entity_groups(scanner):
                check_common_entity_properties({"type": "SEQEND"}, seqend_group, scanner)
            break
        else:
            break
    return vertices


def _parse_vertex(scanner: Scanner) -> Vertex:
    vertex = Vertex()
    faces: list[int] = []
    scratch: dict[str, Any] = {"type": "VERTEX"}
    for group in _entity_groups(scanner):
        code = group.code
        if code == 10:
            vertex.x = group.value
        elif code == 20:
            vertex.y = group.value
        elif code == 30:
            vertex.z = group.value
        elif code == 40:
            vertex.start_width = group.value
        elif code == 41:
            vertex.end_width = group.value
        elif code == 42:
            if group.value != 0:
                vertex.bulge = group.value
        elif code in (50, 70):
            continue
        elif code in (71, 72, 73, 74):
            faces.append(group.value)
        else:
            check_common_entity_properties(scratch, group, scanner)
    if faces:
        vertex.faces = tuple(faces)
    return vertex


def _parse_spline(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        code = group.code
        if code == 10:
            entity.setdefault("control_points", []).append(parse_point(scanner))
        elif code == 11:
            entity.setdefault("fit_points", []).append(parse_point(scanner))
        elif code == 12:
            entity["start_tangent"] = parse_point(scanner)
        elif code == 13:
            entity["end_tangent"] = parse_point(scanner)
        elif code == 40:
            entity.setdefault("knot_values", []).append(group.value)
        elif code == 41:
            entity.setdefault("weights", []).append(group.value)
        elif code == 70:
            flags = group.value
            if flags & 1:
                entity["closed"] = True
            if flags & 2:
                entity["periodic"] = True
            if flags & 4:
                entity["rational"] = True
            if flags & 8:
                entity["planar"] = True
            if flags & 16:
                entity["planar"] = True
                entity["linear"] = True
        elif code == 71:
            entity["degree"] = group.value
        elif code == 72:
            entity["number_of_knots"] = group.value
        elif code == 73:
            entity["number_of_control_points"] = group.value
        elif code == 74:
            entity["number_of_fit_points"] = group.value
        elif code == 210:
            entity["normal_vector"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_text(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        code = group.code
        if code == 10:
            entity["start_point"] = parse_point(scanner)
        elif code == 11:
            entity["end_point"] = parse_point(scanner)
        elif code == 40:
            entity["text_height"] = group.value
        elif code == 41:
            entity["x_scale"] = group.value
        elif code == 50:
            entity["rotation"] = group.value
        elif code == 1:
            entity["text"] = group.value
        elif code == 7:
            entity["style"] = group.value
        elif code == 72:
            entity["halign"] = group.value
        elif code == 73:
            entity["valign"] = group.value
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_mtext(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        code = group.code
        if code in (1, 3):
            entity["text"] = entity.get("text", "") + group.value
        elif code == 10:
            entity["position"] = parse_point(scanner)
        elif code == 11:
            entity["direction_vector"] = parse_point(scanner)
        elif code == 40:
            entity["height"] = group.value
        elif code == 41:
            entity["width"] = group.value
        elif code == 50:
            entity["rotation"] = group.value
        elif code == 7:
            entity["style"] = group.value
        elif code == 71:
            entity["attachment_point"] = group.value
        elif code == 72:
            entity["drawing_direction"] = group.value
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_attdef(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, scale=1.0, text_style="STANDARD")
    extrusion = [None, None, None]
    for group in _entity_groups(scanner):
        code = group.code
        if code == 1:
            entity["text"] = group.value
        elif code == 2:
            entity["tag"] = group.value
        elif code == 3:
            entity["prompt"] = group.value
        elif code == 7:
            entity["text_style"] = group.value
        elif code == 10:
            entity["start_point"] = parse_point(scanner)
        elif code == 11:
            entity["end_point"] = parse_point(scanner)
        elif code == 39:
            entity["thickness"] = group.value
        elif code == 40:
            entity["text_height"] = group.value
        elif code == 41:
            entity["scale"] = group.value
        elif code == 50:
            entity["rotation"] = group.value
        elif code == 51:
            entity["oblique_angle"] = group.value
        elif code == 70:
            entity["invisible"] = bool(group.value & 0x01)
            entity["constant"] = bool(group.value & 0x02)
            entity["verification_required"] = bool(group.value & 0x04)
            entity["preset"] = bool(group.value & 0x08)
        elif code == 71:
            entity["backwards"] = bool(group.value & 0x02)
            entity["mirrored"] = bool(group.value & 0x04)
        elif code == 72:
            entity["halign"] = group.value
        elif code == 73:
            entity["field_length"] = group.value
        elif code == 74:
            entity["valign"] = group.value
        elif code in (210, 220, 230):
            extrusion[(code - 210) // 10] = group.value
        else:
            check_common_entity_properties(entity, group, scanner)
    if extrusion[0] is not None:
        entity["extrusion_direction"] = Vertex(extrusion[0], extrusion[1] or 0.0, extrusion[2])
    return entity


_DIMENSION_POINT_FIELDS = {
    10: "anchor_point",
    11: "middle_of_text",
    12: "insertion_point",
    13: "linear_or_angular_point1",
    14: "linear_or_angular_point2",
    15: "diameter_or_radius_point",
    16: "arc_point",
}


def _parse_dimension(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        code = group.code
        if code in _DIMENSION_POINT_FIELDS:
            entity[_DIMENSION_POINT_FIELDS[code]] = parse_point(scanner)
        elif code == 2:
            entity["block"] = group.value
        elif code == 3:
            entity["style_name"] = group.value
        elif code == 70:
            entity["dimension_type"] = group.value
        elif code == 71:
            entity["attachment_point"] = group.value
        elif code == 42:
            entity["actual_measurement"] = group.value
        elif code == 1:
            entity["text"] = group.value
        elif code == 140:
            entity["text_height"] = group.value
        elif code == 50:
            entity["angle"] = group.value
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_insert(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        code = group.code
        if code == 2:
            entity["name"] = group.value
        elif code == 41:
            entity["x_scale"] = group.value
        elif code == 42:
            entity["y_scale"] = group.value
        elif code == 43:
            entity["z_scale"] = group.value
        elif code == 10:
            entity["position"] = parse_point(scanner)
        elif code == 50:
            entity["rotation"] = group.value
        elif code == 70:
            entity["column_count"] = group.value
        elif code == 71:
            entity["row_count"] = group.value
        elif code == 44:
            entity["column_spacing"] = group.value
        elif code == 45:
            entity["row_spacing"] = group.value
        elif code == 66:
            entity["has_attributes"] = group.value != 0
        elif code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_solid(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    corners: dict[int, Vertex] = {}
    for group in _entity_groups(scanner):
        if group.code in (10, 11, 12, 13):
            corners[group.code - 10] = parse_point(scanner)
        elif group.code == 39:
            entity["thickness"] = group.value
        elif group.code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    entity["points"] = [corners[index] for index in sorted(corners)]
    return entity


def _parse_3dface(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    corners: dict[int, Vertex] = {}
    for group in _entity_groups(scanner):
        if group.code in (10, 11, 12, 13):
            corners[group.code - 10] = parse_point(scanner)
        elif group.code == 70:
            entity["invisible_edges"] = group.value
        else:
            check_common_entity_properties(entity, group, scanner)
    entity["vertices"] = [corners[index] for index in sorted(corners)]
    return entity


def _parse_leader(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, vertices=[])
    for group in _entity_groups(scanner):
        code = group.code
        if code == 3:
            entity["style_name"] = group.value
        elif code == 10:
            entity["vertices"].append(parse_point(scanner))
        elif code == 71:
            entity["arrow_head_flag"] = group.value
        elif code == 72:
            entity["path_type"] = group.value
        elif code == 76:
            entity["vertex_count"] = group.value
        elif code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_multileader(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, leaders=[], has_arrow_head=True)
    leader: dict[str, Any] | None = None
    line: list[Vertex] | None = None
    for group in _entity_groups(scanner):
        code = group.code
        if code == 301:
            if group.value == "LEADER{":
                leader = {"lines": []}
        elif code == 302:
            if group.value == "LEADER_LINE{":
                line = []
        elif code == 305:
            if line is not None:
                if leader is not None and line:
                    leader["lines"].append(line)
                line = None
            elif leader is not None:
                if leader["lines"]:
                    entity["leaders"].append(leader)
                leader = None
        elif code == 304:
            entity["text"] = group.value
        elif code == 10:
            if line is not None:
                line.append(parse_point(scanner))
            elif leader is not None:
                leader["last_leader_point"] = parse_point(scanner)
        elif code == 11:
            if leader is not None and line is None:
                leader["dogleg_vector"] = parse_point(scanner)
        elif code == 12:
            if leader is None:
                entity["text_position"] = parse_point(scanner)
        elif code == 40:
            if leader is None:
                entity["text_height"] = group.value
            elif line is None:
                leader["dogleg_length"] = group.value
        elif code == 41:
            if leader is None:
                entity["arrow_size"] = group.value
        elif code == 171:
            entity["has_arrow_head"] = group.value != 0
        elif code in (300, 303):
            continue
        else:
            check_common_entity_properties(entity, group, scanner)
    return entity


def _parse_common_only(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group)
    for group in _entity_groups(scanner):
        check_common_entity_properties(entity, group, scanner)
    return entity


_EDGE_STOP_CODES = frozenset((0, 72, 92, 93, 97))
_SPLINE_EDGE_CODES = frozenset((94, 73, 74, 95, 96, 40, 10, 42, 97, 11, 12, 13))


def _parse_hatch(scanner: Scanner, group: Group) -> dict[str, Any]:
    entity = _new_entity(group, pattern_name="", solid=False, boundary_paths=[])
    paths: list[dict[str, Any]] = entity["boundary_paths"]
    path_count = 0
    group = scanner.next()
    while not scanner.is_eof() and group.code != 0:
        code = group.code
        if code == 92 and len(paths) < path_count:
            flags = group.value
            group = scanner.next()
            if flags & 2:
                path, group = _parse_polyline_boundary(scanner, group)
            else:
                path, group = _parse_edge_boundary(scanner, group)
            path["flags"] = flags
            paths.append(path)
            continue
        if code == 78 and group.value > 0:
            line_count = group.value
            group = scanner.next()
            entity["pattern_lines"], group = _parse_pattern_lines(scanner, group, line_count)
            continue
        if code == 2:
            entity["pattern_name"] = group.value
        elif code == 70:
            entity["solid"] = group.value == 1
        elif code == 71:
            entity["associative"] = group.value != 0
        elif code == 91:
            path_count = group.value
        elif code == 75:
            entity["hatch_style"] = group.value
        elif code == 76:
            entity["pattern_type"] = group.value
        elif code == 52:
            entity["pattern_angle"] = group.value
        elif code == 41:
            entity["pattern_scale"] = group.value
        elif code == 10:
            if paths:
                entity.setdefault("seed_points", []).append(parse_point(scanner))
            else:
                entity["elevation_point"] = parse_point(scanner)
        elif code == 210:
            entity["extrusion_direction"] = parse_point(scanner)
        elif code in (47, 77, 78, 92, 97, 98):
            pass
        elif code == 330 and paths:
            # source boundary object references
            pass
        else:
            check_common_entity_properties(entity, group, scanner)
        group = scanner.next()
    return entity


def _read_edge_fields(scanner: Scanner, group: Group, last_code: int) -> tuple[dict[int, Any], Group]:
    fields: dict[int, Any] = {}
    while group.code not in _EDGE_STOP_CODES:
        fields[group.code] = group.value
        if group.code == last_code:
            group = scanner.next()
            break
        group = scanner.next()
    return fields, group


def _parse_edge_boundary(scanner: Scanner, group: Group) -> tuple[dict[str, Any], Group]:
    edges: list[dict[str, Any]] = []
    if group.code != 93:
        return {"edges": edges}, group
    edge_count = group.value
    group = scanner.next()
    for _ in range(edge_count):
        if group.code != 72:
            break
        edge_type = group.value
        group = scanner.next()
        if edge_type == 1:
            fields, group = _read_edge_fields(scanner, group, 21)
            edges.append(
                {
                    "type": "line",
                    "start": Vertex(fields.get(10, 0.0), fields.get(20, 0.0)),
                    "end": Vertex(fields.get(11, 0.0), fields.get(21, 0.0)),
                }
            )
        elif edge_type == 2:
            fields, group = _read_edge_fields(scanner, group, 73)
            edges.append(
                {
                    "type": "arc",
                    "center": Vertex(fields.get(10, 0.0), fields.get(20, 0.0)),
                    "radius": fields.get(40, 0.0),
                    "start_angle": fields.get(50, 0.0),
                    "end_angle": fields.get(51, 0.0),
                    "ccw": fields.get(73, 0) != 0,
                }
            )
        elif edge_type == 3:
            fields, group = _read_edge_fields(scanner, group, 73)
            edges.append(
                {
                    "type": "ellipse",
                    "center": Vertex(fields.get(10, 0.0), fields.get(20, 0.0)),
                    "major_axis_end_point": Vertex(fields.get(11, 0.0), fields.get(21, 0.0)),
                    "axis_ratio": fields.get(40, 1.0),
                    "start_angle": fields.get(50, 0.0),
                    "end_angle": fields.get(51, 0.0),
                    "ccw": fields.get(73, 0) != 0,
                }
            )
        elif edge_type == 4:
            edge, group = _parse_spline_edge(scanner, group)
            edges.append(edge)
        else:
            while group.code not in _EDGE_STOP_CODES:
                group = scanner.next()
    return {"edges": edges}, group


def _read_edge_xy(scanner: Scanner, group: Group) -> Vertex:
    x = group.value
    following = scanner.next()
    if following.code == group.code + 10:
        return Vertex(x, following.value)
    scanner.rewind()
    return Vertex(x, 0.0)


def _parse_spline_edge(scanner: Scanner, group: Group) -> tuple[dict[str, Any], Group]:
    edge: dict[str, Any] = {"type": "spline", "degree": 3, "knots": [], "control_points": []}
    weights: list[float] = []
    fit_points: list[Vertex] = []
    seen_fit_count = False
    while group.code in _SPLINE_EDGE_CODES:
        code = group.code
        if code == 97:
            if seen_fit_count:
                break
            seen_fit_count = True
        elif code == 94:
            edge["degree"] = group.value
        elif code == 73:
            edge["rational"] = group.value != 0
        elif code == 74:
            edge["periodic"] = group.value != 0
        elif code == 40:
            edge["knots"].append(group.value)
        elif code == 10:
            edge["control_points"].append(_read_edge_xy(scanner, group))
        elif code == 42:
            weights.append(group.value)
        elif code == 11:
            fit_points.append(_read_edge_xy(scanner, group))
        elif code == 12:
            edge["start_tangent"] = _read_edge_xy(scanner, group)
        elif code == 13:
            edge["end_tangent"] = _read_edge_xy(scanner, group)
        group = scanner.next()
    if weights:
        edge["weights"] = weights
    if fit_points:
        edge["fit_points"] = fit_points
    return edge, group


def _parse_polyline_boundary(scanner: Scanner, group: Group) -> tuple[dict[str, Any], Group]:
    vertices: list[Vertex] = []
    has_bulge = False
    if group.code == 72:
        has_bulge = group.value != 0
        group = scanner.next()
    is_closed = False
    if group.code == 73:
        is_closed = group.value != 0
        group = scanner.next()
    vertex_count = 0
    if group.code == 93:
        vertex_count = group.value
        group = scanner.next()

    for _ in range(vertex_count):
        vertex = Vertex()
        if group.code == 10:
            vertex.x = group.value
            group = scanner.next()
        if group.code == 20:
            vertex.y = group.value
            group = scanner.next()
        if has_bulge and group.code == 42:
            if group.value != 0:
                vertex.bulge = group.value
            group = scanner.next()
        vertices.append(vertex)

    if is_closed and vertices:
        first = vertices[0]
        vertices.append(Vertex(first.x, first.y, bulge=first.bulge))
    return {"polyline_vertices": vertices, "is_closed": is_closed, "has_bulge": has_bulge}, group


def _parse_pattern_lines(
    scanner: Scanner, group: Group, line_count: int
) -> tuple[list[dict[str, Any]], Group]:
    lines: list[dict[str, Any]] = []
    for _ in range(line_count):
        line: dict[str, Any] = {
            "angle": 0.0,
            "base_point": Vertex(),
            "offset": Vertex(),
            "dashes": [],
        }
        dash_count = 0
        if group.code == 53:
            line["angle"] = group.value
            group = scanner.next()
        if group.code == 43:
            line["base_point"].x = group.value
            group = scanner.next()
        if group.code == 44:
            line["base_point"].y = group.value
            group = scanner.next()
        if group.code == 45:
            line["offset"].x = group.value
            group = scanner.next()
        if group.code == 46:
            line["offset"].y = group.value
            group = scanner.next()
        if group.code == 79:
            dash_count = group.value
            group = scanner.next()
        for _ in range(dash_count):
            if group.code == 49:
                line["dashes"].append(group.value)
                group = scanner.next()
        lines.append(line)
    return lines, group


DEFAULT_ENTITY_PARSERS: Mapping[str, EntityParser] = MappingProxyType(
    dict(
        (
            ("LINE", _parse_line),
            ("CIRCLE", _parse_circle),
            ("ARC", _parse_arc),
            ("ELLIPSE", _parse_ellipse),
            ("POINT", _parse_point_entity),
            ("LWPOLYLINE", _parse_lwpolyline),
            ("POLYLINE", _parse_polyline),
            ("SPLINE", _parse_spline),
            ("TEXT", _parse_text),
            ("MTEXT", _parse_mtext),
            ("ATTDEF", _parse_attdef),
            ("DIMENSION", _parse_dimension),
            ("INSERT", _parse_insert),
            ("SOLID", _parse_solid),
            ("3DFACE", _parse_3dface),
            ("HATCH", _parse_hatch),
            ("LEADER", _parse_leader),
            ("MULTILEADER", _parse_multileader),
            ("MLEADER", _parse_multileader),
            ("VIEWPORT", _parse_common_only),
            ("IMAGE", _parse_common_only),
            ("WIPEOUT", _parse_common_only),
        )
    )
)

SUPPORTED_ENTITY_TYPES: tuple[str, ...] = tuple(DEFAULT_ENTITY_PARSERS)
