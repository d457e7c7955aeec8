from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from .constants import (
    ARROW_SIZE,
    CIRCLE_SEGMENTS,
    DIM_TEXT_DECIMAL_PLACES,
    DIM_TEXT_GAP,
    DIM_TEXT_HEIGHT,
    EPSILON,
    EXTENSION_LINE_DASH_SIZE,
    EXTENSION_LINE_GAP_SIZE,
    EXTENSION_LINE_OVERSHOOT,
    MIN_ARC_SEGMENTS,
)
from .curves import create_arrow, degrees_to_radians, rotate_point
from .entity import Entity, Vertex
from .mtext import (
    make_text_quad,
    protect_literals,
    replace_special_chars,
    replace_unicode_escapes,
    restore_literals,
)
from .primitives import Point2D, Polyline, Primitive, TextQuad

TWO_PI = 2 * math.pi
EXTENSION_DASH_PATTERN = (EXTENSION_LINE_DASH_SIZE, -EXTENSION_LINE_GAP_SIZE)
# baseline sits this fraction of the text height above the text anchor
TEXT_BASELINE_GAP = 0.15

_STACKED_DIM_RE = re.compile(r"^(.*?)\\S([^^/;]*)\^([^;]*);(.*)$", re.DOTALL)


@dataclass(frozen=True)
class DimensionData:
    point1: Vertex
    point2: Vertex
    anchor_point: Vertex
    text: str
    text_pos: Vertex | None
    text_height: float
    angle: float
    is_radial: bool


def format_dim_number(value: float) -> str:
    text = f"{value:.{DIM_TEXT_DECIMAL_PLACES}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def clean_dimension_mtext(raw_text: str) -> str:
    """Strip MTEXT formatting from dimension text, keeping ``\\S`` fractions."""
    text = protect_literals(raw_text)
    text = re.sub(r"\\[Aa]\d+;", "", text)
    text = re.sub(r"\\[fF][^;]*;", "", text)
    text = re.sub(r"\\[cC]\d+;", "", text)
    text = re.sub(r"\\[Hh][\d.]+;", "", text)
    text = re.sub(r"\\[WTQA][\d.+-]+;", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\\[LOKlok]", "", text)
    text = text.replace("\\P", " ")
    text = re.sub(r"[{}]", "", text)
    text = replace_unicode_escapes(text)
    text = replace_special_chars(text)
    return restore_literals(text)


def dimension_text(
    raw_text: str,
    position: Point2D,
    height: float,
    color: str,
    *,
    rotation: float = 0.0,
    halign: str = "center",
) -> TextQuad:
    cleaned = clean_dimension_mtext(raw_text)
    dx, dy = rotate_point((0.0, height * TEXT_BASELINE_GAP), rotation)
    anchor = (position[0] + dx, position[1] + dy)
    match = _STACKED_DIM_RE.match(cleaned)
    if match is None:
        plain = re.sub(r"\\S[^;]*;", "", cleaned).strip()
        return make_text_quad(
            plain, anchor, height, color, rotation=rotation, halign=halign, valign="bottom"
        )
    return make_text_quad(
        match.group(1).strip(),
        anchor,
        height,
        color,
        rotation=rotation,
        halign=halign,
        valign="bottom",
        stacked_top=match.group(2).strip(),
        stacked_bottom=match.group(3).strip(),
    )


def extension_line(start: Point2D, end: Point2D, color: str) -> Polyline:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length > EPSILON:
        end = (
            end[0] + dx / length * EXTENSION_LINE_OVERSHOOT,
            end[1] + dy / length * EXTENSION_LINE_OVERSHOOT,
        )
    return Polyline(points=(start, end), dash_pattern=EXTENSION_DASH_PATTERN, color=color)


def _line(start: Point2D, end: Point2D, color: str) -> Polyline:
    return Polyline(points=(start, end), color=color)


def _xy(vertex: Vertex) -> Point2D:
    return (vertex.x, vertex.y)


def _distance(a: Vertex | Point2D, b: Vertex | Point2D) -> float:
    ax, ay = _xy(a) if isinstance(a, Vertex) else a
    bx, by = _xy(b) if isinstance(b, Vertex) else b
    return math.hypot(ax - bx, ay - by)


def linear_dimension_lines(
    point1: Vertex,
    point2: Vertex,
    anchor_point: Vertex,
    text_pos: Vertex | None,
    color: str,
    horizontal: bool,
) -> list[Primitive]:
    def main(p: Vertex) -> float:
        return p.x if horizontal else p.y

    def fixed(p: Vertex) -> float:
        return p.y if horizontal else p.x

    def at(main_value: float, fixed_value: float) -> Point2D:
        return (main_value, fixed_value) if horizontal else (fixed_value, main_value)

    objects: list[Primitive] = []
    low = min(main(point1), main(point2))
    high = max(main(point1), main(point2))
    anchor_fixed = fixed(anchor_point)

    if text_pos is not None and abs(fixed(text_pos) - anchor_fixed) < 1:
        gap_start = main(text_pos) - DIM_TEXT_GAP / 2
        gap_end = main(text_pos) + DIM_TEXT_GAP / 2
        if low < gap_start:
            objects.append(_line(at(low, anchor_fixed), at(gap_start, anchor_fixed), color))
        if high > gap_end:
            objects.append(_line(at(gap_end, anchor_fixed), at(high, anchor_fixed), color))
    else:
        objects.append(_line(at(low, anchor_fixed), at(high, anchor_fixed), color))

    for point in (point1, point2):
        if abs(fixed(point) - anchor_fixed) > 0.1:
            objects.append(
                extension_line(at(main(point), fixed(point)), at(main(point), anchor_fixed), color)
            )

    objects.append(create_arrow(at(high, anchor_fixed), at(low, anchor_fixed), ARROW_SIZE, color))
    objects.append(create_arrow(at(low, anchor_fixed), at(high, anchor_fixed), ARROW_SIZE, color))
    return objects


def rotated_dimension_lines(
    point1: Vertex,
    point2: Vertex,
    anchor_point: Vertex,
    text_pos: Vertex | None,
    color: str,
    angle: float,
) -> list[Primitive]:
    dir_x = math.cos(angle)
    dir_y = math.sin(angle)
    ax, ay = anchor_point.x, anchor_point.y

    def along(t: float) -> Point2D:
        return (ax + t * dir_x, ay + t * dir_y)

    t1 = (point1.x - ax) * dir_x + (point1.y - ay) * dir_y
    t2 = (point2.x - ax) * dir_x + (point2.y - ay) * dir_y
    foot1 = along(t1)
    foot2 = along(t2)
    t_min = min(t1, t2)
    t_max = max(t1, t2)
    min_pt = along(t_min)
    max_pt = along(t_max)

    objects: list[Primitive] = []
    on_line = False
    if text_pos is not None:
        t_text = (text_pos.x - ax) * dir_x + (text_pos.y - ay) * dir_y
        perp = abs(-(text_pos.x - ax) * dir_y + (text_pos.y - ay) * dir_x)
        on_line = perp < 1
    if on_line:
        gap_start = t_text - DIM_TEXT_GAP / 2
        gap_end = t_text + DIM_TEXT_GAP / 2
        if t_min < gap_start:
            objects.append(_line(min_pt, along(gap_start), color))
        if t_max > gap_end:
            objects.append(_line(along(gap_end), max_pt, color))
    else:
        objects.append(_line(min_pt, max_pt, color))

    for point, foot in ((point1, foot1), (point2, foot2)):
        if _distance(point, foot) > 0.1:
            objects.append(extension_line(_xy(point), foot, color))

    objects.append(create_arrow(max_pt, min_pt, ARROW_SIZE, color))
    objects.append(create_arrow(min_pt, max_pt, ARROW_SIZE, color))
    return objects


def _substitute_measurement(text: str | None, measurement: str) -> str | None:
    if text:
        return text.replace("<>", measurement)
    return text


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def extract_dimension_data(dxf: dict[str, Any]) -> DimensionData | None:
    point1 = dxf.get("linear_or_angular_point1")
    point2 = dxf.get("linear_or_angular_point2")
    anchor = dxf.get("anchor_point")
    radius_point = dxf.get("diameter_or_radius_point")
    measurement = dxf.get("actual_measurement")
    text = dxf.get("text")
    is_radial = False

    if point1 is None and point2 is None and radius_point is not None and anchor is not None:
        point1 = radius_point
        point2 = anchor
        is_radial = True

    prefix = "R" if is_radial else ""
    if isinstance(measurement, (int, float)):
        text = _substitute_measurement(text, prefix + format_dim_number(measurement))
        if not text:
            text = prefix + format_dim_number(measurement)
    if not text and point1 is not None and point2 is not None:
        length = math.sqrt(
            (point2.x - point1.x) ** 2
            + (point2.y - point1.y) ** 2
            + ((point2.z or 0.0) - (point1.z or 0.0)) ** 2
        )
        text = prefix + format_dim_number(length)
    if not is_radial and text and _is_number(text):
        text = format_dim_number(float(text))

    if point1 is None or point2 is None or anchor is None or not text:
        return None
    return DimensionData(
        point1=point1,
        point2=point2,
        anchor_point=anchor,
        text=text,
        text_pos=dxf.get("middle_of_text"),
        text_height=dxf.get("text_height") or DIM_TEXT_HEIGHT,
        angle=dxf.get("angle") or 0.0,
        is_radial=is_radial,
    )


def dimension_group(data: DimensionData, color: str, angle: float = 0.0) -> list[Primitive]:
    """Lines and arrows of a linear, aligned or rotated dimension.

    ``angle`` is in degrees. Without one the dimension runs along whichever
    axis has the larger spread between the two definition points.
    """
    if data.is_radial:
        center = _xy(data.point2)
        edge = _xy(data.point1)
        return [_line(center, edge, color), create_arrow(center, edge, ARROW_SIZE, color)]
    if angle != 0:
        return rotated_dimension_lines(
            data.point1, data.point2, data.anchor_point, data.text_pos, color, degrees_to_radians(angle)
        )
    spread_x = abs(data.point2.x - data.point1.x)
    spread_y = abs(data.point2.y - data.point1.y)
    return linear_dimension_lines(
        data.point1, data.point2, data.anchor_point, data.text_pos, color, spread_x >= spread_y
    )


def _measurement_text(dxf: dict[str, Any], measurement: float | None, prefix: str = "") -> str | None:
    text = dxf.get("text")
    if isinstance(measurement, (int, float)):
        formatted = prefix + format_dim_number(measurement)
        text = _substitute_measurement(text, formatted) or formatted
    return text or None


def ordinate_dimension(dxf: dict[str, Any], color: str) -> list[Primitive] | None:
    """Dog-leg leader from the feature point to the text.

    Bit 0 of the dimension type selects an X ordinate (vertical leader)
    instead of a Y ordinate (horizontal leader). The angled knee spans half
    the offset between feature and leader end, about 63 degrees.
    """
    feature = dxf.get("linear_or_angular_point1")
    leader = dxf.get("linear_or_angular_point2")
    text_pos = dxf.get("middle_of_text")
    if feature is None or leader is None:
        return None
    text = _measurement_text(dxf, dxf.get("actual_measurement"))
    if not text:
        return None

    height = dxf.get("text_height") or DIM_TEXT_HEIGHT
    objects: list[Primitive] = []
    label: TextQuad | None = None
    text_width = 0.0
    if text_pos is not None:
        label = dimension_text(text, (text_pos.x, text_pos.y - height / 2), height, color)
        text_width = label.width

    x_ordinate = (dxf.get("dimension_type") or 0) & 1 != 0
    # swap axes so both variants run along the first coordinate
    if x_ordinate:
        def local(p: Vertex) -> Point2D:
            return (p.y, p.x)

        def world(u: float, v: float) -> Point2D:
            return (v, u)

        text_end = text_pos.y + text_width / 2 if text_pos is not None else leader.y
    else:
        def local(p: Vertex) -> Point2D:
            return (p.x, p.y)

        def world(u: float, v: float) -> Point2D:
            return (u, v)

        text_end = text_pos.x + text_width / 2 if text_pos is not None else leader.x

    fu, fv = local(feature)
    lu, lv = local(leader)
    feature_pt = world(fu, fv)
    leader_pt = world(lu, lv)
    offset = lv - fv

    if abs(offset) < EPSILON:
        objects.append(_line(feature_pt, world(max(lu, text_end), lv), color))
    else:
        run = abs(offset) / 2
        direction = math.copysign(1.0, lu - fu) if lu - fu != 0 else 1.0
        knee = lu - direction * run
        knee = max(knee, fu) if direction > 0 else min(knee, fu)
        knee_pt = world(knee, fv)
        if abs(knee - fu) > EPSILON:
            objects.append(_line(feature_pt, knee_pt, color))
        objects.append(_line(knee_pt, leader_pt, color))
        if abs(text_end - lu) > EPSILON and direction * (text_end - lu) > 0:
            objects.append(_line(leader_pt, world(text_end, lv), color))

    if label is not None:
        objects.append(label)
    return objects or None


def _leader_to_text(
    start: Point2D,
    direction: Point2D,
    text: str,
    text_pos: Vertex,
    height: float,
    color: str,
    objects: list[Primitive],
) -> Point2D:
    underline_y = text_pos.y - height / 2
    intersect_x = text_pos.x
    if abs(direction[1]) > EPSILON:
        t = (underline_y - start[1]) / direction[1]
        intersect_x = start[0] + t * direction[0]
    label = dimension_text(text, (text_pos.x, underline_y), height, color)
    left = text_pos.x - label.width / 2
    right = text_pos.x + label.width / 2
    tail_end = (intersect_x, underline_y)
    objects.append(_line(start, tail_end, color))
    if intersect_x <= text_pos.x:
        objects.append(_line((intersect_x, underline_y), (right, underline_y), color))
    else:
        objects.append(_line((left, underline_y), (intersect_x, underline_y), color))
    objects.append(label)
    return tail_end


def radial_dimension(dxf: dict[str, Any], color: str) -> list[Primitive] | None:
    center = dxf.get("anchor_point")
    arc_pt = dxf.get("diameter_or_radius_point")
    text_pos = dxf.get("middle_of_text")
    if center is None or arc_pt is None:
        return None
    measurement = dxf.get("actual_measurement")
    if measurement is None:
        measurement = _distance(center, arc_pt)
    text = _measurement_text(dxf, measurement, prefix="R")
    height = dxf.get("text_height") or DIM_TEXT_HEIGHT

    dx = center.x - arc_pt.x
    dy = center.y - arc_pt.y
    length = math.hypot(dx, dy)
    direction = (dx / length, dy / length) if length > EPSILON else (1.0, 0.0)

    objects: list[Primitive] = []
    arrow_from = _xy(center)
    if text_pos is not None and text:
        arrow_from = _leader_to_text(_xy(arc_pt), direction, text, text_pos, height, color, objects)
    objects.append(create_arrow(arrow_from, _xy(arc_pt), ARROW_SIZE, color))
    return objects or None


def _text_on_segment(start: Vertex, end: Vertex, text_pos: Vertex, height: float) -> bool:
    full = _distance(start, end)
    if full <= EPSILON:
        return False
    ldx = (end.x - start.x) / full
    ldy = (end.y - start.y) / full
    t = ((text_pos.x - start.x) * ldx + (text_pos.y - start.y) * ldy) / full
    perp = abs(-(text_pos.x - start.x) * ldy + (text_pos.y - start.y) * ldx)
    return perp < height and 0 <= t <= 1


def upright_angle(angle: float) -> float:
    if angle > math.pi / 2:
        angle -= math.pi
    if angle < -math.pi / 2:
        angle += math.pi
    return angle


def diametric_dimension(dxf: dict[str, Any], color: str) -> list[Primitive] | None:
    p10 = dxf.get("anchor_point")
    p15 = dxf.get("diameter_or_radius_point")
    text_pos = dxf.get("middle_of_text")
    if p10 is None or p15 is None:
        return None
    measurement = dxf.get("actual_measurement")
    if measurement is None:
        measurement = _distance(p10, p15)
    text = _measurement_text(dxf, measurement)
    height = dxf.get("text_height") or DIM_TEXT_HEIGHT

    cx = (p10.x + p15.x) / 2
    cy = (p10.y + p15.y) / 2
    half = math.hypot(cx - p10.x, cy - p10.y)
    dir_x = (cx - p10.x) / half if half > EPSILON else 1.0
    dir_y = (cy - p10.y) / half if half > EPSILON else 0.0

    on_line = text_pos is not None and _text_on_segment(p15, p10, text_pos, height)
    # text on the line: arrows point outwards, otherwise inwards
    sign = 1 if on_line else -1
    objects: list[Primitive] = [
        create_arrow(
            (p10.x + sign * dir_x * ARROW_SIZE, p10.y + sign * dir_y * ARROW_SIZE),
            _xy(p10),
            ARROW_SIZE,
            color,
        ),
        create_arrow(
            (p15.x - sign * dir_x * ARROW_SIZE, p15.y - sign * dir_y * ARROW_SIZE),
            _xy(p15),
            ARROW_SIZE,
            color,
        ),
        _line(_xy(p15), _xy(p10), color),
    ]
    if not text:
        return objects

    if text_pos is not None and on_line:
        angle = upright_angle(math.atan2(p10.y - p15.y, p10.x - p15.x))
        objects.append(dimension_text(text, _xy(text_pos), height, color, rotation=angle))
    elif text_pos is not None:
        near = p10 if _distance(text_pos, p10) <= _distance(text_pos, p15) else p15
        ndx = cx - near.x
        ndy = cy - near.y
        near_len = math.hypot(ndx, ndy)
        direction = (ndx / near_len, ndy / near_len) if near_len > EPSILON else (1.0, 0.0)
        _leader_to_text(_xy(near), direction, text, text_pos, height, color, objects)
    else:
        objects.append(dimension_text(text, (cx, cy), height, color))
    return objects


def intersect_lines_2d(p1: Point2D, p2: Point2D, p3: Point2D, p4: Point2D) -> Point2D | None:
    d1x = p2[0] - p1[0]
    d1y = p2[1] - p1[1]
    d2x = p4[0] - p3[0]
    d2y = p4[1] - p3[1]
    denominator = d1x * d2y - d1y * d2x
    if abs(denominator) < EPSILON:
        return None
    t = ((p3[0] - p1[0]) * d2y - (p3[1] - p1[1]) * d2x) / denominator
    return (p1[0] + t * d1x, p1[1] + t * d1y)


def normalize_angle(angle: float) -> float:
    return ((angle % TWO_PI) + TWO_PI) % TWO_PI


def is_angle_in_sweep(start: float, end: float, test: float) -> bool:
    s = normalize_angle(start)
    e = normalize_angle(end)
    t = normalize_angle(test)
    if s < e:
        return s <= t <= e
    return t >= s or t <= e


def angular_dimension(dxf: dict[str, Any], color: str) -> list[Primitive] | None:
    """Arc between two rays with dashed extension lines and a degree label.

    The first ray runs through points 13 and 14, the second through 15 and
    10. The arc point (16) picks which of the two sweeps is drawn and sets the
    radius.
    """
    p13 = dxf.get("linear_or_angular_point1")
    p14 = dxf.get("linear_or_angular_point2")
    p15 = dxf.get("diameter_or_radius_point")
    p10 = dxf.get("anchor_point")
    p16 = dxf.get("arc_point")
    text_pos = dxf.get("middle_of_text")
    if p13 is None or p14 is None or p15 is None or p10 is None:
        return None

    if _distance(p14, p15) < EPSILON:
        vertex = _xy(p14)
    else:
        found = intersect_lines_2d(_xy(p13), _xy(p14), _xy(p15), _xy(p10))
        if found is None:
            return None
        vertex = found

    d13 = _distance(p13, vertex)
    d14 = _distance(p14, vertex)
    d15 = _distance(p15, vertex)
    d10 = _distance(p10, vertex)
    far_a = p13 if d13 >= d14 else p14
    far_b = p15 if d15 >= d10 else p10
    angle_a = math.atan2(far_a.y - vertex[1], far_a.x - vertex[0])
    angle_b = math.atan2(far_b.y - vertex[1], far_b.x - vertex[0])

    radius = _distance(p16, vertex) if p16 is not None else max(d13, d14, d15, d10) * 0.8
    if radius < EPSILON:
        return None

    start_angle, end_angle = angle_a, angle_b
    if p16 is not None:
        arc_angle = math.atan2(p16.y - vertex[1], p16.x - vertex[0])
        if not is_angle_in_sweep(angle_a, angle_b, arc_angle):
            start_angle, end_angle = angle_b, angle_a
    sweep = normalize_angle(end_angle - start_angle)
    if sweep < EPSILON:
        sweep = TWO_PI

    def on_arc(angle: float) -> Point2D:
        return (vertex[0] + radius * math.cos(angle), vertex[1] + radius * math.sin(angle))

    segments = max(MIN_ARC_SEGMENTS, int(math.floor(sweep * CIRCLE_SEGMENTS / TWO_PI)))
    objects: list[Primitive] = [
        Polyline(
            points=tuple(on_arc(start_angle + sweep * i / segments) for i in range(segments + 1)),
            color=color,
        )
    ]
    arc_start = on_arc(start_angle)
    arc_end = on_arc(end_angle)
    a_first = start_angle == angle_a
    objects.append(extension_line(_xy(far_a), arc_start if a_first else arc_end, color))
    objects.append(extension_line(_xy(far_b), arc_end if a_first else arc_start, color))

    # chord from slightly inside the arc so the arrowheads follow the curve
    arrow_angle = ARROW_SIZE / radius
    objects.append(create_arrow(on_arc(start_angle + arrow_angle), arc_start, ARROW_SIZE, color))
    objects.append(create_arrow(on_arc(end_angle - arrow_angle), arc_end, ARROW_SIZE, color))

    text = dxf.get("text")
    measurement = dxf.get("actual_measurement")
    if isinstance(measurement, (int, float)):
        formatted = format_dim_number(math.degrees(measurement)) + "\u00b0"
        text = _substitute_measurement(text, formatted) or formatted
    if text:
        height = dxf.get("text_height") or DIM_TEXT_HEIGHT
        if text_pos is not None:
            position = _xy(text_pos)
            text_angle = math.atan2(text_pos.y - vertex[1], text_pos.x - vertex[0])
        else:
            mid = start_angle + sweep / 2
            text_radius = radius + height * 0.8
            position = (vertex[0] + text_radius * math.cos(mid), vertex[1] + text_radius * math.sin(mid))
            text_angle = mid
        rotation = text_angle + math.pi / 2
        if math.pi / 2 < normalize_angle(rotation) < math.pi * 1.5:
            rotation += math.pi
        objects.append(dimension_text(text, position, height, color, rotation=rotation))
    return objects


def build_dimension(entity: Entity, color: str) -> list[Primitive] | None:
    """Dispatch a DIMENSION on the low nibble of its type field."""
    dxf = entity.dxf
    base_type = (dxf.get("dimension_type") or 0) & 0x0F
    if base_type & 0x0E == 6:
        return ordinate_dimension(dxf, color)
    if base_type == 2:
        return angular_dimension(dxf, color)
    if base_type == 3:
        return diametric_dimension(dxf, color)
    if base_type == 4:
        return radial_dimension(dxf, color)

    data = extract_dimension_data(dxf)
    if data is None:
        return None
    angle = data.angle
    if base_type == 1 and angle == 0:
        angle = math.degrees(
            math.atan2(data.point2.y - data.point1.y, data.point2.x - data.point1.x)
        )
    objects = dimension_group(data, color, angle)
    if data.text_pos is not None:
        objects.append(
            dimension_text(
                data.text,
                _xy(data.text_pos),
                data.text_height,
                color,
                rotation=degrees_to_radians(angle),
            )
        )
    return objects
