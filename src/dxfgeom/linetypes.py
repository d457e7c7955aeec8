from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .entity import Entity, Layer, LineType
from .primitives import Point2D

CONTINUOUS = "CONTINUOUS"
BYBLOCK = "BYBLOCK"
BYLAYER = "BYLAYER"

_TOLERANCE = 1e-10

Segment = tuple[Point2D, Point2D]


@dataclass
class PatternGeometry:
    segments: list[Segment] = field(default_factory=list)
    dots: list[Point2D] = field(default_factory=list)


def scale_pattern(pattern: Sequence[float], entity_scale: float = 1.0, global_scale: float = 1.0) -> tuple[float, ...]:
    scale = entity_scale * global_scale
    return tuple(0.0 if value == 0 else value * scale for value in pattern)


def _has_gap(pattern: Sequence[float]) -> bool:
    return any(value < 0 for value in pattern)


def _element_length(value: float) -> float:
    return abs(value) if value != 0 else 0.0


def apply_linetype_pattern(points: Sequence[Point2D], pattern: Sequence[float]) -> PatternGeometry:
    """Walk ``points`` and split them into dashes and dots.

    Positive elements are dashes, negative elements gaps and zeros dots. The
    pattern phase carries across polyline vertices. A pattern without any gap
    is solid and yields nothing.
    """
    result = PatternGeometry()
    if len(points) < 2 or not pattern or not _has_gap(pattern):
        return result

    count = len(pattern)
    index = 0
    element = pattern[index]
    drawing = element > 0
    remaining = _element_length(element)
    dash_start = points[0]
    if element == 0:
        result.dots.append(points[0])
        index = (index + 1) % count
        element = pattern[index]
        drawing = element > 0
        remaining = _element_length(element)

    for p1, p2 in zip(points[:-1], points[1:]):
        dx = p2[0] - p1[0]
        dy = p2[1] - p1[1]
        length = math.hypot(dx, dy)
        if length < _TOLERANCE:
            continue
        dir_x = dx / length
        dir_y = dy / length
        consumed = 0.0
        while consumed < length - _TOLERANCE:
            available = length - consumed
            if remaining > available + _TOLERANCE:
                remaining -= available
                break
            consumed += remaining
            end = (p1[0] + dir_x * consumed, p1[1] + dir_y * consumed)
            if drawing:
                result.segments.append((dash_start, end))
            index = (index + 1) % count
            element = pattern[index]
            if element == 0:
                result.dots.append(end)
                index = (index + 1) % count
                element = pattern[index]
            drawing = element > 0
            remaining = _element_length(element)
            if drawing:
                dash_start = end

    if drawing:
        last = points[-1]
        if (last[0] - dash_start[0]) ** 2 + (last[1] - dash_start[1]) ** 2 > 1e-20:
            result.segments.append((dash_start, last))
    return result


def _find_line_type(line_types: Mapping[str, LineType], name: str) -> LineType | None:
    wanted = name.upper()
    for line_type in line_types.values():
        if line_type.name.upper() == wanted:
            return line_type
    return None


def resolve_entity_linetype(
    entity: Entity,
    layers: Mapping[str, Layer],
    line_types: Mapping[str, LineType],
    global_scale: float = 1.0,
    block_line_type: str | None = None,
) -> tuple[float, ...] | None:
    """Return the scaled dash pattern for ``entity`` or ``None`` when it draws solid."""
    name: str | None = None
    own = entity.dxf.get("line_type")
    if own:
        upper = own.upper()
        if upper == CONTINUOUS:
            return None
        if upper == BYBLOCK:
            name = block_line_type
        elif upper != BYLAYER:
            name = own

    if not name:
        layer = layers.get(entity.layer)
        if layer is not None and layer.line_type:
            if layer.line_type.upper() == CONTINUOUS:
                return None
            name = layer.line_type

    if not name:
        return None
    line_type = _find_line_type(line_types, name)
    if line_type is None or not line_type.pattern or not _has_gap(line_type.pattern):
        return None
    entity_scale = entity.dxf.get("line_type_scale")
    return scale_pattern(line_type.pattern, 1.0 if entity_scale is None else entity_scale, global_scale)
