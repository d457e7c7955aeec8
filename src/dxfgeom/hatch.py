from __future__ import annotations

import logging
import math
from functools import reduce
from typing import Any, Iterable, Sequence

import shapely
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from .constants import (
    CIRCLE_SEGMENTS,
    EPSILON,
    HATCH_SPLINE_SEGMENTS_MULTIPLIER,
    MAX_HATCH_LINES_PER_PATTERN,
    MAX_HATCH_SEGMENTS,
    MIN_HATCH_SPLINE_SEGMENTS,
)
from .curves import arc_segment_count, bulge_arc, catmull_rom_points, degrees_to_radians, is_full_ellipse
from .primitives import Point2D, Triangle

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi
Segment = tuple[Point2D, Point2D]


def _signed_sweep(start: float, end: float, ccw: bool) -> float:
    sweep = end - start
    if ccw:
        if sweep < 0:
            sweep += TWO_PI
    elif sweep > 0:
        sweep -= TWO_PI
    return sweep


def arc_edge_points(edge: dict[str, Any], circle_segments: int = CIRCLE_SEGMENTS) -> list[Point2D]:
    start = degrees_to_radians(edge.get("start_angle", 0.0))
    end = degrees_to_radians(edge.get("end_angle", 0.0))
    sweep = _signed_sweep(start, end, edge.get("ccw", True))
    segments = arc_segment_count(sweep, circle_segments)
    center = edge["center"]
    radius = edge.get("radius", 0.0)
    return [
        (
            center.x + radius * math.cos(start + sweep * i / segments),
            center.y + radius * math.sin(start + sweep * i / segments),
        )
        for i in range(segments + 1)
    ]


def ellipse_edge_points(edge: dict[str, Any], circle_segments: int = CIRCLE_SEGMENTS) -> list[Point2D]:
    major = edge["major_axis_end_point"]
    major_length = math.hypot(major.x, major.y)
    if major_length < EPSILON:
        return []
    minor_length = major_length * edge.get("axis_ratio", 1.0)
    rotation = math.atan2(major.y, major.x)
    # unlike arc edges, ellipse edge parameters are stored in radians
    start = edge.get("start_angle", 0.0)
    end = edge.get("end_angle", 0.0)
    if is_full_ellipse(start, end):
        start, end = 0.0, TWO_PI
    sweep = _signed_sweep(start, end, edge.get("ccw", True))
    segments = arc_segment_count(sweep, circle_segments)
    center = edge["center"]
    cos_r = math.cos(rotation)
    sin_r = math.sin(rotation)
    points = []
    for i in range(segments + 1):
        t = start + sweep * i / segments
        local_x = major_length * math.cos(t)
        local_y = minor_length * math.sin(t)
        points.append(
            (center.x + local_x * cos_r - local_y * sin_r, center.y + local_x * sin_r + local_y * cos_r)
        )
    return points


def spline_edge_points(edge: dict[str, Any]) -> list[Point2D]:
    fit_points = edge.get("fit_points") or []
    source = fit_points if len(fit_points) > 1 else edge.get("control_points") or []
    if len(source) < 2:
        return []
    points = [(p.x, p.y) for p in source]
    if len(points) == 2:
        return points
    segments = max(len(points) * HATCH_SPLINE_SEGMENTS_MULTIPLIER, MIN_HATCH_SPLINE_SEGMENTS)
    return catmull_rom_points(points, segments)


def edge_points(edge: dict[str, Any], circle_segments: int = CIRCLE_SEGMENTS) -> list[Point2D]:
    kind = edge.get("type")
    if kind == "line":
        return [(edge["start"].x, edge["start"].y), (edge["end"].x, edge["end"].y)]
    if kind == "arc":
        return arc_edge_points(edge, circle_segments)
    if kind == "ellipse":
        return ellipse_edge_points(edge, circle_segments)
    if kind == "spline":
        return spline_edge_points(edge)
    return []


def boundary_path_to_points(path: dict[str, Any], circle_segments: int = CIRCLE_SEGMENTS) -> list[Point2D]:
    """Flatten one boundary path into an outline.

    Consecutive edges share their joint point, which is emitted once.
    """
    points: list[Point2D] = []
    edges = path.get("edges")
    if edges:
        for edge in edges:
            piece = edge_points(edge, circle_segments)
            if edge.get("type") == "line":
                if not points:
                    points.append(piece[0])
                points.append(piece[1])
            elif edge.get("type") == "arc":
                points.extend(piece)
            else:
                points.extend(piece[1:] if points else piece)
        return points

    vertices = path.get("polyline_vertices") or []
    if len(vertices) < 2:
        return points
    points.append((vertices[0].x, vertices[0].y))
    for v1, v2 in zip(vertices[:-1], vertices[1:]):
        if v1.bulge and abs(v1.bulge) > EPSILON:
            points.extend(bulge_arc((v1.x, v1.y), (v2.x, v2.y), v1.bulge)[1:])
        else:
            points.append((v2.x, v2.y))
    return points


def point_in_polygon(x: float, y: float, polygon: Sequence[Point2D]) -> bool:
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def clip_segment_to_polygon(start: Point2D, end: Point2D, polygon: Sequence[Point2D]) -> list[Segment]:
    x1, y1 = start
    x2, y2 = end
    dx = x2 - x1
    dy = y2 - y1

    params: list[float] = []
    count = len(polygon)
    for i in range(count):
        px, py = polygon[i]
        qx, qy = polygon[(i + 1) % count]
        ex = qx - px
        ey = qy - py
        denominator = dx * ey - dy * ex
        if abs(denominator) < 1e-10:
            continue
        t = ((px - x1) * ey - (py - y1) * ex) / denominator
        u = ((px - x1) * dy - (py - y1) * dx) / denominator
        if 1e-9 < t < 1 - 1e-9 and -1e-9 < u < 1 + 1e-9:
            params.append(t)
    params.sort()

    inside = point_in_polygon(x1, y1, polygon)
    result: list[Segment] = []
    previous = 0.0
    for t in params:
        if inside:
            result.append(((x1 + previous * dx, y1 + previous * dy), (x1 + t * dx, y1 + t * dy)))
        inside = not inside
        previous = t
    if inside:
        result.append(((x1 + previous * dx, y1 + previous * dy), (x2, y2)))
    return result


def _bounds(polygon: Sequence[Point2D]) -> tuple[float, float, float, float]:
    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]
    return min(xs), min(ys), max(xs), max(ys)


def generate_hatch_pattern(
    pattern_lines: Iterable[dict[str, Any]],
    polygon: Sequence[Point2D],
    max_lines: int = MAX_HATCH_LINES_PER_PATTERN,
    max_segments: int = MAX_HATCH_SEGMENTS,
) -> list[Segment]:
    """Fill ``polygon`` with the parallel line families of a hatch pattern.

    Each family repeats every ``offset`` projected on the line normal and
    shifts by the offset's along-line component per repeat. Dashes are phase
    aligned to the family's base point. A family needing more than
    ``max_lines`` repeats is skipped and output stops at ``max_segments``.
    """
    if len(polygon) < 3:
        return []
    min_x, min_y, max_x, max_y = _bounds(polygon)
    diag = math.hypot(max_x - min_x, max_y - min_y)
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2
    corners = ((min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y))
    segments: list[Segment] = []

    def emit(start: Point2D, end: Point2D) -> bool:
        for piece in clip_segment_to_polygon(start, end, polygon):
            if len(segments) >= max_segments:
                return False
            segments.append(piece)
        return True

    for line in pattern_lines:
        angle = degrees_to_radians(line.get("angle", 0.0))
        dir_x = math.cos(angle)
        dir_y = math.sin(angle)
        perp_x = -dir_y
        perp_y = dir_x
        base = line["base_point"]
        offset = line["offset"]

        spacing = abs(offset.x * perp_x + offset.y * perp_y)
        if spacing < EPSILON:
            continue
        stagger = offset.x * dir_x + offset.y * dir_y

        projections = [(cx - base.x) * perp_x + (cy - base.y) * perp_y for cx, cy in corners]
        start_index = math.floor(min(projections) / spacing)
        end_index = math.ceil(max(projections) / spacing)
        if end_index - start_index > max_lines:
            logger.warning(
                "hatch pattern line needs %d repeats, limit is %d; skipped",
                end_index - start_index,
                max_lines,
            )
            continue

        dashes = list(line.get("dashes") or [])
        dash_total = sum(abs(d) for d in dashes)
        solid = not dashes or dash_total < EPSILON
        if not solid and 2 * diag / dash_total > max_segments:
            logger.warning("hatch dash period %g is too short for a %g wide boundary; skipped", dash_total, diag)
            continue

        for index in range(start_index, end_index + 1):
            ox = base.x + index * spacing * perp_x + index * stagger * dir_x
            oy = base.y + index * spacing * perp_y + index * stagger * dir_y
            # parameter of the bbox centre along this repeat
            mid = (center_x - ox) * dir_x + (center_y - oy) * dir_y
            if solid:
                t0 = mid - diag
                t1 = mid + diag
                if not emit((ox + t0 * dir_x, oy + t0 * dir_y), (ox + t1 * dir_x, oy + t1 * dir_y)):
                    break
                continue

            t = mid - diag
            t -= t % dash_total
            limit = mid + diag
            room = True
            while t < limit and room:
                for dash in dashes:
                    length = abs(dash)
                    if dash > 0:
                        start = (ox + t * dir_x, oy + t * dir_y)
                        end = (ox + (t + length) * dir_x, oy + (t + length) * dir_y)
                        if not emit(start, end):
                            room = False
                            break
                    t += length
            if not room:
                break

        if len(segments) >= max_segments:
            logger.warning("hatch pattern reached %d segments; output truncated", max_segments)
            break
    return segments


def _ring(points: Sequence[Point2D]) -> Polygon | None:
    unique = list(dict.fromkeys(points))
    if len(unique) < 3:
        return None
    polygon = Polygon(points)
    if not polygon.is_valid:
        polygon = polygon.buffer(0)
    if polygon.is_empty or polygon.area < EPSILON * EPSILON:
        return None
    return polygon


def fill_region(outlines: Iterable[Sequence[Point2D]]) -> BaseGeometry | None:
    """Combine boundary outlines with the even-odd rule; nested loops become holes."""
    rings = [ring for ring in (_ring(points) for points in outlines) if ring is not None]
    if not rings:
        return None
    return reduce(lambda a, b: a.symmetric_difference(b), rings)


def triangulate_outlines(outlines: Iterable[Sequence[Point2D]]) -> list[Triangle]:
    region = fill_region(outlines)
    if region is None or region.is_empty:
        return []
    triangles: list[Triangle] = []
    for part in shapely.get_parts(region):
        if part.geom_type != "Polygon" or part.is_empty:
            continue
        for triangle in shapely.constrained_delaunay_triangles(part).geoms:
            a, b, c = list(triangle.exterior.coords)[:3]
            triangles.append(((a[0], a[1]), (b[0], b[1]), (c[0], c[1])))
    return triangles
