from __future__ import annotations

import math
from typing import Sequence

from .constants import (
    ARROW_BASE_WIDTH_DIVISOR,
    CIRCLE_SEGMENTS,
    EPSILON,
    MIN_ARC_SEGMENTS,
)
from .entity import Vertex
from .primitives import Arrow, Point2D

TWO_PI = 2 * math.pi


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def arc_segment_count(sweep: float, circle_segments: int = CIRCLE_SEGMENTS) -> int:
    return max(MIN_ARC_SEGMENTS, int(math.floor(abs(sweep) * circle_segments / TWO_PI)))


def bulge_arc(p1: Point2D, p2: Point2D, bulge: float) -> list[Point2D]:
    """Tessellate the arc a polyline bulge describes between two vertices.

    ``bulge = tan(theta / 4)``; positive sweeps counter-clockwise. The first
    and last returned points are the two vertices.
    """
    if abs(bulge) < EPSILON:
        return [p1, p2]
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    chord = math.hypot(dx, dy)
    if chord < EPSILON:
        return [p1, p2]

    theta = 4 * math.atan(bulge)
    radius = chord / (2 * math.sin(theta / 2))
    h = radius * math.cos(theta / 2)

    mid_x = (p1[0] + p2[0]) / 2
    mid_y = (p1[1] + p2[1]) / 2
    perp_x = -dy / chord
    perp_y = dx / chord
    center_x = mid_x + perp_x * h
    center_y = mid_y + perp_y * h

    start = math.atan2(p1[1] - center_y, p1[0] - center_x)
    end = math.atan2(p2[1] - center_y, p2[0] - center_x)
    sweep = end - start
    while sweep > math.pi:
        sweep -= TWO_PI
    while sweep < -math.pi:
        sweep += TWO_PI
    if bulge > 0 and sweep < 0:
        sweep += TWO_PI
    elif bulge < 0 and sweep > 0:
        sweep -= TWO_PI

    segments = arc_segment_count(sweep)
    r = abs(radius)
    points = []
    for i in range(segments + 1):
        angle = start + sweep * (i / segments)
        points.append((center_x + r * math.cos(angle), center_y + r * math.sin(angle)))
    return points


def bulge_radius(p1: Point2D, p2: Point2D, bulge: float) -> float:
    chord = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
    theta = 4 * math.atan(bulge)
    return abs(chord / (2 * math.sin(theta / 2)))


def polyline_points(vertices: Sequence[Vertex], closed: bool = False) -> list[Point2D]:
    if len(vertices) < 2:
        return [(v.x, v.y) for v in vertices]
    pairs = list(zip(vertices[:-1], vertices[1:]))
    if closed:
        first, last = vertices[0], vertices[-1]
        if abs(first.x - last.x) > EPSILON or abs(first.y - last.y) > EPSILON:
            pairs.append((last, first))
    points: list[Point2D] = [(vertices[0].x, vertices[0].y)]
    for v1, v2 in pairs:
        p1 = (v1.x, v1.y)
        p2 = (v2.x, v2.y)
        if v1.bulge and abs(v1.bulge) > EPSILON:
            points.extend(bulge_arc(p1, p2, v1.bulge)[1:])
        else:
            points.append(p2)
    return points


def circle_points(center: Point2D, radius: float, segments: int = CIRCLE_SEGMENTS) -> list[Point2D]:
    cx, cy = center
    return [
        (cx + radius * math.cos(TWO_PI * i / segments), cy + radius * math.sin(TWO_PI * i / segments))
        for i in range(segments + 1)
    ]


def arc_points(
    center: Point2D,
    radius: float,
    start_angle: float,
    end_angle: float,
    circle_segments: int = CIRCLE_SEGMENTS,
) -> list[Point2D]:
    if end_angle <= start_angle:
        end_angle += TWO_PI
    sweep = end_angle - start_angle
    segments = arc_segment_count(sweep, circle_segments)
    cx, cy = center
    points = []
    for i in range(segments + 1):
        angle = start_angle + sweep * (i / segments)
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def is_full_ellipse(start_angle: float, end_angle: float) -> bool:
    return abs(end_angle - start_angle - TWO_PI) < EPSILON or (
        abs(start_angle) < EPSILON and abs(end_angle) < EPSILON
    )


def ellipse_points(
    center: Point2D,
    major_axis: Point2D,
    axis_ratio: float,
    start_angle: float = 0.0,
    end_angle: float = TWO_PI,
    circle_segments: int = CIRCLE_SEGMENTS,
) -> list[Point2D]:
    major = math.hypot(major_axis[0], major_axis[1])
    minor = major * axis_ratio
    rotation = math.atan2(major_axis[1], major_axis[0])
    if is_full_ellipse(start_angle, end_angle):
        start_angle, end_angle = 0.0, TWO_PI
    sweep = end_angle - start_angle
    segments = arc_segment_count(sweep, circle_segments)
    cos_r = math.cos(rotation)
    sin_r = math.sin(rotation)
    points = []
    for i in range(segments + 1):
        t = start_angle + sweep * (i / segments)
        local_x = major * math.cos(t)
        local_y = minor * math.sin(t)
        points.append(
            (
                center[0] + local_x * cos_r - local_y * sin_r,
                center[1] + local_x * sin_r + local_y * cos_r,
            )
        )
    return points


def _find_span(n: int, degree: int, u: float, knots: Sequence[float]) -> int:
    if u >= knots[n + 1]:
        return n
    if u <= knots[degree]:
        return degree
    low = degree
    high = n + 1
    mid = (low + high) // 2
    while u < knots[mid] or u >= knots[mid + 1]:
        if u < knots[mid]:
            high = mid
        else:
            low = mid
        mid = (low + high) // 2
    return mid


def _basis_functions(span: int, u: float, degree: int, knots: Sequence[float]) -> list[float]:
    basis = [1.0] + [0.0] * degree
    left = [0.0] * (degree + 1)
    right = [0.0] * (degree + 1)
    for j in range(1, degree + 1):
        left[j] = u - knots[span + 1 - j]
        right[j] = knots[span + j] - u
        saved = 0.0
        for r in range(j):
            denominator = right[r + 1] + left[j - r]
            temp = basis[r] / denominator if denominator != 0 else 0.0
            basis[r] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        basis[j] = saved
    return basis


def nurbs_points(
    degree: int,
    knots: Sequence[float],
    control_points: Sequence[Point2D],
    weights: Sequence[float] | None = None,
    segments: int = 100,
) -> list[Point2D]:
    """Sample a (rational) B-spline over its valid knot range.

    The range is ``knots[degree]..knots[len(control_points)]``, which keeps
    periodic splines from running off to the unclamped ends.
    """
    count = len(control_points)
    if degree < 1 or count <= degree:
        raise ValueError(f"cannot evaluate degree {degree} spline with {count} control points")
    if len(knots) < count + degree + 1:
        raise ValueError(f"expected at least {count + degree + 1} knots, got {len(knots)}")
    u_start = knots[degree]
    u_end = knots[count]
    if u_end - u_start <= 0:
        raise ValueError("spline knot range is empty")
    weight_values = [
        weights[i] if weights is not None and i < len(weights) else 1.0 for i in range(count)
    ]

    points: list[Point2D] = []
    for step in range(segments + 1):
        u = u_start + (u_end - u_start) * step / segments
        span = _find_span(count - 1, degree, u, knots)
        basis = _basis_functions(span, u, degree, knots)
        x = y = w = 0.0
        for j in range(degree + 1):
            index = span - degree + j
            weighted = basis[j] * weight_values[index]
            x += weighted * control_points[index][0]
            y += weighted * control_points[index][1]
            w += weighted
        if abs(w) < 1e-12:
            raise ValueError("spline weights sum to zero")
        points.append((x / w, y / w))
    return points


def _catmull_rom_coefficients(
    x0: float, x1: float, x2: float, x3: float, dt0: float, dt1: float, dt2: float
) -> tuple[float, float, float, float]:
    t1 = (x1 - x0) / dt0 - (x2 - x0) / (dt0 + dt1) + (x2 - x1) / dt1
    t2 = (x2 - x1) / dt1 - (x3 - x1) / (dt1 + dt2) + (x3 - x2) / dt2
    t1 *= dt1
    t2 *= dt1
    return (x1, t1, -3 * x1 + 3 * x2 - 2 * t1 - t2, 2 * x1 - 2 * x2 + t1 + t2)


def catmull_rom_points(points: Sequence[Point2D], segments: int, closed: bool = False) -> list[Point2D]:
    """Sample a centripetal Catmull-Rom curve through ``points``."""
    count = len(points)
    if count < 2:
        return list(points)
    out: list[Point2D] = []
    for step in range(segments + 1):
        t = step / segments
        p = (count if closed else count - 1) * t
        index = int(math.floor(p))
        weight = p - index
        if closed:
            index += 0 if index > 0 else (int(math.floor(abs(index) / count)) + 1) * count
        elif weight == 0 and index == count - 1:
            index = count - 2
            weight = 1.0

        if closed or index > 0:
            p0 = points[(index - 1) % count]
        else:
            p0 = (2 * points[0][0] - points[1][0], 2 * points[0][1] - points[1][1])
        p1 = points[index % count]
        p2 = points[(index + 1) % count]
        if closed or index + 2 < count:
            p3 = points[(index + 2) % count]
        else:
            p3 = (2 * points[-1][0] - points[-2][0], 2 * points[-1][1] - points[-2][1])

        dt0 = math.dist(p0, p1) ** 0.5
        dt1 = math.dist(p1, p2) ** 0.5
        dt2 = math.dist(p2, p3) ** 0.5
        if dt1 < 1e-4:
            dt1 = 1.0
        if dt0 < 1e-4:
            dt0 = dt1
        if dt2 < 1e-4:
            dt2 = dt1

        cx = _catmull_rom_coefficients(p0[0], p1[0], p2[0], p3[0], dt0, dt1, dt2)
        cy = _catmull_rom_coefficients(p0[1], p1[1], p2[1], p3[1], dt0, dt1, dt2)
        w2 = weight * weight
        w3 = w2 * weight
        out.append(
            (
                cx[0] + cx[1] * weight + cx[2] * w2 + cx[3] * w3,
                cy[0] + cy[1] * weight + cy[2] * w2 + cy[3] * w3,
            )
        )
    return out


def create_arrow(from_point: Point2D, tip: Point2D, size: float, color: str) -> Arrow:
    dx = tip[0] - from_point[0]
    dy = tip[1] - from_point[1]
    length = math.hypot(dx, dy)
    dir_x = dx / length if length > EPSILON else 1.0
    dir_y = dy / length if length > EPSILON else 0.0
    width = size / ARROW_BASE_WIDTH_DIVISOR
    perp_x = dir_y
    perp_y = -dir_x
    base_x = tip[0] - dir_x * size
    base_y = tip[1] - dir_y * size
    return Arrow(
        tip=tip,
        base1=(base_x + perp_x * width, base_y + perp_y * width),
        base2=(base_x - perp_x * width, base_y - perp_y * width),
        color=color,
    )


def rotate_point(point: Point2D, angle: float) -> Point2D:
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return (point[0] * cos_a - point[1] * sin_a, point[0] * sin_a + point[1] * cos_a)
