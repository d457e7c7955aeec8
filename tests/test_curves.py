from __future__ import annotations

import math

import pytest

from dxfgeom.curves import (
    arc_points,
    bulge_arc,
    bulge_radius,
    catmull_rom_points,
    circle_points,
    create_arrow,
    degrees_to_radians,
    ellipse_points,
    is_full_ellipse,
    nurbs_points,
    polyline_points,
    rotate_point,
)
from dxfgeom.entity import Vertex


def test_degrees_to_radians() -> None:
    assert degrees_to_radians(180) == pytest.approx(math.pi)
    assert degrees_to_radians(-90) == pytest.approx(-math.pi / 2)


def test_zero_bulge_is_a_straight_segment() -> None:
    assert bulge_arc((0.0, 0.0), (3.0, 4.0), 0.0) == [(0.0, 0.0), (3.0, 4.0)]


def test_semicircle_bulge() -> None:
    points = bulge_arc((0.0, 0.0), (2.0, 0.0), 1.0)

    assert bulge_radius((0.0, 0.0), (2.0, 0.0), 1.0) == pytest.approx(1.0)
    assert points[0] == pytest.approx((0.0, 0.0))
    assert points[-1] == pytest.approx((2.0, 0.0))
    for x, y in points:
        assert math.hypot(x - 1.0, y) == pytest.approx(1.0)
    # counter-clockwise from the left end passes below the chord
    middle = points[len(points) // 2]
    assert middle == pytest.approx((1.0, -1.0))


def test_negative_bulge_bends_the_other_way() -> None:
    points = bulge_arc((0.0, 0.0), (2.0, 0.0), -1.0)
    middle = points[len(points) // 2]
    assert middle == pytest.approx((1.0, 1.0))


def test_closed_polyline_repeats_first_point() -> None:
    square = [Vertex(0, 0), Vertex(1, 0), Vertex(1, 1), Vertex(0, 1)]

    points = polyline_points(square, closed=True)

    assert points == [(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)]
    assert polyline_points(square) == [(0, 0), (1, 0), (1, 1), (0, 1)]


def test_polyline_with_bulge_inserts_arc_points() -> None:
    vertices = [Vertex(0, 0, bulge=1.0), Vertex(2, 0)]
    points = polyline_points(vertices)
    assert len(points) > 2
    assert points[-1] == pytest.approx((2.0, 0.0))


def test_circle_points_close_on_themselves() -> None:
    points = circle_points((1.0, 1.0), 2.0, segments=16)
    assert len(points) == 17
    assert points[0] == pytest.approx(points[-1])
    assert points[4] == pytest.approx((1.0, 3.0))


def test_arc_wraps_when_end_precedes_start() -> None:
    points = arc_points((0.0, 0.0), 1.0, 3 * math.pi / 2, math.pi / 2)
    assert points[0] == pytest.approx((0.0, -1.0))
    assert points[-1] == pytest.approx((0.0, 1.0))
    assert points[len(points) // 2] == pytest.approx((1.0, 0.0))


def test_short_arc_keeps_minimum_segment_count() -> None:
    points = arc_points((0.0, 0.0), 1.0, 0.0, 0.01)
    assert len(points) == 9


def test_ellipse_follows_major_axis_direction() -> None:
    points = ellipse_points((0.0, 0.0), (0.0, 2.0), 0.5)
    assert points[0] == pytest.approx((0.0, 2.0))
    assert points[32] == pytest.approx((-1.0, 0.0))


def test_full_ellipse_detection() -> None:
    assert is_full_ellipse(0.0, 0.0)
    assert is_full_ellipse(1.0, 1.0 + 2 * math.pi)
    assert not is_full_ellipse(0.0, math.pi)


def test_linear_nurbs_is_a_straight_line() -> None:
    points = nurbs_points(1, [0, 0, 1, 1], [(0.0, 0.0), (10.0, 0.0)], segments=4)
    assert [x for x, _ in points] == pytest.approx([0.0, 2.5, 5.0, 7.5, 10.0])
    assert [y for _, y in points] == pytest.approx([0.0] * 5)


def test_rational_quadratic_traces_a_quarter_circle() -> None:
    weight = math.sqrt(2) / 2
    points = nurbs_points(
        2,
        [0, 0, 0, 1, 1, 1],
        [(1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        weights=[1.0, weight, 1.0],
        segments=10,
    )
    assert points[0] == pytest.approx((1.0, 0.0))
    assert points[-1] == pytest.approx((0.0, 1.0))
    for x, y in points:
        assert math.hypot(x, y) == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("degree", "knots", "control_points"),
    [
        (3, [0, 0, 1, 1], [(0.0, 0.0), (1.0, 1.0)]),
        (1, [0, 1], [(0.0, 0.0), (1.0, 1.0)]),
        (1, [0, 0, 0, 0], [(0.0, 0.0), (1.0, 1.0)]),
    ],
)
def test_invalid_nurbs_input_raises(degree, knots, control_points) -> None:
    with pytest.raises(ValueError):
        nurbs_points(degree, knots, control_points)


def test_catmull_rom_passes_through_end_points() -> None:
    fit = [(0.0, 0.0), (1.0, 2.0), (3.0, 1.0), (4.0, 4.0)]
    points = catmull_rom_points(fit, 30)
    assert len(points) == 31
    assert points[0] == pytest.approx(fit[0])
    assert points[-1] == pytest.approx(fit[-1])
    assert points[10] == pytest.approx(fit[1])


def test_arrow_is_symmetric_about_its_axis() -> None:
    arrow = create_arrow((0.0, 0.0), (10.0, 0.0), 4.0, "#ff0000")
    assert arrow.tip == (10.0, 0.0)
    assert arrow.base1 == pytest.approx((6.0, -1.0))
    assert arrow.base2 == pytest.approx((6.0, 1.0))
    assert arrow.color == "#ff0000"


def test_rotate_point() -> None:
    assert rotate_point((1.0, 0.0), math.pi / 2) == pytest.approx((0.0, 1.0))
