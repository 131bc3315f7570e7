"""Tests for shape geometry queries."""

import math

import pytest

from scenecompose.geometry import (
    BezierGeom,
    CircleGeom,
    CompoundGeom,
    CubicTo,
    LineTo,
    MoveTo,
    PathGeom,
    QuadTo,
    RectGeom,
    RingGeom,
    TextGeom,
    Vec2,
    anchor_offset,
    arc_points,
    bezier_subpaths,
    bounds,
    coerce_command,
    coerce_point,
    dash_polyline,
    geom_anchor_offset,
    outline,
    point_list,
)


class TestPointList:
    def test_rect_corners_in_order(self):
        assert point_list(RectGeom(100, 50)) == [
            (-50, -25), (50, -25), (50, 25), (-50, 25),
        ]

    def test_path_points(self):
        geom = PathGeom((Vec2(0, 0), Vec2(10, 0), Vec2(10, 10)))
        assert point_list(geom) == [(0, 0), (10, 0), (10, 10)]

    def test_non_pointwise_kinds(self):
        assert point_list(CircleGeom(10)) is None
        assert point_list(TextGeom("hi")) is None

    def test_unknown_geometry_raises(self):
        with pytest.raises(TypeError, match="Unknown geometry"):
            point_list(object())


class TestBounds:
    def test_ring_uses_outer_radius(self):
        b = bounds(RingGeom(40, 20))
        assert (b.min_x, b.min_y, b.max_x, b.max_y) == (-40, -40, 40, 40)

    def test_bezier_includes_pen_origin(self):
        b = bounds(BezierGeom((MoveTo(10, 10), LineTo(20, 20))))
        assert (b.min_x, b.min_y, b.max_x, b.max_y) == (0, 0, 20, 20)

    def test_compound_spans_all_paths(self):
        geom = CompoundGeom((
            PathGeom((Vec2(-5, -5), Vec2(0, 0), Vec2(-5, 0))),
            PathGeom((Vec2(30, 1), Vec2(31, 2), Vec2(30, 40))),
        ))
        b = bounds(geom)
        assert (b.min_x, b.max_x, b.max_y) == (-5, 31, 40)

    def test_text_has_no_static_bounds(self):
        assert bounds(TextGeom("hello")) is None


class TestOutline:
    def test_ring_has_two_subpaths(self):
        assert len(outline(RingGeom(40, 20))) == 2

    def test_ring_without_hole(self):
        assert len(outline(RingGeom(40, 0))) == 1

    def test_open_path_stays_open(self):
        [(points, closed)] = outline(PathGeom((Vec2(0, 0), Vec2(10, 0)), closed=False))
        assert closed is False
        assert len(points) == 2


class TestBezier:
    def test_quad_segment_sampling(self):
        [(points, closed)] = bezier_subpaths([MoveTo(0, 0), QuadTo(5, 10, 10, 0)])
        assert len(points) == 21
        assert points[-1] == pytest.approx((10, 0))
        assert closed is False

    def test_cubic_segment_sampling(self):
        [(points, _)] = bezier_subpaths([MoveTo(0, 0), CubicTo(0, 10, 10, 10, 10, 0)])
        assert len(points) == 31
        assert points[15] == pytest.approx((5, 7.5))

    def test_move_to_opens_new_subpath(self):
        subpaths = bezier_subpaths([
            MoveTo(0, 0), LineTo(10, 0), MoveTo(0, 10), LineTo(10, 10), coerce_command({"cmd": "close"}),
        ])
        assert [closed for _, closed in subpaths] == [False, True]

    def test_command_mapping(self):
        assert coerce_command({"cmd": "lineTo", "x": 1, "y": 2}) == LineTo(1, 2)

    def test_unknown_command_raises(self):
        with pytest.raises(ValueError, match="Unknown bezier command"):
            coerce_command({"cmd": "arcTo", "x": 1, "y": 2})


class TestArcPoints:
    def test_clockwise_quarter(self):
        points = arc_points(10, 0, math.pi / 2)
        assert points[0] == pytest.approx((10, 0))
        assert points[-1] == pytest.approx((0, 10), abs=1e-9)
        assert all(p.y >= -1e-9 for p in points)

    def test_counterclockwise_takes_long_way(self):
        points = arc_points(10, 0, math.pi / 2, counterclockwise=True)
        assert points[-1] == pytest.approx((0, 10), abs=1e-9)
        assert min(p.y for p in points) < -9


class TestAnchors:
    def test_anchor_offset(self):
        assert anchor_offset("topLeft", 100, 50) == (50, 25)
        assert anchor_offset("bottomRight", 100, 50) == (-50, -25)
        assert anchor_offset("center", 100, 50) == (0, 0)

    def test_geom_anchor_uses_bounds(self):
        assert geom_anchor_offset(RectGeom(100, 50), "left") == (50, 0)

    def test_unknown_extent_has_no_offset(self):
        assert geom_anchor_offset(TextGeom("hi"), "topLeft") == (0, 0)

    def test_coerce_point(self):
        assert coerce_point({"x": 3}) == (3, 0)
        assert coerce_point([1, 2]) == Vec2(1, 2)


def _rounded(runs):
    return [[(round(x, 6), round(y, 6)) for x, y in run] for run in runs]


class TestDashPolyline:
    LINE = [(0, 0), (10, 0)]

    def test_on_runs(self):
        assert _rounded(dash_polyline(self.LINE, [2, 3])) == [
            [(0, 0), (2, 0)],
            [(5, 0), (7, 0)],
        ]

    def test_odd_pattern_repeats(self):
        runs = _rounded(dash_polyline(self.LINE, [2]))
        assert len(runs) == 3
        assert runs[-1] == [(8, 0), (10, 0)]

    def test_offset_shifts_pattern(self):
        runs = _rounded(dash_polyline(self.LINE, [2, 3], offset=1))
        assert runs[0] == [(0, 0), (1, 0)]
        assert len(runs) == 3

    def test_runs_follow_corners(self):
        runs = _rounded(dash_polyline([(0, 0), (4, 0), (4, 4)], [6, 2]))
        assert runs[0] == [(0, 0), (4, 0), (4, 2)]

    def test_invalid_pattern_is_solid(self):
        for dash in (None, [], [0, 0], [3, -1]):
            assert dash_polyline(self.LINE, dash) == [[(0, 0), (10, 0)]]
