"""Tests for leaf shape constructors."""

import math

import pytest

from scenecompose.geometry import BezierGeom, CornerRadii, LineTo, MoveTo
from scenecompose.primitives import (
    Arc,
    BezierPath,
    Capsule,
    Circle,
    Compound,
    Custom,
    Ellipse,
    Image,
    Line,
    RegularPolygon,
    RegularStar,
    Rect,
    Ring,
    RoundedRect,
    Spiral,
    Star,
    Text,
    Triangle,
)


def _geom(builder):
    return builder.evaluate(0)[0].geom


class TestRoundShapes:
    def test_defaults(self):
        assert _geom(Circle()).radius == 50
        assert _geom(Rect()).width == 80
        assert (_geom(Ellipse(120, 80)).rx, _geom(Ellipse(120, 80)).ry) == (60, 40)

    def test_ring_inner_is_clamped(self):
        assert _geom(Ring(50, 80)).inner == 50
        assert _geom(Ring(50, -5)).inner == 0

    def test_arc_thickness(self):
        assert _geom(Arc(radius=100, thickness=30)).inner_radius == 70

    def test_arc_inner_radius_wins(self):
        assert _geom(Arc(radius=100, inner_radius=150, thickness=10)).inner_radius == 100

    def test_capsule_radius(self):
        geom = _geom(Capsule(160, 60))
        assert geom.kind == "roundRect"
        assert geom.radius == 30

    def test_rounded_rect_corner_mapping(self):
        assert _geom(RoundedRect(radius={"tl": 5})).radius == CornerRadii(tl=5)


class TestPolygons:
    def test_regular_polygon_first_vertex_up(self):
        points = _geom(RegularPolygon(4, 10)).points
        assert len(points) == 4
        assert points[0] == pytest.approx((0, -10), abs=1e-9)

    def test_regular_polygon_minimum_sides(self):
        assert len(_geom(RegularPolygon(1)).points) == 3

    def test_star_alternates_radii(self):
        points = _geom(Star(5, 80, 40)).points
        assert len(points) == 10
        assert math.hypot(*points[0]) == pytest.approx(80)
        assert math.hypot(*points[1]) == pytest.approx(40)

    def test_regular_star_inner_ratio(self):
        points = _geom(RegularStar(6, 100, 0.25)).points
        assert math.hypot(*points[1]) == pytest.approx(25)

    def test_triangle_up(self):
        assert _geom(Triangle()).points == ((-60, 50), (0, -50), (60, 50))

    def test_right_triangle(self):
        assert _geom(Triangle(right_angle="topLeft")).points == ((-60, -50), (60, -50), (-60, 50))

    def test_triangle_invalid_direction(self):
        with pytest.raises(ValueError, match="direction"):
            Triangle(direction="sideways")

    def test_spiral(self):
        geom = _geom(Spiral(turns=2, radius=80, points=2))
        assert len(geom.points) == 3
        assert geom.points[0] == pytest.approx((0, 0), abs=1e-9)
        assert math.hypot(*geom.points[-1]) == pytest.approx(80)
        assert geom.closed is False

    def test_line(self):
        geom = _geom(Line((0, 0), (10, 0)))
        assert geom.points == ((0, 0), (10, 0))
        assert geom.closed is False


class TestCurves:
    def test_bezier_from_mappings(self):
        geom = _geom(BezierPath([
            {"cmd": "moveTo", "x": 0, "y": 0},
            {"cmd": "lineTo", "x": 10, "y": 0},
        ]))
        assert isinstance(geom, BezierGeom)
        assert geom.commands == (MoveTo(0, 0), LineTo(10, 0))

    def test_bezier_unknown_command(self):
        with pytest.raises(ValueError):
            BezierPath([{"cmd": "spline", "x": 0, "y": 0}])

    def test_compound_paths(self):
        outer = [(-50, -50), (50, -50), (50, 50), (-50, 50)]
        inner = [(-10, -10), (10, -10), (10, 10)]
        geom = _geom(Compound(outer, (inner, False)))
        assert len(geom.paths) == 2
        assert geom.paths[0].closed is True
        assert geom.paths[1].closed is False


class TestMediaAndText:
    def test_image(self):
        geom = _geom(Image("a.png", 10, 20))
        assert (geom.kind, geom.src, geom.width, geom.height) == ("image", "a.png", 10, 20)

    def test_text_options(self):
        geom = _geom(Text("hi", font_size=40, align="left", split="word"))
        assert geom.options.font_size == 40
        assert geom.options.split == "word"

    def test_non_string_text_reports_issue(self):
        [inst] = Text(42).evaluate(0)
        assert inst.geom.value == "42"
        [issue] = inst.issues
        assert issue.key == "text-arg:type"
        assert issue.level == "error"
        assert issue.message == "Text() expects a string"

    def test_invalid_split(self):
        with pytest.raises(ValueError, match="split"):
            Text("x", split="char")

    def test_unknown_option(self):
        with pytest.raises(TypeError):
            Text("x", colour="red")

    def test_custom_keeps_callback(self):
        def draw(image, time):
            pass

        [inst] = Custom(draw).evaluate(0)
        assert inst.kind == "custom"
        assert inst.draw is draw
