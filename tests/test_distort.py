"""Tests for bounding-box corner distortion."""

import pytest

from scenecompose.distort import coerce_corners, distort_points
from scenecompose.geometry import CircleGeom, PathGeom
from scenecompose.primitives import Circle, Polygon, Polyline, Rect, RoundedRect


SQUARE = [(0, 0), (100, 0), (100, 100), (0, 100)]


class TestDistortPoints:
    def test_empty_corners_are_identity(self):
        assert distort_points(SQUARE, {}) == SQUARE

    def test_corner_point_moves_by_full_vector(self):
        moved = distort_points(SQUARE, {"bl": (0, 20)})
        assert moved[3] == (0, 120)
        assert moved[:3] == SQUARE[:3]

    def test_interior_point_blends(self):
        moved = distort_points(SQUARE + [(50, 50)], {"tl": (8, 0), "br": (0, 8)})
        assert moved[4] == pytest.approx((52, 52))

    def test_zero_width_axis_normalizes_to_zero(self):
        moved = distort_points([(0, 0), (0, 10)], {"tl": (5, 0)})
        assert moved == [(5, 0), (0, 10)]

    def test_mapping_corner_values(self):
        moved = distort_points(SQUARE, {"tr": {"x": 10, "y": -5}})
        assert moved[1] == (110, -5)

    def test_unknown_corner_raises(self):
        with pytest.raises(ValueError, match="Unknown distort corner"):
            coerce_corners({"top": (1, 1)})


class TestDistortModifier:
    def test_rect_becomes_four_point_path(self):
        [inst] = Rect(100, 50).distort({
            "tl": {"x": -10, "y": 0},
            "tr": {"x": 10, "y": 0},
        }).evaluate(0)
        assert isinstance(inst.geom, PathGeom)
        assert inst.geom.closed is True
        assert inst.geom.points[0] == (-60, -25)
        assert inst.geom.points[1] == (60, -25)
        assert inst.geom.points[2] == (50, 25)

    def test_polygon_bottom_left(self):
        [inst] = Polygon(SQUARE).distort({"bl": (0, 20)}).evaluate(0)
        assert inst.geom.points[3] == (0, 120)

    def test_rounded_rect_loses_rounding(self):
        [inst] = RoundedRect(100, 50, 10).distort({}).evaluate(0)
        assert inst.kind == "path"
        assert len(inst.geom.points) == 4

    def test_open_path_stays_open(self):
        [inst] = Polyline([(0, 0), (50, 10)]).distort({"tr": (0, 5)}).evaluate(0)
        assert inst.geom.closed is False

    def test_circle_is_unchanged_with_warning(self):
        [inst] = Circle(10).distort({"tl": (5, 5)}).evaluate(0)
        assert inst.geom == CircleGeom(10)
        assert [i.key for i in inst.issues] == ["distort:circle"]
        assert inst.issues[0].level == "warn"
