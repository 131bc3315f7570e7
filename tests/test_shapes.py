"""Tests for shape builders and their snapshots."""

import pytest

from scenecompose.primitives import Circle, Polyline, Rect, Text
from scenecompose.shapes import ShapeBuilder, Transform


FADE = {"from": 0, "to": 1, "duration": 100}


class TestImmutability:
    def test_modifiers_return_new_builders(self):
        base = Circle(10)
        moved = base.at(5, 6)
        assert moved is not base
        assert base.evaluate(0)[0].transform == Transform()
        assert moved.evaluate(0)[0].transform == Transform(x=5, y=6)

    def test_shared_base_branches_independently(self):
        base = Rect(10, 10).fill("red")
        a = base.opacity(0.5)
        b = base.z(3)
        assert a.evaluate(0)[0].z_index == 0
        assert b.evaluate(0)[0].opacity == 1.0

    def test_repr_lists_modifiers(self):
        assert repr(Rect().fill("red").at(1)) == "ShapeBuilder(rect, [fill, x])"


class TestModifiers:
    def test_later_modifier_wins(self):
        [inst] = Circle().fill("red").fill("blue").evaluate(0)
        assert inst.fill == "blue"

    def test_timed_position(self):
        [inst] = Rect().at(x={"from": -100, "to": 100, "duration": 1000}).evaluate(250)
        assert inst.transform.x == pytest.approx(-50)

    def test_timed_fill_color(self):
        [inst] = Rect().fill({"from": "#000000", "to": "#ffffff", "duration": 100}).evaluate(50)
        assert inst.fill == "rgb(128, 128, 128)"

    def test_transform_fields(self):
        [inst] = Rect().scale(2).scale_xy(3, 4).rotate(0.5).skew(0.1, 0.2).evaluate(0)
        assert inst.transform == Transform(
            scale=2, scale_x=3, scale_y=4, rotation=0.5, skew_x=0.1, skew_y=0.2,
        )

    def test_fill_clears_gradient(self):
        grad = {"from": [0, 0], "to": [10, 0], "stops": [{"pos": 0, "color": "red"}]}
        [inst] = Rect().gradient(grad).fill("blue").evaluate(0)
        assert inst.gradient is None
        [inst] = Rect().fill("blue").gradient(grad).evaluate(0)
        assert inst.gradient.stops == ((0.0, "red"),)

    def test_animated_gradient_stop(self):
        grad = {"from": [0, 0], "to": [10, 0], "stops": [
            {"pos": {"from": 0, "to": 1, "duration": 100}, "color": "red"},
        ]}
        [inst] = Rect().gradient(grad).evaluate(50)
        assert inst.gradient.stops[0][0] == pytest.approx(0.5)

    def test_stroke(self):
        [inst] = Rect().stroke("red", 2, cap="round", dash=[4, 2]).evaluate(0)
        assert inst.stroke.color == "red"
        assert inst.stroke.width == 2.0
        assert inst.stroke.cap == "round"
        assert inst.stroke.dash == (4.0, 2.0)

    def test_invalid_cap_raises(self):
        with pytest.raises(ValueError, match="line cap"):
            Rect().stroke("red", cap="pointy")

    def test_trim_needs_spec(self):
        with pytest.raises(ValueError, match="timing spec"):
            Rect().trim(0.5)

    def test_invalid_anchor_raises(self):
        with pytest.raises(ValueError, match="anchor"):
            Rect().anchor("middle")

    def test_invalid_fill_mode_raises(self):
        with pytest.raises(ValueError, match="fill mode"):
            Rect().fill("red", mode="overlay")

    def test_clip_evaluates_clip_shapes(self):
        [inst] = Rect().clip(Circle(10).at(5)).evaluate(0)
        assert [c.kind for c in inst.clip] == ["circle"]
        assert inst.clip[0].transform.x == 5

    def test_clip_rejects_non_shapes(self):
        with pytest.raises(TypeError, match="clip"):
            Rect().clip(42)

    def test_snapshot_records_time(self):
        assert Rect().evaluate(420)[0].time == 420


class TestTextModifiers:
    def test_timed_opacity_is_per_glyph(self):
        [inst] = Text("hi").opacity(FADE).evaluate(50)
        assert inst.opacity == 1.0
        assert inst.text.opacity_spec is not None

    def test_static_opacity_applies_to_block(self):
        [inst] = Text("hi").opacity(0.4).evaluate(0)
        assert inst.opacity == 0.4
        assert inst.text.opacity_spec is None

    def test_timed_fill_keeps_spec(self):
        [inst] = Text("hi").fill({"from": "red", "to": "blue", "duration": 100}).evaluate(0)
        assert inst.text.fill_spec is not None
        assert inst.fill == "rgb(255, 0, 0)"

    def test_on_path_points(self):
        [inst] = Text("abc").on_path([(0, 0), (100, 0)], align="center").evaluate(0)
        assert inst.text.path.points == ((0, 0), (100, 0))
        assert inst.text.path.align == "center"

    def test_on_path_follows_shape(self):
        path = Polyline([(0, 0), (50, 0), (50, 50)])
        [inst] = Text("abc").on_path(path, offset=5).evaluate(0)
        assert len(inst.text.path.points) == 3
        assert inst.text.path.offset == 5

    def test_on_path_around_circle(self):
        [inst] = Text("abc").on_path(Circle(50)).evaluate(0)
        assert inst.text.path.closed is True
        assert len(inst.text.path.points) == 64

    def test_on_path_along_arc_is_open(self):
        from scenecompose.primitives import Arc

        [inst] = Text("abc").on_path(Arc(radius=40)).evaluate(0)
        assert inst.text.path.closed is False
        assert inst.text.path.points[0] == pytest.approx((40, 0))


class TestEstimatedDuration:
    def test_static_shape_has_no_duration(self):
        assert Rect().fill("red").estimated_duration() == 0

    def test_latest_spec_end(self):
        builder = Rect().at(x={"from": 0, "to": 1, "duration": 300, "delay": 100}) \
            .opacity({"from": 0, "to": 1, "duration": 200, "start": "scene+500"})
        assert builder.estimated_duration() == pytest.approx(700)

    def test_loop_counts_one_cycle(self):
        builder = Circle().opacity({
            "from": 0, "to": 1, "duration": 200, "loop": True, "repeatDelay": 100,
        })
        assert builder.estimated_duration() == pytest.approx(300)

    def test_is_shape_builder(self):
        assert isinstance(Circle(), ShapeBuilder)
