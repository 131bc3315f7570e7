"""Tests for the timing resolver."""

import pytest

from scenecompose.timing import (
    CubicBezier,
    Keyframe,
    TimingSpec,
    apply_ease,
    coerce_ease,
    coerce_spec,
    evaluate_spec,
    phase,
    resolve_value,
    spec_end,
    trim_fraction,
)


def _spec(**overrides):
    data = {"from": 0, "to": 100, "duration": 100}
    data.update(overrides)
    return TimingSpec.from_dict(data)


class TestPhase:
    def test_zero_before_start(self):
        assert phase(50, 100, start=100) == 0.0
        assert phase(100, 100, start=100) == 0.0

    def test_linear_progress(self):
        assert phase(150, 100, start=100) == pytest.approx(0.5)

    def test_clamps_at_one(self):
        assert phase(5000, 100) == 1.0

    def test_zero_duration_jumps_to_one(self):
        assert phase(10, 0) == 1.0
        assert phase(0, 0) == 0.0

    def test_delay_and_stagger_shift_start(self):
        assert phase(150, 100, delay=50) == pytest.approx(1.0)
        assert phase(150, 100, stagger=50, index=2) == pytest.approx(0.5)

    def test_monotonic_without_loop(self):
        values = [phase(t, 300, ease="easeInOut") for t in range(0, 400, 10)]
        assert values == sorted(values)

    def test_loop_is_periodic(self):
        for t in (10, 30, 75, 99):
            first = phase(t, 100, loop=True, repeat_delay=50)
            assert phase(t + 150, 100, loop=True, repeat_delay=50) == pytest.approx(first)

    def test_loop_holds_one_during_repeat_delay(self):
        assert phase(120, 100, loop=True, repeat_delay=50) == 1.0

    def test_negative_cycle_falls_back_to_duration(self):
        assert phase(150, 100, loop=True, repeat_delay=-200) == pytest.approx(0.5)


class TestEasing:
    def test_named_eases(self):
        assert apply_ease(0.5, "linear") == 0.5
        assert apply_ease(0.5, "easeIn") == pytest.approx(0.25)
        assert apply_ease(0.5, "easeOut") == pytest.approx(0.75)
        assert apply_ease(0.25, "easeInOut") == pytest.approx(0.125)
        assert apply_ease(0.75, "easeInOut") == pytest.approx(0.875)

    def test_cubic_bezier_uses_y_controls(self):
        assert apply_ease(0.5, CubicBezier(0.4, 0, 0.6, 1)) == pytest.approx(0.5)
        assert apply_ease(0.5, CubicBezier(0, 1, 0, 1)) == pytest.approx(0.875)

    def test_endpoints_fixed(self):
        for ease in ("linear", "easeIn", "easeOut", "easeInOut", CubicBezier(0.1, 0.7, 0.3, 0.2)):
            assert apply_ease(0.0, ease) == pytest.approx(0.0)
            assert apply_ease(1.0, ease) == pytest.approx(1.0)

    def test_coerce_ease_mapping_and_list(self):
        assert coerce_ease({"type": "cubicBezier", "x1": 0, "y1": 0.2, "x2": 1, "y2": 0.8}) \
            == CubicBezier(0, 0.2, 1, 0.8)
        assert coerce_ease([0, 0.2, 1, 0.8]) == CubicBezier(0, 0.2, 1, 0.8)

    def test_unknown_ease_raises(self):
        with pytest.raises(ValueError, match="Unknown ease"):
            coerce_ease("bounce")

    def test_cubic_bezier_missing_point_raises(self):
        with pytest.raises(ValueError, match="missing"):
            coerce_ease({"x1": 0, "y1": 0, "x2": 1})


class TestTimingSpec:
    def test_from_dict_reads_manifest_keys(self):
        spec = _spec(repeatDelay=40, loop=True, start="scene+200", ease="easeOut")
        assert spec.repeat_delay == 40
        assert spec.loop is True
        assert spec.ease == "easeOut"

    def test_missing_duration_raises(self):
        with pytest.raises(ValueError, match="duration"):
            TimingSpec(from_=0, to=1)

    def test_missing_endpoints_raise(self):
        with pytest.raises(ValueError, match="from"):
            TimingSpec(to=1, duration=100)

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="Unknown timing spec field"):
            _spec(speed=2)

    def test_empty_keyframes_raise(self):
        with pytest.raises(ValueError, match="non-empty"):
            TimingSpec.from_dict({"keyframes": []})

    def test_unsorted_keyframes_raise(self):
        with pytest.raises(ValueError, match="sorted"):
            TimingSpec.from_dict({"keyframes": [[100, 1], [0, 0]]})

    def test_coerce_spec_passes_static_values(self):
        assert coerce_spec(3) is None
        assert coerce_spec("red") is None
        assert isinstance(coerce_spec({"from": 0, "to": 1, "duration": 10}), TimingSpec)


class TestEvaluateSpec:
    def test_numeric_midpoint(self):
        assert evaluate_spec(_spec(), 50) == pytest.approx(50)

    def test_scene_relative_start(self):
        spec = _spec(start="scene+200")
        assert evaluate_spec(spec, 200) == 0
        assert evaluate_spec(spec, 250) == pytest.approx(50)

    def test_color_spec(self):
        spec = TimingSpec.from_dict({"from": "#000000", "to": "#ffffff", "duration": 100})
        assert evaluate_spec(spec, 50) == "rgb(128, 128, 128)"

    def test_stagger_index(self):
        spec = TimingSpec.from_dict({"from": 0, "to": 1, "duration": 100, "stagger": 50})
        assert evaluate_spec(spec, 100, index=1) == pytest.approx(0.5)
        assert evaluate_spec(spec, 100, index=0) == pytest.approx(1.0)

    def test_resolve_value_passes_static(self):
        assert resolve_value(7, 1000) == 7
        assert resolve_value("red", 1000) == "red"

    def test_pure_under_any_query_order(self):
        spec = _spec(loop=True, repeatDelay=30, ease="easeIn")
        forward = [evaluate_spec(spec, t) for t in (0, 40, 120, 260)]
        backward = [evaluate_spec(spec, t) for t in (260, 120, 40, 0)]
        assert forward == backward[::-1]


class TestKeyframes:
    def _keyframes(self):
        return TimingSpec.from_dict({"keyframes": [[0, 0], [100, 10], [200, 30]]})

    def test_exact_values_at_keyframes(self):
        spec = self._keyframes()
        assert evaluate_spec(spec, 0) == 0
        assert evaluate_spec(spec, 100) == pytest.approx(10)
        assert evaluate_spec(spec, 200) == pytest.approx(30)

    def test_interpolates_between(self):
        assert evaluate_spec(self._keyframes(), 150) == pytest.approx(20)

    def test_clamps_outside_range(self):
        spec = self._keyframes()
        assert evaluate_spec(spec, -50) == 0
        assert evaluate_spec(spec, 300) == pytest.approx(30)

    def test_duration_defaults_to_last_keyframe(self):
        assert spec_end(self._keyframes()) == pytest.approx(200)

    def test_single_keyframe_is_constant(self):
        spec = TimingSpec(keyframes=(Keyframe(50, 7),))
        assert evaluate_spec(spec, 0) == 7
        assert evaluate_spec(spec, 500) == 7

    def test_mapping_keyframes(self):
        spec = TimingSpec.from_dict({"keyframes": [
            {"time": 0, "value": "#000000"},
            {"time": 100, "value": "#ffffff"},
        ]})
        assert evaluate_spec(spec, 50) == "rgb(128, 128, 128)"

    def test_loop_wraps_and_holds_during_repeat_delay(self):
        spec = TimingSpec.from_dict({
            "keyframes": [[0, 0], [100, 10]], "loop": True, "repeatDelay": 50,
        })
        values = [evaluate_spec(spec, t) for t in (50, 120, 150, 200, 275)]
        assert values == pytest.approx([5, 10, 0, 5, 10])

    def test_delay_holds_first_value(self):
        spec = TimingSpec.from_dict({"keyframes": [[0, 0], [100, 10]], "delay": 100})
        assert evaluate_spec(spec, 50) == 0
        assert evaluate_spec(spec, 150) == pytest.approx(5)

    def test_scene_relative_start(self):
        spec = TimingSpec.from_dict({"keyframes": [[0, 0], [100, 10]], "start": "scene+100"})
        assert evaluate_spec(spec, 100) == 0
        assert evaluate_spec(spec, 175) == pytest.approx(7.5)

    def test_ease_applies_per_segment(self):
        spec = TimingSpec.from_dict({
            "keyframes": [[0, 0], [100, 10], [200, 30]], "ease": "easeIn",
        })
        assert evaluate_spec(spec, 50) == pytest.approx(2.5)
        assert evaluate_spec(spec, 150) == pytest.approx(15)

    def test_stagger_shifts_units(self):
        spec = TimingSpec.from_dict({"keyframes": [[0, 0], [100, 10]], "stagger": 50})
        assert evaluate_spec(spec, 100, index=2) == 0
        assert evaluate_spec(spec, 150, index=2) == pytest.approx(5)
        assert evaluate_spec(spec, 150, index=0) == pytest.approx(10)


class TestSpecEnd:
    def test_start_delay_and_duration(self):
        spec = TimingSpec.from_dict({
            "from": 0, "to": 1, "duration": 300, "delay": 100, "start": "scene+200",
        })
        assert spec_end(spec) == pytest.approx(600)

    def test_loop_counts_one_cycle(self):
        spec = _spec(duration=300, loop=True, repeatDelay=100)
        assert spec_end(spec) == pytest.approx(400)


class TestTrimFraction:
    def test_plain_trim_follows_phase(self):
        spec = TimingSpec.from_dict({"from": 0, "to": 1, "duration": 100})
        assert trim_fraction(spec, 25) == pytest.approx(0.25)

    def test_steps_count_down(self):
        spec = TimingSpec.from_dict({"from": 0, "to": 1, "duration": 100, "steps": 4})
        assert trim_fraction(spec, 0) == pytest.approx(1.0)
        assert trim_fraction(spec, 50) == pytest.approx(0.5)
        assert trim_fraction(spec, 100) == pytest.approx(0.0)
