"""Tests for symbolic start times."""

import pytest

from scenecompose.timeref import (
    Absolute,
    PrevEndRelative,
    SceneRelative,
    parse_time_ref,
    resolve_start,
)


class TestParseTimeRef:
    def test_numbers_are_absolute(self):
        assert parse_time_ref(250) == Absolute(250.0)
        assert parse_time_ref(12.5) == Absolute(12.5)

    def test_none_is_zero(self):
        assert parse_time_ref(None) == Absolute(0.0)

    def test_scene_tokens(self):
        assert parse_time_ref("scene") == SceneRelative(0.0)
        assert parse_time_ref("scene+200") == SceneRelative(200.0)
        assert parse_time_ref("scene-50") == SceneRelative(-50.0)

    def test_prev_end_with_whitespace(self):
        assert parse_time_ref(" prev.end - 150.5 ") == PrevEndRelative(-150.5)

    def test_malformed_offset_uses_bare_base(self):
        assert parse_time_ref("scene+abc") == SceneRelative(0.0)
        assert parse_time_ref("prev.end+") == PrevEndRelative(0.0)

    def test_unknown_token_is_zero(self):
        assert parse_time_ref("later") == Absolute(0.0)

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            parse_time_ref([100])


class TestResolveStart:
    def test_absolute(self):
        assert resolve_start(250) == 250

    def test_scene_relative_ignores_prev_end(self):
        assert resolve_start("scene+200", prev_end=900) == 200

    def test_prev_end_relative(self):
        assert resolve_start("prev.end+100", prev_end=500) == 600
        assert resolve_start("prev.end-100", prev_end=500) == 400

    def test_prev_end_defaults_to_zero(self):
        assert resolve_start("prev.end+100") == 100

    def test_none_and_unknown(self):
        assert resolve_start(None) == 0
        assert resolve_start("bogus") == 0
