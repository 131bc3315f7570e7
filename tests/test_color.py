"""Tests for the color model."""

from scenecompose.color import format_rgb, lerp_color, parse_color, to_hex


class TestParseColor:
    def test_named(self):
        assert parse_color("red") == (255, 0, 0)
        assert parse_color("Gray") == (128, 128, 128)

    def test_hex(self):
        assert parse_color("#fff") == (255, 255, 255)
        assert parse_color("#B1134D") == (177, 19, 77)

    def test_rgb_function(self):
        assert parse_color("rgb(1, 2, 3)") == (1, 2, 3)
        assert parse_color("rgb( 10 ,20,30 )") == (10, 20, 30)

    def test_unparseable(self):
        assert parse_color("nope") is None
        assert parse_color("#ggg") is None
        assert parse_color("#12345") is None
        assert parse_color(123) is None

    def test_formatting(self):
        assert format_rgb((1, 2, 3)) == "rgb(1, 2, 3)"
        assert to_hex((177, 19, 77)) == "#b1134d"


class TestLerpColor:
    def test_midpoint_rounds_half_up(self):
        assert lerp_color("#000000", "#ffffff", 0.5) == "rgb(128, 128, 128)"

    def test_endpoints(self):
        assert lerp_color("red", "blue", 0) == "rgb(255, 0, 0)"
        assert lerp_color("red", "blue", 1) == "rgb(0, 0, 255)"

    def test_mixed_spellings(self):
        assert lerp_color("rgb(0, 0, 0)", "#0a0a0a", 0.5) == "rgb(5, 5, 5)"

    def test_unparseable_returns_first_color(self):
        assert lerp_color("bogus", "#ffffff", 0.5) == "bogus"
        assert lerp_color("#ffffff", "bogus", 0.5) == "#ffffff"
