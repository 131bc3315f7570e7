"""Color model used by the timing resolver.

Colors travel through the scene as plain strings. Three spellings are
understood: a small fixed palette of names, '#rgb' / '#rrggbb' hex, and
'rgb(r, g, b)'. Anything else is left alone -- interpolation hands back
the 'from' color unchanged instead of raising, since it runs every frame.

Alpha is never part of a color here; opacity is its own scalar.
"""

import math
import re


# ── Named palette ──────────────────────────────────────────────────

NAMED_COLORS = {
    "red": (255, 0, 0),
    "blue": (0, 0, 255),
    "green": (0, 128, 0),
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "gray": (128, 128, 128),
}

_RGB_RE = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$")


# ── Parsing ────────────────────────────────────────────────────────

def parse_color(value) -> tuple[int, int, int] | None:
    """Parse a color string to an (R, G, B) tuple, or None if unparseable."""
    if not isinstance(value, str):
        return None
    s = value.strip().lower()

    if s in NAMED_COLORS:
        return NAMED_COLORS[s]

    if s.startswith("#"):
        hex_str = s[1:]
        if len(hex_str) == 3:
            hex_str = "".join(c * 2 for c in hex_str)
        if len(hex_str) != 6:
            return None
        try:
            return (
                int(hex_str[0:2], 16),
                int(hex_str[2:4], 16),
                int(hex_str[4:6], 16),
            )
        except ValueError:
            return None

    m = _RGB_RE.match(s)
    if m:
        return int(m.group(1)), int(m.group(2)), int(m.group(3))
    return None


def format_rgb(rgb: tuple[int, int, int]) -> str:
    """Format an (R, G, B) tuple as 'rgb(r, g, b)'."""
    r, g, b = rgb
    return f"rgb({r}, {g}, {b})"


def to_hex(rgb: tuple[int, int, int]) -> str:
    """Format an (R, G, B) tuple as '#rrggbb'."""
    return "#{:02x}{:02x}{:02x}".format(*rgb)


# ── Interpolation ──────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def lerp_color(a: str, b: str, t: float) -> str:
    """Interpolate two colors channel by channel.

    Each of R, G, B is interpolated linearly and rounded to the nearest
    integer (halves round up). If either input can't be parsed, `a` is
    returned unchanged.
    """
    ca = parse_color(a)
    cb = parse_color(b)
    if ca is None or cb is None:
        return a
    return format_rgb(tuple(
        _round_half_up(x + (y - x) * t) for x, y in zip(ca, cb)
    ))
