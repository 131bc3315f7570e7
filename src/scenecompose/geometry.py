"""Kind-tagged shape geometry.

Every leaf shape carries exactly one geometry record from this module.
The records are frozen dataclasses, one per kind, and all questions
about a shape's points or extent go through the functions at the bottom
of this file (point_list, bounds, outline, anchor_offset). Each of those
dispatches over the full set of kinds in one place; an unknown record
raises TypeError.

Coordinates are local and centered: (0, 0) is the shape's origin, +y
points down, angles are radians measured clockwise on screen.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, NamedTuple


CIRCLE_SEGMENTS = 64
QUAD_STEPS = 20
CUBIC_STEPS = 30

VALID_ANCHORS = {
    "center", "top", "bottom", "left", "right",
    "topLeft", "topRight", "bottomLeft", "bottomRight",
}


class Vec2(NamedTuple):
    x: float
    y: float


def coerce_point(value) -> Vec2:
    """Accept Vec2, (x, y) pairs and {'x':, 'y':} mappings."""
    if isinstance(value, Vec2):
        return value
    if isinstance(value, Mapping):
        return Vec2(value.get("x", 0), value.get("y", 0))
    x, y = value
    return Vec2(x, y)


# ── Bezier commands ────────────────────────────────────────────────


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class QuadTo:
    cpx: float
    cpy: float
    x: float
    y: float


@dataclass(frozen=True)
class CubicTo:
    cp1x: float
    cp1y: float
    cp2x: float
    cp2y: float
    x: float
    y: float


@dataclass(frozen=True)
class Close:
    pass


_COMMANDS = {
    "moveTo": MoveTo,
    "lineTo": LineTo,
    "quadTo": QuadTo,
    "cubicTo": CubicTo,
    "close": Close,
}


def coerce_command(value):
    """Accept command objects or {'cmd': 'moveTo', 'x': .., 'y': ..} mappings."""
    if isinstance(value, (MoveTo, LineTo, QuadTo, CubicTo, Close)):
        return value
    if isinstance(value, Mapping):
        args = dict(value)
        name = args.pop("cmd", None)
        if name not in _COMMANDS:
            raise ValueError(
                f"Unknown bezier command {name!r}. Valid: {sorted(_COMMANDS)}"
            )
        return _COMMANDS[name](**args)
    raise ValueError(f"Invalid bezier command: {value!r}")


# ── Geometry records ───────────────────────────────────────────────


@dataclass(frozen=True)
class CornerRadii:
    tl: float = 0.0
    tr: float = 0.0
    br: float = 0.0
    bl: float = 0.0


@dataclass(frozen=True)
class CircleGeom:
    kind: ClassVar[str] = "circle"
    radius: float


@dataclass(frozen=True)
class RectGeom:
    kind: ClassVar[str] = "rect"
    width: float
    height: float


@dataclass(frozen=True)
class EllipseGeom:
    kind: ClassVar[str] = "ellipse"
    rx: float
    ry: float


@dataclass(frozen=True)
class RoundRectGeom:
    kind: ClassVar[str] = "roundRect"
    width: float
    height: float
    radius: float | CornerRadii = 0.0


@dataclass(frozen=True)
class RingGeom:
    kind: ClassVar[str] = "ring"
    outer: float
    inner: float


@dataclass(frozen=True)
class ArcGeom:
    kind: ClassVar[str] = "arc"
    radius: float
    start_angle: float
    end_angle: float
    counterclockwise: bool = False
    inner_radius: float = 0.0


@dataclass(frozen=True)
class PieGeom:
    kind: ClassVar[str] = "pie"
    radius: float


@dataclass(frozen=True)
class PathGeom:
    kind: ClassVar[str] = "path"
    points: tuple[Vec2, ...]
    closed: bool = True


@dataclass(frozen=True)
class BezierGeom:
    kind: ClassVar[str] = "bezier"
    commands: tuple


@dataclass(frozen=True)
class CompoundGeom:
    kind: ClassVar[str] = "compound"
    paths: tuple[PathGeom, ...]


@dataclass(frozen=True)
class ImageGeom:
    kind: ClassVar[str] = "image"
    src: str
    width: float | None = None
    height: float | None = None


@dataclass(frozen=True)
class TextOptions:
    """Layout options for text. Measuring and drawing glyphs is the renderer's job."""

    font_size: float = 24
    font_family: str | None = None
    font_weight: str = "normal"
    font_style: str = "normal"
    line_height: float | None = None
    max_width: float | None = None
    wrap: bool = False
    align: str = "center"
    baseline: str = "middle"
    letter_spacing: float = 0.0
    split: str = "letter"


@dataclass(frozen=True)
class TextGeom:
    kind: ClassVar[str] = "text"
    value: str
    options: TextOptions = field(default_factory=TextOptions)


@dataclass(frozen=True)
class CustomGeom:
    kind: ClassVar[str] = "custom"
    draw: Callable[[Any, float], None]


Geometry = (
    CircleGeom | RectGeom | EllipseGeom | RoundRectGeom | RingGeom | ArcGeom
    | PieGeom | PathGeom | BezierGeom | CompoundGeom | ImageGeom | TextGeom
    | CustomGeom
)


# ── Bounds ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def points_bounds(points) -> Bounds | None:
    if not points:
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return Bounds(min(xs), min(ys), max(xs), max(ys))


def _centered(w: float, h: float) -> Bounds:
    return Bounds(-w / 2, -h / 2, w / 2, h / 2)


# ── Curve sampling ─────────────────────────────────────────────────


def arc_points(
    radius: float,
    start: float,
    end: float,
    counterclockwise: bool = False,
    segments: int = CIRCLE_SEGMENTS,
) -> list[Vec2]:
    """Sample an arc the way a canvas arc() call sweeps it."""
    sweep = end - start
    if counterclockwise:
        sweep = -((-sweep) % (2 * math.pi)) if abs(sweep) < 2 * math.pi else -2 * math.pi
    else:
        sweep = sweep % (2 * math.pi) if abs(sweep) < 2 * math.pi else 2 * math.pi
    n = max(2, int(math.ceil(segments * abs(sweep) / (2 * math.pi))) + 1)
    return [
        Vec2(math.cos(start + sweep * i / (n - 1)) * radius,
             math.sin(start + sweep * i / (n - 1)) * radius)
        for i in range(n)
    ]


def _circle_points(rx: float, ry: float, segments: int = CIRCLE_SEGMENTS) -> list[Vec2]:
    return [
        Vec2(math.cos(2 * math.pi * i / segments) * rx,
             math.sin(2 * math.pi * i / segments) * ry)
        for i in range(segments)
    ]


def bezier_subpaths(commands) -> list[tuple[list[Vec2], bool]]:
    """Flatten bezier commands into (points, closed) polylines.

    Quadratic segments are sampled in QUAD_STEPS steps, cubic ones in
    CUBIC_STEPS. The pen starts at (0, 0); every moveTo opens a new
    subpath.
    """
    subpaths = []
    current: list[Vec2] = []
    closed = False
    x = y = 0.0

    for c in commands:
        if isinstance(c, MoveTo):
            if current:
                subpaths.append((current, closed))
            current, closed = [Vec2(c.x, c.y)], False
            x, y = c.x, c.y
        elif isinstance(c, LineTo):
            if not current:
                current.append(Vec2(x, y))
            current.append(Vec2(c.x, c.y))
            x, y = c.x, c.y
        elif isinstance(c, QuadTo):
            if not current:
                current.append(Vec2(x, y))
            for i in range(1, QUAD_STEPS + 1):
                t = i / QUAD_STEPS
                inv = 1 - t
                current.append(Vec2(
                    inv * inv * x + 2 * inv * t * c.cpx + t * t * c.x,
                    inv * inv * y + 2 * inv * t * c.cpy + t * t * c.y,
                ))
            x, y = c.x, c.y
        elif isinstance(c, CubicTo):
            if not current:
                current.append(Vec2(x, y))
            for i in range(1, CUBIC_STEPS + 1):
                t = i / CUBIC_STEPS
                inv = 1 - t
                current.append(Vec2(
                    inv ** 3 * x + 3 * inv * inv * t * c.cp1x
                    + 3 * inv * t * t * c.cp2x + t ** 3 * c.x,
                    inv ** 3 * y + 3 * inv * inv * t * c.cp1y
                    + 3 * inv * t * t * c.cp2y + t ** 3 * c.y,
                ))
            x, y = c.x, c.y
        elif isinstance(c, Close):
            closed = True

    if current:
        subpaths.append((current, closed))
    return subpaths


def flatten_bezier(commands) -> list[Vec2]:
    return [p for points, _ in bezier_subpaths(commands) for p in points]


def _corner_radii(geom: RoundRectGeom) -> CornerRadii:
    r = geom.radius
    if not isinstance(r, CornerRadii):
        r = CornerRadii(r, r, r, r)
    limit = min(geom.width, geom.height) / 2
    return CornerRadii(*(min(max(0.0, v), limit) for v in (r.tl, r.tr, r.br, r.bl)))


def _round_rect_points(geom: RoundRectGeom) -> list[Vec2]:
    x, y = -geom.width / 2, -geom.height / 2
    w, h = geom.width, geom.height
    r = _corner_radii(geom)
    cmds = [
        MoveTo(x + r.tl, y),
        LineTo(x + w - r.tr, y),
        QuadTo(x + w, y, x + w, y + r.tr),
        LineTo(x + w, y + h - r.br),
        QuadTo(x + w, y + h, x + w - r.br, y + h),
        LineTo(x + r.bl, y + h),
        QuadTo(x, y + h, x, y + h - r.bl),
        LineTo(x, y + r.tl),
        QuadTo(x, y, x + r.tl, y),
    ]
    return flatten_bezier(cmds)


# ── Per-kind queries ───────────────────────────────────────────────


def point_list(geom) -> list[Vec2] | None:
    """Explicit ordered point list for pointwise-editable kinds.

    Rects and rounded rects become their four corners [tl, tr, br, bl];
    paths return their points. Every other kind returns None.
    """
    if isinstance(geom, (RectGeom, RoundRectGeom)):
        hw, hh = geom.width / 2, geom.height / 2
        return [Vec2(-hw, -hh), Vec2(hw, -hh), Vec2(hw, hh), Vec2(-hw, hh)]
    if isinstance(geom, PathGeom):
        return list(geom.points)
    if isinstance(geom, (CircleGeom, EllipseGeom, RingGeom, ArcGeom, PieGeom,
                         BezierGeom, CompoundGeom, ImageGeom, TextGeom, CustomGeom)):
        return None
    raise TypeError(f"Unknown geometry: {geom!r}")


def bounds(geom) -> Bounds | None:
    """Local bounding box, or None when the extent isn't known here.

    Text is measured by the renderer and custom drawing has no extent.
    Images without an explicit size depend on the loaded file.
    """
    if isinstance(geom, (CircleGeom, PieGeom)):
        return _centered(geom.radius * 2, geom.radius * 2)
    if isinstance(geom, (RectGeom, RoundRectGeom)):
        return _centered(geom.width, geom.height)
    if isinstance(geom, EllipseGeom):
        return _centered(geom.rx * 2, geom.ry * 2)
    if isinstance(geom, RingGeom):
        return _centered(geom.outer * 2, geom.outer * 2)
    if isinstance(geom, ArcGeom):
        return _centered(geom.radius * 2, geom.radius * 2)
    if isinstance(geom, ImageGeom):
        if geom.width is None or geom.height is None:
            return None
        return _centered(geom.width, geom.height)
    if isinstance(geom, PathGeom):
        return points_bounds(geom.points)
    if isinstance(geom, BezierGeom):
        return points_bounds([Vec2(0.0, 0.0)] + flatten_bezier(geom.commands))
    if isinstance(geom, CompoundGeom):
        return points_bounds([p for path in geom.paths for p in path.points])
    if isinstance(geom, (TextGeom, CustomGeom)):
        return None
    raise TypeError(f"Unknown geometry: {geom!r}")


def outline(geom) -> list[tuple[list[Vec2], bool]]:
    """Polygonal (points, closed) subpaths for filling, stroking and clipping.

    Subpaths combine with the even-odd rule, so a ring is its outer and
    inner circles.
    """
    if isinstance(geom, CircleGeom):
        return [(_circle_points(geom.radius, geom.radius), True)]
    if isinstance(geom, PieGeom):
        return [([Vec2(0.0, 0.0)] + _circle_points(geom.radius, geom.radius), True)]
    if isinstance(geom, (RectGeom, ImageGeom)):
        b = bounds(geom)
        if b is None:
            return []
        return [([Vec2(b.min_x, b.min_y), Vec2(b.max_x, b.min_y),
                  Vec2(b.max_x, b.max_y), Vec2(b.min_x, b.max_y)], True)]
    if isinstance(geom, EllipseGeom):
        return [(_circle_points(geom.rx, geom.ry), True)]
    if isinstance(geom, RoundRectGeom):
        return [(_round_rect_points(geom), True)]
    if isinstance(geom, RingGeom):
        subpaths = [(_circle_points(geom.outer, geom.outer), True)]
        if geom.inner > 0:
            subpaths.append((_circle_points(geom.inner, geom.inner), True))
        return subpaths
    if isinstance(geom, ArcGeom):
        pts = arc_points(geom.radius, geom.start_angle, geom.end_angle,
                         geom.counterclockwise)
        if geom.inner_radius > 0:
            pts += arc_points(geom.inner_radius, geom.end_angle, geom.start_angle,
                              not geom.counterclockwise)
        else:
            pts.append(Vec2(0.0, 0.0))
        return [(pts, True)]
    if isinstance(geom, PathGeom):
        return [(list(geom.points), geom.closed)] if geom.points else []
    if isinstance(geom, BezierGeom):
        return bezier_subpaths(geom.commands)
    if isinstance(geom, CompoundGeom):
        return [(list(p.points), p.closed) for p in geom.paths if p.points]
    if isinstance(geom, (TextGeom, CustomGeom)):
        return []
    raise TypeError(f"Unknown geometry: {geom!r}")


def anchor_offset(anchor: str | None, width: float, height: float) -> Vec2:
    """Translation that puts the named anchor point at the shape's position."""
    hw, hh = width / 2, height / 2
    offsets = {
        "top": (0.0, hh),
        "bottom": (0.0, -hh),
        "left": (hw, 0.0),
        "right": (-hw, 0.0),
        "topLeft": (hw, hh),
        "topRight": (-hw, hh),
        "bottomLeft": (hw, -hh),
        "bottomRight": (-hw, -hh),
    }
    return Vec2(*offsets.get(anchor, (0.0, 0.0)))


def geom_anchor_offset(geom, anchor: str | None) -> Vec2:
    """Anchor offset from the geometry's own bounds (0 when unknown)."""
    if not anchor or anchor == "center":
        return Vec2(0.0, 0.0)
    b = bounds(geom)
    if b is None:
        return Vec2(0.0, 0.0)
    return anchor_offset(anchor, b.width, b.height)


def dash_polyline(points, dash, offset: float = 0.0) -> list[list[Vec2]]:
    """Split a polyline into the "on" runs of a dash pattern.

    Odd-length patterns repeat twice, like a canvas line dash. An empty,
    all-zero or negative pattern leaves the line solid.
    """
    points = [Vec2(float(p[0]), float(p[1])) for p in points]
    pattern = [float(d) for d in (dash or ())]
    if len(points) < 2 or not pattern or any(d < 0 for d in pattern) or sum(pattern) <= 0:
        return [points]
    if len(pattern) % 2:
        pattern = pattern * 2

    pos = offset % sum(pattern)
    idx = 0
    while pos >= pattern[idx]:
        pos -= pattern[idx]
        idx = (idx + 1) % len(pattern)
    remaining = pattern[idx] - pos
    on = idx % 2 == 0

    runs = []
    current = [points[0]] if on else []
    for a, b in zip(points, points[1:]):
        seg_len = math.hypot(b.x - a.x, b.y - a.y)
        walked = 0.0
        while seg_len - walked > remaining:
            walked += remaining
            t = walked / seg_len
            p = Vec2(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)
            if on:
                current.append(p)
                runs.append(current)
                current = []
            else:
                current = [p]
            on = not on
            idx = (idx + 1) % len(pattern)
            remaining = pattern[idx]
        remaining -= seg_len - walked
        if on:
            current.append(b)
    if on and len(current) >= 2:
        runs.append(current)
    return runs
