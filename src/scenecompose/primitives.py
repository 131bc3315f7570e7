"""Leaf shape constructors.

Each function returns a fresh ShapeBuilder around one geometry record.
Sizes are in scene units with the origin at the shape's center; angles
are radians. Polygon-like shapes are all stored as paths, so they can be
distorted point by point.
"""

import math
from collections.abc import Callable, Mapping

from .diagnostics import Issue
from .geometry import (
    ArcGeom,
    BezierGeom,
    CircleGeom,
    CompoundGeom,
    CornerRadii,
    CustomGeom,
    EllipseGeom,
    ImageGeom,
    PathGeom,
    PieGeom,
    RectGeom,
    RingGeom,
    RoundRectGeom,
    TextGeom,
    TextOptions,
    Vec2,
    coerce_command,
    coerce_point,
)
from .shapes import ShapeBuilder


VALID_TRIANGLE_DIRECTIONS = {"up", "down", "left", "right"}
VALID_RIGHT_ANGLES = {"topLeft", "topRight", "bottomLeft", "bottomRight"}
VALID_SPLITS = {"letter", "word", "line"}

DEFAULT_ROTATION = -math.pi / 2  # first vertex points up


def _points(points) -> tuple[Vec2, ...]:
    return tuple(coerce_point(p) for p in points)


def _ring_points(count: int, radii, rotation: float) -> tuple[Vec2, ...]:
    return tuple(
        Vec2(math.cos(rotation + i * 2 * math.pi / count) * radii[i % len(radii)],
             math.sin(rotation + i * 2 * math.pi / count) * radii[i % len(radii)])
        for i in range(count)
    )


# ── Round shapes ───────────────────────────────────────────────────


def Circle(radius: float = 50) -> ShapeBuilder:
    return ShapeBuilder(CircleGeom(radius))


def Ellipse(width: float = 120, height: float = 80) -> ShapeBuilder:
    return ShapeBuilder(EllipseGeom(width / 2, height / 2))


def Ring(outer: float = 80, inner: float = 50) -> ShapeBuilder:
    """Annulus. The inner radius is clamped to [0, outer]."""
    return ShapeBuilder(RingGeom(outer, max(0.0, min(inner, outer))))


def Arc(
    radius: float = 80,
    start_angle: float = 0.0,
    end_angle: float = math.pi / 2,
    inner_radius: float | None = None,
    thickness: float | None = None,
    counterclockwise: bool = False,
) -> ShapeBuilder:
    """Circular arc, a wedge when there's no inner radius.

    inner_radius wins over thickness; both are clamped into [0, radius].
    """
    if inner_radius is not None:
        inner = max(0.0, min(inner_radius, radius))
    elif thickness is not None:
        inner = max(0.0, radius - max(0.0, thickness))
    else:
        inner = 0.0
    return ShapeBuilder(ArcGeom(radius, start_angle, end_angle, counterclockwise, inner))


def Pie(radius: float = 50) -> ShapeBuilder:
    return ShapeBuilder(PieGeom(radius))


# ── Rectangles ─────────────────────────────────────────────────────


def Rect(width: float = 80, height: float = 80) -> ShapeBuilder:
    return ShapeBuilder(RectGeom(width, height))


def RoundedRect(width: float = 120, height: float = 80, radius=16) -> ShapeBuilder:
    """Rounded rectangle; `radius` is a number or a {tl, tr, br, bl} mapping."""
    if isinstance(radius, Mapping):
        radius = CornerRadii(**{k: float(v) for k, v in radius.items()})
    return ShapeBuilder(RoundRectGeom(width, height, radius))


def Capsule(width: float = 160, height: float = 60) -> ShapeBuilder:
    return ShapeBuilder(RoundRectGeom(width, height, min(width, height) / 2))


# ── Point shapes ───────────────────────────────────────────────────


def Path(points, closed: bool = True) -> ShapeBuilder:
    return ShapeBuilder(PathGeom(_points(points), closed))


def Polygon(points, closed: bool = True) -> ShapeBuilder:
    return ShapeBuilder(PathGeom(_points(points), closed))


def Polyline(points) -> ShapeBuilder:
    return ShapeBuilder(PathGeom(_points(points), False))


def Line(start, end) -> ShapeBuilder:
    return ShapeBuilder(PathGeom(_points([start, end]), False))


def Triangle(
    width: float = 120,
    height: float = 100,
    direction: str = "up",
    right_angle: str | None = None,
) -> ShapeBuilder:
    """Isosceles triangle pointing `direction`, or a right triangle when
    `right_angle` names the corner holding the right angle."""
    if direction not in VALID_TRIANGLE_DIRECTIONS:
        raise ValueError(
            f"Unknown triangle direction '{direction}'. "
            f"Valid: {sorted(VALID_TRIANGLE_DIRECTIONS)}"
        )
    if right_angle is not None and right_angle not in VALID_RIGHT_ANGLES:
        raise ValueError(
            f"Unknown right angle corner '{right_angle}'. "
            f"Valid: {sorted(VALID_RIGHT_ANGLES)}"
        )
    hw, hh = width / 2, height / 2
    corners = {
        "topLeft": [(-hw, -hh), (hw, -hh), (-hw, hh)],
        "topRight": [(-hw, -hh), (hw, -hh), (hw, hh)],
        "bottomLeft": [(-hw, -hh), (hw, hh), (-hw, hh)],
        "bottomRight": [(-hw, hh), (hw, hh), (hw, -hh)],
    }
    directions = {
        "up": [(-hw, hh), (0, -hh), (hw, hh)],
        "down": [(-hw, -hh), (hw, -hh), (0, hh)],
        "left": [(hw, -hh), (hw, hh), (-hw, 0)],
        "right": [(-hw, -hh), (-hw, hh), (hw, 0)],
    }
    points = corners[right_angle] if right_angle else directions[direction]
    return ShapeBuilder(PathGeom(_points(points), True))


def RegularPolygon(sides: int = 6, radius: float = 60, rotation: float = DEFAULT_ROTATION) -> ShapeBuilder:
    count = max(3, int(sides))
    return ShapeBuilder(PathGeom(_ring_points(count, (radius,), rotation), True))


def Star(points: int = 5, outer: float = 80, inner: float = 40,
         rotation: float = DEFAULT_ROTATION) -> ShapeBuilder:
    count = max(2, int(points))
    return ShapeBuilder(PathGeom(_ring_points(count * 2, (outer, inner), rotation), True))


def RegularStar(points: int = 5, radius: float = 80, inner_ratio: float = 0.5,
                rotation: float = DEFAULT_ROTATION) -> ShapeBuilder:
    return Star(points, radius, radius * inner_ratio, rotation)


def Spiral(
    turns: float = 3,
    radius: float = 80,
    points: int = 200,
    start_radius: float = 0.0,
    rotation: float = DEFAULT_ROTATION,
    clockwise: bool = True,
) -> ShapeBuilder:
    """Archimedean spiral sampled at `points` points (at least 3)."""
    count = max(3, int(points))
    direction = 1 if clockwise else -1
    max_t = math.pi * 2 * turns
    out = []
    for i in range(count):
        t = i / (count - 1) * max_t
        r = start_radius + (radius - start_radius) * (t / max_t if max_t else 0.0)
        a = rotation + direction * t
        out.append(Vec2(math.cos(a) * r, math.sin(a) * r))
    return ShapeBuilder(PathGeom(tuple(out), False))


# ── Curves and compounds ───────────────────────────────────────────


def BezierPath(commands) -> ShapeBuilder:
    """Path from moveTo / lineTo / quadTo / cubicTo / close commands."""
    return ShapeBuilder(BezierGeom(tuple(coerce_command(c) for c in commands)))


def Compound(*paths) -> ShapeBuilder:
    """Several subpaths filled together with the even-odd rule.

    Each entry is a point list (closed) or a (points, closed) pair.
    """
    geoms = []
    for p in paths:
        if isinstance(p, PathGeom):
            geoms.append(p)
        elif isinstance(p, tuple) and len(p) == 2 and isinstance(p[1], bool):
            geoms.append(PathGeom(_points(p[0]), p[1]))
        else:
            geoms.append(PathGeom(_points(p), True))
    return ShapeBuilder(CompoundGeom(tuple(geoms)))


# ── Media and text ─────────────────────────────────────────────────


def Image(src: str, width: float | None = None, height: float | None = None) -> ShapeBuilder:
    return ShapeBuilder(ImageGeom(src, width, height))


def Text(text, **options) -> ShapeBuilder:
    """Text block. Options are TextOptions fields (font_size, align, split, ...).

    A non-string value is converted with str() and the builder carries a
    'text-arg:type' issue, reported once by the render boundary.
    """
    split = options.get("split", "letter")
    if split not in VALID_SPLITS:
        raise ValueError(f"Unknown text split '{split}'. Valid: {sorted(VALID_SPLITS)}")
    opts = TextOptions(**options)
    if not isinstance(text, str):
        issue = Issue("text-arg:type", "error", "Text() expects a string", repr(text))
        return ShapeBuilder(TextGeom(str(text), opts), issues=(issue,))
    return ShapeBuilder(TextGeom(text, opts))


def Custom(draw: Callable) -> ShapeBuilder:
    """Shape drawn by a callback `draw(image, time)` at render time."""
    return ShapeBuilder(CustomGeom(draw))
