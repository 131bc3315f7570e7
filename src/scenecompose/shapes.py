"""Shape builders and the snapshots they produce.

A ShapeBuilder holds an immutable base geometry plus an ordered tuple of
modifiers (position, scale, fill, trim, distort, ...). Modifier methods
never change the builder they are called on; each returns a new builder
with one more modifier, so builders can be shared and reused freely.

evaluate(time) runs the modifiers in order against a fresh draft and
freezes the result into a ShapeInstance. Later modifiers win over
earlier ones for the same attribute. Structural modifiers (distort, clip)
rewrite geometry or clip fields rather than the transform.

    Rect(100, 50).at(0, {"from": -100, "to": 100, "duration": 1000}) \\
        .fill({"from": "red", "to": "blue", "duration": 1000}) \\
        .distort({"tl": (-10, 0)})
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .diagnostics import Issue
from .distort import coerce_corners, distort_geom
from .geometry import (
    VALID_ANCHORS,
    ArcGeom,
    BezierGeom,
    CompoundGeom,
    PathGeom,
    TextGeom,
    TextOptions,
    Vec2,
    arc_points,
    coerce_point,
    flatten_bezier,
    outline,
)
from .style import (
    VALID_CAPS,
    VALID_JOINS,
    ResolvedGradient,
    Shadow,
    Stroke,
    coerce_gradient,
    resolve_gradient,
    timed,
)
from .timing import TimingSpec, coerce_spec, resolve_value, spec_end


VALID_FILL_MODES = {"tint", "multiply", "screen"}
VALID_PATH_ALIGNS = {"start", "center", "end"}


class Evaluable(ABC):
    """Anything that can be sampled at a time to produce shape snapshots."""

    @abstractmethod
    def evaluate(self, time: float) -> list["ShapeInstance"]:
        """Snapshots at `time` (ms). Must be pure: no state survives the call."""

    @abstractmethod
    def estimated_duration(self) -> float:
        """How long this item animates for, used to lay out sequences."""


# ── Snapshot records ───────────────────────────────────────────────


@dataclass(frozen=True)
class Transform:
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    rotation: float = 0.0
    skew_x: float = 0.0
    skew_y: float = 0.0


@dataclass(frozen=True)
class TextPath:
    points: tuple[Vec2, ...]
    closed: bool = False
    align: str = "start"
    offset: float = 0.0


@dataclass(frozen=True)
class TextStyle:
    """Text payload; per-unit fill/opacity specs are resolved per glyph by the renderer."""

    value: str
    options: TextOptions
    fill_spec: TimingSpec | None = None
    opacity_spec: TimingSpec | None = None
    path: TextPath | None = None


@dataclass(frozen=True)
class ShapeInstance:
    """Fully resolved snapshot of one shape at one time. Never mutated."""

    geom: Any
    transform: Transform = Transform()
    opacity: float = 1.0
    z_index: float = 0
    fill: str | None = None
    fill_mode: str | None = None
    gradient: ResolvedGradient | None = None
    stroke: Stroke | None = None
    clip: tuple["ShapeInstance", ...] = ()
    trim: TimingSpec | None = None
    shadow: Shadow | None = None
    blend_mode: str | None = None
    anchor: str | None = None
    text: TextStyle | None = None
    draw: Callable | None = None
    issues: tuple[Issue, ...] = ()
    time: float = 0.0  # local time the snapshot was taken at

    @property
    def kind(self) -> str:
        return self.geom.kind


_TRANSFORM_FIELDS = {
    "x", "y", "scale", "scale_x", "scale_y", "rotation", "skew_x", "skew_y",
}


@dataclass(frozen=True)
class Modifier:
    name: str
    apply: Callable[[dict, float], None]
    specs: tuple[TimingSpec, ...] = ()


def _specs_of(*values) -> tuple[TimingSpec, ...]:
    return tuple(v for v in values if isinstance(v, TimingSpec))


def _check_choice(value, valid: set, what: str) -> None:
    if value is not None and value not in valid:
        raise ValueError(f"Unknown {what} '{value}'. Valid: {sorted(valid)}")


def _text_path_points(path, time: float) -> tuple[tuple[Vec2, ...], bool] | None:
    """Points of a text path given as a point list or an evaluable shape."""
    if isinstance(path, Evaluable):
        for inst in path.evaluate(time):
            if isinstance(inst.geom, PathGeom):
                return inst.geom.points, inst.geom.closed
            if isinstance(inst.geom, BezierGeom):
                return tuple(flatten_bezier(inst.geom.commands)), False
            if isinstance(inst.geom, CompoundGeom) and inst.geom.paths:
                return tuple(p for sub in inst.geom.paths for p in sub.points), False
            if isinstance(inst.geom, ArcGeom):
                g = inst.geom
                return tuple(arc_points(g.radius, g.start_angle, g.end_angle, g.counterclockwise)), False
            subpaths = outline(inst.geom)
            if subpaths:
                points, closed = subpaths[0]
                return tuple(points), closed
        return None
    return tuple(coerce_point(p) for p in path), False


# ── Builder ────────────────────────────────────────────────────────


class ShapeBuilder(Evaluable):
    """Immutable leaf shape: base geometry plus a queue of timed modifiers."""

    def __init__(self, geom, modifiers=(), issues=()):
        self._geom = geom
        self._modifiers = tuple(modifiers)
        self._issues = tuple(issues)

    def __repr__(self):
        names = ", ".join(m.name for m in self._modifiers)
        return f"ShapeBuilder({self.kind}, [{names}])"

    @property
    def geom(self):
        return self._geom

    @property
    def kind(self) -> str:
        return self._geom.kind

    @property
    def modifiers(self) -> tuple[Modifier, ...]:
        return self._modifiers

    def _with(self, name: str, apply, specs=()) -> "ShapeBuilder":
        return ShapeBuilder(
            self._geom, self._modifiers + (Modifier(name, apply, tuple(specs)),),
            self._issues,
        )

    def _attr(self, name: str, value) -> "ShapeBuilder":
        value = timed(value)

        def apply(draft, time):
            draft[name] = resolve_value(value, time)

        return self._with(name, apply, _specs_of(value))

    # ── Transform ──

    def at(self, x=None, y=None) -> "ShapeBuilder":
        """Position relative to the scene center. Either axis may be timed."""
        b = self
        if x is not None:
            b = b._attr("x", x)
        if y is not None:
            b = b._attr("y", y)
        return b

    def scale(self, value) -> "ShapeBuilder":
        return self._attr("scale", value)

    def scale_xy(self, x=None, y=None) -> "ShapeBuilder":
        b = self
        if x is not None:
            b = b._attr("scale_x", x)
        if y is not None:
            b = b._attr("scale_y", y)
        return b

    def rotate(self, value) -> "ShapeBuilder":
        """Rotation in radians."""
        return self._attr("rotation", value)

    def skew(self, x=None, y=None) -> "ShapeBuilder":
        b = self
        if x is not None:
            b = b._attr("skew_x", x)
        if y is not None:
            b = b._attr("skew_y", y)
        return b

    # ── Style ──

    def opacity(self, value) -> "ShapeBuilder":
        value = timed(value)

        def apply(draft, time):
            # Timed text opacity is applied per glyph, not to the whole block.
            if isinstance(value, TimingSpec) and isinstance(draft["geom"], TextGeom):
                draft["text_opacity_spec"] = value
                draft["opacity"] = 1.0
                return
            draft["opacity"] = resolve_value(value, time)
            draft["text_opacity_spec"] = None

        return self._with("opacity", apply, _specs_of(value))

    def fill(self, value, mode: str | None = None) -> "ShapeBuilder":
        """Fill color, static or timed. `mode` tints images (tint/multiply/screen)."""
        _check_choice(mode, VALID_FILL_MODES, "fill mode")
        value = timed(value)

        def apply(draft, time):
            draft["fill"] = resolve_value(value, time)
            draft["gradient_spec"] = None
            if mode is not None:
                draft["fill_mode"] = mode
            if isinstance(draft["geom"], TextGeom):
                draft["text_fill_spec"] = value if isinstance(value, TimingSpec) else None

        return self._with("fill", apply, _specs_of(value))

    def gradient(self, spec) -> "ShapeBuilder":
        spec = coerce_gradient(spec)

        def apply(draft, time):
            draft["gradient_spec"] = spec

        return self._with("gradient", apply, spec.specs())

    def stroke(
        self,
        color="white",
        width=1.0,
        cap: str | None = None,
        join: str | None = None,
        dash=None,
        dash_offset: float | None = None,
        gradient=None,
    ) -> "ShapeBuilder":
        _check_choice(cap, VALID_CAPS, "line cap")
        _check_choice(join, VALID_JOINS, "line join")
        color = timed(color)
        width = timed(width)
        grad = coerce_gradient(gradient) if gradient is not None else None
        dash = tuple(float(d) for d in dash) if dash else None

        def apply(draft, time):
            draft["stroke"] = Stroke(
                color=resolve_value(color, time),
                width=float(resolve_value(width, time)),
                cap=cap,
                join=join,
                dash=dash,
                dash_offset=dash_offset,
                gradient=resolve_gradient(grad, time) if grad else None,
            )

        specs = _specs_of(color, width) + (grad.specs() if grad else ())
        return self._with("stroke", apply, specs)

    def trim(self, spec) -> "ShapeBuilder":
        """Reveal the shape as a clockwise sweep from 12 o'clock."""
        spec = coerce_spec(spec)
        if spec is None:
            raise ValueError("trim() needs a timing spec")

        def apply(draft, time):
            draft["trim"] = spec

        return self._with("trim", apply, (spec,))

    def shadow(self, color="black", blur=0.0, offset_x=0.0, offset_y=0.0) -> "ShapeBuilder":
        shadow = Shadow(color, float(blur), float(offset_x), float(offset_y))

        def apply(draft, time):
            draft["shadow"] = shadow

        return self._with("shadow", apply)

    def blend(self, mode: str) -> "ShapeBuilder":
        def apply(draft, time):
            draft["blend_mode"] = mode

        return self._with("blend", apply)

    def anchor(self, name: str) -> "ShapeBuilder":
        _check_choice(name, VALID_ANCHORS, "anchor")

        def apply(draft, time):
            draft["anchor"] = name

        return self._with("anchor", apply)

    def z(self, index) -> "ShapeBuilder":
        return self._attr("z_index", index)

    # ── Structure ──

    def clip(self, *items: Evaluable) -> "ShapeBuilder":
        """Clip to the union of other shapes, placed in this shape's local space."""
        for item in items:
            if not isinstance(item, Evaluable):
                raise TypeError(f"clip() expects shapes, got {item!r}")

        def apply(draft, time):
            draft["clip"] = tuple(inst for item in items for inst in item.evaluate(time))

        return self._with("clip", apply)

    def distort(self, corners: Mapping) -> "ShapeBuilder":
        """Displace bounding-box corners; the shape becomes a path."""
        corners = coerce_corners(corners)

        def apply(draft, time):
            geom = draft["geom"]
            distorted = distort_geom(geom, corners)
            if distorted is None:
                draft["issues"].append(Issue(
                    key=f"distort:{geom.kind}",
                    level="warn",
                    message=f"distort() has no effect on {geom.kind} shapes",
                ))
                return
            draft["geom"] = distorted

        return self._with("distort", apply)

    def on_path(self, path, align: str = "start", offset: float = 0.0) -> "ShapeBuilder":
        """Lay text out along a point list or another shape's outline."""
        _check_choice(align, VALID_PATH_ALIGNS, "path align")
        if not isinstance(path, Evaluable):
            path = tuple(coerce_point(p) for p in path)

        def apply(draft, time):
            resolved = _text_path_points(path, time)
            if resolved is None:
                draft["text_path"] = None
                return
            points, closed = resolved
            draft["text_path"] = TextPath(points, closed, align, float(offset))

        return self._with("on_path", apply)

    # ── Evaluation ──

    def evaluate(self, time: float) -> list[ShapeInstance]:
        draft = {
            "geom": self._geom,
            "opacity": 1.0,
            "z_index": 0,
            "fill": None,
            "fill_mode": None,
            "gradient_spec": None,
            "stroke": None,
            "clip": (),
            "trim": None,
            "shadow": None,
            "blend_mode": None,
            "anchor": None,
            "text_fill_spec": None,
            "text_opacity_spec": None,
            "text_path": None,
            "issues": list(self._issues),
        }
        for modifier in self._modifiers:
            modifier.apply(draft, time)
        return [_freeze(draft, time)]

    def estimated_duration(self) -> float:
        ends = [spec_end(s) for m in self._modifiers for s in m.specs]
        return max(ends, default=0.0)


def _freeze(draft: dict, time: float) -> ShapeInstance:
    geom = draft["geom"]
    text = None
    if isinstance(geom, TextGeom):
        text = TextStyle(
            value=geom.value,
            options=geom.options,
            fill_spec=draft["text_fill_spec"],
            opacity_spec=draft["text_opacity_spec"],
            path=draft["text_path"],
        )
    gradient_spec = draft["gradient_spec"]
    return ShapeInstance(
        geom=geom,
        transform=Transform(**{k: draft[k] for k in _TRANSFORM_FIELDS if k in draft}),
        opacity=draft["opacity"],
        z_index=draft["z_index"],
        fill=draft["fill"],
        fill_mode=draft["fill_mode"],
        gradient=resolve_gradient(gradient_spec, time) if gradient_spec else None,
        stroke=draft["stroke"],
        clip=draft["clip"],
        trim=draft["trim"],
        shadow=draft["shadow"],
        blend_mode=draft["blend_mode"],
        anchor=draft["anchor"],
        text=text,
        draw=getattr(geom, "draw", None),
        issues=tuple(draft["issues"]),
        time=time,
    )
