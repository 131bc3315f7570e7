"""Style records attached to shape instances: gradients, strokes, shadows.

Gradient specs may animate their stop positions and colors; they are
resolved to plain (position, color) pairs at evaluation time so the
renderer only ever sees concrete values.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .geometry import Vec2, coerce_point
from .timing import TimingSpec, coerce_spec, resolve_value


VALID_GRADIENT_TYPES = {"linear", "radial"}
VALID_CAPS = {"butt", "round", "square"}
VALID_JOINS = {"miter", "round", "bevel"}


def timed(value):
    """A TimingSpec for spec-like values, the value itself otherwise."""
    spec = coerce_spec(value)
    return spec if spec is not None else value


# ── Gradients ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class GradientStop:
    pos: Any
    color: Any


@dataclass(frozen=True)
class GradientSpec:
    type: str
    from_: Vec2
    to: Vec2
    stops: tuple[GradientStop, ...]
    r0: float = 0.0
    r1: float = 0.0

    def __post_init__(self):
        if self.type not in VALID_GRADIENT_TYPES:
            raise ValueError(
                f"Unknown gradient type '{self.type}'. Valid: {sorted(VALID_GRADIENT_TYPES)}"
            )
        if not self.stops:
            raise ValueError("Gradient needs at least one stop")

    @classmethod
    def from_dict(cls, data: Mapping) -> "GradientSpec":
        stops = []
        for stop in data.get("stops", []):
            if isinstance(stop, GradientStop):
                stops.append(stop)
                continue
            if "pos" not in stop or "color" not in stop:
                raise ValueError(f"Gradient stop needs 'pos' and 'color', got {stop!r}")
            stops.append(GradientStop(timed(stop["pos"]), timed(stop["color"])))
        return cls(
            type=data.get("type", "linear"),
            from_=coerce_point(data.get("from", (0, 0))),
            to=coerce_point(data.get("to", (0, 0))),
            stops=tuple(stops),
            r0=float(data.get("r0", 0)),
            r1=float(data.get("r1", 0)),
        )

    def specs(self) -> tuple[TimingSpec, ...]:
        return tuple(
            v for s in self.stops for v in (s.pos, s.color) if isinstance(v, TimingSpec)
        )


@dataclass(frozen=True)
class ResolvedGradient:
    type: str
    from_: Vec2
    to: Vec2
    r0: float
    r1: float
    stops: tuple[tuple[float, str], ...]


def coerce_gradient(value) -> GradientSpec:
    if isinstance(value, GradientSpec):
        return value
    if isinstance(value, Mapping):
        return GradientSpec.from_dict(value)
    raise ValueError(f"Invalid gradient: {value!r}")


def resolve_gradient(spec: GradientSpec, time: float) -> ResolvedGradient:
    return ResolvedGradient(
        type=spec.type,
        from_=spec.from_,
        to=spec.to,
        r0=spec.r0,
        r1=spec.r1,
        stops=tuple(
            (float(resolve_value(s.pos, time)), resolve_value(s.color, time))
            for s in spec.stops
        ),
    )


# ── Stroke and shadow ──────────────────────────────────────────────


@dataclass(frozen=True)
class Stroke:
    color: str | None = None
    width: float = 1.0
    cap: str | None = None
    join: str | None = None
    dash: tuple[float, ...] | None = None
    dash_offset: float | None = None
    gradient: ResolvedGradient | None = None


@dataclass(frozen=True)
class Shadow:
    color: str = "black"
    blur: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
