"""Timing resolver -- maps (time, timing spec) to a concrete value.

A TimingSpec describes how one attribute changes over time: a from/to
pair (or a keyframe list), a duration, and optional start, delay, loop,
repeat_delay, ease and stagger. Everything in this module is a pure
function of its arguments. Nothing is cached between calls, which is what
makes scrubbing and seeking safe.

Times are milliseconds. Values are numbers or color strings; a spec whose
values are strings is interpolated through the color model.

Spec mappings use the same keys as scene manifests:

    {"from": 0, "to": 1, "duration": 500, "ease": "easeOut",
     "loop": True, "repeatDelay": 250, "start": "scene+200"}
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .color import lerp_color
from .timeref import parse_time_ref, resolve_start


VALID_EASES = {"linear", "easeIn", "easeOut", "easeInOut"}

# Mapping keys accepted by TimingSpec.from_dict (manifest spelling first).
_SPEC_KEYS = {
    "from", "to", "duration", "loop", "start", "delay",
    "repeatDelay", "repeat_delay", "ease", "stagger", "keyframes", "steps",
}


# ── Spec types ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CubicBezier:
    """Custom ease given by two bezier control points.

    Only the y values shape the curve: the bezier's y-component is read
    directly at the progress value, x1/x2 are carried but not solved for.
    """

    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Keyframe:
    time: float
    value: Any


def coerce_ease(value) -> str | CubicBezier | None:
    """Normalize an ease name, CubicBezier, mapping or 4-list."""
    if value is None or isinstance(value, CubicBezier):
        return value
    if isinstance(value, str):
        if value not in VALID_EASES:
            raise ValueError(
                f"Unknown ease '{value}'. Valid: {sorted(VALID_EASES)} "
                f"or a cubicBezier mapping"
            )
        return value
    if isinstance(value, Mapping):
        kind = value.get("type", "cubicBezier")
        if kind != "cubicBezier":
            raise ValueError(f"Unknown ease type '{kind}'")
        try:
            return CubicBezier(
                float(value["x1"]), float(value["y1"]),
                float(value["x2"]), float(value["y2"]),
            )
        except KeyError as exc:
            raise ValueError(f"cubicBezier ease missing {exc.args[0]!r}") from None
    if isinstance(value, (list, tuple)) and len(value) == 4:
        return CubicBezier(*(float(v) for v in value))
    raise ValueError(f"Invalid ease: {value!r}")


def _coerce_keyframe(item) -> Keyframe:
    if isinstance(item, Keyframe):
        return item
    if isinstance(item, Mapping):
        if "time" not in item or "value" not in item:
            raise ValueError(f"Keyframe needs 'time' and 'value', got {item!r}")
        return Keyframe(float(item["time"]), item["value"])
    if isinstance(item, (list, tuple)) and len(item) == 2:
        return Keyframe(float(item[0]), item[1])
    raise ValueError(f"Invalid keyframe: {item!r}")


@dataclass(frozen=True)
class TimingSpec:
    """Declarative description of one time-varying attribute.

    Either from_/to or keyframes must be given. Keyframes must be
    non-empty and sorted by time; both are checked here so evaluation never
    has to. With keyframes and no duration, the last keyframe time is the
    duration.
    """

    from_: Any = None
    to: Any = None
    duration: float | None = None
    loop: bool = False
    start: Any = 0
    delay: float = 0.0
    repeat_delay: float = 0.0
    ease: Any = None
    stagger: float = 0.0
    keyframes: tuple = field(default=())
    steps: int | None = None

    def __post_init__(self):
        keyframes = tuple(_coerce_keyframe(k) for k in self.keyframes)
        for a, b in zip(keyframes, keyframes[1:]):
            if b.time < a.time:
                raise ValueError(
                    f"Keyframes must be sorted by time: {a.time} before {b.time}"
                )
        object.__setattr__(self, "keyframes", keyframes)
        object.__setattr__(self, "ease", coerce_ease(self.ease))
        object.__setattr__(self, "start", parse_time_ref(self.start))

        if not keyframes:
            if self.from_ is None or self.to is None:
                raise ValueError("Timing spec needs 'from' and 'to' (or keyframes)")
            if self.duration is None:
                raise ValueError("Timing spec needs 'duration' (or keyframes)")

    @classmethod
    def from_dict(cls, data: Mapping) -> "TimingSpec":
        """Build a spec from a manifest-style mapping."""
        unknown = set(data) - _SPEC_KEYS
        if unknown:
            raise ValueError(f"Unknown timing spec field(s): {sorted(unknown)}")

        keyframes = data.get("keyframes")
        if keyframes is not None:
            if not isinstance(keyframes, (list, tuple)) or not keyframes:
                raise ValueError("'keyframes' must be a non-empty list")

        duration = data.get("duration")
        return cls(
            from_=data.get("from"),
            to=data.get("to"),
            duration=float(duration) if duration is not None else None,
            loop=bool(data.get("loop", False)),
            start=data.get("start", 0),
            delay=float(data.get("delay", 0)),
            repeat_delay=float(data.get("repeatDelay", data.get("repeat_delay", 0))),
            ease=data.get("ease"),
            stagger=float(data.get("stagger", 0)),
            keyframes=tuple(keyframes or ()),
            steps=int(data["steps"]) if data.get("steps") is not None else None,
        )


def coerce_spec(value) -> TimingSpec | None:
    """Return a TimingSpec for spec-like values, None for static values."""
    if isinstance(value, TimingSpec):
        return value
    if isinstance(value, Mapping):
        return TimingSpec.from_dict(value)
    return None


# ── Easing ─────────────────────────────────────────────────────────


def cubic_bezier(x1: float, y1: float, x2: float, y2: float, t: float) -> float:
    """Y-component of the bezier (0,0) (x1,y1) (x2,y2) (1,1) at parameter t."""
    u = 1 - t
    return 3 * u * u * t * y1 + 3 * u * t * t * y2 + t * t * t


def apply_ease(t: float, ease=None) -> float:
    if ease is None or ease == "linear":
        return t
    if ease == "easeIn":
        return t * t
    if ease == "easeOut":
        return 1 - (1 - t) * (1 - t)
    if ease == "easeInOut":
        return 2 * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 2 / 2
    return cubic_bezier(ease.x1, ease.y1, ease.x2, ease.y2, t)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate(a, b, t: float):
    """Lerp numbers, or colors when the endpoints are strings."""
    if isinstance(a, str) or isinstance(b, str):
        return lerp_color(a, b, t)
    return lerp(a, b, t)


# ── Phase ──────────────────────────────────────────────────────────


def _cycle_length(duration: float, repeat_delay: float) -> float:
    cycle = duration + repeat_delay
    return duration if cycle < 0 else cycle


def phase(
    time: float,
    duration: float,
    loop: bool = False,
    start: float = 0.0,
    delay: float = 0.0,
    repeat_delay: float = 0.0,
    ease=None,
    stagger: float = 0.0,
    index: int = 0,
) -> float:
    """Eased progress in [0, 1] for one timed attribute.

    Before start + delay + index * stagger the progress is 0. A zero or
    negative duration jumps straight to 1. Looping specs repeat every
    duration + repeat_delay and hold 1 during the repeat gap.
    """
    local = time - start - delay - index * stagger
    if local <= 0:
        return 0.0
    if duration <= 0:
        return 1.0
    if loop:
        cycle = _cycle_length(duration, repeat_delay)
        in_cycle = local % cycle if cycle > 0 else local
        if in_cycle > duration:
            return 1.0
        return apply_ease(in_cycle / duration, ease)
    return apply_ease(min(max(local / duration, 0.0), 1.0), ease)


# ── Keyframes ──────────────────────────────────────────────────────


def duration_of(spec: TimingSpec) -> float:
    if spec.keyframes and spec.duration is None:
        return spec.keyframes[-1].time
    return spec.duration or 0.0


def keyframe_local_time(spec: TimingSpec, time: float, start: float, index: int = 0) -> float:
    """Local time inside [0, duration] for keyframe lookup."""
    local = time - start - spec.delay - index * spec.stagger
    if local <= 0:
        return 0.0
    duration = duration_of(spec)
    if spec.loop:
        cycle = _cycle_length(duration, spec.repeat_delay)
        if cycle > 0:
            local = local % cycle
        if local > duration:
            return duration
    return min(local, duration)


def keyframe_segment(local: float, keyframes: tuple) -> tuple[Keyframe, Keyframe, float]:
    """Find the bracketing keyframes for `local` and the raw fraction between them."""
    first = keyframes[0]
    if local <= first.time:
        return first, first, 0.0
    for a, b in zip(keyframes, keyframes[1:]):
        if local <= b.time:
            span = b.time - a.time
            u = 1.0 if span <= 0 else (local - a.time) / span
            return a, b, u
    last = keyframes[-1]
    return last, last, 1.0


def keyframe_value(spec: TimingSpec, time: float, start: float, index: int = 0):
    if len(spec.keyframes) == 1:
        return spec.keyframes[0].value
    local = keyframe_local_time(spec, time, start, index)
    a, b, u = keyframe_segment(local, spec.keyframes)
    return interpolate(a.value, b.value, apply_ease(u, spec.ease))


# ── Spec evaluation ────────────────────────────────────────────────


def evaluate_spec(spec: TimingSpec, time: float, index: int = 0):
    """Resolve a TimingSpec to its value at `time`.

    Args:
        spec: The timing spec.
        time: Evaluation time in ms (already local to any enclosing group).
        index: Unit index for staggered specs (letter/word/line of a text).

    Returns:
        A number, or an 'rgb(r, g, b)' string for color specs.
    """
    start = resolve_start(spec.start)
    if spec.keyframes:
        return keyframe_value(spec, time, start, index)
    t = phase(
        time, duration_of(spec), spec.loop, start, spec.delay,
        spec.repeat_delay, spec.ease, spec.stagger, index,
    )
    return interpolate(spec.from_, spec.to, t)


def resolve_value(value, time: float, index: int = 0):
    """Evaluate `value` if it is a TimingSpec, otherwise return it as-is."""
    if isinstance(value, TimingSpec):
        return evaluate_spec(value, time, index)
    return value


def trim_fraction(spec: TimingSpec, time: float) -> float:
    """Visible fraction of a trimmed outline at `time`.

    With steps > 1 the progress is quantized into steps + 1 buckets and
    counts down from 1 to 0 before being mapped through from/to.
    """
    if spec.keyframes:
        return evaluate_spec(spec, time)
    t = phase(
        time, duration_of(spec), spec.loop, resolve_start(spec.start),
        spec.delay, spec.repeat_delay, spec.ease,
    )
    if spec.steps and spec.steps > 1:
        steps = spec.steps
        bucket = min(int(t * (steps + 1)), steps)
        t = (steps - bucket) / steps
    return lerp(spec.from_, spec.to, t)


def spec_end(spec: TimingSpec) -> float:
    """Time at which a spec settles, counting one cycle for looping specs."""
    duration = duration_of(spec)
    if spec.loop:
        duration = _cycle_length(duration, spec.repeat_delay)
    return resolve_start(spec.start) + spec.delay + duration
