"""Symbolic start times.

A start time is either a number of milliseconds or a short string:

    "scene"          -> 0
    "scene+200"      -> 200
    "prev.end-150.5" -> prev_end - 150.5

Whitespace is ignored. An offset that isn't a signed numeral is dropped
and the bare base is used. Unknown tokens resolve to 0. Parsing never
raises; it happens once, in parse_time_ref, and every caller goes
through resolve_start.
"""

import re
from dataclasses import dataclass


_OFFSET_RE = re.compile(r"^[+-]\d+(\.\d+)?$")

SCENE_TOKEN = "scene"
PREV_END_TOKEN = "prev.end"


@dataclass(frozen=True)
class Absolute:
    ms: float = 0.0


@dataclass(frozen=True)
class SceneRelative:
    offset: float = 0.0


@dataclass(frozen=True)
class PrevEndRelative:
    offset: float = 0.0


TimeRef = Absolute | SceneRelative | PrevEndRelative


def _parse_offset(suffix: str) -> float:
    if not suffix or not _OFFSET_RE.match(suffix):
        return 0.0
    return float(suffix)


def parse_time_ref(value) -> TimeRef:
    """Normalize a number, string, None or TimeRef into a TimeRef."""
    if isinstance(value, (Absolute, SceneRelative, PrevEndRelative)):
        return value
    if value is None:
        return Absolute(0.0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Absolute(float(value))
    if isinstance(value, str):
        s = re.sub(r"\s+", "", value)
        if s.startswith(SCENE_TOKEN):
            return SceneRelative(_parse_offset(s[len(SCENE_TOKEN):]))
        if s.startswith(PREV_END_TOKEN):
            return PrevEndRelative(_parse_offset(s[len(PREV_END_TOKEN):]))
        return Absolute(0.0)
    raise TypeError(f"Unsupported start time: {value!r}")


def resolve_start(ref, prev_end: float = 0.0) -> float:
    """Resolve a start time to absolute milliseconds.

    Args:
        ref: Number, string token, None or TimeRef.
        prev_end: Baseline for "prev.end". Outside a sequence there is no
            previous item and callers pass 0.

    Returns:
        Start time in milliseconds.
    """
    ref = parse_time_ref(ref)
    if isinstance(ref, Absolute):
        return ref.ms
    if isinstance(ref, SceneRelative):
        return ref.offset
    return prev_end + ref.offset
