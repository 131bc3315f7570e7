"""Flow composition -- parallel, sequence, on and when groups.

Groups are Evaluables built from child items. An item is a shape builder,
another group, a list of items, or a zero-argument thunk returning one of
those. Groups never hold per-frame state: sequence offsets are laid out
once at construction from each item's estimated duration, then only read.

    sequence(
        Circle(20).scale({"from": 0, "to": 1, "duration": 400}),
        parallel(Rect(40, 40), on("scene+200", Text("hi"))),
    )
"""

from collections.abc import Callable

from .shapes import Evaluable, ShapeInstance
from .timeref import TimeRef, resolve_start


def _check_item(item) -> None:
    if isinstance(item, (list, tuple)):
        for sub in item:
            _check_item(sub)
        return
    if isinstance(item, Evaluable) or callable(item):
        return
    raise TypeError(f"Not an evaluable item: {item!r}")


def flatten_items(items, time: float, offset: float = 0.0) -> list[ShapeInstance]:
    """Evaluate every item at `time`, concatenating results in input order.

    Thunks are called with no arguments and their result flattened in turn;
    lists and tuples expand element-wise.

    Raises:
        TypeError: If an item (or a thunk's result) is not evaluable.
    """
    out: list[ShapeInstance] = []
    for item in items:
        if isinstance(item, Evaluable):
            out.extend(item.evaluate(time))
        elif isinstance(item, (list, tuple)):
            out.extend(flatten_items(item, time, offset))
        elif callable(item):
            out.extend(flatten_items([item()], time, offset))
        else:
            raise TypeError(f"Not an evaluable item: {item!r}")
    return out


def estimated_duration(item) -> float:
    """How long an item runs, for laying out sequences.

    Lists take the max over their elements (they play together); thunks are
    unwrapped first. Looping specs count one cycle.
    """
    if isinstance(item, Evaluable):
        return item.estimated_duration()
    if isinstance(item, (list, tuple)):
        return max((estimated_duration(sub) for sub in item), default=0.0)
    if callable(item):
        return estimated_duration(item())
    raise TypeError(f"Not an evaluable item: {item!r}")


# ── Groups ─────────────────────────────────────────────────────────


class FlowGroup(Evaluable):
    """Children shown while `predicate(time)` holds, evaluated at time - offset."""

    def __init__(self, items, predicate: Callable[[float], bool] | None = None,
                 offset: float = 0.0):
        for item in items:
            _check_item(item)
        self._items = tuple(items)
        self._predicate = predicate
        self._offset = float(offset)

    @property
    def items(self) -> tuple:
        return self._items

    @property
    def offset(self) -> float:
        return self._offset

    def evaluate(self, time: float) -> list[ShapeInstance]:
        if self._predicate is not None and not self._predicate(time):
            return []
        return flatten_items(self._items, time - self._offset, self._offset)

    def estimated_duration(self) -> float:
        return self._offset + max(
            (estimated_duration(item) for item in self._items), default=0.0
        )


class SequenceGroup(Evaluable):
    """Children played one after another.

    Each item's offset is the summed estimated duration of the items before
    it. An item contributes nothing until the sequence reaches its offset,
    then runs on its own clock starting at 0.
    """

    def __init__(self, items):
        for item in items:
            _check_item(item)
        entries = []
        cursor = 0.0
        for item in items:
            entries.append((cursor, item))
            cursor += estimated_duration(item)
        self._entries = tuple(entries)
        self._total = cursor

    @property
    def offsets(self) -> tuple[float, ...]:
        return tuple(offset for offset, _ in self._entries)

    def evaluate(self, time: float) -> list[ShapeInstance]:
        out: list[ShapeInstance] = []
        for offset, item in self._entries:
            if time < offset:
                continue
            out.extend(flatten_items([item], time - offset, offset))
        return out

    def estimated_duration(self) -> float:
        return self._total


# ── Combinators ────────────────────────────────────────────────────


def parallel(*items) -> FlowGroup:
    """All items at the same time."""
    return FlowGroup(items)


def sequence(*items) -> SequenceGroup:
    return SequenceGroup(items)


def on(start: TimeRef | str | float | None, *items) -> FlowGroup:
    """Items appear at `start` and run on a clock that starts there.

    `start` is resolved once. Both "scene" and "prev.end" resolve against 0
    here: inside a sequence the item's clock already begins at the previous
    item's end.
    """
    resolved = resolve_start(start, 0.0)
    return FlowGroup(items, lambda time: time >= resolved, resolved)


def when(condition: bool | Callable[[float], bool], *items) -> FlowGroup:
    """Items shown only while `condition` (a bool or a function of time) holds."""
    if callable(condition):
        predicate = condition
    else:
        flag = bool(condition)

        def predicate(time):
            return flag

    return FlowGroup(items, predicate)
