"""Diagnostics channel -- problems reported while building and sampling scenes.

There is no global store. Whoever drives rendering creates a Diagnostics
object and passes it to the render boundary; shapes themselves only
carry Issue records on the instances they produce, and the boundary
forwards those here. add_once deduplicates by key so a problem that
recurs every frame is reported a single time.

Every new diagnostic is also logged through the standard logging module.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass


logger = logging.getLogger(__name__)

VALID_LEVELS = {"error", "warn"}


@dataclass(frozen=True)
class Issue:
    """A problem found while building a leaf shape, reported later by key."""

    key: str
    level: str
    message: str
    detail: str | None = None


@dataclass(frozen=True)
class Diagnostic:
    level: str
    message: str
    detail: str | None
    time: float


Listener = Callable[[list[Diagnostic]], None]


class Diagnostics:
    """Ordered, deduplicating collection of diagnostics with listeners."""

    def __init__(self):
        self._items: list[Diagnostic] = []
        self._keys: set[str] = set()
        self._listeners: list[Listener] = []

    def add(self, level: str, message: str, detail: str | None = None) -> None:
        if level not in VALID_LEVELS:
            raise ValueError(f"Unknown diagnostic level '{level}'. Valid: {sorted(VALID_LEVELS)}")
        item = Diagnostic(level, message, detail, time.time())
        self._items.append(item)
        if level == "error":
            logger.error("%s", message)
        else:
            logger.warning("%s", message)
        if detail:
            logger.debug("%s", detail)
        self._emit()

    def add_once(self, key: str, level: str, message: str, detail: str | None = None) -> None:
        """Add a diagnostic unless one with the same key was already added."""
        if key in self._keys:
            return
        self._keys.add(key)
        self.add(level, message, detail)

    def report(self, issue: Issue) -> None:
        self.add_once(issue.key, issue.level, issue.message, issue.detail)

    def clear(self) -> None:
        self._items = []
        self._keys.clear()
        self._emit()

    def get_all(self) -> list[Diagnostic]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def on(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to changes. The listener gets the current snapshot right away.

        Returns:
            A function that unsubscribes the listener.
        """
        self._listeners.append(listener)
        self._call(listener, self.get_all())

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self) -> None:
        snapshot = self.get_all()
        for listener in list(self._listeners):
            self._call(listener, snapshot)

    def _call(self, listener: Listener, snapshot: list[Diagnostic]) -> None:
        # Listeners must not break frame evaluation.
        try:
            listener(snapshot)
        except Exception:
            logger.exception("Diagnostics listener failed")
