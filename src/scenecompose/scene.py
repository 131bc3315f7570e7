"""Scene -- the top-level factory that turns a time into evaluable items.

    scene = Scene(lambda t: [Circle(40).fill("red")], duration=2000)
    instances = scene.evaluate(500)

The factory is called with the scaled time and may return a single item
or a list of items (shapes, groups, thunks). A time_scale of 2 plays the
scene twice as fast.
"""

from collections.abc import Callable

from .flow import estimated_duration, flatten_items
from .shapes import Evaluable, ShapeInstance


class Scene(Evaluable):
    def __init__(self, factory: Callable, duration: float | None = None,
                 time_scale: float = 1.0):
        if not callable(factory):
            raise TypeError(f"Scene factory must be callable, got {factory!r}")
        if time_scale <= 0:
            raise ValueError(f"time_scale must be positive, got {time_scale}")
        self._factory = factory
        self.duration = duration
        self.time_scale = float(time_scale)

    def scaled(self, time: float) -> float:
        return time * self.time_scale

    def items(self, time: float) -> list:
        """Raw items the factory builds at wall time `time`."""
        built = self._factory(self.scaled(time))
        if isinstance(built, (list, tuple)):
            return list(built)
        return [built]

    def __call__(self, time: float) -> list:
        return self.items(time)

    def evaluate(self, time: float) -> list[ShapeInstance]:
        return flatten_items(self.items(time), self.scaled(time))

    def estimated_duration(self) -> float:
        """Explicit duration, or the items' estimate at time 0 in wall time."""
        if self.duration is not None:
            return float(self.duration)
        return estimated_duration(self.items(0.0)) / self.time_scale
