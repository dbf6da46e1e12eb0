"""Moving-average smoothing of per-frame face measurements."""

import operator
from typing import Optional

from facelive.buffers import RingBuffer
from facelive.types import Angle, Rect


class ScalarSmoother:
    """Arithmetic mean over a sliding window of samples.

    Args:
        window: Number of most recent samples averaged.
    """

    def __init__(self, window: int):
        self._buffer: RingBuffer[float] = RingBuffer(window)
        self._current: Optional[float] = None

    @property
    def current(self) -> Optional[float]:
        """Smoothed value, None until a sample exists."""
        return self._current

    def __len__(self) -> int:
        return len(self._buffer)

    def add_sample(self, value: float) -> Optional[float]:
        self._buffer.push(float(value))
        self._current = self._mean()
        return self._current

    def remove_oldest(self) -> Optional[float]:
        """Drop the oldest sample and return it."""
        removed = self._buffer.pop_oldest()
        self._current = self._mean()
        return removed

    def reset(self) -> None:
        self._buffer.clear()
        self._current = None

    def _mean(self) -> Optional[float]:
        total = self._buffer.reduce(operator.add)
        if total is None:
            return None
        return total / len(self._buffer)


class AngleSmoother:
    """Smooths yaw and pitch independently."""

    def __init__(self, window: int):
        self._yaw = ScalarSmoother(window)
        self._pitch = ScalarSmoother(window)

    @property
    def current(self) -> Optional[Angle]:
        yaw, pitch = self._yaw.current, self._pitch.current
        if yaw is None or pitch is None:
            return None
        return Angle(yaw=yaw, pitch=pitch)

    def add_sample(self, angle: Angle) -> Optional[Angle]:
        self._yaw.add_sample(angle.yaw)
        self._pitch.add_sample(angle.pitch)
        return self.current

    def remove_oldest(self) -> None:
        self._yaw.remove_oldest()
        self._pitch.remove_oldest()

    def reset(self) -> None:
        self._yaw.reset()
        self._pitch.reset()


class RectSmoother:
    """Smooths the four rectangle components independently."""

    def __init__(self, window: int):
        self._x = ScalarSmoother(window)
        self._y = ScalarSmoother(window)
        self._width = ScalarSmoother(window)
        self._height = ScalarSmoother(window)

    def _components(self):
        return (self._x, self._y, self._width, self._height)

    @property
    def current(self) -> Optional[Rect]:
        values = [s.current for s in self._components()]
        if any(v is None for v in values):
            return None
        return Rect(*values)

    def add_sample(self, rect: Rect) -> Optional[Rect]:
        self._x.add_sample(rect.x)
        self._y.add_sample(rect.y)
        self._width.add_sample(rect.width)
        self._height.add_sample(rect.height)
        return self.current

    def remove_oldest(self) -> None:
        for smoother in self._components():
            smoother.remove_oldest()

    def reset(self) -> None:
        for smoother in self._components():
            smoother.reset()


__all__ = ["ScalarSmoother", "AngleSmoother", "RectSmoother"]
