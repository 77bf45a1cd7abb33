"""Fixed-size circular buffer giving a moving average and a sliding tangent."""

from __future__ import annotations

from collections import deque


class SlidingTangent:
    """Moving average over the last ``size`` readings.

    The oldest reading in the window is the start of the sliding tangent
    line; ``slope`` measures a reading against it.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"buffer size must be positive, got {size}")
        self._size = size
        self._readings: deque[float] = deque(maxlen=size)
        self._sum = 0.0
        self.init(0.0)

    def init(self, reading: float) -> None:
        """Fill the whole window with ``reading``."""
        self._readings.clear()
        self._readings.extend([reading] * self._size)
        self._sum = reading * self._size

    def average(self, reading: float) -> float:
        """Push ``reading`` into the window and return the window's mean."""
        oldest = self._readings[0]
        self._readings.append(reading)
        self._sum += reading - oldest
        return self._sum / self._size

    def start_value(self) -> float:
        """Return the oldest reading in the window."""
        return self._readings[0]

    def slope(self, reading: float) -> float:
        """Return ``reading`` minus the oldest reading in the window."""
        return reading - self.start_value()

    def __len__(self) -> int:
        return self._size