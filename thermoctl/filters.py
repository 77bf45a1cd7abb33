"""Thermistor wrappers that average or smooth the readings of another thermistor."""

from __future__ import annotations

import time
from typing import Callable, Optional

from thermoctl.thermistor import Thermistor

DEFAULT_READINGS_NUMBER = 10
DEFAULT_DELAY_MS = 1
MIN_SMOOTHING_FACTOR = 2


def _positive_or(value: int, alternative: int) -> int:
    return value if value > 0 else alternative


class AverageThermistor(Thermistor):
    """Reports the mean of several consecutive readings of ``origin``.

    ``sleep`` is called with the delay in seconds after each reading;
    it defaults to :func:`time.sleep`.
    """

    def __init__(
        self,
        origin: Thermistor,
        readings_number: int = DEFAULT_READINGS_NUMBER,
        delay_ms: int = DEFAULT_DELAY_MS,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.origin = origin
        self.readings_number = _positive_or(readings_number, DEFAULT_READINGS_NUMBER)
        self.delay_ms = _positive_or(delay_ms, DEFAULT_DELAY_MS)
        self._sleep = sleep if sleep is not None else time.sleep

    def read_celsius(self) -> float:
        return self._average(self.origin.read_celsius)

    def read_kelvin(self) -> float:
        return self._average(self.origin.read_kelvin)

    def read_fahrenheit(self) -> float:
        return self._average(self.origin.read_fahrenheit)

    def _average(self, read: Callable[[], float]) -> float:
        total = 0.0
        for _ in range(self.readings_number):
            total += read()
            self._sleep(self.delay_ms / 1000)
        return total / self.readings_number


class SmoothThermistor(Thermistor):
    """Applies exponential smoothing to the readings of ``origin``.

    Each unit keeps its own smoothed value; the first reading (while the
    stored value is zero) is passed through unchanged.
    """

    def __init__(self, origin: Thermistor, smoothing_factor: int = MIN_SMOOTHING_FACTOR) -> None:
        self.origin = origin
        self.smoothing_factor = max(smoothing_factor, MIN_SMOOTHING_FACTOR)
        self._celsius = 0.0
        self._kelvin = 0.0
        self._fahrenheit = 0.0

    def read_celsius(self) -> float:
        self._celsius = self._smooth(self.origin.read_celsius(), self._celsius)
        return self._celsius

    def read_kelvin(self) -> float:
        self._kelvin = self._smooth(self.origin.read_kelvin(), self._kelvin)
        return self._kelvin

    def read_fahrenheit(self) -> float:
        self._fahrenheit = self._smooth(self.origin.read_fahrenheit(), self._fahrenheit)
        return self._fahrenheit

    def _smooth(self, reading: float, previous: float) -> float:
        if previous == 0:
            return reading
        factor = self.smoothing_factor
        return (previous * (factor - 1) + reading) / factor