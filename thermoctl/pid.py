"""Discrete PID controller with proportional-on-error/measurement blending."""

from __future__ import annotations

import time
from typing import Callable, Optional

from thermoctl.pid_constants import Direction, Mode, ProportionalOn

DEFAULT_SAMPLE_TIME_MS = 100
DEFAULT_OUTPUT_MIN = 0.0
DEFAULT_OUTPUT_MAX = 255.0


def _constrain(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class PID:
    """PID controller working on its ``input``, ``output`` and ``setpoint`` attributes.

    ``clock`` returns the current time in milliseconds; it defaults to a
    monotonic clock. ``p_on`` blends proportional action between
    measurement (0) and error (1).
    """

    def __init__(
        self,
        kp: float,
        ki: float,
        kd: float,
        p_on: float = ProportionalOn.ERROR,
        direction: int = Direction.DIRECT,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._clock = clock if clock is not None else _monotonic_ms
        self.input = 0.0
        self.output = 0.0
        self.setpoint = 0.0
        self._in_auto = False
        self._output_sum = 0.0
        self._last_input = 0.0
        self._out_min = DEFAULT_OUTPUT_MIN
        self._out_max = DEFAULT_OUTPUT_MAX
        self._direction = Direction(direction)
        self._p_on = float(p_on)
        self._p_on_e = True
        self._p_on_m = False
        self._p_on_e_kp = 0.0
        self._p_on_m_kp = 0.0
        self._kp = self._ki = self._kd = 0.0
        self._disp_kp = self._disp_ki = self._disp_kd = 0.0
        self._setpoint_weight = 0.0

        self.set_output_limits(DEFAULT_OUTPUT_MIN, DEFAULT_OUTPUT_MAX)
        self._sample_time = DEFAULT_SAMPLE_TIME_MS
        self.set_controller_direction(direction)
        self.set_tunings(kp, ki, kd, p_on)
        self._last_time = self._clock() - self._sample_time

    @property
    def kp(self) -> float:
        """Proportional gain as entered."""
        return self._disp_kp

    @property
    def ki(self) -> float:
        """Integral gain as entered."""
        return self._disp_ki

    @property
    def kd(self) -> float:
        """Derivative gain as entered."""
        return self._disp_kd

    @property
    def mode(self) -> Mode:
        """Current mode: automatic or manual."""
        return Mode.AUTOMATIC if self._in_auto else Mode.MANUAL

    @property
    def direction(self) -> Direction:
        """Current controller direction."""
        return self._direction

    @property
    def sample_time(self) -> int:
        """Sample period in milliseconds."""
        return self._sample_time

    @property
    def output_limits(self) -> tuple[float, float]:
        """The (minimum, maximum) output clamp."""
        return self._out_min, self._out_max

    @property
    def setpoint_weight(self) -> float:
        """The stored setpoint weight."""
        return self._setpoint_weight

    def compute(self) -> bool:
        """Compute a new output if automatic and a sample period has passed.

        Returns True when ``output`` was updated.
        """
        if not self._in_auto:
            return False
        now = self._clock()
        if now - self._last_time < self._sample_time:
            return False

        current = self.input
        error = self.setpoint - current
        d_input = current - self._last_input
        self._output_sum += self._ki * error

        if self._p_on_m:
            self._output_sum -= self._p_on_m_kp * d_input

        self._output_sum = _constrain(self._output_sum, self._out_min, self._out_max)

        output = self._output_sum - self._kd * d_input
        if self._p_on_e:
            output += self._p_on_e_kp * error

        self.output = _constrain(output, self._out_min, self._out_max)
        self._last_input = current
        self._last_time = now
        return True

    def set_tunings(
        self, kp: float, ki: float, kd: float, p_on: Optional[float] = None
    ) -> None:
        """Set the gains; out-of-range values leave the tunings unchanged.

        Without ``p_on`` the last proportional blend is kept.
        """
        if p_on is None:
            p_on = self._p_on
        if kp < 0 or ki < 0 or kd < 0 or p_on < 0 or p_on > 1:
            return

        self._p_on = float(p_on)
        self._p_on_e = p_on > 0
        self._p_on_m = p_on < 1

        self._disp_kp, self._disp_ki, self._disp_kd = kp, ki, kd

        sample_time_sec = self._sample_time / 1000
        self._kp = kp
        self._ki = ki * sample_time_sec
        self._kd = kd / sample_time_sec

        if self._direction == Direction.REVERSE:
            self._kp = -self._kp
            self._ki = -self._ki
            self._kd = -self._kd

        self._p_on_e_kp = p_on * self._kp
        self._p_on_m_kp = (1 - p_on) * self._kp

    def set_sample_time(self, sample_time: int) -> None:
        """Set the sample period in milliseconds; non-positive values are ignored."""
        if sample_time > 0:
            ratio = sample_time / self._sample_time
            self._ki *= ratio
            self._kd /= ratio
            self._sample_time = int(sample_time)

    def set_output_limits(self, minimum: float, maximum: float) -> None:
        """Clamp the output to [minimum, maximum]; ignored unless minimum < maximum."""
        if minimum >= maximum:
            return
        self._out_min = minimum
        self._out_max = maximum

        if self._in_auto:
            self.output = _constrain(self.output, minimum, maximum)
            self._output_sum = _constrain(self._output_sum, minimum, maximum)

    def set_mode(self, mode: int) -> None:
        """Switch between manual and automatic; entering automatic is bumpless."""
        new_auto = mode == Mode.AUTOMATIC
        if new_auto and not self._in_auto:
            self._initialize()
        self._in_auto = new_auto

    def _initialize(self) -> None:
        self._output_sum = _constrain(self.output, self._out_min, self._out_max)
        self._last_input = self.input

    def set_controller_direction(self, direction: int) -> None:
        """Set direct or reverse action, flipping gains if already automatic."""
        direction = Direction(direction)
        if self._in_auto and direction != self._direction:
            self._kp = -self._kp
            self._ki = -self._ki
            self._kd = -self._kd
        self._direction = direction

    def set_setpoint_weight(self, weight: float) -> None:
        """Store the setpoint weight."""
        self._setpoint_weight = weight