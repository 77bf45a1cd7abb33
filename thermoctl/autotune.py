"""Open-loop PID autotuner based on an s-curve inflection point test."""

from __future__ import annotations

import math
import sys
import time
from typing import Callable, Optional, TextIO

from thermoctl.sliding_tangent import SlidingTangent
from thermoctl.tuning_types import Action, SerialMode, TunerStatus, TuningMethod

_MASK32 = 0xFFFFFFFF
_EPSILON = 0.0001
_KEXP = 4.3004  # (1 / exp(-1)) / (1 - exp(-1))
_US = 0.000001


def _div(numerator: float, denominator: float) -> float:
    """Divide the way IEEE floats do: zero denominators give inf or nan."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _monotonic_us() -> int:
    return (time.monotonic_ns() // 1000) & _MASK32


class Autotuner:
    """Inflection point autotuner.

    ``read_input`` returns the process value; the tuner drives its
    ``output`` attribute. ``clock_us`` returns microseconds and ``out``
    receives the printed reports (standard output by default).
    """

    def __init__(
        self,
        read_input: Callable[[], float],
        tuning_method: TuningMethod = TuningMethod.ZN_PID,
        action: Action = Action.DIRECT_IP,
        serial_mode: SerialMode = SerialMode.PRINT_OFF,
        clock_us: Optional[Callable[[], int]] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self._read_input = read_input
        self.tuning_method = TuningMethod(tuning_method)
        self.action = Action(action)
        self.serial_mode = SerialMode(serial_mode)
        self._clock_us = clock_us if clock_us is not None else _monotonic_us
        self._out = out

        self.output = 0.0
        self._tangent: Optional[SlidingTangent] = None
        self._input_span = 0.0
        self._output_span = 0.0
        self._output_start = 0.0
        self._output_step = 0.0
        self._test_time_sec = 0
        self._settle_time_sec = 0
        self._samples = 0
        self._buffer_size = 0
        self._sample_period_us = 0.0
        self._tangent_period_us = 0.0
        self._settle_period_us = 0.0

        self._e_stop = 0.0
        self._e_stop_abort = False
        self._pv_inst = 0.0
        self._pv_avg_res = 0.0
        self._us_start = 0
        self._r = 0.0
        self.reset()

    # ------------------------------------------------------------------ state

    @property
    def status(self) -> TunerStatus:
        """The tuner's current status."""
        return self._status

    @property
    def process_gain(self) -> float:
        """Process gain found by the test."""
        return self._ku

    @property
    def dead_time(self) -> float:
        """Process dead time in seconds."""
        return self._td

    @property
    def tau(self) -> float:
        """Process time constant in seconds."""
        return self._tu

    def _write(self, text: str) -> None:
        (self._out if self._out is not None else sys.stdout).write(text)

    def reset(self) -> None:
        """Restart the test and clear all results."""
        self._status = TunerStatus.TEST
        self.output = self._output_start
        self._us_prev = self._clock_us() & _MASK32
        self._settle_prev = self._us_prev
        self._ip_us = 0
        self._us = 0
        self._ku = 0.0
        self._tu = 0.0
        self._td = 0.0
        self._kp = 0.0
        self._ki = 0.0
        self._kd = 0.0
        self._pv_ip = 0.0
        self._pv_max = 0.0
        self._pv_pk = 0.0
        self._slope_ip = 0.0
        self._pv_tangent = 0.0
        self._pv_tangent_prev = 0.0
        self._pv_avg = self._pv_inst
        self._pv_start = self._pv_inst
        self._pv_inst_res = self._pv_inst
        self._ip_count = 0
        self._plot_count = 0
        self._sample_count = 0
        self._pv_pk_count = 0

    def configure(
        self,
        input_span: float,
        output_span: float,
        output_start: float,
        output_step: float,
        test_time_sec: int,
        settle_time_sec: int,
        samples: int,
    ) -> None:
        """Set the test parameters and restart the test."""
        self.reset()
        self._input_span = input_span
        self._e_stop = input_span
        self._output_span = output_span
        self._output_start = output_start
        self._output_step = output_step
        self._test_time_sec = int(test_time_sec)
        self._settle_time_sec = int(settle_time_sec)
        self._samples = int(samples)
        self._buffer_size = int(self._samples * 0.06)
        self._sample_period_us = self._test_time_sec * 1000000.0 / self._samples
        self._tangent_period_us = self._sample_period_us * (self._buffer_size - 1)
        self._settle_period_us = self._settle_time_sec * 1000000.0
        self._tangent = SlidingTangent(self._buffer_size)

    def set_emergency_stop(self, e_stop: float) -> None:
        """Abort the test when the process value exceeds ``e_stop``."""
        self._e_stop = e_stop

    # -------------------------------------------------------------------- run

    def _abort_if_over_limit(self) -> bool:
        if self._pv_inst > self._e_stop and not self._e_stop_abort:
            self.reset()
            self._sample_count = self._samples + 1
            self._e_stop_abort = True
            self._write(" ABORT: pvInst > eStop\n")
            return True
        return False

    def run(self) -> TunerStatus:
        """Advance the tuner by one step and return its status."""
        if self._tangent is None:
            raise RuntimeError("configure() must be called before run()")
        now = self._clock_us() & _MASK32
        us_elapsed = (now - self._us_prev) & _MASK32
        settle_elapsed = (now - self._settle_prev) & _MASK32
        self._us = (now - self._us_start) & _MASK32

        status = self._status
        if status == TunerStatus.SAMPLE:
            self._status = TunerStatus.TEST
            return TunerStatus.TEST
        if status == TunerStatus.TEST:
            return self._run_test(now, us_elapsed, settle_elapsed)
        if status == TunerStatus.TUNINGS:
            self._status = TunerStatus.TIMER_PID
            return TunerStatus.TIMER_PID
        if status == TunerStatus.RUN_PID:
            self._abort_if_over_limit()
            self._status = TunerStatus.TIMER_PID
            return TunerStatus.TIMER_PID
        if us_elapsed >= self._sample_period_us:
            self._us_prev = now
            self._status = TunerStatus.RUN_PID
            return TunerStatus.RUN_PID
        self._status = TunerStatus.TIMER_PID
        return TunerStatus.TIMER_PID

    def _run_test(self, now: int, us_elapsed: int, settle_elapsed: int) -> TunerStatus:
        if self._abort_if_over_limit():
            return TunerStatus.TIMER_PID

        if settle_elapsed >= self._settle_period_us:
            if self._sample_count == 1:
                self.output = self._output_step
            if us_elapsed >= self._sample_period_us:
                self._us_prev = now
                if self._sample_count <= self._samples:
                    if self._process_sample(now):
                        return TunerStatus.TUNINGS
                else:
                    self._status = TunerStatus.TUNINGS
                self._sample_count += 1
                self._status = TunerStatus.SAMPLE
                return TunerStatus.SAMPLE
            return TunerStatus.TIMER_PID

        if us_elapsed >= self._sample_period_us and not self._e_stop_abort:
            self.output = self._output_start
            self._us_prev = now
            self._pv_inst = float(self._read_input())
            if self.serial_mode in (SerialMode.PRINT_ALL, SerialMode.PRINT_DEBUG):
                remaining = (self._settle_period_us - settle_elapsed) * _US
                self._write(
                    f" sec: {remaining:.4f}  out: {self.output:.2f}"
                    f"  pv: {self._pv_inst:.3f}  settling  ⤳⤳\n"
                )
            self._status = TunerStatus.SAMPLE
            return TunerStatus.SAMPLE
        return TunerStatus.TIMER_PID

    def _process_sample(self, now: int) -> bool:
        """Take one test sample; return True when the test has completed."""
        tangent = self._tangent
        last_pv_inst = self._pv_inst
        last_pv_avg = self._pv_avg
        self._pv_inst = float(self._read_input())
        self._pv_avg = tangent.average(self._pv_inst)
        inst_resolution = abs(self._pv_inst - last_pv_inst)
        avg_resolution = abs(self._pv_avg - last_pv_avg)
        if _EPSILON < inst_resolution < self._pv_inst_res:
            self._pv_inst_res = inst_resolution
        if _EPSILON < avg_resolution < self._pv_avg_res:
            self._pv_avg_res = avg_resolution

        if self._sample_count == 0:
            tangent.init(self._pv_inst)
            self._pv_avg = self._pv_inst
            self._pv_inst_res = self._pv_inst
            self._pv_avg_res = self._pv_inst
            self._pv_start = self._pv_inst
            self._us_start = now
            self._us = 0

        self._pv_tangent = self._pv_avg - tangent.start_value()
        direct = self.action.is_direct()

        if direct:
            dead_time_seen = self._pv_avg > self._pv_start + self._pv_inst_res + _EPSILON
        else:
            dead_time_seen = self._pv_avg < self._pv_start - self._pv_inst_res - _EPSILON
        if not self._td and dead_time_seen:
            self._td = self._us * _US

        steeper = False
        if direct:
            if self._pv_tangent > self._slope_ip + _EPSILON:
                steeper = True
            if self._pv_tangent < _EPSILON:
                self._ip_count = 0
        else:
            if self._pv_tangent < self._slope_ip - _EPSILON:
                steeper = True
            if self._pv_tangent > -_EPSILON:
                self._ip_count = 0
        if steeper:
            self._ip_count = 0
            self._slope_ip = self._pv_tangent
        self._ip_count += 1

        ip_test = self.action in (Action.DIRECT_IP, Action.REVERSE_IP)
        if ip_test and self._ip_count == self._samples // 16:
            self._sample_count = self._samples
            self._ip_us = self._us
            self._pv_ip = self._pv_avg
            self._pv_max = self._pv_ip + self._slope_ip * _KEXP
            self._tu = (
                _div(self._pv_max - self._pv_start, self._slope_ip)
                * self._tangent_period_us
                * _US
                - self._td
            )

        if not ip_test:
            if self._sample_count >= self._samples - 1:
                self._sample_count = self._samples - 2
            if self._us > self._test_time_sec * 100000:
                if self._pv_avg > self._pv_pk:
                    self._pv_pk = self._pv_avg + self._buffer_size * 0.2 * self._pv_avg_res
                    self._pv_pk_count = 0
                else:
                    self._pv_pk_count += 1
                if self._pv_pk_count == int(1.2 * self._buffer_size):
                    self._pv_pk_count += 1
                    self._sample_count = self._samples
                    self._pv_max = self._pv_avg + (self._pv_inst - self._pv_start) * 0.05
                    self._tu = (self._us * 1.6667 * _US * 0.286) - self._td

        if self._sample_count == self._samples:
            self._r = _div(self._td, self._tu)
            self._ku = abs(
                _div(
                    _div(self._pv_max - self._pv_start, self._input_span),
                    _div(self._output_step - self._output_start, self._output_span),
                )
            )
            self._kp = self.kp()
            self._ki = self.ki()
            self._kd = self.kd()
            self.print_results()
            self._status = TunerStatus.TUNINGS
            return True

        self.print_test_run()
        self._pv_tangent_prev = self._pv_tangent
        return False

    # --------------------------------------------------------------- printing

    def print_pid_tuner(self, every_nth: int) -> None:
        """Print time, output and averaged input for a PID tuner front-end."""
        if self._sample_count < self._samples:
            if self._plot_count == 0 or self._plot_count >= every_nth:
                self._plot_count = 1
                self._write(
                    f"{self._us * _US:.4f}, {self.output:.2f}, {self._pv_avg:.2f}\n"
                )
            else:
                self._plot_count += 1

    def plotter(
        self,
        input_value: float,
        output: float,
        setpoint: float,
        output_scale: float = 1,
        every_nth: int = 1,
    ) -> None:
        """Print setpoint, input and scaled output in serial-plotter format."""
        if self._plot_count >= every_nth:
            self._plot_count = 1
            self._write(
                f"Setpoint:{setpoint:.2f}, Input:{input_value:.2f}, "
                f"Output:{output * output_scale:.2f},\n"
            )
        else:
            self._plot_count += 1

    def print_test_run(self) -> None:
        """Print one line describing the current test sample."""
        if self._sample_count >= self._samples:
            return
        if self.serial_mode not in (SerialMode.PRINT_ALL, SerialMode.PRINT_DEBUG):
            return
        parts = [
            f" sec: {self._us * _US:.4f}",
            f"  out: {self.output:.2f}",
            f"  pv: {self._pv_inst:.3f}",
        ]
        debug = self.serial_mode == SerialMode.PRINT_DEBUG
        if debug and self.action in (Action.DIRECT_5T, Action.REVERSE_5T):
            parts.append(f"  pvPk: {self._pv_pk:.3f}")
            parts.append(f"  pvPkCount: {self._pv_pk_count}")
            parts.append(f"  ipCount: {self._ip_count}")
        if debug and self.action in (Action.DIRECT_IP, Action.REVERSE_IP):
            parts.append(f"  ipCount: {self._ip_count}")
        parts.append(f"  tan: {self._pv_tangent:.3f}")
        if self._pv_inst > 0.9 * self._e_stop:
            parts.append(" ⚠")
        change = self._pv_tangent - self._pv_tangent_prev
        if change > _EPSILON:
            parts.append(" ↗")
        elif change < -_EPSILON:
            parts.append(" ↘")
        else:
            parts.append(" →")
        self._write("".join(parts) + "\n")

    def print_tunings(self) -> None:
        """Print the tuning method and the resulting gains."""
        kp = self.kp()
        ki = self.ki()
        kd = self.kd()
        self._write(
            f" Tuning Method: {self.tuning_method.label()}\n"
            f"  Kp: {kp:.3f}\n"
            f"  Ki: {ki:.3f}  Ti: {self.ti():.3f}\n"
            f"  Kd: {kd:.3f}  Td: {self.td():.3f}\n"
            "\n"
        )

    def print_results(self) -> None:
        """Print the summary of a completed test."""
        if self.serial_mode not in (
            SerialMode.PRINT_ALL,
            SerialMode.PRINT_DEBUG,
            SerialMode.PRINT_SUMMARY,
        ):
            return
        direct = self.action.is_direct()
        lines = [
            "",
            f" Controller Action: {self.action.label()}",
            "",
            f" Output Start:      {self._output_start:.2f}",
            f" Output Step:       {self._output_step:.2f}",
            f" Sample Sec:        {self._sample_period_us * _US:.4f}",
            "",
        ]
        if self.serial_mode == SerialMode.PRINT_DEBUG and self.action in (
            Action.DIRECT_IP,
            Action.REVERSE_IP,
        ):
            lines.append(f" Ip Sec:            {self._ip_us * _US:.4f}")
            lines.append(
                f" Ip Slope:          {self._slope_ip:.3f}" + (" ↑" if direct else " ↓")
            )
            lines.append(f" Ip Pv:             {self._pv_ip:.3f}")
        lines.append(f" Pv Start:          {self._pv_start:.3f}")
        label = " Pv Max:            " if direct else " Pv Min:            "
        lines.append(f"{label}{self._pv_max:.3f}")
        lines.append(f" Pv Diff:           {self._pv_max - self._pv_start:.3f}")
        lines.append("")
        lines.append(f" Process Gain:      {self._ku:.3f}")
        lines.append(f" Dead Time Sec:     {self._td:.3f}")
        lines.append(f" Tau Sec:           {self._tu:.3f}")
        lines.append("")

        controllability = _div(self._tu, self._td) + _EPSILON
        if controllability > 99.9:
            controllability = 99.9
        if controllability > 0.75:
            verdict = " (easy to control)"
        elif controllability > 0.25:
            verdict = " (average controllability)"
        else:
            verdict = " (difficult to control)"
        lines.append(f" Tau/Dead Time:     {controllability:.1f}{verdict}")

        sample_time_check = _div(self._tu, self._sample_period_us * _US)
        rate = " (good sample rate)" if sample_time_check >= 10 else " (low sample rate)"
        lines.append(f" Tau/Sample Period: {sample_time_check:.1f}{rate}")
        lines.append("")
        self._write("\n".join(lines) + "\n")
        self.print_tunings()
        self._sample_count += 1

    # ---------------------------------------------------------------- results

    def auto_tunings(self) -> tuple[float, float, float]:
        """Return the (kp, ki, kd) found when the test completed."""
        return self._kp, self._ki, self._kd

    def kp(self) -> float:
        """Compute the proportional gain for the current tuning method."""
        tu, td, ku, r = self._tu, self._td, self._ku, self._r
        zn_pid = _div(1.2 * tu, ku * td) / 2
        do_pid = _div(0.66 * tu, ku * td)
        no_pid = _div(0.6, ku) * _div(tu, td)
        cc_pid = ku * (1.33 + r / 4.0)
        zn_pi = _div(0.9 * tu, ku * td) / 2
        do_pi = _div(0.495 * tu, ku * td)
        no_pi = _div(0.35, ku) * _div(tu, td)
        cc_pi = ku * (0.9 + r / 12.0)
        self._kp = self._select(zn_pid, do_pid, no_pid, cc_pid, zn_pi, do_pi, no_pi, cc_pi)
        return self._kp

    def ki(self) -> float:
        """Compute the integral gain for the current tuning method."""
        tu, td, r = self._tu, self._td, self._r
        cohen_coon = _div(1, _div(td * (30.0 + 3.0 * r), 9.0 + 20.0 * r))
        self._ki = self._select(
            _div(1, 2.0 * td),
            _div(1, tu / 3.6),
            _div(1, tu),
            cohen_coon,
            _div(1, 3.3333 * td),
            _div(1, tu / 2.6),
            _div(1, 1.2 * tu),
            cohen_coon,
        )
        return self._ki

    def kd(self) -> float:
        """Compute the derivative gain; zero for PI methods."""
        tu, td, r = self._tu, self._td, self._r
        zn_pid = _div(1, 0.5 * td)
        do_pid = _div(1, tu / 9.0)
        no_pid = _div(1, 0.5 * td)
        cc_pid = _div(1, _div(4.0 * td, 11.0 + 2.0 * r))
        method = self.tuning_method
        if method.is_pid():
            self._kd = {
                TuningMethod.ZN_PID: zn_pid,
                TuningMethod.DAMPED_OSC_PID: do_pid,
                TuningMethod.NO_OVERSHOOT_PID: no_pid,
                TuningMethod.COHEN_COON_PID: cc_pid,
            }.get(method, 0.25 * (zn_pid + do_pid + no_pid + cc_pid))
        else:
            self._kd = 0.0
        return self._kd

    def _select(
        self,
        zn_pid: float,
        do_pid: float,
        no_pid: float,
        cc_pid: float,
        zn_pi: float,
        do_pi: float,
        no_pi: float,
        cc_pi: float,
    ) -> float:
        return {
            TuningMethod.ZN_PID: zn_pid,
            TuningMethod.DAMPED_OSC_PID: do_pid,
            TuningMethod.NO_OVERSHOOT_PID: no_pid,
            TuningMethod.COHEN_COON_PID: cc_pid,
            TuningMethod.MIXED_PID: 0.25 * (zn_pid + do_pid + no_pid + cc_pid),
            TuningMethod.ZN_PI: zn_pi,
            TuningMethod.DAMPED_OSC_PI: do_pi,
            TuningMethod.NO_OVERSHOOT_PI: no_pi,
            TuningMethod.COHEN_COON_PI: cc_pi,
        }.get(self.tuning_method, 0.25 * (zn_pi + do_pi + no_pi + cc_pi))

    def ti(self) -> float:
        """Integral time: kp / ki of the stored gains."""
        return _div(self._kp, self._ki)

    def td(self) -> float:
        """Derivative time: kp / kd of the stored gains, zero for PI methods."""
        if self.tuning_method.is_pid():
            return _div(self._kp, self._kd)
        return 0.0


class SoftPwm:
    """Slow software PWM for a relay, with SSR half-cycle output trimming.

    ``write`` is called with the new relay level; ``clock_ms`` returns
    milliseconds.
    """

    def __init__(
        self,
        write: Callable[[bool], None],
        clock_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self._write = write
        self._clock_ms = clock_ms if clock_ms is not None else (
            lambda: int(time.monotonic() * 1000) & _MASK32
        )
        self._window_start = 0
        self._next_switch = 0
        self._optimum_output = 0.0
        self._reached_setpoint = False
        self.relay_on = False

    def update(
        self,
        input_value: float,
        output: float,
        setpoint: float = 0,
        window_size: int = 1000,
        debounce: int = 0,
    ) -> float:
        """Drive the relay for this instant and return the effective output."""
        now = self._clock_ms() & _MASK32
        if (now - self._window_start) & _MASK32 >= window_size:
            self._window_start = now

        if input_value > setpoint:
            self._reached_setpoint = True
        trim = self._reached_setpoint and not debounce and setpoint > 0
        if trim and input_value > setpoint:
            self._optimum_output = output - 8
        elif trim and input_value < setpoint:
            self._optimum_output = output + 8
        else:
            self._optimum_output = output
        if self._optimum_output < 0:
            self._optimum_output = 0

        in_window = (now - self._window_start) & _MASK32
        if not self.relay_on and self._optimum_output > in_window:
            if now > self._next_switch:
                self._next_switch = (now + debounce) & _MASK32
                self.relay_on = True
                self._write(True)
        elif self.relay_on and self._optimum_output < in_window:
            if now > self._next_switch:
                self._next_switch = (now + debounce) & _MASK32
                self.relay_on = False
                self._write(False)
        return self._optimum_output