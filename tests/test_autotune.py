import io
import math

import pytest

from thermoctl.autotune import Autotuner, SoftPwm
from thermoctl.tuning_types import Action, SerialMode, TunerStatus, TuningMethod

PERIOD_US = 500000  # 100 s test time over 200 samples


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class FirstOrderProcess:
    def __init__(self, clock, start=20.0, gain=30.0, dead=2.0, tau=20.0, step=50.0):
        self.clock = clock
        self.start = start
        self.gain = gain
        self.dead = dead
        self.tau = tau
        self.step = step
        self.tuner = None
        self.step_time = None

    def __call__(self):
        t = self.clock.now / 1e6
        if self.step_time is None and self.tuner.output == self.step:
            self.step_time = t
        if self.step_time is None:
            return self.start
        elapsed = t - self.step_time - self.dead
        if elapsed <= 0:
            return self.start
        return self.start + self.gain * (1 - math.exp(-elapsed / self.tau))


def make_tuner(method=TuningMethod.ZN_PID, action=Action.DIRECT_IP,
               mode=SerialMode.PRINT_OFF, settle=0):
    clock = FakeClock()
    process = FirstOrderProcess(clock)
    out = io.StringIO()
    tuner = Autotuner(process, method, action, mode, clock, out)
    process.tuner = tuner
    tuner.configure(100.0, 100.0, 0.0, 50.0, 100, settle, 200)
    return tuner, clock, out


def drive(tuner, clock, limit=5000):
    status = None
    for _ in range(limit):
        clock.now += PERIOD_US
        status = tuner.run()
        if status == TunerStatus.SAMPLE:
            status = tuner.run()
        if status == TunerStatus.TUNINGS:
            return status
    return status


def test_run_before_configure_raises():
    tuner = Autotuner(lambda: 0.0, clock_us=FakeClock(), out=io.StringIO())
    with pytest.raises(RuntimeError):
        tuner.run()


def test_configure_with_too_few_samples_raises():
    tuner = Autotuner(lambda: 0.0, clock_us=FakeClock(), out=io.StringIO())
    with pytest.raises(ValueError):
        tuner.configure(100.0, 100.0, 0.0, 50.0, 10, 0, 10)


def test_configure_sets_output_to_start():
    clock = FakeClock()
    tuner = Autotuner(lambda: 20.0, clock_us=clock, out=io.StringIO())
    tuner.configure(100.0, 100.0, 5.0, 50.0, 100, 0, 200)
    tuner.reset()
    assert tuner.output == 5.0
    assert tuner.status == TunerStatus.TEST


def test_inflection_point_test_completes_with_positive_model():
    tuner, clock, _ = make_tuner()
    assert drive(tuner, clock) == TunerStatus.TUNINGS
    assert tuner.output == 50.0
    assert tuner.process_gain > 0
    assert tuner.dead_time > 0
    assert tuner.tau > 0
    kp, ki, kd = tuner.auto_tunings()
    assert kp > 0 and ki > 0 and kd > 0
    assert tuner.ti() == pytest.approx(kp / ki)
    assert tuner.td() == pytest.approx(kp / kd)


def test_pi_method_has_no_derivative():
    tuner, clock, _ = make_tuner(method=TuningMethod.COHEN_COON_PI)
    assert drive(tuner, clock) == TunerStatus.TUNINGS
    _, _, kd = tuner.auto_tunings()
    assert kd == 0.0
    assert tuner.td() == 0


def test_mixed_pid_is_mean_of_the_four_rules():
    tuner, clock, _ = make_tuner(method=TuningMethod.MIXED_PID)
    drive(tuner, clock)
    gains = []
    for method in (TuningMethod.ZN_PID, TuningMethod.DAMPED_OSC_PID,
                   TuningMethod.NO_OVERSHOOT_PID, TuningMethod.COHEN_COON_PID):
        tuner.tuning_method = method
        gains.append(tuner.kp())
    tuner.tuning_method = TuningMethod.MIXED_PID
    assert tuner.kp() == pytest.approx(sum(gains) / 4)


def test_five_tau_test_completes():
    tuner, clock, _ = make_tuner(action=Action.DIRECT_5T)
    assert drive(tuner, clock, limit=20000) == TunerStatus.TUNINGS
    assert tuner.process_gain > 0
    assert tuner.tau > 0


def test_status_sequence_after_tunings():
    tuner, clock, _ = make_tuner()
    drive(tuner, clock)
    assert tuner.run() == TunerStatus.TIMER_PID
    assert tuner.run() == TunerStatus.TIMER_PID
    clock.now += PERIOD_US
    assert tuner.run() == TunerStatus.RUN_PID
    assert tuner.run() == TunerStatus.TIMER_PID


def test_summary_report_is_printed():
    tuner, clock, out = make_tuner(mode=SerialMode.PRINT_SUMMARY)
    drive(tuner, clock)
    text = out.getvalue()
    assert " Controller Action: directIP" in text
    assert " Tuning Method: ZN_PID" in text
    assert " Process Gain:" in text


def test_print_off_writes_nothing():
    tuner, clock, out = make_tuner(mode=SerialMode.PRINT_OFF)
    drive(tuner, clock)
    assert out.getvalue() == ""


def test_settling_phase_holds_start_output():
    tuner, clock, out = make_tuner(mode=SerialMode.PRINT_ALL, settle=5)
    clock.now += PERIOD_US
    assert tuner.run() == TunerStatus.SAMPLE
    assert tuner.output == 0.0
    assert "settling" in out.getvalue()
    assert tuner.run() == TunerStatus.TEST


def test_emergency_stop_aborts():
    clock = FakeClock()
    out = io.StringIO()
    tuner = Autotuner(lambda: 150.0, clock_us=clock, out=out)
    tuner.configure(100.0, 100.0, 0.0, 50.0, 100, 0, 200)
    clock.now += PERIOD_US
    assert tuner.run() == TunerStatus.SAMPLE
    assert tuner.run() == TunerStatus.TEST
    clock.now += PERIOD_US
    assert tuner.run() == TunerStatus.TIMER_PID
    assert "ABORT: pvInst > eStop" in out.getvalue()
    assert tuner.output == 0.0


def test_soft_pwm_switches_relay_within_window():
    clock = FakeClock(100)
    writes = []
    pwm = SoftPwm(writes.append, clock)
    assert pwm.update(10.0, 500.0) == 500.0
    assert writes == [True]
    clock.now = 600
    pwm.update(10.0, 500.0)
    assert writes == [True, False]
    assert pwm.relay_on is False


def test_soft_pwm_trims_output_around_setpoint():
    clock = FakeClock(100)
    pwm = SoftPwm(lambda level: None, clock)
    assert pwm.update(60.0, 100.0, 50.0) == 92.0
    assert pwm.update(40.0, 100.0, 50.0) == 108.0
    assert pwm.update(60.0, 3.0, 50.0) == 0


def test_soft_pwm_debounce_disables_trim():
    clock = FakeClock(100)
    pwm = SoftPwm(lambda level: None, clock)
    assert pwm.update(60.0, 100.0, 50.0, 1000, 5) == 100.0