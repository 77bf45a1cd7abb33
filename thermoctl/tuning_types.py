"""Enumerations used by the inflection-point autotuner."""

from __future__ import annotations

from enum import IntEnum


class Action(IntEnum):
    """Controller action and test method."""

    DIRECT_IP = 0
    DIRECT_5T = 1
    REVERSE_IP = 2
    REVERSE_5T = 3

    def label(self) -> str:
        """Name used in printed reports."""
        return _ACTION_LABELS[self]

    def is_direct(self) -> bool:
        """True for the direct-acting variants."""
        return self in (Action.DIRECT_IP, Action.DIRECT_5T)


_ACTION_LABELS = {
    Action.DIRECT_IP: "directIP",
    Action.DIRECT_5T: "direct5T",
    Action.REVERSE_IP: "reverseIP",
    Action.REVERSE_5T: "reverse5T",
}


class SerialMode(IntEnum):
    """How much the tuner reports while running."""

    PRINT_OFF = 0
    PRINT_ALL = 1
    PRINT_SUMMARY = 2
    PRINT_DEBUG = 3


class TunerStatus(IntEnum):
    """Status values returned by the tuner on each step."""

    SAMPLE = 0
    TEST = 1
    TUNINGS = 2
    RUN_PID = 3
    TIMER_PID = 4


class TuningMethod(IntEnum):
    """Rule used to derive controller gains from the process model."""

    ZN_PID = 0
    DAMPED_OSC_PID = 1
    NO_OVERSHOOT_PID = 2
    COHEN_COON_PID = 3
    MIXED_PID = 4
    ZN_PI = 5
    DAMPED_OSC_PI = 6
    NO_OVERSHOOT_PI = 7
    COHEN_COON_PI = 8
    MIXED_PI = 9

    def label(self) -> str:
        """Name used in printed reports."""
        return _METHOD_LABELS[self]

    def is_pid(self) -> bool:
        """True for methods that produce a derivative term."""
        return self <= TuningMethod.MIXED_PID


_METHOD_LABELS = {
    TuningMethod.ZN_PID: "ZN_PID",
    TuningMethod.DAMPED_OSC_PID: "Damped_PID",
    TuningMethod.NO_OVERSHOOT_PID: "NoOvershoot_PID",
    TuningMethod.COHEN_COON_PID: "CohenCoon_PID",
    TuningMethod.MIXED_PID: "Mixed_PID",
    TuningMethod.ZN_PI: "ZN_PI",
    TuningMethod.DAMPED_OSC_PI: "Damped_PI",
    TuningMethod.NO_OVERSHOOT_PI: "NoOvershoot_PI",
    TuningMethod.COHEN_COON_PI: "CohenCoon_PI",
    TuningMethod.MIXED_PI: "Mixed_PI",
}