"""Constants for the PID controller: mode, direction and proportional mode."""

from __future__ import annotations

from enum import IntEnum

LIBRARY_VERSION = "1.2.1"


class Mode(IntEnum):
    """Whether the controller computes output automatically."""

    MANUAL = 0
    AUTOMATIC = 1


class Direction(IntEnum):
    """Whether positive output raises (direct) or lowers (reverse) the input."""

    DIRECT = 0
    REVERSE = 1


class ProportionalOn(IntEnum):
    """Whether the proportional term acts on measurement or on error."""

    MEASUREMENT = 0
    ERROR = 1