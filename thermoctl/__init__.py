"""NTC thermistor reading and filtering, PID control, step-test autotuning, a state machine and component interfaces for temperature controllers."""

__version__ = "0.1.0"