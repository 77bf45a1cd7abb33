# thermoctl

Building blocks for temperature control loops, such as a heating kettle or a
sous-vide bath. The package has no dependencies outside the standard library.
Hardware access is passed in as plain callables: an ADC reader, a pin writer
or a clock. Because of this, everything runs and can be tested on an ordinary
computer.

## Modules

- **`thermoctl.thermistor`** converts ADC readings into temperatures.
  - `NTCThermistor` reads a thermistor in a voltage divider. It takes a
    callable that returns raw ADC counts and applies the B-parameter equation.
  - `NTCThermistorESP32` takes a callable that returns millivolts, plus the
    ADC reference in millivolts. From these it works back to ADC counts.
  - `CustomFormulaThermistorESP32` is for a thermistor on the other side of
    the divider. It computes the resistance as `R_fixed * (ADC_max / ADC - 1)`.
    Its constructor forwards its arguments to the base class in the order it
    receives them. The class docstring describes which argument ends up in
    which slot.
  - Each class offers `read_celsius()`, `read_kelvin()` and
    `read_fahrenheit()`.
  - The module also provides the helpers `celsius_to_kelvins`,
    `kelvins_to_celsius`, `celsius_to_fahrenheit` and `kelvins_to_fahrenheit`.
- **`thermoctl.filters`** wraps any `Thermistor`.
  - `AverageThermistor` returns the mean of `readings_number` readings. It
    sleeps `delay_ms` between readings, and the sleep function can be
    injected.
  - `SmoothThermistor` applies exponential smoothing with a factor of at
    least 2. The first reading is passed through unchanged.
- **`thermoctl.pid`** provides `PID`, a sampled PID controller.
  - It works on its `input`, `output` and `setpoint` attributes.
  - `p_on` blends proportional-on-measurement (0) and proportional-on-error
    (1).
  - The output is clamped to 0–255 by default (`set_output_limits`).
  - The sample time is 100 ms by default (`set_sample_time`).
  - It supports direct or reverse action (`set_controller_direction`).
  - Switching from manual to automatic with `set_mode` is bumpless.
  - `compute()` returns `True` when it has updated `output`.
  - Constants are in **`thermoctl.pid_constants`**: `Mode`, `Direction` and
    `ProportionalOn`.
- **`thermoctl.autotune`** provides two classes.
  - `Autotuner` runs an open-loop step test: either the inflection-point test
    or the full 5τ test, direct or reverse. It drives its `output` attribute.
    Call `configure(...)` first, then call `run()` repeatedly; each call
    returns a `TunerStatus`. The tuner aborts the test when the process value
    exceeds the emergency stop, which defaults to the input span.
  - When the test completes, `auto_tunings()` returns `(kp, ki, kd)`, and
    `process_gain`, `dead_time` and `tau` describe the process. Reports are
    written to standard output or to a stream you pass in, depending on the
    `SerialMode`.
  - `SoftPwm` drives a relay through a time-proportioned window. It has
    optional output trimming once the setpoint has been reached.
- **`thermoctl.tuning_types`** holds the enumerations used by the tuner:
  `Action`, `SerialMode`, `TunerStatus` and `TuningMethod`. `TuningMethod`
  covers Ziegler–Nichols, damped oscillation, no overshoot, Cohen–Coon and a
  mixed rule, each in PID and PI forms.
- **`thermoctl.sliding_tangent`** provides `SlidingTangent`, a fixed-size
  window that gives a moving average and the slope against its oldest
  reading.
- **`thermoctl.state_machine`** provides `State` objects with `enter`, `run`
  and `exit` hooks, driven by a `StateMachine`.
  - `set_state` and `set_idle_state` request a transition. The transition
    happens on the next `run()`, which returns `True` when a state was
    entered.
- **`thermoctl.components`** defines component interfaces and two concrete
  components.
  - Interfaces: `Component`, `TemperatureSensor` and `Heater`.
  - `Relay` writes its initial state on `setup()`. Its `set_state()` records
    the requested state but always drives the output high.
  - `NTCSensorTemperature` reads a thermistor in Celsius. After `setup()` it
    polls on a background thread every `interval` seconds, calling
    `on_change` each time, until `close()` is called. It can also be used as
    a context manager.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from thermoctl.filters import SmoothThermistor
from thermoctl.pid import PID
from thermoctl.pid_constants import Mode
from thermoctl.thermistor import NTCThermistor

def read_adc():
    return 512  # replace with a real ADC reading

sensor = SmoothThermistor(
    NTCThermistor(read_adc, 8000, 100000, 25, 3950, 1023),
    4,
)

pid = PID(2.0, 5.0, 1.0)
pid.setpoint = 65.0
pid.input = sensor.read_celsius()
pid.set_mode(Mode.AUTOMATIC)
if pid.compute():
    print(pid.output)
```

## What this package does not do

This is a library of parts, not a finished controller.

- It has no command-line program.
- It does not store settings such as gains, volume or power.
- It has no network or messaging layer for receiving commands.
- It provides no concrete `Heater` implementation.
- Nothing in it wires a sensor, heater and relay together into a running
  control loop. You assemble that yourself from the pieces above.