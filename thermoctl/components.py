"""Hardware-facing components: temperature sensors, heaters and relays."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from thermoctl.thermistor import Thermistor

OnChange = Callable[[], None]

DEFAULT_MONITOR_INTERVAL = 0.1


class Component(ABC):
    """A component with a one-time ``setup`` and a repeated ``loop``."""

    on_change: Optional[OnChange] = None

    @abstractmethod
    def setup(self) -> None:
        """Prepare the component for use."""

    @abstractmethod
    def loop(self) -> None:
        """Do one round of periodic work."""


class TemperatureSensor(Component):
    """A component that reports a temperature in degrees Celsius."""

    @abstractmethod
    def get_temperature(self) -> float:
        """Return the current temperature in degrees Celsius."""


class Heater(Component):
    """A heater that regulates towards a target temperature."""

    @abstractmethod
    def set_target_temperature(self, target_temperature: float) -> None:
        """Set the temperature to regulate to."""

    @abstractmethod
    def get_target_temperature(self) -> float:
        """Return the temperature being regulated to."""

    @abstractmethod
    def start_autotune(self) -> None:
        """Begin tuning the heater's controller."""

    @abstractmethod
    def stop_autotune(self) -> None:
        """Stop tuning the heater's controller."""


class Relay(Component):
    """A relay driven through ``write``, which receives the output level.

    ``set_state`` records the requested state but always drives the output
    high, as the controlling firmware does.
    """

    def __init__(
        self,
        write: Callable[[bool], None],
        state: int = 0,
        on_change: Optional[OnChange] = None,
    ) -> None:
        self._write = write
        self._state = bool(state)

    @property
    def state(self) -> bool:
        """The last requested state."""
        return self._state

    def setup(self) -> None:
        """Drive the output to the initial state."""
        self._write(self._state)

    def set_state(self, state: bool) -> None:
        """Record ``state`` and drive the output."""
        self._state = bool(state)
        self._write(self._state or not self._state)

    def loop(self) -> bool:
        """Relays need no periodic work; return the last requested state."""
        return self._state


class NTCSensorTemperature(TemperatureSensor):
    """Temperature sensor backed by a thermistor, polled on a background thread.

    Once ``setup`` has run, ``loop`` is called every ``interval`` seconds
    until ``close``.
    """

    def __init__(
        self,
        thermistor: Thermistor,
        on_change: Optional[OnChange] = None,
        interval: float = DEFAULT_MONITOR_INTERVAL,
    ) -> None:
        self.thermistor = thermistor
        self.on_change = on_change
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        """True while the monitoring thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def get_temperature(self) -> float:
        return self.thermistor.read_celsius()

    def setup(self) -> None:
        """Start the monitoring thread."""
        if self.running:
            raise RuntimeError("temperature monitor is already running")
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._monitor, name="NTCSensorTemperature.monitor", daemon=True
        )
        self._thread.start()

    def _monitor(self) -> None:
        while not self._stop.is_set():
            self.loop()
            self._stop.wait(self.interval)

    def loop(self) -> None:
        """Take a reading and notify ``on_change``."""
        self.get_temperature()
        if self.on_change is not None:
            self.on_change()

    def close(self) -> None:
        """Stop the monitoring thread, if running."""
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def __enter__(self) -> "NTCSensorTemperature":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()