import threading

import pytest

from thermoctl.components import (
    Component,
    Heater,
    NTCSensorTemperature,
    Relay,
    TemperatureSensor,
)
from thermoctl.thermistor import Thermistor


class FixedThermistor(Thermistor):
    def __init__(self, celsius):
        self.celsius = celsius
        self.reads = 0

    def read_celsius(self):
        self.reads += 1
        return self.celsius

    def read_kelvin(self):
        return self.celsius + 273.15

    def read_fahrenheit(self):
        return self.celsius * 1.8 + 32


@pytest.mark.parametrize("cls", [Component, TemperatureSensor, Heater])
def test_abstract_components_cannot_be_instantiated(cls):
    with pytest.raises(TypeError):
        cls()


def test_relay_setup_writes_initial_state():
    writes = []
    relay = Relay(writes.append, 0, None)
    relay.setup()
    assert writes == [False]
    assert relay.state is False


def test_relay_set_state_records_state_and_drives_high():
    writes = []
    relay = Relay(writes.append, 1, None)
    relay.set_state(False)
    assert relay.state is False
    assert writes == [True]
    relay.set_state(True)
    assert relay.state is True
    assert writes == [True, True]


def test_relay_loop_writes_nothing():
    writes = []
    relay = Relay(writes.append, 1, None)
    relay.loop()
    assert writes == []


def test_sensor_reports_thermistor_celsius():
    sensor = NTCSensorTemperature(FixedThermistor(42.5), None)
    assert sensor.get_temperature() == 42.5


def test_sensor_loop_reads_and_notifies():
    thermistor = FixedThermistor(20.0)
    calls = []
    sensor = NTCSensorTemperature(thermistor, lambda: calls.append(1))
    sensor.loop()
    sensor.loop()
    assert thermistor.reads == 2
    assert len(calls) == 2


def test_sensor_monitor_thread_calls_on_change_and_stops():
    notified = threading.Event()
    sensor = NTCSensorTemperature(FixedThermistor(30.0), notified.set, interval=0.01)
    with sensor:
        sensor.setup()
        assert sensor.running
        assert notified.wait(5)
    assert not sensor.running


def test_sensor_setup_twice_raises():
    sensor = NTCSensorTemperature(FixedThermistor(30.0), None, interval=0.01)
    sensor.setup()
    try:
        with pytest.raises(RuntimeError):
            sensor.setup()
    finally:
        sensor.close()
    assert not sensor.running


def test_sensor_can_restart_after_close():
    counter = []
    sensor = NTCSensorTemperature(FixedThermistor(30.0), lambda: counter.append(1), interval=0.01)
    sensor.setup()
    sensor.close()
    before = len(counter)
    sensor.setup()
    assert sensor.running
    sensor.close()
    assert len(counter) >= before
    assert not sensor.running