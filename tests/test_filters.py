import pytest

from thermoctl.filters import AverageThermistor, SmoothThermistor
from thermoctl.thermistor import Thermistor


class FakeThermistor(Thermistor):
    def __init__(self, celsius=(), kelvin=(), fahrenheit=()):
        self._celsius = iter(celsius)
        self._kelvin = iter(kelvin)
        self._fahrenheit = iter(fahrenheit)
        self.calls = 0

    def read_celsius(self):
        self.calls += 1
        return next(self._celsius)

    def read_kelvin(self):
        self.calls += 1
        return next(self._kelvin)

    def read_fahrenheit(self):
        self.calls += 1
        return next(self._fahrenheit)


def test_average_of_readings():
    sleeps = []
    therm = AverageThermistor(FakeThermistor(celsius=[1.0, 2.0, 3.0]), 3, 5, sleeps.append)
    assert therm.read_celsius() == pytest.approx(2.0)
    assert sleeps == [0.005, 0.005, 0.005]


def test_average_of_constant_is_constant():
    origin = FakeThermistor(kelvin=[300.5] * 4, fahrenheit=[70.25] * 4)
    therm = AverageThermistor(origin, 2, 1, lambda s: None)
    assert therm.read_kelvin() == pytest.approx(300.5)
    assert therm.read_fahrenheit() == pytest.approx(70.25)
    assert origin.calls == 4


@pytest.mark.parametrize("readings", [0, -3])
def test_average_invalid_readings_number_uses_default(readings):
    origin = FakeThermistor(celsius=[20.0] * 20)
    therm = AverageThermistor(origin, readings, 0, lambda s: None)
    assert therm.readings_number == 10
    assert therm.delay_ms == 1
    assert therm.read_celsius() == pytest.approx(20.0)
    assert origin.calls == 10


def test_smooth_first_reading_passes_through():
    therm = SmoothThermistor(FakeThermistor(celsius=[42.0]))
    assert therm.read_celsius() == 42.0


def test_smooth_with_factor_two():
    therm = SmoothThermistor(FakeThermistor(celsius=[10.0, 20.0]), 2)
    assert therm.read_celsius() == 10.0
    assert therm.read_celsius() == pytest.approx(15.0)


def test_smooth_factor_clamped_to_minimum():
    therm = SmoothThermistor(FakeThermistor(), 1)
    assert therm.smoothing_factor == 2


def test_smooth_stays_between_old_and_new():
    therm = SmoothThermistor(FakeThermistor(kelvin=[300.0, 310.0]), 5)
    first = therm.read_kelvin()
    second = therm.read_kelvin()
    assert first < second < 310.0


def test_smooth_units_are_independent():
    therm = SmoothThermistor(FakeThermistor(celsius=[5.0], fahrenheit=[50.0]), 4)
    assert therm.read_celsius() == 5.0
    assert therm.read_fahrenheit() == 50.0