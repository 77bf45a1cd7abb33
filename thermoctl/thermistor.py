"""NTC thermistor models that turn ADC readings into temperatures."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable

KELVIN_OFFSET = 273.15
DEFAULT_ADC_RESOLUTION = 1023
DEFAULT_ESP32_ADC_RESOLUTION = 4095


def celsius_to_kelvins(celsius: float) -> float:
    """Convert degrees Celsius to Kelvin."""
    return celsius + KELVIN_OFFSET


def kelvins_to_celsius(kelvins: float) -> float:
    """Convert Kelvin to degrees Celsius."""
    return kelvins - KELVIN_OFFSET


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert degrees Celsius to degrees Fahrenheit."""
    return celsius * 1.8 + 32


def kelvins_to_fahrenheit(kelvins: float) -> float:
    """Convert Kelvin to degrees Fahrenheit."""
    return celsius_to_fahrenheit(kelvins_to_celsius(kelvins))


def _to_uint16(value: float) -> int:
    return int(value) % 0x10000


class Thermistor(ABC):
    """A sensor that reports temperature in Celsius, Kelvin and Fahrenheit."""

    @abstractmethod
    def read_celsius(self) -> float:
        """Return the temperature in degrees Celsius."""

    @abstractmethod
    def read_kelvin(self) -> float:
        """Return the temperature in Kelvin."""

    @abstractmethod
    def read_fahrenheit(self) -> float:
        """Return the temperature in degrees Fahrenheit."""


class NTCThermistor(Thermistor):
    """NTC thermistor in a voltage divider, read through an ADC.

    ``read_adc`` is called for each reading and returns the raw ADC count.
    """

    def __init__(
        self,
        read_adc: Callable[[], float],
        reference_resistance: float,
        nominal_resistance: float,
        nominal_temperature_celsius: float,
        b_value: float,
        adc_resolution: int = DEFAULT_ADC_RESOLUTION,
    ) -> None:
        self._read_adc = read_adc
        self.reference_resistance = reference_resistance
        self.nominal_resistance = nominal_resistance
        self.nominal_temperature = celsius_to_kelvins(nominal_temperature_celsius)
        self.b_value = b_value
        self.adc_resolution = max(int(adc_resolution), 0)

    def read_celsius(self) -> float:
        return kelvins_to_celsius(self.read_kelvin())

    def read_kelvin(self) -> float:
        return self.resistance_to_kelvins(self.read_resistance())

    def read_fahrenheit(self) -> float:
        return kelvins_to_fahrenheit(self.read_kelvin())

    def resistance_to_kelvins(self, resistance: float) -> float:
        """Apply the B-parameter equation: 1/T = 1/T0 + ln(R/R0)/B."""
        inverse_kelvin = (
            1.0 / self.nominal_temperature
            + math.log(resistance / self.nominal_resistance) / self.b_value
        )
        return 1.0 / inverse_kelvin

    def read_resistance(self) -> float:
        """Return the thermistor resistance derived from the ADC value."""
        return self.reference_resistance / (self.adc_resolution / self.read_voltage() - 1)

    def read_voltage(self) -> float:
        """Return the ADC reading in counts."""
        return float(self._read_adc())


class NTCThermistorESP32(NTCThermistor):
    """NTC thermistor whose ADC count is derived from a calibrated millivolt reading."""

    def __init__(
        self,
        read_millivolts: Callable[[], float],
        reference_resistance: float,
        nominal_resistance: float,
        nominal_temperature_celsius: float,
        b_value: float,
        adc_vref: float,
        adc_resolution: int = DEFAULT_ESP32_ADC_RESOLUTION,
    ) -> None:
        super().__init__(
            read_millivolts,
            reference_resistance,
            nominal_resistance,
            nominal_temperature_celsius,
            b_value,
            adc_resolution,
        )
        self.vref_mv = _to_uint16(adc_vref)

    def read_voltage(self) -> float:
        """Back-calculate the ADC count from the millivolt reading."""
        return float(self._read_adc()) / float(self.vref_mv) * self.adc_resolution


class CustomFormulaThermistorESP32(NTCThermistorESP32):
    """ESP32 thermistor with the thermistor on the other side of the divider.

    The constructor arguments are forwarded to the base class in the order
    they are received, so ``b_coefficient`` lands in the nominal temperature
    slot, ``nominal_temperature`` in the B-value slot and
    ``reference_voltage`` (truncated to an integer) in the millivolt
    reference slot.
    """

    def __init__(
        self,
        read_millivolts: Callable[[], float],
        series_resistor: float,
        nominal_resistance: float,
        b_coefficient: float,
        nominal_temperature: float = 25.0,
        reference_voltage: float = 3.3,
        adc_resolution: int = DEFAULT_ESP32_ADC_RESOLUTION,
    ) -> None:
        super().__init__(
            read_millivolts,
            series_resistor,
            nominal_resistance,
            b_coefficient,
            nominal_temperature,
            reference_voltage,
            _to_uint16(adc_resolution),
        )

    def read_resistance(self) -> float:
        """Return R_fixed * (ADC_max / ADC - 1)."""
        return self.reference_resistance * (self.adc_resolution / self.read_voltage() - 1)