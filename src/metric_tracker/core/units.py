"""Unit conversion between display units and each metric type's base unit.

Distance is stored in meters and temperature in Kelvin. Conversions are
looked up per (unit, type) pair: distance units scale linearly, temperature
units are affine.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Callable, Dict, Tuple, Union

from ..errors import InvalidMetric, InvalidUnit
from ..models.metric import DistanceUnit, MetricType, TemperatureUnit

DISPLAY_PRECISION = Decimal("0.000001")

# Meters per unit
DISTANCE_FACTORS: Dict[str, float] = {
    DistanceUnit.METER.value: 1.0,
    DistanceUnit.CENTIMETER.value: 0.01,
    DistanceUnit.INCH.value: 0.0254,
    DistanceUnit.FEET.value: 0.3048,
    DistanceUnit.YARD.value: 0.9144,
}

# (to Kelvin, from Kelvin)
TEMPERATURE_CONVERSIONS: Dict[str, Tuple[Callable[[float], float], Callable[[float], float]]] = {
    TemperatureUnit.KELVIN.value: (
        lambda v: v,
        lambda k: k,
    ),
    TemperatureUnit.CELSIUS.value: (
        lambda v: v + 273.15,
        lambda k: k - 273.15,
    ),
    TemperatureUnit.FAHRENHEIT.value: (
        lambda v: (v - 32) * 5 / 9 + 273.15,
        lambda k: (k - 273.15) * 9 / 5 + 32,
    ),
}

UNITS_BY_TYPE: Dict[MetricType, Tuple[str, ...]] = {
    MetricType.DISTANCE: tuple(u.value for u in DistanceUnit),
    MetricType.TEMPERATURE: tuple(u.value for u in TemperatureUnit),
}

BASE_UNITS: Dict[MetricType, str] = {
    MetricType.DISTANCE: DistanceUnit.METER.value,
    MetricType.TEMPERATURE: TemperatureUnit.KELVIN.value,
}


def _unit_value(unit: Union[str, DistanceUnit, TemperatureUnit]) -> str:
    return unit.value if isinstance(unit, (DistanceUnit, TemperatureUnit)) else str(unit)


@dataclass(frozen=True)
class Unit:
    """A unit identifier paired with the metric type it measures."""
    identifier: str
    type: MetricType

    def __post_init__(self):
        identifier = _unit_value(self.identifier)
        try:
            metric_type = MetricType(self.type)
        except ValueError:
            raise InvalidUnit(
                f"Unsupported metric type: {self.type}",
                {"unit": identifier, "type": str(self.type)},
            ) from None
        if identifier not in UNITS_BY_TYPE[metric_type]:
            raise InvalidUnit(
                f"Invalid unit '{identifier}' for metric type '{metric_type.value}'",
                {"unit": identifier, "type": metric_type.value},
            )
        # Normalize enum members to their string values
        object.__setattr__(self, "identifier", identifier)
        object.__setattr__(self, "type", metric_type)

    @property
    def is_base(self) -> bool:
        return self.identifier == BASE_UNITS[self.type]


class UnitConverter:
    """Stateless conversion to and from each metric type's base unit."""

    @staticmethod
    def base_unit_of(metric_type: MetricType) -> str:
        """Get the base unit identifier for a metric type."""
        return BASE_UNITS[MetricType(metric_type)]

    @staticmethod
    def units_of(metric_type: MetricType) -> Tuple[str, ...]:
        """Get every unit identifier accepted for a metric type."""
        return UNITS_BY_TYPE[MetricType(metric_type)]

    def to_base(self, unit: Union[str, Unit], metric_type: MetricType, value: float) -> float:
        """Convert a value expressed in ``unit`` to the base unit."""
        resolved = self._resolve(unit, metric_type)
        value = self._check_finite(value)
        if resolved.type == MetricType.DISTANCE:
            return self._check_finite(value * DISTANCE_FACTORS[resolved.identifier])
        to_kelvin, _ = TEMPERATURE_CONVERSIONS[resolved.identifier]
        return self._check_finite(to_kelvin(value))

    def from_base(self, unit: Union[str, Unit], metric_type: MetricType, base_value: float) -> float:
        """Convert a base-unit value to ``unit``. The result is not rounded."""
        resolved = self._resolve(unit, metric_type)
        base_value = self._check_finite(base_value)
        if resolved.type == MetricType.DISTANCE:
            return self._check_finite(base_value / DISTANCE_FACTORS[resolved.identifier])
        _, from_kelvin = TEMPERATURE_CONVERSIONS[resolved.identifier]
        return self._check_finite(from_kelvin(base_value))

    def to_display(self, unit: Union[str, Unit], metric_type: MetricType, base_value: float) -> float:
        """Convert a base-unit value to ``unit`` and round it for display."""
        return round_display(self.from_base(unit, metric_type, base_value))

    @staticmethod
    def _resolve(unit: Union[str, Unit], metric_type: MetricType) -> Unit:
        if isinstance(unit, Unit):
            if unit.type != MetricType(metric_type):
                raise InvalidUnit(
                    f"Invalid unit '{unit.identifier}' for metric type '{MetricType(metric_type).value}'",
                    {"unit": unit.identifier, "type": MetricType(metric_type).value},
                )
            return unit
        return Unit(unit, metric_type)

    @staticmethod
    def _check_finite(value: float) -> float:
        value = float(value)
        if not math.isfinite(value):
            raise InvalidMetric(f"Value must be a finite number: {value}")
        return value


def round_display(value: float) -> float:
    """Round to 6 fractional digits, halves away from zero."""
    exact = Decimal(repr(value))
    # Enough digits for the integer part plus the fractional digits kept
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + 8)
        rounded = float(exact.quantize(DISPLAY_PRECISION, rounding=ROUND_HALF_UP))
    # Avoid reporting -0.0
    return rounded + 0.0
