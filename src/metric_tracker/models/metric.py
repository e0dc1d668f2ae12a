"""Metric data models."""

from datetime import datetime
from enum import Enum
from typing import Union
from pydantic import BaseModel, model_validator

from ..errors import InvalidMetric


class MetricType(str, Enum):
    """Available metric types."""
    DISTANCE = "distance"
    TEMPERATURE = "temperature"


class DistanceUnit(str, Enum):
    """Distance units. Meter is the base unit."""
    METER = "meter"
    CENTIMETER = "centimeter"
    INCH = "inch"
    FEET = "feet"
    YARD = "yard"


class TemperatureUnit(str, Enum):
    """Temperature units. Kelvin is the base unit."""
    KELVIN = "kelvin"
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"


MetricUnit = Union[DistanceUnit, TemperatureUnit]


class Metric(BaseModel):
    """A stored measurement.

    ``value`` is always expressed in the base unit of ``type`` and
    ``timestamp`` is in epoch seconds (UTC).
    """
    id: str
    user_id: str
    type: MetricType
    value: float
    original_unit: str
    timestamp: int
    created_at: datetime

    class Config:
        """Pydantic config."""
        frozen = True

    @model_validator(mode="after")
    def _check_invariants(self) -> "Metric":
        if not self.user_id:
            raise InvalidMetric("UserId is required")
        if self.value < 0:
            raise InvalidMetric(
                "Value cannot be negative",
                {"value": self.value, "type": self.type.value},
            )
        if self.timestamp < 0:
            raise InvalidMetric("Timestamp must be valid", {"timestamp": self.timestamp})
        return self

    def is_distance(self) -> bool:
        return self.type == MetricType.DISTANCE

    def is_temperature(self) -> bool:
        return self.type == MetricType.TEMPERATURE

    def belongs_to(self, user_id: str) -> bool:
        return self.user_id == user_id

    def is_within_range(self, start_timestamp: int, end_timestamp: int) -> bool:
        """Check whether the metric falls inside an inclusive instant range."""
        return start_timestamp <= self.timestamp <= end_timestamp


class ChartPoint(BaseModel):
    """One day of a chart series."""
    date: str
    value: float
    unit: str
    timestamp: int

    class Config:
        """Pydantic config."""
        frozen = True
