"""Turns add-metric requests into storable records."""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from ..models.metric import Metric
from ..models.requests import AddMetricRequest
from .timezone_utils import Timezone, TimezoneResolver
from .units import Unit, UnitConverter


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetricRecorder:
    """Converts a value, unit and local datetime into a base-unit UTC record."""

    def __init__(
        self,
        resolver: Optional[TimezoneResolver] = None,
        converter: Optional[UnitConverter] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = _utc_now
    ):
        self.resolver = resolver or TimezoneResolver()
        self.converter = converter or UnitConverter()
        self.id_factory = id_factory
        self.clock = clock

    def record(self, request: AddMetricRequest) -> Metric:
        """Build the metric to store. Nothing is persisted here."""
        zone = Timezone(request.timezone)
        unit = Unit(request.unit, request.type)

        base_value = self.converter.to_base(unit, request.type, request.value)
        timestamp = self.resolver.to_utc(request.date, zone)

        return Metric(
            id=self.id_factory(),
            user_id=request.user_id,
            type=request.type,
            value=base_value,
            original_unit=unit.identifier,
            timestamp=timestamp,
            created_at=self.clock(),
        )
