"""Gap-filled daily chart series."""

from typing import List, Optional
import structlog

from ..errors import InvalidDateRange
from ..models.config import ChartConfig
from ..models.metric import ChartPoint
from ..models.requests import ChartRequest, ChartResponse
from ..data.repository import MetricRepository
from .aggregator import DailyAggregator, date_range, day_count
from .timezone_utils import Timezone, TimezoneResolver, parse_date
from .units import Unit, UnitConverter

logger = structlog.get_logger()


class ChartBuilder:
    """Builds one chart point per zone-local calendar day of a range."""

    def __init__(
        self,
        repository: MetricRepository,
        resolver: Optional[TimezoneResolver] = None,
        converter: Optional[UnitConverter] = None,
        config: Optional[ChartConfig] = None
    ):
        """Initialize the builder."""
        self.repository = repository
        self.resolver = resolver or TimezoneResolver()
        self.converter = converter or UnitConverter()
        self.aggregator = DailyAggregator(self.resolver)
        self.config = config or ChartConfig()

    async def build(self, request: ChartRequest) -> ChartResponse:
        """Build the chart series for a request.

        Every input is validated before storage is queried. A range whose
        end precedes its start yields an empty series.

        Raises:
            InvalidTimezone: unknown or malformed zone
            InvalidUnit: display unit not valid for the metric type
            InvalidDateFormat: start or end date is not ``YYYY-MM-DD``
            InvalidDateRange: range longer than ``max_range_days``
        """
        zone = Timezone(request.timezone)
        self.resolver.resolve(zone)
        unit = Unit(request.unit or self.converter.base_unit_of(request.type), request.type)

        days_requested = day_count(parse_date(request.start_date), parse_date(request.end_date))
        if days_requested > self.config.max_range_days:
            raise InvalidDateRange(
                f"Date range of {days_requested} days exceeds the limit of "
                f"{self.config.max_range_days} days",
                {"start_date": request.start_date, "end_date": request.end_date},
            )

        days = date_range(request.start_date, request.end_date)
        response = ChartResponse(
            timezone=request.timezone,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        if not days:
            logger.debug("Empty chart range", start_date=request.start_date, end_date=request.end_date)
            return response

        # Query window spans the zone-local days, not UTC days
        range_start = self.resolver.to_utc(f"{request.start_date} 00:00:00", zone)
        range_end = self.resolver.to_utc(f"{request.end_date} 23:59:59", zone)

        logger.debug(
            "Resolved chart range",
            timezone=zone.identifier,
            start_date=request.start_date,
            end_date=request.end_date,
            range_start_utc=range_start,
            range_end_utc=range_end
        )

        samples = await self.repository.find_by_user_type_and_time_range(
            request.user_id, request.type, range_start, range_end
        )
        latest = self.aggregator.latest_per_day(samples, zone)

        response.data = self._fill_days(days, latest, unit, zone)

        logger.debug(
            "Built chart series",
            user_id=request.user_id,
            type=request.type.value,
            samples=len(samples),
            days=len(days),
            days_with_data=sum(1 for day in days if day in latest)
        )

        return response

    def _fill_days(self, days, latest, unit: Unit, zone: Timezone) -> List[ChartPoint]:
        points = []
        for day in days:
            sample = latest.get(day)
            if sample is not None:
                points.append(ChartPoint(
                    date=day,
                    value=self.converter.to_display(unit, unit.type, sample.value),
                    unit=unit.identifier,
                    timestamp=sample.timestamp,
                ))
            else:
                points.append(ChartPoint(
                    date=day,
                    value=0,
                    unit=unit.identifier,
                    timestamp=self.resolver.to_utc(f"{day} 00:00:00", zone),
                ))
        return points
