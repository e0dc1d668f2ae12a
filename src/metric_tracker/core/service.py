"""Main metric tracking service."""

from datetime import datetime
from typing import List, Optional
import structlog

from ..models.config import ServiceConfig, StorageBackend
from ..models.metric import Metric
from ..models.requests import (
    AddMetricRequest,
    ChartRequest,
    ChartResponse,
    ListMetricsRequest,
    MetricResponse,
)
from ..data import InMemoryMetricRepository, MetricRepository, SQLiteMetricRepository
from .chart import ChartBuilder
from .recorder import MetricRecorder
from .timezone_utils import UTC_TZ, Timezone, TimezoneResolver
from .units import Unit, UnitConverter

logger = structlog.get_logger()


def create_repository(config: ServiceConfig) -> MetricRepository:
    """Create the repository selected by the configuration."""
    if config.storage == StorageBackend.MEMORY:
        return InMemoryMetricRepository()
    return SQLiteMetricRepository(config.database)


def _iso_utc(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision and ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC_TZ)
    return value.astimezone(UTC_TZ).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MetricService:
    """Records, lists and charts metrics over one repository."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        repository: Optional[MetricRepository] = None,
        resolver: Optional[TimezoneResolver] = None
    ):
        """Initialize the service."""
        self.config = config or ServiceConfig()
        self.repository = repository if repository is not None else create_repository(self.config)
        self.resolver = resolver or TimezoneResolver()
        self.converter = UnitConverter()
        self.recorder = MetricRecorder(self.resolver, self.converter)
        self.chart_builder = ChartBuilder(
            self.repository,
            resolver=self.resolver,
            converter=self.converter,
            config=self.config.chart
        )
        self._running = False

        logger.info(
            "Metric service initialized",
            storage=type(self.repository).__name__,
            max_chart_days=self.config.chart.max_range_days
        )

    async def start(self) -> None:
        """Start the service."""
        if self._running:
            logger.warning("Service is already running")
            return

        await self.repository.initialize()
        self._running = True
        logger.info("Metric service started")

    async def stop(self) -> None:
        """Stop the service."""
        if not self._running:
            return

        self._running = False
        await self.repository.close()
        logger.info("Metric service stopped")

    async def add_metric(self, request: AddMetricRequest) -> MetricResponse:
        """Record a metric and echo it back in the unit and zone it was given in."""
        metric = self.recorder.record(request)
        # Nothing is saved unless the response can be built
        response = self._to_response(metric, Unit(metric.original_unit, metric.type), Timezone(request.timezone))
        saved = await self.repository.save(metric)

        logger.info(
            "Metric recorded",
            metric_id=saved.id,
            user_id=saved.user_id,
            type=saved.type.value,
            original_unit=saved.original_unit,
            timestamp=saved.timestamp
        )

        return response

    async def list_metrics(self, request: ListMetricsRequest) -> List[MetricResponse]:
        """List a user's metrics of one type, converted to the display unit."""
        unit = Unit(request.unit or self.converter.base_unit_of(request.type), request.type)
        zone = self._optional_zone(request.timezone)

        metrics = await self.repository.find_by_user_and_type(request.user_id, request.type)

        logger.debug(
            "Listed metrics",
            user_id=request.user_id,
            type=request.type.value,
            count=len(metrics),
            unit=unit.identifier
        )

        return [self._to_response(m, unit, zone) for m in metrics]

    async def get_chart_data(self, request: ChartRequest) -> ChartResponse:
        """Build a gap-filled daily chart series."""
        return await self.chart_builder.build(request)

    async def get_metric(
        self,
        metric_id: str,
        user_id: str,
        unit: Optional[str] = None,
        timezone: Optional[str] = None
    ) -> Optional[MetricResponse]:
        """Get one of a user's metrics, or None if it does not exist."""
        zone = self._optional_zone(timezone)
        metric = await self.repository.find_by_id(metric_id, user_id)
        if metric is None:
            return None
        display = Unit(unit or self.converter.base_unit_of(metric.type), metric.type)
        return self._to_response(metric, display, zone)

    async def delete_metric(self, metric_id: str, user_id: str) -> bool:
        """Delete one of a user's metrics. Returns whether it existed."""
        deleted = await self.repository.delete(metric_id, user_id)
        logger.info("Metric delete requested", metric_id=metric_id, user_id=user_id, deleted=deleted)
        return deleted

    def _optional_zone(self, identifier: Optional[str]) -> Optional[Timezone]:
        if identifier is None:
            return None
        zone = Timezone(identifier)
        self.resolver.resolve(zone)
        return zone

    def _to_response(self, metric: Metric, unit: Unit, zone: Optional[Timezone]) -> MetricResponse:
        if zone is None:
            date = _iso_utc(datetime.fromtimestamp(metric.timestamp, tz=UTC_TZ))
        else:
            date = self.resolver.from_utc(metric.timestamp, zone)

        return MetricResponse(
            id=metric.id,
            user_id=metric.user_id,
            type=metric.type,
            value=self.converter.to_display(unit, metric.type, metric.value),
            unit=unit.identifier,
            original_unit=metric.original_unit,
            timestamp=metric.timestamp,
            date=date,
            created_at=_iso_utc(metric.created_at),
        )
