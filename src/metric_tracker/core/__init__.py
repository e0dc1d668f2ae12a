"""Core metric tracking components."""

from .service import MetricService, create_repository
from .recorder import MetricRecorder
from .chart import ChartBuilder
from .aggregator import DailyAggregator, date_range
from .units import Unit, UnitConverter, round_display
from .timezone_utils import (
    Timezone,
    TimezoneResolver,
    is_valid_identifier,
    parse_date,
    parse_datetime,
    UTC_TZ
)
from .log_config import configure_logging

__all__ = [
    "MetricService",
    "create_repository",
    "MetricRecorder",
    "ChartBuilder",
    "DailyAggregator",
    "date_range",
    "Unit",
    "UnitConverter",
    "round_display",
    "Timezone",
    "TimezoneResolver",
    "is_valid_identifier",
    "parse_date",
    "parse_datetime",
    "UTC_TZ",
    "configure_logging"
]
