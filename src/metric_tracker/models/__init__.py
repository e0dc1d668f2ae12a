"""Data models and types for the metric tracking service."""

from .metric import (
    ChartPoint,
    DistanceUnit,
    Metric,
    MetricType,
    MetricUnit,
    TemperatureUnit,
)
from .requests import (
    AddMetricRequest,
    ChartRequest,
    ChartResponse,
    ListMetricsRequest,
    MetricResponse,
)
from .config import ApiConfig, ChartConfig, DatabaseConfig, ServiceConfig, StorageBackend

__all__ = [
    "ChartPoint",
    "DistanceUnit",
    "Metric",
    "MetricType",
    "MetricUnit",
    "TemperatureUnit",
    "AddMetricRequest",
    "ChartRequest",
    "ChartResponse",
    "ListMetricsRequest",
    "MetricResponse",
    "ApiConfig",
    "ChartConfig",
    "DatabaseConfig",
    "ServiceConfig",
    "StorageBackend",
]
