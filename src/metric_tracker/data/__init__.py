"""Data access layer for the metric tracking service."""

from .repository import MetricRepository, SQLiteMetricRepository
from .memory import InMemoryMetricRepository

__all__ = ["MetricRepository", "SQLiteMetricRepository", "InMemoryMetricRepository"]
