"""In-process metric storage."""

import asyncio
from typing import Dict, List, Optional
import structlog

from ..models.metric import Metric, MetricType
from .repository import MetricRepository

logger = structlog.get_logger()


class InMemoryMetricRepository(MetricRepository):
    """Keeps metrics in a dict. Contents are lost when the process exits."""

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = asyncio.Lock()

    async def save(self, metric: Metric) -> Metric:
        async with self._lock:
            self._metrics[metric.id] = metric
        return metric

    async def find_by_id(self, metric_id: str, user_id: str) -> Optional[Metric]:
        metric = self._metrics.get(metric_id)
        if metric is None or not metric.belongs_to(user_id):
            return None
        return metric

    async def find_by_user_and_type(self, user_id: str, metric_type: MetricType) -> List[Metric]:
        matches = [
            m for m in self._metrics.values()
            if m.belongs_to(user_id) and m.type == metric_type
        ]
        return sorted(matches, key=lambda m: m.timestamp, reverse=True)

    async def find_by_user_type_and_time_range(
        self,
        user_id: str,
        metric_type: MetricType,
        start_timestamp: int,
        end_timestamp: int
    ) -> List[Metric]:
        matches = [
            m for m in self._metrics.values()
            if m.belongs_to(user_id)
            and m.type == metric_type
            and m.is_within_range(start_timestamp, end_timestamp)
        ]
        return sorted(matches, key=lambda m: m.timestamp)

    async def delete(self, metric_id: str, user_id: str) -> bool:
        async with self._lock:
            metric = self._metrics.get(metric_id)
            if metric is None or not metric.belongs_to(user_id):
                return False
            del self._metrics[metric_id]
        logger.debug("Deleted metric", metric_id=metric_id, user_id=user_id)
        return True

    def __len__(self) -> int:
        return len(self._metrics)
