from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from metric_tracker.api import create_app
from metric_tracker.core import MetricService, TimezoneResolver, UnitConverter
from metric_tracker.data import InMemoryMetricRepository, MetricRepository, SQLiteMetricRepository
from metric_tracker.errors import InfrastructureError
from metric_tracker.models import DatabaseConfig, Metric, MetricType, ServiceConfig, StorageBackend

# 2023-12-13 00:00:00 UTC
DEC_13 = 1702425600
HOUR = 3600
DAY = 86400


class RecordingRepository(InMemoryMetricRepository):
    """In-memory repository that records which storage calls were made."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[str] = []

    async def save(self, metric: Metric) -> Metric:
        self.calls.append("save")
        return await super().save(metric)

    async def find_by_user_and_type(self, user_id, metric_type):
        self.calls.append("find_by_user_and_type")
        return await super().find_by_user_and_type(user_id, metric_type)

    async def find_by_user_type_and_time_range(self, user_id, metric_type, start, end):
        self.calls.append("find_by_user_type_and_time_range")
        return await super().find_by_user_type_and_time_range(user_id, metric_type, start, end)


class FailingRepository(MetricRepository):
    """Repository whose every call fails like an unreachable database."""

    async def save(self, metric):
        raise InfrastructureError("database unavailable")

    async def find_by_id(self, metric_id, user_id):
        raise InfrastructureError("database unavailable")

    async def find_by_user_and_type(self, user_id, metric_type):
        raise InfrastructureError("database unavailable")

    async def find_by_user_type_and_time_range(self, user_id, metric_type, start, end):
        raise InfrastructureError("database unavailable")

    async def delete(self, metric_id, user_id):
        raise InfrastructureError("database unavailable")


def make_metric(
    value: float,
    timestamp: int,
    metric_id: Optional[str] = None,
    user_id: str = "user123",
    metric_type: MetricType = MetricType.DISTANCE,
    original_unit: str = "meter",
) -> Metric:
    return Metric(
        id=metric_id or f"m-{timestamp}-{value}",
        user_id=user_id,
        type=metric_type,
        value=value,
        original_unit=original_unit,
        timestamp=timestamp,
        created_at=datetime(2023, 12, 20, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def resolver() -> TimezoneResolver:
    return TimezoneResolver()


@pytest.fixture
def converter() -> UnitConverter:
    return UnitConverter()


@pytest.fixture
def memory_config() -> ServiceConfig:
    return ServiceConfig(storage=StorageBackend.MEMORY)


@pytest.fixture
def repository() -> RecordingRepository:
    return RecordingRepository()


@pytest.fixture
def service(memory_config: ServiceConfig, repository: RecordingRepository) -> MetricService:
    return MetricService(memory_config, repository=repository)


@pytest_asyncio.fixture
async def sqlite_repository(tmp_path):
    repo = SQLiteMetricRepository(DatabaseConfig(path=tmp_path / "metrics.db"))
    await repo.initialize()
    yield repo
    await repo.close()


@pytest.fixture
def client(memory_config: ServiceConfig):
    app = create_app(memory_config, repository=InMemoryMetricRepository())
    with TestClient(app) as test_client:
        yield test_client
