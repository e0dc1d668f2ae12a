from __future__ import annotations

import pytest

from metric_tracker.core import MetricService
from metric_tracker.errors import (
    InfrastructureError,
    InvalidDateFormat,
    InvalidMetric,
    InvalidTimezone,
    InvalidUnit,
)
from metric_tracker.models import (
    AddMetricRequest,
    ChartRequest,
    ListMetricsRequest,
    MetricType,
    ServiceConfig,
    StorageBackend,
)
from metric_tracker.data import InMemoryMetricRepository, SQLiteMetricRepository

from conftest import DEC_13, HOUR, FailingRepository, RecordingRepository


def add_request(**overrides) -> AddMetricRequest:
    fields = {
        "user_id": "user123",
        "type": MetricType.DISTANCE,
        "value": 100,
        "unit": "meter",
        "date": "2023-12-13 10:30:00",
        "timezone": "UTC",
    }
    fields.update(overrides)
    return AddMetricRequest(**fields)


@pytest.mark.asyncio
async def test_add_metric_stores_base_unit_and_echoes_input(
    service: MetricService, repository: RecordingRepository
) -> None:
    response = await service.add_metric(add_request(value=150, unit="centimeter"))

    assert response.value == 150
    assert response.unit == "centimeter"
    assert response.original_unit == "centimeter"
    assert response.timestamp == DEC_13 + 10 * HOUR + 1800
    assert response.date == "2023-12-13 10:30:00"
    assert response.created_at.endswith("Z")

    stored = await repository.find_by_id(response.id, "user123")
    assert stored.value == pytest.approx(1.5)
    assert stored.original_unit == "centimeter"


@pytest.mark.asyncio
async def test_add_metric_in_new_york(service: MetricService, repository: RecordingRepository) -> None:
    response = await service.add_metric(add_request(timezone="America/New_York"))

    assert response.timestamp == DEC_13 + 15 * HOUR + 1800
    assert response.date == "2023-12-13 10:30:00"


@pytest.mark.asyncio
async def test_add_temperature_keeps_kelvin(service: MetricService, repository: RecordingRepository) -> None:
    response = await service.add_metric(add_request(
        type=MetricType.TEMPERATURE, value=25, unit="celsius"
    ))

    assert response.value == 25
    stored = await repository.find_by_id(response.id, "user123")
    assert stored.value == pytest.approx(298.15)


@pytest.mark.asyncio
async def test_each_metric_gets_a_fresh_id(service: MetricService) -> None:
    first = await service.add_metric(add_request())
    second = await service.add_metric(add_request())

    assert first.id != second.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"unit": "invalid-unit"}, InvalidUnit),
        ({"unit": "celsius"}, InvalidUnit),
        ({"timezone": "invalid-timezone"}, InvalidTimezone),
        ({"timezone": "Invalid/Timezone"}, InvalidTimezone),
        ({"date": "invalid-date"}, InvalidDateFormat),
        ({"value": -5}, InvalidMetric),
        ({"value": float("nan")}, InvalidMetric),
    ],
)
async def test_add_metric_rejects_bad_input_without_saving(
    service: MetricService, repository: RecordingRepository, overrides, error
) -> None:
    with pytest.raises(error):
        await service.add_metric(add_request(**overrides))

    assert repository.calls == []


@pytest.mark.asyncio
async def test_negative_celsius_is_accepted(service: MetricService) -> None:
    response = await service.add_metric(add_request(
        type=MetricType.TEMPERATURE, value=-10, unit="celsius"
    ))

    assert response.value == -10


@pytest.mark.asyncio
async def test_negative_kelvin_is_rejected(service: MetricService) -> None:
    with pytest.raises(InvalidMetric, match="Value cannot be negative"):
        await service.add_metric(add_request(type=MetricType.TEMPERATURE, value=-1, unit="kelvin"))


@pytest.mark.asyncio
async def test_list_metrics_most_recent_first(service: MetricService) -> None:
    await service.add_metric(add_request(value=100, date="2023-12-13 10:30:00"))
    await service.add_metric(add_request(value=200, date="2023-12-14 10:30:00"))
    await service.add_metric(add_request(value=5, type=MetricType.TEMPERATURE, unit="kelvin"))
    await service.add_metric(add_request(value=7, user_id="other"))

    result = await service.list_metrics(ListMetricsRequest(user_id="user123", type=MetricType.DISTANCE))

    assert [m.value for m in result] == [200, 100]
    assert all(m.unit == "meter" for m in result)
    assert result[0].date == "2023-12-14T10:30:00.000Z"


@pytest.mark.asyncio
async def test_list_metrics_in_display_unit_and_zone(service: MetricService) -> None:
    await service.add_metric(add_request(value=150, unit="meter"))

    result = await service.list_metrics(ListMetricsRequest(
        user_id="user123", type=MetricType.DISTANCE, unit="centimeter", timezone="Asia/Tokyo"
    ))

    assert result[0].value == 15000
    assert result[0].unit == "centimeter"
    assert result[0].original_unit == "meter"
    assert result[0].date == "2023-12-13 19:30:00"


@pytest.mark.asyncio
async def test_list_metrics_rejects_unit_of_other_type(
    service: MetricService, repository: RecordingRepository
) -> None:
    with pytest.raises(InvalidUnit):
        await service.list_metrics(ListMetricsRequest(
            user_id="user123", type=MetricType.DISTANCE, unit="kelvin"
        ))
    assert repository.calls == []


@pytest.mark.asyncio
async def test_list_metrics_for_unknown_user_is_empty(service: MetricService) -> None:
    result = await service.list_metrics(ListMetricsRequest(user_id="nobody", type=MetricType.DISTANCE))
    assert result == []


@pytest.mark.asyncio
async def test_chart_through_service(service: MetricService) -> None:
    await service.add_metric(add_request(value=100, date="2023-12-13 10:30:00"))
    await service.add_metric(add_request(value=150, date="2023-12-13 15:30:00"))
    await service.add_metric(add_request(value=300, date="2023-12-14 12:00:00"))

    result = await service.get_chart_data(ChartRequest(
        user_id="user123",
        type=MetricType.DISTANCE,
        start_date="2023-12-13",
        end_date="2023-12-16",
        timezone="UTC",
    ))

    assert [(p.date, p.value) for p in result.data] == [
        ("2023-12-13", 150),
        ("2023-12-14", 300),
        ("2023-12-15", 0),
        ("2023-12-16", 0),
    ]


@pytest.mark.asyncio
async def test_get_and_delete_metric(service: MetricService) -> None:
    added = await service.add_metric(add_request(value=3, unit="yard"))

    fetched = await service.get_metric(added.id, "user123", unit="feet")
    assert fetched.value == 9
    assert fetched.unit == "feet"

    assert await service.get_metric(added.id, "intruder") is None
    assert not await service.delete_metric(added.id, "intruder")
    assert await service.delete_metric(added.id, "user123")
    assert await service.get_metric(added.id, "user123") is None
    assert not await service.delete_metric(added.id, "user123")


@pytest.mark.asyncio
async def test_storage_failure_propagates(memory_config: ServiceConfig) -> None:
    service = MetricService(memory_config, repository=FailingRepository())

    with pytest.raises(InfrastructureError):
        await service.add_metric(add_request())
    with pytest.raises(InfrastructureError):
        await service.list_metrics(ListMetricsRequest(user_id="user123", type=MetricType.DISTANCE))


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(service: MetricService) -> None:
    await service.start()
    await service.start()
    await service.stop()
    await service.stop()


def test_configured_backend_is_used(tmp_path) -> None:
    memory = MetricService(ServiceConfig(storage=StorageBackend.MEMORY))
    assert isinstance(memory.repository, InMemoryMetricRepository)

    config = ServiceConfig()
    config.database.path = tmp_path / "metrics.db"
    sqlite = MetricService(config)
    assert isinstance(sqlite.repository, SQLiteMetricRepository)


def test_empty_injected_repository_is_used(memory_config: ServiceConfig) -> None:
    repo = InMemoryMetricRepository()
    service = MetricService(ServiceConfig(), repository=repo)

    assert service.repository is repo
    assert MetricService(memory_config, repository=repo).chart_builder.repository is repo


@pytest.mark.asyncio
async def test_latest_reading_of_the_day_through_service(service: MetricService) -> None:
    await service.add_metric(add_request(value=100, date="2023-12-13T10:30:00Z"))
    await service.add_metric(add_request(value=200, date="2023-12-13T11:30:00Z"))
    await service.add_metric(add_request(value=150, date="2023-12-13T18:30:00Z"))

    result = await service.get_chart_data(ChartRequest(
        user_id="user123",
        type=MetricType.DISTANCE,
        start_date="2023-12-13",
        end_date="2023-12-13",
        timezone="UTC",
    ))

    assert [(p.date, p.value) for p in result.data] == [("2023-12-13", 150)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"timezone": "invalid-timezone"}, InvalidTimezone),
        ({"timezone": "Invalid/Timezone"}, InvalidTimezone),
        ({"unit": "celsius"}, InvalidUnit),
    ],
)
async def test_chart_rejects_bad_input_without_storage(
    service: MetricService, repository: RecordingRepository, overrides, error
) -> None:
    fields = {
        "user_id": "user123",
        "type": MetricType.DISTANCE,
        "start_date": "2023-12-13",
        "end_date": "2023-12-16",
        "timezone": "UTC",
    }
    fields.update(overrides)

    with pytest.raises(error):
        await service.get_chart_data(ChartRequest(**fields))

    assert repository.calls == []


@pytest.mark.asyncio
async def test_list_metrics_rejects_unknown_zone_without_storage(
    service: MetricService, repository: RecordingRepository
) -> None:
    with pytest.raises(InvalidTimezone):
        await service.list_metrics(ListMetricsRequest(
            user_id="user123", type=MetricType.DISTANCE, timezone="Invalid/Timezone"
        ))
    assert repository.calls == []


@pytest.mark.asyncio
async def test_huge_value_is_recorded_and_listed(service: MetricService, repository: RecordingRepository) -> None:
    response = await service.add_metric(add_request(value=1e22))

    assert response.value == 1e22
    listed = await service.list_metrics(ListMetricsRequest(user_id="user123", type=MetricType.DISTANCE))
    assert [m.value for m in listed] == [1e22]

