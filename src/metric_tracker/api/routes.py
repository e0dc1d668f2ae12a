"""
Metrics API Router
==================

GET    /api/metrics              - List a user's metrics of one type
POST   /api/metrics              - Record a metric
GET    /api/metrics/chart        - Daily chart series for a date range
GET    /api/metrics/{metric_id}  - Get one metric
DELETE /api/metrics/{metric_id}  - Delete one metric
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..core import MetricService
from ..models import AddMetricRequest, ChartRequest, ListMetricsRequest, MetricType

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def get_metric_service(request: Request) -> MetricService:
    """Get the service created by the application lifespan."""
    service = getattr(request.app.state, "metric_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Server not fully started yet")
    return service


@router.post("", status_code=201)
async def add_metric(
    payload: AddMetricRequest,
    service: MetricService = Depends(get_metric_service)
):
    """Record a metric given in any unit of its type and any timezone."""
    result = await service.add_metric(payload)
    return {
        "success": True,
        "message": "Metric added successfully",
        "data": result.model_dump(by_alias=True, mode="json"),
    }


@router.get("")
async def list_metrics(
    user_id: str = Query(..., alias="userId", min_length=1),
    metric_type: MetricType = Query(..., alias="type"),
    unit: Optional[str] = Query(None),
    timezone: Optional[str] = Query(None),
    service: MetricService = Depends(get_metric_service)
):
    """List a user's metrics converted to the requested unit."""
    result = await service.list_metrics(ListMetricsRequest(
        user_id=user_id,
        type=metric_type,
        unit=unit,
        timezone=timezone,
    ))
    return {
        "success": True,
        "message": "Metrics retrieved successfully",
        "data": [m.model_dump(by_alias=True, mode="json") for m in result],
        "count": len(result),
    }


@router.get("/chart")
async def get_chart_data(
    user_id: str = Query(..., alias="userId", min_length=1),
    metric_type: MetricType = Query(..., alias="type"),
    start_date: str = Query(..., alias="startDate", min_length=1),
    end_date: str = Query(..., alias="endDate", min_length=1),
    timezone: str = Query(..., min_length=1),
    unit: Optional[str] = Query(None),
    service: MetricService = Depends(get_metric_service)
):
    """Get one value per local calendar day, with empty days as zero."""
    result = await service.get_chart_data(ChartRequest(
        user_id=user_id,
        type=metric_type,
        start_date=start_date,
        end_date=end_date,
        timezone=timezone,
        unit=unit,
    ))
    return {
        "success": True,
        "message": "Chart data retrieved successfully",
        "data": result.model_dump(by_alias=True, mode="json"),
    }


@router.get("/{metric_id}")
async def get_metric(
    metric_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    unit: Optional[str] = Query(None),
    timezone: Optional[str] = Query(None),
    service: MetricService = Depends(get_metric_service)
):
    """Get one metric owned by the user."""
    result = await service.get_metric(metric_id, user_id, unit=unit, timezone=timezone)
    if result is None:
        raise HTTPException(status_code=404, detail="Metric not found")
    return {
        "success": True,
        "message": "Metric retrieved successfully",
        "data": result.model_dump(by_alias=True, mode="json"),
    }


@router.delete("/{metric_id}")
async def delete_metric(
    metric_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: MetricService = Depends(get_metric_service)
):
    """Delete one metric owned by the user."""
    if not await service.delete_metric(metric_id, user_id):
        raise HTTPException(status_code=404, detail="Metric not found")
    return {"success": True, "message": "Metric deleted successfully"}
