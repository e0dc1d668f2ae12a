"""Request and response models.

Field names are snake_case in Python and camelCase on the wire. Build
instances with either spelling; serialize with ``model_dump(by_alias=True)``.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from .metric import ChartPoint, MetricType


class AddMetricRequest(BaseModel):
    """Request for recording a new metric."""
    user_id: str = Field(..., alias="userId", min_length=1)
    type: MetricType
    value: float
    unit: str = Field(..., min_length=1, examples=["meter", "celsius"])
    date: str = Field(
        ...,
        min_length=1,
        description="ISO-8601 datetime or 'YYYY-MM-DD HH:MM:SS' wall-clock time",
        examples=["2023-12-13 10:30:00", "2023-12-13T10:30:00Z"],
    )
    timezone: str = Field(..., min_length=1, examples=["UTC", "America/New_York"])

    class Config:
        """Pydantic config."""
        populate_by_name = True


class ListMetricsRequest(BaseModel):
    """Request for listing a user's metrics of one type."""
    user_id: str = Field(..., alias="userId", min_length=1)
    type: MetricType
    unit: Optional[str] = Field(default=None, description="Display unit, base unit if omitted")
    timezone: Optional[str] = Field(default=None, description="Zone used to render dates")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class ChartRequest(BaseModel):
    """Request for a gap-filled daily chart series."""
    user_id: str = Field(..., alias="userId", min_length=1)
    type: MetricType
    start_date: str = Field(..., alias="startDate", min_length=1, examples=["2023-12-13"])
    end_date: str = Field(..., alias="endDate", min_length=1, examples=["2023-12-16"])
    timezone: str = Field(..., min_length=1)
    unit: Optional[str] = Field(default=None, description="Display unit, base unit if omitted")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class MetricResponse(BaseModel):
    """A metric rendered in a display unit."""
    id: str
    user_id: str = Field(..., alias="userId")
    type: MetricType
    value: float
    unit: str
    original_unit: str = Field(..., alias="originalUnit")
    timestamp: int
    date: str
    created_at: str = Field(..., alias="createdAt")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class ChartResponse(BaseModel):
    """A daily chart series with the echoed query range."""
    data: List[ChartPoint] = Field(default_factory=list)
    timezone: str
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")

    class Config:
        """Pydantic config."""
        populate_by_name = True
