from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from report_app.api.v1.metrics.schemas import MetricResponse


class WeekMetricValueUpsert(BaseModel):
    metric_id: UUID
    week_id: UUID
    value: float
    note: Optional[str] = None


class ValueWeekInfo(BaseModel):
    id: UUID
    week_number: int
    year: int
    start_date: date
    end_date: date


class WeekMetricValueResponse(BaseModel):
    id: UUID
    metric_id: UUID
    week_id: UUID
    value: float
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    metric: MetricResponse
    week: ValueWeekInfo
