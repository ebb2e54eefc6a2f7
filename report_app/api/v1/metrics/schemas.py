from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from report_app.api.v1.departments.schemas import DepartmentRef


class MetricCreate(BaseModel):
    department_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    unit: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    order_number: int = 0


class MetricUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    unit: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    order_number: Optional[int] = None
    is_active: Optional[bool] = None


class MetricResponse(BaseModel):
    id: UUID
    department_id: UUID
    name: str
    unit: Optional[str] = None
    description: Optional[str] = None
    order_number: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    department: DepartmentRef


class MetricListItem(MetricResponse):
    value_count: int = 0


class MetricWeekInfo(BaseModel):
    id: UUID
    week_number: int
    year: int
    start_date: date


class MetricValueItem(BaseModel):
    id: UUID
    value: float
    note: Optional[str] = None
    week: MetricWeekInfo


class MetricDetail(MetricResponse):
    recent_values: List[MetricValueItem] = Field(default_factory=list)
