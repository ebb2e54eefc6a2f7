from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from report_app.api.v1.departments.schemas import DepartmentRef


class MasterTaskCreate(BaseModel):
    department_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    estimated_duration: Optional[int] = Field(None, ge=0, description="Estimated duration in weeks")
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "MasterTaskCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class MasterTaskUpdate(BaseModel):
    """Full replace of the editable fields; omitted dates are cleared. department_id is not editable."""

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "MasterTaskUpdate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class WeekRefSchema(BaseModel):
    week_number: int
    year: int


class WeeklyProgressPointSchema(BaseModel):
    week_number: int
    year: int
    progress: int
    result: Optional[str] = None
    start_date: Optional[date] = None


class MasterTaskResponse(BaseModel):
    id: UUID
    department_id: UUID
    name: str
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    department: DepartmentRef


class MasterTaskSummary(MasterTaskResponse):
    """Task with derived status. Series fields are only filled when progress was requested."""

    latest_progress: int = 0
    is_completed: bool = False
    week_count: int = 0
    weekly_progress: Optional[List[WeeklyProgressPointSchema]] = None
    first_week: Optional[WeekRefSchema] = None
    last_week: Optional[WeekRefSchema] = None


class ProgressWeekInfo(BaseModel):
    id: UUID
    week_number: int
    year: int
    start_date: date
    end_date: date


class ProgressHistoryItem(BaseModel):
    id: UUID
    week_id: UUID
    order_number: int
    result: str
    time_period: str
    progress: Optional[int] = None
    next_week_plan: str
    is_important: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    week: ProgressWeekInfo


class MasterTaskDetail(MasterTaskSummary):
    progress_history: List[ProgressHistoryItem] = Field(default_factory=list)
