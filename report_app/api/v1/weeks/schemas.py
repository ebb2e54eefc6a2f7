"""Week report schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.core.enums import WeekStatus


# ----- Submitted entries -----
class TaskProgressEntry(BaseModel):
    master_task_id: UUID
    order_number: int
    result: str = ""
    time_period: str = ""
    progress: Optional[int] = Field(None, ge=0, le=100, description="Omit or null when nothing quantitative was reported")
    next_week_plan: str = ""
    is_important: bool = False


class AdHocTaskEntry(BaseModel):
    department_id: UUID
    order_number: int
    task_name: str = Field(..., min_length=1)
    result: str = ""
    time_period: str = ""
    progress: Optional[int] = Field(None, ge=0, le=100)
    next_week_plan: str = ""
    is_important: bool = False


def _check_unique_tasks(entries: Optional[List[TaskProgressEntry]]) -> None:
    if not entries:
        return
    seen = set()
    for entry in entries:
        if entry.master_task_id in seen:
            raise ValueError(f"master task {entry.master_task_id} appears more than once in task_progress")
        seen.add(entry.master_task_id)


# ----- Week -----
class WeekCreate(BaseModel):
    week_number: int = Field(..., ge=1, le=53)
    year: int = Field(..., ge=2000)
    start_date: date
    end_date: date
    report_file_url: Optional[str] = None
    status: WeekStatus = WeekStatus.DRAFT
    task_progress: Optional[List[TaskProgressEntry]] = None
    tasks: Optional[List[AdHocTaskEntry]] = None

    @model_validator(mode="after")
    def validate_week(self) -> "WeekCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        _check_unique_tasks(self.task_progress)
        return self


class WeekUpdate(BaseModel):
    """
    Partial update. When task_progress is present it is the complete new set for
    the week (replaces every existing progress row). An explicit null
    report_file_url clears it; omitting it leaves it unchanged.
    """

    week_number: Optional[int] = Field(None, ge=1, le=53)
    year: Optional[int] = Field(None, ge=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    report_file_url: Optional[str] = None
    status: Optional[WeekStatus] = None
    task_progress: Optional[List[TaskProgressEntry]] = None

    @model_validator(mode="after")
    def validate_week(self) -> "WeekUpdate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        _check_unique_tasks(self.task_progress)
        return self


class WeekResponse(BaseModel):
    id: UUID
    week_number: int
    year: int
    start_date: date
    end_date: date
    status: WeekStatus
    report_file_url: Optional[str] = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class WeekListItem(WeekResponse):
    department_count: int = 0
    task_count: int = 0


# ----- Rows -----
class MasterTaskRef(BaseModel):
    id: UUID
    name: str
    department: DepartmentRef


class TaskProgressResponse(BaseModel):
    id: UUID
    week_id: UUID
    master_task_id: UUID
    order_number: int
    result: str
    time_period: str
    progress: Optional[int] = None
    next_week_plan: str
    is_important: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    master_task: MasterTaskRef


class AdHocTaskResponse(BaseModel):
    id: UUID
    week_id: UUID
    department_id: UUID
    order_number: int
    task_name: str
    result: str
    time_period: str
    progress: Optional[int] = None
    next_week_plan: str
    is_important: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    department: DepartmentRef


class WeekWithProgress(WeekResponse):
    task_progress: List[TaskProgressResponse] = Field(default_factory=list)


class DepartmentTaskItem(BaseModel):
    """Recurring progress row or ad-hoc task, flattened for the per-department report view."""

    id: UUID
    kind: str  # RECURRING | AD_HOC
    master_task_id: Optional[UUID] = None
    task_name: str
    order_number: int
    result: str
    time_period: str
    progress: Optional[int] = None
    next_week_plan: str
    is_important: bool
    completed_at: Optional[datetime] = None


class DepartmentTaskGroup(BaseModel):
    department: DepartmentRef
    tasks: List[DepartmentTaskItem] = Field(default_factory=list)


class WeekAuthor(BaseModel):
    id: UUID
    name: str
    email: str


class WeekDetail(WeekWithProgress):
    tasks: List[AdHocTaskResponse] = Field(default_factory=list)
    created_by: Optional[WeekAuthor] = None
    tasks_by_department: List[DepartmentTaskGroup] = Field(default_factory=list)
