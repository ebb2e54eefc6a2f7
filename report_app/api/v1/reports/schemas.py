from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.api.v1.master_tasks.schemas import WeeklyProgressPointSchema
from report_app.api.v1.weeks.schemas import WeekListItem


class ReportTaskItem(BaseModel):
    id: UUID
    name: str
    department: DepartmentRef
    latest_progress: int
    is_completed: bool
    week_count: int


class OverviewResponse(BaseModel):
    total_departments: int
    total_master_tasks: int
    tasks_in_progress: int
    tasks_completed: int
    recent_weeks: List[WeekListItem]
    important_tasks: List[ReportTaskItem]


class StatusCountsSchema(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    not_started_tasks: int
    avg_progress: int
    total_weeks: int
    avg_weeks_per_task: int
    completion_rate: int


class DepartmentMetrics(StatusCountsSchema):
    department: DepartmentRef


class MonthlyMetrics(BaseModel):
    month: int = Field(..., ge=1, le=12)
    tasks_started: int
    tasks_completed: int
    avg_progress: int


class TaskMetricsResponse(BaseModel):
    year: int
    overall: StatusCountsSchema
    departments: List[DepartmentMetrics]
    monthly: List[MonthlyMetrics]
    top_departments: List[DepartmentMetrics]
    top_tasks: List[ReportTaskItem]


class TimelineTask(ReportTaskItem):
    points: List[WeeklyProgressPointSchema]


class TimelineDepartment(BaseModel):
    department: DepartmentRef
    tasks: List[TimelineTask]


class QuarterSummary(BaseModel):
    name: str
    first_week: int
    last_week: int
    task_count: int
    avg_progress: int


class TimelineResponse(BaseModel):
    year: int
    departments: List[TimelineDepartment]
    quarters: List[QuarterSummary]


class MatrixWeek(BaseModel):
    id: UUID
    week_number: int
    year: int
    start_date: date
    end_date: date


class MatrixCell(BaseModel):
    week_id: UUID
    value: Optional[float] = None
    note: Optional[str] = None


class MatrixMetricRow(BaseModel):
    metric_id: UUID
    name: str
    unit: Optional[str] = None
    department: DepartmentRef
    cells: List[MatrixCell]


class MetricsDataResponse(BaseModel):
    year: int
    value_count: int
    weeks: List[MatrixWeek]
    rows: List[MatrixMetricRow]
