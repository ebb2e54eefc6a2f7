"""Dashboard reports assembled from the master-task aggregates and metric values."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.api.v1.departments.service import list_departments
from report_app.api.v1.master_tasks.service import load_task_aggregates
from report_app.api.v1.master_tasks.schemas import WeeklyProgressPointSchema
from report_app.api.v1.weeks.service import list_weeks
from report_app.core import reporting
from report_app.core.models import MetricDefinition, Week, WeekMetricValue
from report_app.core.reporting import DepartmentStats, ReportTask, StatusCounts

from .schemas import (
    DepartmentMetrics,
    MatrixCell,
    MatrixMetricRow,
    MatrixWeek,
    MetricsDataResponse,
    MonthlyMetrics,
    OverviewResponse,
    QuarterSummary,
    ReportTaskItem,
    StatusCountsSchema,
    TaskMetricsResponse,
    TimelineDepartment,
    TimelineResponse,
    TimelineTask,
)

RECENT_WEEKS = 6


async def _report_tasks(
    db: AsyncSession,
    department_id: Optional[UUID] = None,
    include_progress: bool = True,
) -> List[ReportTask]:
    pairs = await load_task_aggregates(db, department_id, include_progress=include_progress)
    return [
        ReportTask(
            id=task.id,
            name=task.name,
            department_id=task.department_id,
            department_name=task.department.name,
            created_at=task.created_at,
            aggregate=agg,
        )
        for task, agg in pairs
    ]


def _task_item(t: ReportTask) -> ReportTaskItem:
    return ReportTaskItem(
        id=t.id,
        name=t.name,
        department=DepartmentRef(id=t.department_id, name=t.department_name),
        latest_progress=t.aggregate.latest_progress,
        is_completed=t.aggregate.is_completed,
        week_count=t.aggregate.week_count,
    )


def _counts_fields(c: StatusCounts) -> dict:
    return {
        "total_tasks": c.total,
        "completed_tasks": c.completed,
        "in_progress_tasks": c.in_progress,
        "not_started_tasks": c.not_started,
        "avg_progress": c.avg_progress,
        "total_weeks": c.total_weeks,
        "avg_weeks_per_task": c.avg_weeks_per_task,
        "completion_rate": c.completion_rate,
    }


def _department_metrics(s: DepartmentStats) -> DepartmentMetrics:
    return DepartmentMetrics(
        department=DepartmentRef(id=s.department_id, name=s.department_name),
        **_counts_fields(s.counts),
    )


async def get_overview(db: AsyncSession) -> OverviewResponse:
    departments = await list_departments(db)
    tasks = await _report_tasks(db, include_progress=False)
    weeks = await list_weeks(db)
    return OverviewResponse(
        total_departments=len(departments),
        total_master_tasks=len(tasks),
        tasks_in_progress=sum(1 for t in tasks if t.in_progress),
        tasks_completed=sum(1 for t in tasks if t.aggregate.is_completed),
        recent_weeks=weeks[:RECENT_WEEKS],
        important_tasks=[_task_item(t) for t in reporting.important_tasks(tasks)],
    )


async def get_task_metrics(
    db: AsyncSession,
    year: int,
    department_id: Optional[UUID] = None,
) -> TaskMetricsResponse:
    tasks = reporting.tasks_for_year(await _report_tasks(db, department_id), year)
    departments = [(d.id, d.name) for d in await list_departments(db)]
    if department_id is not None:
        departments = [d for d in departments if d[0] == department_id]
    stats = reporting.department_breakdown(departments, tasks)
    return TaskMetricsResponse(
        year=year,
        overall=StatusCountsSchema(**_counts_fields(reporting.count_statuses(tasks))),
        departments=[_department_metrics(s) for s in stats],
        monthly=[
            MonthlyMetrics(
                month=m.month,
                tasks_started=m.tasks_started,
                tasks_completed=m.tasks_completed,
                avg_progress=m.avg_progress,
            )
            for m in reporting.monthly_breakdown(tasks, year)
        ],
        top_departments=[_department_metrics(s) for s in reporting.top_departments(stats)],
        top_tasks=[_task_item(t) for t in reporting.top_tasks_by_progress(tasks)],
    )


async def get_timeline(
    db: AsyncSession,
    year: int,
    department_id: Optional[UUID] = None,
) -> TimelineResponse:
    tasks = reporting.timeline_tasks(await _report_tasks(db, department_id), year)
    groups = []
    for group in reporting.group_by_department(tasks, year):
        groups.append(
            TimelineDepartment(
                department=DepartmentRef(id=group.department_id, name=group.department_name),
                tasks=[
                    TimelineTask(
                        **_task_item(t).model_dump(),
                        points=[
                            WeeklyProgressPointSchema(
                                week_number=p.week_number,
                                year=p.year,
                                progress=p.progress,
                                result=p.result,
                                start_date=p.start_date,
                            )
                            for p in points
                        ],
                    )
                    for t, points in group.tasks
                ],
            )
        )
    return TimelineResponse(
        year=year,
        departments=groups,
        quarters=[
            QuarterSummary(
                name=q.name,
                first_week=q.first_week,
                last_week=q.last_week,
                task_count=q.task_count,
                avg_progress=q.avg_progress,
            )
            for q in reporting.quarter_summaries(tasks, year)
        ],
    )


async def get_metrics_data(
    db: AsyncSession,
    year: int,
    department_id: Optional[UUID] = None,
    metric_id: Optional[UUID] = None,
) -> MetricsDataResponse:
    stmt = (
        select(WeekMetricValue)
        .join(Week, Week.id == WeekMetricValue.week_id)
        .join(MetricDefinition, MetricDefinition.id == WeekMetricValue.metric_id)
        .options(
            selectinload(WeekMetricValue.week),
            selectinload(WeekMetricValue.metric).selectinload(MetricDefinition.department),
        )
        .where(Week.year == year, MetricDefinition.is_active.is_(True))
        .order_by(MetricDefinition.department_id, MetricDefinition.order_number, MetricDefinition.created_at)
    )
    if department_id is not None:
        stmt = stmt.where(MetricDefinition.department_id == department_id)
    if metric_id is not None:
        stmt = stmt.where(WeekMetricValue.metric_id == metric_id)
    result = await db.execute(stmt)
    values = result.scalars().all()

    matrix = reporting.build_metric_matrix(values)
    rows = []
    for metric, cells in matrix.rows:
        rows.append(
            MatrixMetricRow(
                metric_id=metric.id,
                name=metric.name,
                unit=metric.unit,
                department=DepartmentRef(id=metric.department.id, name=metric.department.name),
                cells=[
                    MatrixCell(
                        week_id=week_id,
                        value=cell.value if cell is not None else None,
                        note=cell.note if cell is not None else None,
                    )
                    for week_id, cell in cells.items()
                ],
            )
        )
    return MetricsDataResponse(
        year=year,
        value_count=len(values),
        weeks=[
            MatrixWeek(
                id=w.id,
                week_number=w.week_number,
                year=w.year,
                start_date=w.start_date,
                end_date=w.end_date,
            )
            for w in matrix.weeks
        ],
        rows=rows,
    )
