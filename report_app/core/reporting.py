"""
Dashboard report reductions.

Pure functions over tasks that already carry their progress aggregate (built
with include_series, so every task has its chronological weekly series).
Percentages and averages are rounded half-up to whole numbers.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from report_app.core.progress import TaskAggregate, WeeklyProgressPoint

QUARTERS: Tuple[Tuple[str, int, int], ...] = (
    ("Q1", 1, 13),
    ("Q2", 14, 26),
    ("Q3", 27, 39),
    ("Q4", 40, 53),
)

TOP_LIMIT = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ReportTask:
    id: UUID
    name: str
    department_id: UUID
    department_name: str
    created_at: datetime
    aggregate: TaskAggregate

    @property
    def points(self) -> List[WeeklyProgressPoint]:
        return self.aggregate.weekly_progress or []

    @property
    def in_progress(self) -> bool:
        return not self.aggregate.is_completed and self.aggregate.week_count > 0


@dataclass(frozen=True)
class StatusCounts:
    total: int
    completed: int
    in_progress: int
    not_started: int
    avg_progress: int
    total_weeks: int
    avg_weeks_per_task: int
    completion_rate: int


@dataclass(frozen=True)
class DepartmentStats:
    department_id: UUID
    department_name: str
    counts: StatusCounts


@dataclass(frozen=True)
class MonthlyStats:
    month: int
    tasks_started: int
    tasks_completed: int
    avg_progress: int


@dataclass
class TimelineGroup:
    department_id: UUID
    department_name: str
    tasks: List[Tuple[ReportTask, List[WeeklyProgressPoint]]] = field(default_factory=list)


@dataclass(frozen=True)
class QuarterStats:
    name: str
    first_week: int
    last_week: int
    task_count: int
    avg_progress: int


def count_statuses(tasks: Sequence[ReportTask]) -> StatusCounts:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.aggregate.is_completed)
    total_weeks = sum(t.aggregate.week_count for t in tasks)
    if total:
        avg_progress = round_half_up(sum(t.aggregate.latest_progress for t in tasks) / total)
        avg_weeks = round_half_up(total_weeks / total)
        completion_rate = round_half_up(completed / total * 100)
    else:
        avg_progress = avg_weeks = completion_rate = 0
    return StatusCounts(
        total=total,
        completed=completed,
        in_progress=sum(1 for t in tasks if t.in_progress),
        not_started=sum(1 for t in tasks if t.aggregate.week_count == 0),
        avg_progress=avg_progress,
        total_weeks=total_weeks,
        avg_weeks_per_task=avg_weeks,
        completion_rate=completion_rate,
    )


def important_tasks(tasks: Sequence[ReportTask], limit: int = TOP_LIMIT) -> List[ReportTask]:
    """In-progress tasks with the highest latest progress."""
    candidates = [t for t in tasks if t.in_progress]
    return sorted(candidates, key=lambda t: t.aggregate.latest_progress, reverse=True)[:limit]


def top_tasks_by_progress(tasks: Sequence[ReportTask], limit: int = TOP_LIMIT) -> List[ReportTask]:
    started = [t for t in tasks if t.aggregate.week_count > 0]
    return sorted(started, key=lambda t: t.aggregate.latest_progress, reverse=True)[:limit]


def tasks_for_year(tasks: Sequence[ReportTask], year: int) -> List[ReportTask]:
    """Tasks reported in the year, created in it, or never reported at all."""
    return [
        t
        for t in tasks
        if any(p.year == year for p in t.points) or t.created_at.year == year or not t.points
    ]


def timeline_tasks(tasks: Sequence[ReportTask], year: int) -> List[ReportTask]:
    return [t for t in tasks if any(p.year == year for p in t.points) or not t.points]


def department_breakdown(
    departments: Sequence[Tuple[UUID, str]],
    tasks: Sequence[ReportTask],
) -> List[DepartmentStats]:
    by_department: Dict[UUID, List[ReportTask]] = {}
    for t in tasks:
        by_department.setdefault(t.department_id, []).append(t)
    return [
        DepartmentStats(department_id=dept_id, department_name=name, counts=count_statuses(by_department.get(dept_id, [])))
        for dept_id, name in departments
    ]


def top_departments(stats: Sequence[DepartmentStats], limit: int = TOP_LIMIT) -> List[DepartmentStats]:
    return sorted(stats, key=lambda s: s.counts.completion_rate, reverse=True)[:limit]


def _mean_of_means(tasks: Sequence[ReportTask], matches: Callable[[WeeklyProgressPoint], bool]) -> int:
    """Average over tasks of each task's mean progress among the matching points."""
    if not tasks:
        return 0
    total = 0.0
    for t in tasks:
        values = [p.progress for p in t.points if matches(p)]
        if values:
            total += sum(values) / len(values)
    return round_half_up(total / len(tasks))


def _in_month(year: int, month: int) -> Callable[[WeeklyProgressPoint], bool]:
    def matches(p: WeeklyProgressPoint) -> bool:
        return p.start_date is not None and p.start_date.year == year and p.start_date.month == month

    return matches


def monthly_breakdown(tasks: Sequence[ReportTask], year: int) -> List[MonthlyStats]:
    """
    Twelve months keyed by week start date. A task counts as completed in the
    month holding its chronologically last reported week.
    """
    months = []
    for month in range(1, 13):
        matches = _in_month(year, month)
        month_tasks = [t for t in tasks if any(matches(p) for p in t.points)]
        completed = sum(1 for t in month_tasks if t.aggregate.is_completed and matches(t.points[-1]))
        months.append(
            MonthlyStats(
                month=month,
                tasks_started=len(month_tasks),
                tasks_completed=completed,
                avg_progress=_mean_of_means(month_tasks, matches),
            )
        )
    return months


def group_by_department(tasks: Sequence[ReportTask], year: int) -> List[TimelineGroup]:
    """Groups in first-seen order; each task keeps only its points of the year."""
    groups: Dict[UUID, TimelineGroup] = {}
    for t in tasks:
        group = groups.get(t.department_id)
        if group is None:
            group = groups[t.department_id] = TimelineGroup(t.department_id, t.department_name)
        group.tasks.append((t, [p for p in t.points if p.year == year]))
    return list(groups.values())


def quarter_summaries(tasks: Sequence[ReportTask], year: int) -> List[QuarterStats]:
    summaries = []
    for name, first, last in QUARTERS:

        def matches(p: WeeklyProgressPoint, first=first, last=last) -> bool:
            return p.year == year and first <= p.week_number <= last

        quarter_tasks = [t for t in tasks if any(matches(p) for p in t.points)]
        summaries.append(
            QuarterStats(
                name=name,
                first_week=first,
                last_week=last,
                task_count=len(quarter_tasks),
                avg_progress=_mean_of_means(quarter_tasks, matches),
            )
        )
    return summaries


@dataclass
class MetricMatrix:
    weeks: List[Any]
    rows: List[Tuple[Any, Dict[UUID, Optional[Any]]]]


def build_metric_matrix(values: Sequence[Any]) -> MetricMatrix:
    """
    Metric rows against week columns. values expose metric, week, value, note;
    columns are the distinct weeks in chronological order, metrics keep
    first-seen order, and a cell holds the value object or None.
    """
    weeks: Dict[UUID, Any] = {}
    metrics: Dict[UUID, Any] = {}
    cells: Dict[Tuple[UUID, UUID], Any] = {}
    for v in values:
        weeks.setdefault(v.week.id, v.week)
        metrics.setdefault(v.metric.id, v.metric)
        cells[(v.metric.id, v.week.id)] = v
    columns = sorted(weeks.values(), key=lambda w: (w.year, w.week_number))
    rows = [
        (metric, {w.id: cells.get((metric_id, w.id)) for w in columns})
        for metric_id, metric in metrics.items()
    ]
    return MetricMatrix(weeks=columns, rows=rows)
