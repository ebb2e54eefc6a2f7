"""
Master-task progress aggregation.

A master task accumulates one WeekTaskProgress row per reported week. Consumers
(task listings, week pages, reports) need that history reduced to a handful of
derived fields. Everything here is pure: rows are any objects exposing the ORM
attribute names (progress, result, completed_at, created_at, week).

Two orders are in play and must not be mixed up:
- chronological (year, week_number): series, first_week, last_week
- creation (created_at): latest_progress, is_completed
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence


class ProgressDataError(Exception):
    """A progress row is missing its week; the store is inconsistent."""


@dataclass(frozen=True)
class WeekRef:
    week_number: int
    year: int


@dataclass(frozen=True)
class WeeklyProgressPoint:
    week_number: int
    year: int
    progress: int
    result: Optional[str]
    start_date: Optional[date]

    @property
    def week(self) -> WeekRef:
        return WeekRef(week_number=self.week_number, year=self.year)


@dataclass(frozen=True)
class TaskAggregate:
    latest_progress: int
    is_completed: bool
    week_count: int
    weekly_progress: Optional[List[WeeklyProgressPoint]] = None
    first_week: Optional[WeekRef] = None
    last_week: Optional[WeekRef] = None


def completed_at_for(progress: Optional[int], now: datetime) -> Optional[datetime]:
    """completed_at value for a progress row written at `now`."""
    return now if progress == 100 else None


def build_progress_series(rows: Iterable[Any]) -> List[WeeklyProgressPoint]:
    """Chronological series (year, then week number). Missing progress becomes 0."""
    points = []
    for row in rows:
        week = getattr(row, "week", None)
        if week is None:
            raise ProgressDataError(f"Progress row {getattr(row, 'id', None)} has no week")
        points.append(
            WeeklyProgressPoint(
                week_number=week.week_number,
                year=week.year,
                progress=row.progress if row.progress is not None else 0,
                result=row.result,
                start_date=week.start_date,
            )
        )
    # sorted() is stable, so equal keys keep their input order
    return sorted(points, key=lambda p: (p.year, p.week_number))


def latest_created(rows: Sequence[Any]) -> Optional[Any]:
    """Most recently created row, whatever week it belongs to."""
    if not rows:
        return None
    return sorted(rows, key=lambda r: r.created_at, reverse=True)[0]


def derive_task_aggregate(
    rows: Sequence[Any],
    week_count: Optional[int] = None,
    include_series: bool = False,
) -> TaskAggregate:
    """
    Reduce a task's progress rows to its derived status fields.

    rows may be the full history or only the newest row (summary listings fetch
    a single row and pass the real row count as week_count). latest_progress
    and is_completed always come from the most recently created row, in both
    modes. The series and first/last week are only built with include_series.
    """
    count = len(rows) if week_count is None else week_count
    latest = latest_created(rows)

    latest_progress = 0
    is_completed = False
    if latest is not None:
        latest_progress = latest.progress if latest.progress is not None else 0
        is_completed = latest.completed_at is not None

    if not include_series:
        return TaskAggregate(
            latest_progress=latest_progress,
            is_completed=is_completed,
            week_count=count,
        )

    series = build_progress_series(rows)
    return TaskAggregate(
        latest_progress=latest_progress,
        is_completed=is_completed,
        week_count=count,
        weekly_progress=series,
        first_week=series[0].week if series else None,
        last_week=series[-1].week if series else None,
    )
