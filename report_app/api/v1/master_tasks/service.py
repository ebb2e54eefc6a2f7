"""Master task CRUD and the derived progress fields served with every listing."""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.api.v1.departments.service import get_active_department
from report_app.core.exceptions import DependentRecordsError, ValidationFailed
from report_app.core.models import MasterTask, Week, WeekTaskProgress
from report_app.core.progress import TaskAggregate, derive_task_aggregate

from .schemas import (
    MasterTaskCreate,
    MasterTaskDetail,
    MasterTaskResponse,
    MasterTaskSummary,
    MasterTaskUpdate,
    ProgressHistoryItem,
    ProgressWeekInfo,
    WeeklyProgressPointSchema,
    WeekRefSchema,
)

logger = logging.getLogger(__name__)


def _to_response(task: MasterTask) -> MasterTaskResponse:
    return MasterTaskResponse(
        id=task.id,
        department_id=task.department_id,
        name=task.name,
        description=task.description,
        estimated_duration=task.estimated_duration,
        start_date=task.start_date,
        end_date=task.end_date,
        created_at=task.created_at,
        updated_at=task.updated_at,
        department=DepartmentRef(id=task.department.id, name=task.department.name),
    )


def _aggregate_fields(agg: TaskAggregate) -> dict:
    fields = {
        "latest_progress": agg.latest_progress,
        "is_completed": agg.is_completed,
        "week_count": agg.week_count,
    }
    if agg.weekly_progress is not None:
        fields["weekly_progress"] = [
            WeeklyProgressPointSchema(
                week_number=p.week_number,
                year=p.year,
                progress=p.progress,
                result=p.result,
                start_date=p.start_date,
            )
            for p in agg.weekly_progress
        ]
    if agg.first_week is not None:
        fields["first_week"] = WeekRefSchema(week_number=agg.first_week.week_number, year=agg.first_week.year)
    if agg.last_week is not None:
        fields["last_week"] = WeekRefSchema(week_number=agg.last_week.week_number, year=agg.last_week.year)
    return fields


def to_summary(task: MasterTask, agg: TaskAggregate) -> MasterTaskSummary:
    return MasterTaskSummary(**_to_response(task).model_dump(), **_aggregate_fields(agg))


async def _progress_counts(db: AsyncSession, task_ids: Sequence[UUID]) -> Dict[UUID, int]:
    result = await db.execute(
        select(WeekTaskProgress.master_task_id, func.count(WeekTaskProgress.id))
        .where(WeekTaskProgress.master_task_id.in_(task_ids))
        .group_by(WeekTaskProgress.master_task_id)
    )
    return {task_id: count for task_id, count in result.all()}


async def _latest_progress_rows(db: AsyncSession, task_ids: Sequence[UUID]) -> Dict[UUID, List[WeekTaskProgress]]:
    """Only the most recently created progress row of each task."""
    ranked = (
        select(
            WeekTaskProgress.id.label("id"),
            func.row_number()
            .over(
                partition_by=WeekTaskProgress.master_task_id,
                order_by=WeekTaskProgress.created_at.desc(),
            )
            .label("rn"),
        )
        .where(WeekTaskProgress.master_task_id.in_(task_ids))
        .subquery()
    )
    result = await db.execute(
        select(WeekTaskProgress).join(ranked, ranked.c.id == WeekTaskProgress.id).where(ranked.c.rn == 1)
    )
    rows: Dict[UUID, List[WeekTaskProgress]] = defaultdict(list)
    for row in result.scalars().all():
        rows[row.master_task_id].append(row)
    return rows


async def _all_progress_rows(db: AsyncSession, task_ids: Sequence[UUID]) -> Dict[UUID, List[WeekTaskProgress]]:
    result = await db.execute(
        select(WeekTaskProgress)
        .options(selectinload(WeekTaskProgress.week))
        .where(WeekTaskProgress.master_task_id.in_(task_ids))
        .order_by(WeekTaskProgress.created_at.asc())
    )
    rows: Dict[UUID, List[WeekTaskProgress]] = defaultdict(list)
    for row in result.scalars().all():
        rows[row.master_task_id].append(row)
    return rows


async def load_task_aggregates(
    db: AsyncSession,
    department_id: Optional[UUID] = None,
    include_progress: bool = False,
) -> List[Tuple[MasterTask, TaskAggregate]]:
    """Tasks (newest first) paired with their derived progress fields. Shared with the reports."""
    stmt = select(MasterTask).options(selectinload(MasterTask.department)).order_by(MasterTask.created_at.desc())
    if department_id is not None:
        stmt = stmt.where(MasterTask.department_id == department_id)
    result = await db.execute(stmt)
    tasks = result.scalars().all()
    if not tasks:
        return []

    task_ids = [t.id for t in tasks]
    counts = await _progress_counts(db, task_ids)
    if include_progress:
        rows_by_task = await _all_progress_rows(db, task_ids)
    else:
        rows_by_task = await _latest_progress_rows(db, task_ids)

    return [
        (
            task,
            derive_task_aggregate(
                rows_by_task.get(task.id, []),
                week_count=counts.get(task.id, 0),
                include_series=include_progress,
            ),
        )
        for task in tasks
    ]


async def list_master_tasks(
    db: AsyncSession,
    department_id: Optional[UUID] = None,
    include_progress: bool = False,
) -> List[MasterTaskSummary]:
    pairs = await load_task_aggregates(db, department_id, include_progress)
    return [to_summary(task, agg) for task, agg in pairs]


async def _get_task(db: AsyncSession, task_id: UUID) -> Optional[MasterTask]:
    result = await db.execute(
        select(MasterTask)
        .options(selectinload(MasterTask.department))
        .where(MasterTask.id == task_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_master_task(db: AsyncSession, task_id: UUID) -> Optional[MasterTaskDetail]:
    task = await _get_task(db, task_id)
    if not task:
        return None
    result = await db.execute(
        select(WeekTaskProgress)
        .join(Week, Week.id == WeekTaskProgress.week_id)
        .options(selectinload(WeekTaskProgress.week))
        .where(WeekTaskProgress.master_task_id == task_id)
        .order_by(Week.year.desc(), Week.week_number.desc())
    )
    rows = result.scalars().all()
    agg = derive_task_aggregate(rows, include_series=True)
    history = [
        ProgressHistoryItem(
            id=r.id,
            week_id=r.week_id,
            order_number=r.order_number,
            result=r.result,
            time_period=r.time_period,
            progress=r.progress,
            next_week_plan=r.next_week_plan,
            is_important=r.is_important,
            completed_at=r.completed_at,
            created_at=r.created_at,
            week=ProgressWeekInfo(
                id=r.week.id,
                week_number=r.week.week_number,
                year=r.week.year,
                start_date=r.week.start_date,
                end_date=r.week.end_date,
            ),
        )
        for r in rows
    ]
    return MasterTaskDetail(
        **_to_response(task).model_dump(),
        **_aggregate_fields(agg),
        progress_history=history,
    )


async def create_master_task(db: AsyncSession, payload: MasterTaskCreate) -> MasterTaskResponse:
    dept = await get_active_department(db, payload.department_id)
    if not dept:
        raise ValidationFailed("Department not found")
    task = MasterTask(
        department_id=dept.id,
        name=payload.name.strip(),
        description=payload.description,
        estimated_duration=payload.estimated_duration,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    db.add(task)
    await db.commit()
    task = await _get_task(db, task.id)
    logger.info("Created master task %s in department %s", task.id, dept.id)
    return _to_response(task)


async def update_master_task(
    db: AsyncSession,
    task_id: UUID,
    payload: MasterTaskUpdate,
) -> Optional[MasterTaskResponse]:
    task = await _get_task(db, task_id)
    if not task:
        return None
    task.name = payload.name.strip()
    if payload.description is not None:
        task.description = payload.description
    if payload.estimated_duration is not None:
        task.estimated_duration = payload.estimated_duration
    task.start_date = payload.start_date
    task.end_date = payload.end_date
    await db.commit()
    task = await _get_task(db, task_id)
    return _to_response(task)


async def delete_master_task(db: AsyncSession, task_id: UUID) -> bool:
    """Hard delete, refused while any progress record references the task."""
    task = await db.get(MasterTask, task_id)
    if not task:
        return False
    progress_count = await db.scalar(
        select(func.count(WeekTaskProgress.id)).where(WeekTaskProgress.master_task_id == task_id)
    )
    if progress_count:
        logger.warning("Refused to delete master task %s: %d progress record(s)", task_id, progress_count)
        raise DependentRecordsError(
            f"Cannot delete task: it has {progress_count} progress record(s)",
            count=progress_count,
        )
    await db.delete(task)
    await db.commit()
    logger.info("Deleted master task %s", task_id)
    return True
