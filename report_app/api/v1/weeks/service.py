import logging
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.core.exceptions import ConflictError, ServiceError, ValidationFailed
from report_app.core.models import AdHocTask, MasterTask, Week, WeekTaskProgress
from report_app.core.progress import completed_at_for

from .reconciler import build_progress_rows, replace_task_set
from .schemas import (
    AdHocTaskResponse,
    DepartmentTaskGroup,
    DepartmentTaskItem,
    MasterTaskRef,
    TaskProgressResponse,
    WeekAuthor,
    WeekCreate,
    WeekDetail,
    WeekListItem,
    WeekResponse,
    WeekUpdate,
    WeekWithProgress,
)

logger = logging.getLogger(__name__)

WEEK_EXISTS_MESSAGE = "A report for this week already exists"


def _week_fields(w: Week) -> dict:
    return WeekResponse(
        id=w.id,
        week_number=w.week_number,
        year=w.year,
        start_date=w.start_date,
        end_date=w.end_date,
        status=w.status,
        report_file_url=w.report_file_url,
        created_by_id=w.created_by_id,
        created_at=w.created_at,
        updated_at=w.updated_at,
    ).model_dump()


def _progress_to_response(tp: WeekTaskProgress) -> TaskProgressResponse:
    task = tp.master_task
    return TaskProgressResponse(
        id=tp.id,
        week_id=tp.week_id,
        master_task_id=tp.master_task_id,
        order_number=tp.order_number,
        result=tp.result,
        time_period=tp.time_period,
        progress=tp.progress,
        next_week_plan=tp.next_week_plan,
        is_important=tp.is_important,
        completed_at=tp.completed_at,
        created_at=tp.created_at,
        master_task=MasterTaskRef(
            id=task.id,
            name=task.name,
            department=DepartmentRef(id=task.department.id, name=task.department.name),
        ),
    )


def _ad_hoc_to_response(t: AdHocTask) -> AdHocTaskResponse:
    return AdHocTaskResponse(
        id=t.id,
        week_id=t.week_id,
        department_id=t.department_id,
        order_number=t.order_number,
        task_name=t.task_name,
        result=t.result,
        time_period=t.time_period,
        progress=t.progress,
        next_week_plan=t.next_week_plan,
        is_important=t.is_important,
        completed_at=t.completed_at,
        created_at=t.created_at,
        department=DepartmentRef(id=t.department.id, name=t.department.name),
    )


def group_tasks_by_department(
    task_progress: List[WeekTaskProgress],
    ad_hoc_tasks: List[AdHocTask],
) -> List[DepartmentTaskGroup]:
    """Recurring rows first, then ad-hoc rows; departments in first-seen order."""
    groups: "OrderedDict[UUID, DepartmentTaskGroup]" = OrderedDict()

    def _group(department) -> DepartmentTaskGroup:
        if department.id not in groups:
            groups[department.id] = DepartmentTaskGroup(
                department=DepartmentRef(id=department.id, name=department.name),
            )
        return groups[department.id]

    for tp in task_progress:
        _group(tp.master_task.department).tasks.append(
            DepartmentTaskItem(
                id=tp.id,
                kind="RECURRING",
                master_task_id=tp.master_task_id,
                task_name=tp.master_task.name,
                order_number=tp.order_number,
                result=tp.result,
                time_period=tp.time_period,
                progress=tp.progress,
                next_week_plan=tp.next_week_plan,
                is_important=tp.is_important,
                completed_at=tp.completed_at,
            )
        )
    for t in ad_hoc_tasks:
        _group(t.department).tasks.append(
            DepartmentTaskItem(
                id=t.id,
                kind="AD_HOC",
                task_name=t.task_name,
                order_number=t.order_number,
                result=t.result,
                time_period=t.time_period,
                progress=t.progress,
                next_week_plan=t.next_week_plan,
                is_important=t.is_important,
                completed_at=t.completed_at,
            )
        )
    return list(groups.values())


async def _find_week(db: AsyncSession, week_number: int, year: int, exclude_id: Optional[UUID] = None) -> Optional[UUID]:
    stmt = select(Week.id).where(Week.week_number == week_number, Week.year == year)
    if exclude_id is not None:
        stmt = stmt.where(Week.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none()


def _progress_options():
    return selectinload(Week.task_progress).selectinload(WeekTaskProgress.master_task).selectinload(MasterTask.department)


async def get_week_with_progress(db: AsyncSession, week_id: UUID) -> Optional[WeekWithProgress]:
    result = await db.execute(
        select(Week)
        .options(_progress_options())
        .where(Week.id == week_id)
        .execution_options(populate_existing=True)
    )
    week = result.scalar_one_or_none()
    if not week:
        return None
    return WeekWithProgress(
        **_week_fields(week),
        task_progress=[_progress_to_response(tp) for tp in week.task_progress],
    )


async def list_weeks(
    db: AsyncSession,
    year: Optional[int] = None,
    search: Optional[str] = None,
) -> List[WeekListItem]:
    stmt = select(Week).options(selectinload(Week.task_progress).selectinload(WeekTaskProgress.master_task))
    if year is not None:
        stmt = stmt.where(Week.year == year)
    if search:
        # Only week numbers are searchable; a non-numeric term matches nothing
        term = search.strip()
        stmt = stmt.where(Week.week_number == (int(term) if term.isdigit() else 0))
    stmt = stmt.order_by(Week.year.desc(), Week.week_number.desc())
    result = await db.execute(stmt)
    weeks = result.scalars().all()
    if not weeks:
        return []

    ad_hoc_counts_result = await db.execute(
        select(AdHocTask.week_id, func.count(AdHocTask.id))
        .where(AdHocTask.week_id.in_([w.id for w in weeks]))
        .group_by(AdHocTask.week_id)
    )
    ad_hoc_counts: Dict[UUID, int] = {week_id: count for week_id, count in ad_hoc_counts_result.all()}

    return [
        WeekListItem(
            **_week_fields(w),
            department_count=len({tp.master_task.department_id for tp in w.task_progress}),
            task_count=len(w.task_progress) + ad_hoc_counts.get(w.id, 0),
        )
        for w in weeks
    ]


async def get_week(db: AsyncSession, week_id: UUID) -> Optional[WeekDetail]:
    result = await db.execute(
        select(Week)
        .options(
            _progress_options(),
            selectinload(Week.tasks).selectinload(AdHocTask.department),
            selectinload(Week.created_by),
        )
        .where(Week.id == week_id)
        .execution_options(populate_existing=True)
    )
    week = result.scalar_one_or_none()
    if not week:
        return None
    author = week.created_by
    return WeekDetail(
        **_week_fields(week),
        task_progress=[_progress_to_response(tp) for tp in week.task_progress],
        tasks=[_ad_hoc_to_response(t) for t in week.tasks],
        created_by=WeekAuthor(id=author.id, name=author.name, email=author.email) if author else None,
        tasks_by_department=group_tasks_by_department(week.task_progress, week.tasks),
    )


async def create_week(
    db: AsyncSession,
    created_by_id: UUID,
    payload: WeekCreate,
) -> WeekWithProgress:
    """Create a week with its initial rows in one commit. created_by_id is the reporting user."""
    if await _find_week(db, payload.week_number, payload.year):
        raise ConflictError(WEEK_EXISTS_MESSAGE)

    now = datetime.utcnow()
    week = Week(
        week_number=payload.week_number,
        year=payload.year,
        start_date=payload.start_date,
        end_date=payload.end_date,
        report_file_url=payload.report_file_url,
        status=payload.status.value,
        created_by_id=created_by_id,
    )
    try:
        db.add(week)
        await db.flush()
        if payload.task_progress:
            db.add_all(build_progress_rows(week.id, payload.task_progress, now))
        for entry in payload.tasks or []:
            db.add(
                AdHocTask(
                    week_id=week.id,
                    department_id=entry.department_id,
                    order_number=entry.order_number,
                    task_name=entry.task_name,
                    result=entry.result,
                    time_period=entry.time_period,
                    progress=entry.progress,
                    next_week_plan=entry.next_week_plan,
                    is_important=entry.is_important,
                    completed_at=completed_at_for(entry.progress, now),
                    created_at=now,
                )
            )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # Lost a race for the (week_number, year) slot, or a row points at a missing task/department
        if await _find_week(db, payload.week_number, payload.year):
            raise ConflictError(WEEK_EXISTS_MESSAGE)
        raise ValidationFailed("Task progress references an unknown task or department")

    logger.info("Created week %s/%s (%s) by %s", payload.week_number, payload.year, week.id, created_by_id)
    return await get_week_with_progress(db, week.id)


async def update_week(
    db: AsyncSession,
    week_id: UUID,
    payload: WeekUpdate,
) -> Optional[WeekWithProgress]:
    """
    Update the week's scalar fields and, when task_progress is given, replace its
    whole progress set. Conflicts are checked before anything is written; the
    writes themselves are all-or-nothing.
    """
    week = await db.get(Week, week_id)
    if not week:
        return None

    if payload.week_number is not None or payload.year is not None:
        week_number = payload.week_number if payload.week_number is not None else week.week_number
        year = payload.year if payload.year is not None else week.year
        if await _find_week(db, week_number, year, exclude_id=week_id):
            logger.warning("Week %s: %s/%s is taken by another week", week_id, week_number, year)
            raise ConflictError(WEEK_EXISTS_MESSAGE)

    start_date = payload.start_date or week.start_date
    end_date = payload.end_date or week.end_date
    if end_date < start_date:
        raise ValidationFailed("end_date must be on or after start_date")

    now = datetime.utcnow()
    try:
        if payload.week_number is not None:
            week.week_number = payload.week_number
        if payload.year is not None:
            week.year = payload.year
        week.start_date = start_date
        week.end_date = end_date
        if "report_file_url" in payload.model_fields_set:
            week.report_file_url = payload.report_file_url
        if payload.status is not None:
            week.status = payload.status.value
        week.updated_at = now
        await db.flush()

        if payload.task_progress is not None:
            await replace_task_set(db, week_id, payload.task_progress, now)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Week %s: update failed, rolled back", week_id)
        raise ServiceError("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return await get_week_with_progress(db, week_id)


async def delete_week(db: AsyncSession, week_id: UUID) -> bool:
    """Delete the week together with its progress rows, ad-hoc tasks and metric values."""
    week = await db.get(Week, week_id)
    if not week:
        return False
    await db.delete(week)
    await db.commit()
    logger.info("Deleted week %s", week_id)
    return True
