import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.core.exceptions import ConflictError, DependentRecordsError
from report_app.core.models import ActiveState, AdHocTask, Department, MasterTask

from .schemas import (
    DepartmentCreate,
    DepartmentDetailResponse,
    DepartmentResponse,
    DepartmentUpdate,
)

logger = logging.getLogger(__name__)


def _to_response(dept: Department) -> DepartmentResponse:
    return DepartmentResponse(
        id=dept.id,
        name=dept.name,
        description=dept.description,
        created_at=dept.created_at,
        updated_at=dept.updated_at,
    )


async def _name_taken(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(Department.id).where(Department.name == name, Department.active_filter())
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def get_active_department(db: AsyncSession, department_id: UUID) -> Optional[Department]:
    """Department by id, or None when it does not exist or is soft-deleted."""
    dept = await db.get(Department, department_id)
    if dept is None or not isinstance(dept.state, ActiveState):
        return None
    return dept


async def count_department_tasks(db: AsyncSession, department_id: UUID) -> int:
    master_count = await db.scalar(
        select(func.count(MasterTask.id)).where(MasterTask.department_id == department_id)
    )
    ad_hoc_count = await db.scalar(
        select(func.count(AdHocTask.id)).where(AdHocTask.department_id == department_id)
    )
    return (master_count or 0) + (ad_hoc_count or 0)


async def create_department(
    db: AsyncSession,
    payload: DepartmentCreate,
) -> DepartmentResponse:
    name = payload.name.strip()
    if await _name_taken(db, name):
        raise ConflictError("Department name already exists")
    dept = Department(
        name=name,
        description=payload.description.strip() if payload.description else None,
    )
    db.add(dept)
    await db.commit()
    await db.refresh(dept)
    logger.info("Created department %s (%s)", dept.id, dept.name)
    return _to_response(dept)


async def list_departments(db: AsyncSession) -> List[DepartmentResponse]:
    result = await db.execute(
        select(Department).where(Department.active_filter()).order_by(Department.name)
    )
    return [_to_response(d) for d in result.scalars().all()]


async def get_department(
    db: AsyncSession,
    department_id: UUID,
) -> Optional[DepartmentDetailResponse]:
    dept = await get_active_department(db, department_id)
    if not dept:
        return None
    task_count = await count_department_tasks(db, department_id)
    return DepartmentDetailResponse(
        **_to_response(dept).model_dump(),
        task_count=task_count,
    )


async def update_department(
    db: AsyncSession,
    department_id: UUID,
    payload: DepartmentUpdate,
) -> Optional[DepartmentResponse]:
    dept = await get_active_department(db, department_id)
    if not dept:
        return None
    name = payload.name.strip()
    if await _name_taken(db, name, exclude_id=department_id):
        raise ConflictError("Department name already exists")
    dept.name = name
    if payload.description is not None:
        dept.description = payload.description.strip() or None
    await db.commit()
    await db.refresh(dept)
    return _to_response(dept)


async def delete_department(
    db: AsyncSession,
    department_id: UUID,
) -> bool:
    """Soft delete. Refused while the department still owns tasks; its master tasks are left untouched."""
    dept = await get_active_department(db, department_id)
    if not dept:
        return False
    task_count = await count_department_tasks(db, department_id)
    if task_count > 0:
        logger.warning("Refused to delete department %s: %d task(s)", department_id, task_count)
        raise DependentRecordsError(
            f"Cannot delete department: it has {task_count} task(s)",
            count=task_count,
        )
    dept.mark_deleted(datetime.utcnow())
    await db.commit()
    logger.info("Soft-deleted department %s", department_id)
    return True
