from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.core.exceptions import ServiceError
from report_app.db.session import get_db

from .schemas import MasterTaskCreate, MasterTaskDetail, MasterTaskResponse, MasterTaskSummary, MasterTaskUpdate
from . import service

router = APIRouter(prefix="/api/v1/master-tasks", tags=["master-tasks"])


@router.get(
    "",
    response_model=List[MasterTaskSummary],
)
async def list_master_tasks(
    department_id: Optional[UUID] = Query(None),
    include_progress: bool = Query(False, description="Add weekly_progress, first_week and last_week"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[MasterTaskSummary]:
    """Master tasks, newest first, with latest_progress / is_completed / week_count."""
    return await service.list_master_tasks(db, department_id, include_progress=include_progress)


@router.post(
    "",
    response_model=MasterTaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_master_task(
    payload: MasterTaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MasterTaskResponse:
    try:
        return await service.create_master_task(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{task_id}",
    response_model=MasterTaskDetail,
)
async def get_master_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MasterTaskDetail:
    """Task with its full progress history, newest week first."""
    task = await service.get_master_task(db, task_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@router.put(
    "/{task_id}",
    response_model=MasterTaskResponse,
)
async def update_master_task(
    task_id: UUID,
    payload: MasterTaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MasterTaskResponse:
    task = await service.update_master_task(db, task_id, payload)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_master_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        deleted = await service.delete_master_task(db, task_id)
        if not deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
