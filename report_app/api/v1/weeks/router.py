from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.core.exceptions import ServiceError
from report_app.db.session import get_db

from .schemas import WeekCreate, WeekDetail, WeekListItem, WeekUpdate, WeekWithProgress
from . import service

router = APIRouter(prefix="/api/v1/weeks", tags=["weeks"])


@router.get(
    "",
    response_model=List[WeekListItem],
)
async def list_weeks(
    year: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Week number"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[WeekListItem]:
    """Weeks, newest first, with department_count and task_count."""
    return await service.list_weeks(db, year=year, search=search)


@router.post(
    "",
    response_model=WeekWithProgress,
    status_code=status.HTTP_201_CREATED,
)
async def create_week(
    payload: WeekCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> WeekWithProgress:
    try:
        return await service.create_week(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{week_id}",
    response_model=WeekDetail,
)
async def get_week(
    week_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> WeekDetail:
    week = await service.get_week(db, week_id)
    if not week:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week report not found")
    return week


@router.put(
    "/{week_id}",
    response_model=WeekWithProgress,
)
async def update_week(
    week_id: UUID,
    payload: WeekUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> WeekWithProgress:
    """Update a week. A task_progress list replaces the week's whole progress set."""
    try:
        week = await service.update_week(db, week_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not week:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week report not found")
    return week


@router.delete(
    "/{week_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_week(
    week_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    deleted = await service.delete_week(db, week_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week report not found")
