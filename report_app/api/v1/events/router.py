from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.core.exceptions import ServiceError
from report_app.db.session import get_db

from .schemas import CalendarWeek, EventCreate, EventResponse, EventUpdate
from . import service

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get(
    "",
    response_model=List[EventResponse],
)
async def list_events(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[EventResponse]:
    """Events ordered by date and time. The range filter applies only when both bounds are given."""
    try:
        return await service.list_events(db, start_date, end_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/week",
    response_model=CalendarWeek,
)
async def get_calendar_week(
    day: Optional[date] = Query(None, description="Any day of the wanted week; defaults to today"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CalendarWeek:
    return await service.get_calendar_week(db, day or date.today())


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EventResponse:
    return await service.create_event(db, payload)


@router.get(
    "/{event_id}",
    response_model=EventResponse,
)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EventResponse:
    event = await service.get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.patch(
    "/{event_id}",
    response_model=EventResponse,
)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EventResponse:
    event = await service.update_event(db, event_id, payload)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    deleted = await service.delete_event(db, event_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
