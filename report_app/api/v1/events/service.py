"""Working calendar: events and the Monday-to-Sunday week view."""

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.core.exceptions import ValidationFailed
from report_app.core.models import Event

from .schemas import CalendarDay, CalendarWeek, EventCreate, EventResponse, EventUpdate

logger = logging.getLogger(__name__)

# Fields a PATCH may clear with an explicit null
_NULLABLE_FIELDS = ("time", "location", "chair", "participants", "note")


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing `day`."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def sort_day_events(events: Sequence[EventResponse]) -> List[EventResponse]:
    """By time of day; events without a time go last, keeping their order."""
    timed = sorted((e for e in events if e.time), key=lambda e: e.time)
    untimed = [e for e in events if not e.time]
    return timed + untimed


async def list_events(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[EventResponse]:
    stmt = select(Event)
    if start_date is not None and end_date is not None:
        if end_date < start_date:
            raise ValidationFailed("end_date must be on or after start_date")
        stmt = stmt.where(Event.date >= start_date, Event.date <= end_date)
    stmt = stmt.order_by(Event.date, Event.time)
    result = await db.execute(stmt)
    return [EventResponse.model_validate(e) for e in result.scalars().all()]


async def get_calendar_week(db: AsyncSession, day: date) -> CalendarWeek:
    monday, sunday = week_bounds(day)
    events = await list_events(db, monday, sunday)
    days = []
    for offset in range(7):
        current = monday + timedelta(days=offset)
        days.append(
            CalendarDay(
                date=current,
                events=sort_day_events([e for e in events if e.date == current]),
            )
        )
    return CalendarWeek(start_date=monday, end_date=sunday, days=days)


async def get_event(db: AsyncSession, event_id: UUID) -> Optional[EventResponse]:
    event = await db.get(Event, event_id)
    return EventResponse.model_validate(event) if event else None


async def create_event(db: AsyncSession, payload: EventCreate) -> EventResponse:
    event = Event(
        date=payload.date,
        time=payload.time,
        location=payload.location,
        content=payload.content.strip(),
        chair=payload.chair,
        participants=payload.participants,
        note=payload.note,
        status=payload.status.value,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Created event %s on %s", event.id, event.date)
    return EventResponse.model_validate(event)


async def update_event(db: AsyncSession, event_id: UUID, payload: EventUpdate) -> Optional[EventResponse]:
    event = await db.get(Event, event_id)
    if not event:
        return None
    if payload.date is not None:
        event.date = payload.date
    if payload.content is not None:
        event.content = payload.content.strip()
    if payload.status is not None:
        event.status = payload.status.value
    for field in _NULLABLE_FIELDS:
        if field in payload.model_fields_set:
            setattr(event, field, getattr(payload, field))
    await db.commit()
    await db.refresh(event)
    return EventResponse.model_validate(event)


async def delete_event(db: AsyncSession, event_id: UUID) -> bool:
    event = await db.get(Event, event_id)
    if not event:
        return False
    await db.delete(event)
    await db.commit()
    logger.info("Deleted event %s", event_id)
    return True
