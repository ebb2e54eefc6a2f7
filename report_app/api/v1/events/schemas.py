from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from report_app.core.enums import EventStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class EventCreate(BaseModel):
    date: date
    time: Optional[str] = Field(None, pattern=TIME_PATTERN, description="HH:MM, 24h")
    location: Optional[str] = None
    content: str = Field(..., min_length=1)
    chair: Optional[str] = None
    participants: Optional[str] = None
    note: Optional[str] = None
    status: EventStatus = EventStatus.UNCONFIRMED


class EventUpdate(BaseModel):
    date: Optional[date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    location: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    chair: Optional[str] = None
    participants: Optional[str] = None
    note: Optional[str] = None
    status: Optional[EventStatus] = None


class EventResponse(BaseModel):
    id: UUID
    date: date
    time: Optional[str] = None
    location: Optional[str] = None
    content: str
    chair: Optional[str] = None
    participants: Optional[str] = None
    note: Optional[str] = None
    status: EventStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CalendarDay(BaseModel):
    date: date
    events: List[EventResponse] = Field(default_factory=list)


class CalendarWeek(BaseModel):
    start_date: date
    end_date: date
    days: List[CalendarDay]
