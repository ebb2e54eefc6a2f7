import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID

from report_app.core.enums import EventStatus
from report_app.db.session import Base


class Event(Base):
    """Working-calendar entry (meeting, visit, ...)."""

    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=True)  # "HH:MM"; NULL = all day / unscheduled
    location = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    chair = Column(Text, nullable=True)
    participants = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=EventStatus.UNCONFIRMED.value)  # UNCONFIRMED | CONFIRMED
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
