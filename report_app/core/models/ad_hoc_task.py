import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from report_app.db.session import Base


class AdHocTask(Base):
    """One-off task reported by a department for a single week. No cross-week identity."""

    __tablename__ = "ad_hoc_tasks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_id = Column(UUID(as_uuid=True), ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False, index=True)
    order_number = Column(Integer, nullable=False)
    task_name = Column(Text, nullable=False)
    result = Column(Text, nullable=False, default="")
    time_period = Column(Text, nullable=False, default="")
    progress = Column(Integer, nullable=True)
    next_week_plan = Column(Text, nullable=False, default="")
    is_important = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    week = relationship("Week", back_populates="tasks")
    department = relationship("Department", back_populates="ad_hoc_tasks")
