"""Weekly report and the per-task progress rows submitted with it."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from report_app.core.enums import WeekStatus
from report_app.db.session import Base


class Week(Base):
    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("week_number", "year", name="uq_week_number_year"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=WeekStatus.DRAFT.value)  # DRAFT | COMPLETED
    report_file_url = Column(Text, nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    created_by = relationship("User", foreign_keys=[created_by_id])
    task_progress = relationship(
        "WeekTaskProgress",
        back_populates="week",
        cascade="all, delete-orphan",
        order_by="WeekTaskProgress.order_number",
    )
    tasks = relationship(
        "AdHocTask",
        back_populates="week",
        cascade="all, delete-orphan",
        order_by="AdHocTask.order_number",
    )
    metric_values = relationship(
        "WeekMetricValue",
        back_populates="week",
        cascade="all, delete-orphan",
    )


class WeekTaskProgress(Base):
    """One week's reported status for one master task. Rewritten whenever the week is saved."""

    __tablename__ = "week_task_progress"
    __table_args__ = (
        UniqueConstraint("week_id", "master_task_id", name="uq_week_task_progress_week_task"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_id = Column(UUID(as_uuid=True), ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    master_task_id = Column(UUID(as_uuid=True), ForeignKey("master_tasks.id", ondelete="RESTRICT"), nullable=False, index=True)
    order_number = Column(Integer, nullable=False)
    result = Column(Text, nullable=False, default="")
    time_period = Column(Text, nullable=False, default="")
    progress = Column(Integer, nullable=True)  # 0..100; NULL = nothing quantitative reported
    next_week_plan = Column(Text, nullable=False, default="")
    is_important = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)  # set iff progress == 100 at write time
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    week = relationship("Week", back_populates="task_progress")
    master_task = relationship("MasterTask", back_populates="week_progress")
