"""Quantitative department metrics and their weekly values."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from report_app.db.session import Base


class MetricDefinition(Base):
    """Metric tracked by a department each week. Soft delete only (is_active)."""

    __tablename__ = "metric_definitions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    department_id = Column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    order_number = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    department = relationship("Department", back_populates="metrics")
    week_values = relationship("WeekMetricValue", back_populates="metric")


class WeekMetricValue(Base):
    __tablename__ = "week_metric_values"
    __table_args__ = (
        UniqueConstraint("metric_id", "week_id", name="uq_week_metric_value_metric_week"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    metric_id = Column(UUID(as_uuid=True), ForeignKey("metric_definitions.id", ondelete="CASCADE"), nullable=False, index=True)
    week_id = Column(UUID(as_uuid=True), ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    metric = relationship("MetricDefinition", back_populates="week_values")
    week = relationship("Week", back_populates="metric_values")
