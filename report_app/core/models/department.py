import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from report_app.db.session import Base


@dataclass(frozen=True)
class ActiveState:
    pass


@dataclass(frozen=True)
class DeletedState:
    at: datetime


DepartmentState = Union[ActiveState, DeletedState]


class Department(Base):
    """Reporting department. Soft delete only (deleted_at); never physically removed."""

    __tablename__ = "departments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Unique among non-deleted departments; enforced by the service so deleted names can be reused
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    master_tasks = relationship("MasterTask", back_populates="department")
    ad_hoc_tasks = relationship("AdHocTask", back_populates="department")
    metrics = relationship("MetricDefinition", back_populates="department")

    @property
    def state(self) -> DepartmentState:
        if self.deleted_at is None:
            return ActiveState()
        return DeletedState(at=self.deleted_at)

    @classmethod
    def active_filter(cls):
        """WHERE clause for every listing that must hide soft-deleted departments."""
        return cls.deleted_at.is_(None)

    def mark_deleted(self, at: datetime) -> None:
        self.deleted_at = at
