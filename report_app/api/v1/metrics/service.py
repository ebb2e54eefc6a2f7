import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from report_app.api.v1.departments.schemas import DepartmentRef
from report_app.api.v1.departments.service import get_active_department
from report_app.core.exceptions import ValidationFailed
from report_app.core.models import MetricDefinition, Week, WeekMetricValue

from .schemas import (
    MetricCreate,
    MetricDetail,
    MetricListItem,
    MetricResponse,
    MetricUpdate,
    MetricValueItem,
    MetricWeekInfo,
)

logger = logging.getLogger(__name__)

RECENT_VALUES_LIMIT = 20


def metric_to_response(m: MetricDefinition) -> MetricResponse:
    return MetricResponse(
        id=m.id,
        department_id=m.department_id,
        name=m.name,
        unit=m.unit,
        description=m.description,
        order_number=m.order_number,
        is_active=m.is_active,
        created_at=m.created_at,
        updated_at=m.updated_at,
        department=DepartmentRef(id=m.department.id, name=m.department.name),
    )


async def _get_metric(db: AsyncSession, metric_id: UUID) -> Optional[MetricDefinition]:
    result = await db.execute(
        select(MetricDefinition)
        .options(selectinload(MetricDefinition.department))
        .where(MetricDefinition.id == metric_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_metrics(db: AsyncSession, department_id: Optional[UUID] = None) -> List[MetricListItem]:
    stmt = (
        select(MetricDefinition)
        .options(selectinload(MetricDefinition.department))
        .where(MetricDefinition.is_active.is_(True))
    )
    if department_id is not None:
        stmt = stmt.where(MetricDefinition.department_id == department_id)
    stmt = stmt.order_by(
        MetricDefinition.department_id,
        MetricDefinition.order_number,
        MetricDefinition.created_at,
    )
    result = await db.execute(stmt)
    metrics = result.scalars().all()
    if not metrics:
        return []

    counts_result = await db.execute(
        select(WeekMetricValue.metric_id, func.count(WeekMetricValue.id))
        .where(WeekMetricValue.metric_id.in_([m.id for m in metrics]))
        .group_by(WeekMetricValue.metric_id)
    )
    counts: Dict[UUID, int] = {metric_id: count for metric_id, count in counts_result.all()}
    return [
        MetricListItem(**metric_to_response(m).model_dump(), value_count=counts.get(m.id, 0))
        for m in metrics
    ]


async def get_metric(db: AsyncSession, metric_id: UUID) -> Optional[MetricDetail]:
    metric = await _get_metric(db, metric_id)
    if not metric:
        return None
    result = await db.execute(
        select(WeekMetricValue, Week)
        .join(Week, Week.id == WeekMetricValue.week_id)
        .where(WeekMetricValue.metric_id == metric_id)
        .order_by(Week.year.desc(), Week.week_number.desc())
        .limit(RECENT_VALUES_LIMIT)
    )
    recent = [
        MetricValueItem(
            id=value.id,
            value=value.value,
            note=value.note,
            week=MetricWeekInfo(
                id=week.id,
                week_number=week.week_number,
                year=week.year,
                start_date=week.start_date,
            ),
        )
        for value, week in result.all()
    ]
    return MetricDetail(**metric_to_response(metric).model_dump(), recent_values=recent)


async def create_metric(db: AsyncSession, payload: MetricCreate) -> MetricResponse:
    if not await get_active_department(db, payload.department_id):
        raise ValidationFailed("Department not found")
    metric = MetricDefinition(
        department_id=payload.department_id,
        name=payload.name.strip(),
        unit=payload.unit,
        description=payload.description,
        order_number=payload.order_number,
    )
    db.add(metric)
    await db.commit()
    metric = await _get_metric(db, metric.id)
    logger.info("Created metric %s for department %s", metric.id, metric.department_id)
    return metric_to_response(metric)


async def update_metric(db: AsyncSession, metric_id: UUID, payload: MetricUpdate) -> Optional[MetricResponse]:
    metric = await _get_metric(db, metric_id)
    if not metric:
        return None
    if payload.name is not None:
        metric.name = payload.name.strip()
    if "unit" in payload.model_fields_set:
        metric.unit = payload.unit
    if "description" in payload.model_fields_set:
        metric.description = payload.description
    if payload.order_number is not None:
        metric.order_number = payload.order_number
    if payload.is_active is not None:
        metric.is_active = payload.is_active
    await db.commit()
    metric = await _get_metric(db, metric_id)
    return metric_to_response(metric)


async def delete_metric(db: AsyncSession, metric_id: UUID) -> bool:
    """Soft delete: the metric disappears from listings, its values are kept."""
    metric = await db.get(MetricDefinition, metric_id)
    if not metric:
        return False
    metric.is_active = False
    await db.commit()
    logger.info("Deactivated metric %s", metric_id)
    return True
