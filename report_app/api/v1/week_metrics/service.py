"""Weekly metric values. One value per (metric, week), written with a single upsert."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from report_app.api.v1.metrics.service import metric_to_response
from report_app.core.exceptions import ServiceError, ValidationFailed
from report_app.core.models import MetricDefinition, Week, WeekMetricValue

from .schemas import ValueWeekInfo, WeekMetricValueResponse, WeekMetricValueUpsert

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _to_response(v: WeekMetricValue) -> WeekMetricValueResponse:
    return WeekMetricValueResponse(
        id=v.id,
        metric_id=v.metric_id,
        week_id=v.week_id,
        value=v.value,
        note=v.note,
        created_at=v.created_at,
        updated_at=v.updated_at,
        metric=metric_to_response(v.metric),
        week=ValueWeekInfo(
            id=v.week.id,
            week_number=v.week.week_number,
            year=v.week.year,
            start_date=v.week.start_date,
            end_date=v.week.end_date,
        ),
    )


def _with_relations(stmt):
    return stmt.options(
        selectinload(WeekMetricValue.metric).selectinload(MetricDefinition.department),
        selectinload(WeekMetricValue.week),
    )


async def list_values(
    db: AsyncSession,
    week_id: Optional[UUID] = None,
    metric_id: Optional[UUID] = None,
) -> List[WeekMetricValueResponse]:
    stmt = _with_relations(select(WeekMetricValue))
    if week_id is not None:
        stmt = stmt.where(WeekMetricValue.week_id == week_id)
    if metric_id is not None:
        stmt = stmt.where(WeekMetricValue.metric_id == metric_id)
    stmt = stmt.order_by(WeekMetricValue.created_at.desc())
    result = await db.execute(stmt)
    return [_to_response(v) for v in result.scalars().all()]


async def upsert_value(db: AsyncSession, payload: WeekMetricValueUpsert) -> WeekMetricValueResponse:
    """Insert the value or overwrite the existing one for the same metric and week. An omitted note is kept."""
    metric = await db.get(MetricDefinition, payload.metric_id)
    if not metric or not metric.is_active:
        raise ValidationFailed("Metric not found")
    if not await db.get(Week, payload.week_id):
        raise ValidationFailed("Week report not found")

    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise ServiceError(f"Metric upsert is not supported on {dialect}")

    now = datetime.utcnow()
    stmt = insert(WeekMetricValue).values(
        id=uuid.uuid4(),
        metric_id=payload.metric_id,
        week_id=payload.week_id,
        value=payload.value,
        note=payload.note,
        created_at=now,
        updated_at=now,
    )
    update_set = {"value": stmt.excluded["value"], "updated_at": now}
    if payload.note is not None:
        update_set["note"] = stmt.excluded["note"]
    stmt = stmt.on_conflict_do_update(index_elements=["metric_id", "week_id"], set_=update_set)

    try:
        await db.execute(stmt)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed("Metric or week no longer exists")

    result = await db.execute(
        _with_relations(select(WeekMetricValue))
        .where(
            WeekMetricValue.metric_id == payload.metric_id,
            WeekMetricValue.week_id == payload.week_id,
        )
        .execution_options(populate_existing=True)
    )
    value = result.scalar_one()
    logger.info("Stored metric %s = %s for week %s", payload.metric_id, payload.value, payload.week_id)
    return _to_response(value)
