from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.core.exceptions import ServiceError
from report_app.db.session import get_db

from .schemas import WeekMetricValueResponse, WeekMetricValueUpsert
from . import service

router = APIRouter(prefix="/api/v1/week-metrics", tags=["week-metrics"])


@router.get(
    "",
    response_model=List[WeekMetricValueResponse],
)
async def list_week_metric_values(
    week_id: Optional[UUID] = Query(None),
    metric_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[WeekMetricValueResponse]:
    return await service.list_values(db, week_id=week_id, metric_id=metric_id)


@router.post(
    "",
    response_model=WeekMetricValueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upsert_week_metric_value(
    payload: WeekMetricValueUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> WeekMetricValueResponse:
    """Create the value for (metric, week) or overwrite the existing one."""
    try:
        return await service.upsert_value(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
