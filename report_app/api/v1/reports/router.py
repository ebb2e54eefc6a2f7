from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.db.session import get_db

from .schemas import MetricsDataResponse, OverviewResponse, TaskMetricsResponse, TimelineResponse
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def _current_year() -> int:
    return date.today().year


@router.get(
    "/overview",
    response_model=OverviewResponse,
)
async def get_overview(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> OverviewResponse:
    """Dashboard home counters, the six newest weeks and the leading in-progress tasks."""
    return await service.get_overview(db)


@router.get(
    "/task-metrics",
    response_model=TaskMetricsResponse,
)
async def get_task_metrics(
    year: Optional[int] = Query(None, ge=2000),
    department_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskMetricsResponse:
    return await service.get_task_metrics(db, year or _current_year(), department_id)


@router.get(
    "/timeline",
    response_model=TimelineResponse,
)
async def get_timeline(
    year: Optional[int] = Query(None, ge=2000),
    department_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimelineResponse:
    return await service.get_timeline(db, year or _current_year(), department_id)


@router.get(
    "/metrics-data",
    response_model=MetricsDataResponse,
)
async def get_metrics_data(
    year: Optional[int] = Query(None, ge=2000),
    department_id: Optional[UUID] = Query(None),
    metric_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MetricsDataResponse:
    return await service.get_metrics_data(db, year or _current_year(), department_id, metric_id)
