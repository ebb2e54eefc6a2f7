from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.dependencies import get_current_user
from report_app.auth.schemas import CurrentUser
from report_app.core.exceptions import ServiceError
from report_app.db.session import get_db

from .schemas import MetricCreate, MetricDetail, MetricListItem, MetricResponse, MetricUpdate
from . import service

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get(
    "",
    response_model=List[MetricListItem],
)
async def list_metrics(
    department_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[MetricListItem]:
    """Active metrics grouped by department, in display order."""
    return await service.list_metrics(db, department_id)


@router.post(
    "",
    response_model=MetricResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_metric(
    payload: MetricCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MetricResponse:
    try:
        return await service.create_metric(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{metric_id}",
    response_model=MetricDetail,
)
async def get_metric(
    metric_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MetricDetail:
    """Metric with its 20 most recent weekly values."""
    metric = await service.get_metric(db, metric_id)
    if not metric:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metric not found")
    return metric


@router.put(
    "/{metric_id}",
    response_model=MetricResponse,
)
async def update_metric(
    metric_id: UUID,
    payload: MetricUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MetricResponse:
    metric = await service.update_metric(db, metric_id, payload)
    if not metric:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metric not found")
    return metric


@router.delete(
    "/{metric_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_metric(
    metric_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    deleted = await service.delete_metric(db, metric_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metric not found")
