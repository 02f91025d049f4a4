from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from signdesk.api.deps import get_current_principal, get_document_store
from signdesk.models.user import Principal
from signdesk.schemas.dashboard import DashboardMetrics, TimelinePoint
from signdesk.services.access import visible_documents
from signdesk.services.analytics import AnalyticsService
from signdesk.services.document_store import DocumentStore

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=DashboardMetrics)
def get_dashboard_metrics(
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> DashboardMetrics:
    service = AnalyticsService(visible_documents(principal, store.all()))
    return DashboardMetrics(**service.get_dashboard_metrics())


@router.get("/timeline", response_model=List[TimelinePoint])
def get_timeline(
    time_range: str = Query("month", alias="range"),
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> List[TimelinePoint]:
    service = AnalyticsService(visible_documents(principal, store.all()))
    try:
        points = service.timeline(time_range)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [TimelinePoint(**point) for point in points]
