from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from signdesk.api.deps import get_db, require_admin
from signdesk.models.user import User
from signdesk.schemas.audit import AuditEventList, AuditEventRead
from signdesk.services.audit import AuditService

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/events", response_model=AuditEventList)
def list_events(
    event_type: str | None = Query(None),
    document_id: str | None = Query(None),
    actor_id: UUID | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> AuditEventList:
    items, total = AuditService(session).list_events(
        event_type=event_type,
        document_id=document_id,
        actor_id=actor_id,
        page=page,
        page_size=page_size,
    )
    return AuditEventList(
        items=[AuditEventRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )
