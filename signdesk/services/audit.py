from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from signdesk.models.audit import AuditLog
from signdesk.models.user import Principal


class AuditService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record_event(
        self,
        event_type: str,
        actor: Principal | None = None,
        document_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict | None = None,
    ) -> AuditLog:
        log = AuditLog(
            document_id=document_id,
            event_type=event_type,
            actor_id=UUID(actor.id) if actor else None,
            actor_email=actor.email if actor else None,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details or {},
        )
        self.session.add(log)
        self.session.commit()
        return log

    def list_events(
        self,
        event_type: Optional[str] = None,
        document_id: Optional[str] = None,
        actor_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[AuditLog], int]:
        query = select(AuditLog)
        if event_type:
            query = query.where(AuditLog.event_type == event_type)
        if document_id:
            query = query.where(AuditLog.document_id == document_id)
        if actor_id:
            query = query.where(AuditLog.actor_id == actor_id)

        total = self.session.exec(
            select(func.count()).select_from(query.subquery())
        ).one()

        items = self.session.exec(
            query.order_by(AuditLog.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()
        return list(items), total
