from __future__ import annotations

from uuid import UUID

from sqlalchemy import JSON
from sqlmodel import Field

from signdesk.models.base import TimestampedModel, UUIDModel


class AuditLog(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "audit_logs"

    # Documents live in the slot, not in the database, so no foreign key here.
    document_id: str | None = Field(default=None, index=True)
    event_type: str = Field(index=True)
    actor_id: UUID | None = Field(default=None, index=True)
    actor_email: str | None = Field(default=None)
    ip_address: str | None = Field(default=None)
    user_agent: str | None = Field(default=None)
    details: dict | None = Field(default_factory=dict, sa_type=JSON)
