from __future__ import annotations

from uuid import UUID

from sqlmodel import Field

from signdesk.models.base import TimestampedModel, UUIDModel


class Contact(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "contacts"

    owner_id: UUID = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=255)
    email: str = Field(max_length=255, index=True)
    phone: str | None = Field(default=None, max_length=32)
    organization: str | None = Field(default=None, max_length=255)
    role: str | None = Field(default=None, max_length=64)
