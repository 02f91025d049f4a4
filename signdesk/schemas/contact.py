from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str | None = None
    organization: str | None = None
    role: str | None = None


class ContactCreate(ContactBase):
    pass


class ContactRead(ContactBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContactUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    organization: str | None = None
    role: str | None = None
