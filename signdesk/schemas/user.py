from datetime import datetime

from pydantic import BaseModel, EmailStr

from signdesk.models.user import UserRole
from signdesk.schemas.common import IDModel, Timestamped


class UserRead(IDModel, Timestamped):
    name: str
    email: EmailStr
    role: UserRole
    phone: str | None = None
    organization: str | None = None
    profile_image: str | None = None
    is_active: bool
    last_login_at: datetime | None = None


class UserProfileUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    organization: str | None = None
    profile_image: str | None = None


class AccountDeleteRequest(BaseModel):
    password: str
