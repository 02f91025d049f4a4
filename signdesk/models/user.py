from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlmodel import Field

from signdesk.models.base import TimestampedModel, UUIDModel


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "users"

    name: str = Field(default="", max_length=255)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str = Field(default=UserRole.USER.value, index=True)
    phone: str | None = Field(default=None, max_length=32)
    organization: str | None = Field(default=None, max_length=255)
    profile_image: str | None = Field(default=None)
    is_active: bool = Field(default=True)
    last_login_at: datetime | None = Field(default=None)


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=str(user.id), email=user.email, role=UserRole(user.role))
