from datetime import datetime
from typing import Any
from uuid import UUID

from sqlmodel import Session, select

from signdesk.core.logging_setup import logger
from signdesk.models.user import User, UserRole
from signdesk.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, Token
from signdesk.services.contact import ContactService
from signdesk.utils.security import (
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)

_PROFILE_FIELDS = ("name", "phone", "organization", "profile_image")


class AuthService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def admin_exists(self) -> bool:
        statement = select(User).where(User.role == UserRole.ADMIN.value)
        return self.session.exec(statement).first() is not None

    def register(self, payload: RegisterRequest, role: UserRole = UserRole.USER) -> Token:
        email = payload.email.lower()
        existing_user = self.session.exec(select(User).where(User.email == email)).first()
        if existing_user:
            raise ValueError("User already exists")

        now = datetime.utcnow()
        user = User(
            name=payload.name.strip(),
            email=email,
            password_hash=get_password_hash(payload.password),
            role=role.value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return self._build_tokens(user)

    def setup_admin(self, payload: RegisterRequest) -> Token:
        # Single admin per installation.
        if self.admin_exists():
            raise ValueError("An admin account already exists. Only one admin is allowed.")
        token = self.register(payload, role=UserRole.ADMIN)
        logger.warning("Admin account created for %s", payload.email)
        return token

    def authenticate(self, payload: LoginRequest) -> Token:
        statement = select(User).where(User.email == payload.username.lower())
        user = self.session.exec(statement).first()

        if not user or not user.is_active:
            raise ValueError("Invalid credentials")

        if not verify_password(payload.password, user.password_hash):
            raise ValueError("Invalid credentials")

        user.last_login_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)

        return self._build_tokens(user)

    def refresh(self, payload: RefreshRequest) -> Token:
        token_data = decode_token(payload.refresh_token)
        if token_data.get("token_type") != TokenType.REFRESH.value:
            raise ValueError("Invalid token type")

        user = self.session.get(User, self._parse_subject(token_data.get("sub")))
        if not user or not user.is_active:
            raise ValueError("Invalid token")

        return self._build_tokens(user)

    def promote_to_admin(self, user_id: Any) -> User:
        user = self.session.get(User, self._parse_subject(user_id))
        if not user:
            raise ValueError("User document not found")
        if user.role == UserRole.ADMIN.value:
            return user
        if self.admin_exists():
            raise ValueError("An admin account already exists. Only one admin is allowed.")

        user.role = UserRole.ADMIN.value
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        for key in _PROFILE_FIELDS:
            if key in changes and changes[key] is not None:
                value = changes[key]
                setattr(user, key, value.strip() if isinstance(value, str) else value)
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def delete_account(self, user: User, password: str) -> None:
        if not verify_password(password, user.password_hash):
            raise ValueError("Invalid credentials")
        email = user.email
        removed = ContactService(self.session).delete_for_owner(user.id)
        self.session.delete(user)
        self.session.commit()
        logger.info("Account %s deleted together with %s contact(s)", email, removed)

    @staticmethod
    def _parse_subject(value: Any) -> UUID:
        try:
            return UUID(str(value))
        except (TypeError, ValueError) as exc:
            raise ValueError("Invalid token subject") from exc

    def _build_tokens(self, user: User) -> Token:
        return Token(
            access_token=create_access_token(str(user.id), {"role": user.role}),
            refresh_token=create_refresh_token(str(user.id)),
            role=user.role,
        )
