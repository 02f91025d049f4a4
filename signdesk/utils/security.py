from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Mapping
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from signdesk.core.config import settings


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _create_token(
    subject: str,
    expires_delta: timedelta,
    token_type: TokenType,
    extra_claims: Mapping[str, Any] | None = None,
) -> str:
    expire = datetime.utcnow() + expires_delta
    to_encode = {
        "sub": subject,
        "exp": expire,
        "token_type": token_type.value,
        "jti": str(uuid4()),
    }
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(subject: str, extra_claims: Mapping[str, Any] | None = None) -> str:
    delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _create_token(subject, delta, TokenType.ACCESS, extra_claims)


def create_refresh_token(subject: str, extra_claims: Mapping[str, Any] | None = None) -> str:
    delta = timedelta(minutes=settings.refresh_token_expire_minutes)
    return _create_token(subject, delta, TokenType.REFRESH, extra_claims)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def decode_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    if "token_type" not in payload:
        raise ValueError("Invalid token payload")
    return payload
