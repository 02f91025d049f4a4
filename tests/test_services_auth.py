import pytest
from sqlmodel import Session, select

from signdesk.models.contact import Contact
from signdesk.models.user import User, UserRole
from signdesk.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest
from signdesk.services.auth import AuthService
from signdesk.services.contact import ContactService
from signdesk.utils.security import decode_token


def _register(service: AuthService, email: str, role: UserRole = UserRole.USER):
    return service.register(RegisterRequest(name="User", email=email, password="Secret123!"), role=role)


def test_register_and_authenticate(db_session: Session) -> None:
    service = AuthService(db_session)
    token = _register(service, "Person@Example.com")

    payload = decode_token(token.access_token)
    assert payload["token_type"] == "access"
    assert token.role == "user"

    login = service.authenticate(LoginRequest(username="person@example.com", password="Secret123!"))
    assert decode_token(login.access_token)["sub"] == payload["sub"]

    with pytest.raises(ValueError):
        service.authenticate(LoginRequest(username="person@example.com", password="wrong"))
    with pytest.raises(ValueError):
        _register(service, "person@example.com")


def test_refresh_requires_refresh_token(db_session: Session) -> None:
    service = AuthService(db_session)
    token = _register(service, "refresh@example.com")

    refreshed = service.refresh(RefreshRequest(refresh_token=token.refresh_token))
    assert refreshed.access_token

    with pytest.raises(ValueError):
        service.refresh(RefreshRequest(refresh_token=token.access_token))


def test_only_one_admin_is_allowed(db_session: Session) -> None:
    service = AuthService(db_session)
    assert service.admin_exists() is False

    token = service.setup_admin(RegisterRequest(name="Admin", email="admin@example.com", password="Secret123!"))
    assert token.role == "admin"
    assert service.admin_exists() is True

    with pytest.raises(ValueError):
        service.setup_admin(RegisterRequest(name="Admin 2", email="admin2@example.com", password="Secret123!"))

    _register(service, "user@example.com")
    user = db_session.exec(select(User).where(User.email == "user@example.com")).one()
    with pytest.raises(ValueError):
        service.promote_to_admin(user.id)


def test_promote_when_no_admin(db_session: Session) -> None:
    service = AuthService(db_session)
    _register(service, "future-admin@example.com")
    user = db_session.exec(select(User).where(User.email == "future-admin@example.com")).one()

    promoted = service.promote_to_admin(user.id)

    assert promoted.role == UserRole.ADMIN.value


def test_update_profile_and_delete_account(db_session: Session) -> None:
    service = AuthService(db_session)
    _register(service, "me@example.com")
    user = db_session.exec(select(User).where(User.email == "me@example.com")).one()
    ContactService(db_session).create(user.id, {"name": "Friend", "email": "friend@example.com"})

    updated = service.update_profile(user, {"organization": " Acme ", "phone": "123", "email": "ignored@x.com"})
    assert updated.organization == "Acme"
    assert updated.email == "me@example.com"

    with pytest.raises(ValueError):
        service.delete_account(user, "wrong")

    service.delete_account(user, "Secret123!")
    assert db_session.exec(select(User).where(User.email == "me@example.com")).first() is None
    assert db_session.exec(select(Contact)).all() == []
