from __future__ import annotations

import uuid

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

from signdesk.api.deps import get_db
from signdesk.core.config import settings
from signdesk.db import session as db_session_module
from signdesk.main import create_app
from signdesk.models.user import Principal, UserRole
from signdesk.services.document_store import DocumentStore
from signdesk.services.storage import MemoryStorage


@pytest.fixture()
def db_engine(tmp_path):
    db_path = tmp_path / f"test_{uuid.uuid4().hex}.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(bind=engine)

    original_engine = db_session_module.engine
    db_session_module.engine = engine

    yield engine

    db_session_module.engine = original_engine
    engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Session:
    with Session(db_engine) as session:
        yield session


@pytest.fixture()
def slot_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(slot_storage: MemoryStorage) -> DocumentStore:
    document_store = DocumentStore(slot_storage, slot_key="documents", write_behind=False)
    yield document_store
    document_store.close()


@pytest.fixture()
def alice() -> Principal:
    return Principal(id=str(uuid.uuid4()), email="a@x.com")


@pytest.fixture()
def bob() -> Principal:
    return Principal(id=str(uuid.uuid4()), email="b@x.com")


@pytest.fixture()
def admin() -> Principal:
    return Principal(id=str(uuid.uuid4()), email="admin@x.com", role=UserRole.ADMIN)


@pytest.fixture()
def client(db_engine, store) -> TestClient:
    app = create_app(document_store=store)

    def override_get_db():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_login(client: TestClient, email: str, password: str = "Secret123!", name: str = "Test User") -> dict[str, str]:
    register_response = client.post(
        f"{settings.api_v1_str}/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert register_response.status_code == status.HTTP_201_CREATED, register_response.json()

    login_response = client.post(
        f"{settings.api_v1_str}/auth/login",
        json={"username": email, "password": password},
    )
    assert login_response.status_code == status.HTTP_200_OK, login_response.json()
    return login_response.json()


def auth_headers(token: dict[str, str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {token['access_token']}"}
