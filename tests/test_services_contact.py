from uuid import uuid4

import pytest
from sqlmodel import Session

from signdesk.models.user import User
from signdesk.services.contact import ContactService


@pytest.fixture()
def owners(db_session: Session) -> tuple[User, User]:
    first = User(name="Owner", email=f"owner_{uuid4().hex[:6]}@example.com", password_hash="hash")
    second = User(name="Other", email=f"other_{uuid4().hex[:6]}@example.com", password_hash="hash")
    db_session.add_all([first, second])
    db_session.commit()
    return first, second


def test_create_normalizes_and_scopes(db_session: Session, owners: tuple[User, User]) -> None:
    owner, other = owners
    service = ContactService(db_session)

    contact = service.create(
        owner.id,
        {"name": "  Priya Shah ", "email": "Priya@Example.com", "organization": "Acme", "phone": " "},
    )

    assert contact.name == "Priya Shah"
    assert contact.email == "priya@example.com"
    assert contact.phone is None
    assert service.get(owner.id, contact.id) is not None
    assert service.get(other.id, contact.id) is None
    assert service.search(other.id) == []


def test_create_rejects_duplicates_and_missing_fields(db_session: Session, owners: tuple[User, User]) -> None:
    owner, other = owners
    service = ContactService(db_session)
    service.create(owner.id, {"name": "A", "email": "a@x.com"})

    with pytest.raises(ValueError):
        service.create(owner.id, {"name": "A again", "email": "A@X.com"})
    with pytest.raises(ValueError):
        service.create(owner.id, {"name": "", "email": "new@x.com"})

    # Same email under another owner is fine.
    assert service.create(other.id, {"name": "A", "email": "a@x.com"}).owner_id == other.id


def test_search_matches_name_email_and_organization(db_session: Session, owners: tuple[User, User]) -> None:
    owner, _ = owners
    service = ContactService(db_session)
    service.create(owner.id, {"name": "Ravi", "email": "ravi@acme.com"})
    service.create(owner.id, {"name": "Meera", "email": "meera@x.com", "organization": "Acme Corp"})
    service.create(owner.id, {"name": "John", "email": "john@y.com"})

    assert [contact.name for contact in service.search(owner.id, "acme")] == ["Meera", "Ravi"]
    assert [contact.name for contact in service.search(owner.id, "JOHN")] == ["John"]
    assert len(service.search(owner.id)) == 3


def test_update_and_delete(db_session: Session, owners: tuple[User, User]) -> None:
    owner, _ = owners
    service = ContactService(db_session)
    first = service.create(owner.id, {"name": "A", "email": "a@x.com"})
    second = service.create(owner.id, {"name": "B", "email": "b@x.com"})

    updated = service.update(first, {"role": "Approver", "phone": "+91 99999 00000"})
    assert updated.role == "Approver"
    assert updated.updated_at is not None

    with pytest.raises(ValueError):
        service.update(second, {"email": "a@x.com"})

    service.delete(second)
    assert service.get(owner.id, second.id) is None
