from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlmodel import Session, func, select

from signdesk.models.contact import Contact


class ContactService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def search(self, owner_id: UUID, query: str = "", limit: int = 100) -> list[Contact]:
        statement = select(Contact).where(Contact.owner_id == owner_id)
        if query:
            pattern = f"%{query.lower()}%"
            statement = statement.where(
                func.lower(Contact.name).like(pattern)
                | func.lower(Contact.email).like(pattern)
                | func.lower(Contact.organization).like(pattern)
            )
        statement = statement.order_by(Contact.name).limit(max(limit, 1))
        return list(self.session.exec(statement).all())

    def get(self, owner_id: UUID, contact_id: UUID) -> Contact | None:
        contact = self.session.get(Contact, contact_id)
        if not contact or contact.owner_id != owner_id:
            return None
        return contact

    def create(self, owner_id: UUID, payload: dict[str, Any]) -> Contact:
        data = self._normalize_payload(payload)
        if not data.get("name"):
            raise ValueError("Contact name is required")
        if not data.get("email"):
            raise ValueError("Contact email is required")
        if self._find_by_email(owner_id, data["email"]):
            raise ValueError("A contact with this email already exists")

        contact = Contact(owner_id=owner_id, **data)
        self.session.add(contact)
        self.session.commit()
        self.session.refresh(contact)
        return contact

    def update(self, contact: Contact, payload: dict[str, Any]) -> Contact:
        data = self._normalize_payload(payload)
        if "name" in data and not data["name"]:
            raise ValueError("Contact name is required")
        if "email" in data:
            if not data["email"]:
                raise ValueError("Contact email is required")
            existing = self._find_by_email(contact.owner_id, data["email"])
            if existing and existing.id != contact.id:
                raise ValueError("A contact with this email already exists")

        for key, value in data.items():
            setattr(contact, key, value)
        contact.updated_at = datetime.utcnow()
        self.session.add(contact)
        self.session.commit()
        self.session.refresh(contact)
        return contact

    def delete(self, contact: Contact) -> None:
        self.session.delete(contact)
        self.session.commit()

    def delete_for_owner(self, owner_id: UUID) -> int:
        contacts = self.session.exec(select(Contact).where(Contact.owner_id == owner_id)).all()
        for contact in contacts:
            self.session.delete(contact)
        self.session.flush()
        return len(contacts)

    def _normalize_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key in ("name", "email", "phone", "organization", "role"):
            if key not in payload:
                continue
            value = payload[key]
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
        if cleaned.get("email"):
            cleaned["email"] = cleaned["email"].lower()
        return cleaned

    def _find_by_email(self, owner_id: UUID, email: str) -> Contact | None:
        statement = select(Contact).where(Contact.owner_id == owner_id).where(func.lower(Contact.email) == email.lower())
        return self.session.exec(statement).first()
