from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel import Session

from signdesk.api.deps import get_current_active_user, get_db
from signdesk.models.user import User
from signdesk.schemas.contact import ContactCreate, ContactRead, ContactUpdate
from signdesk.services.contact import ContactService

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _get_owned_contact(service: ContactService, owner: User, contact_id: UUID):
    contact = service.get(owner.id, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


@router.get("", response_model=list[ContactRead])
def search_contacts(
    q: str = Query(""),
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ContactRead]:
    service = ContactService(session)
    contacts = service.search(current_user.id, q.strip(), limit)
    return [ContactRead.model_validate(contact, from_attributes=True) for contact in contacts]


@router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: ContactCreate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ContactRead:
    service = ContactService(session)
    try:
        contact = service.create(current_user.id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ContactRead.model_validate(contact, from_attributes=True)


@router.get("/{contact_id}", response_model=ContactRead)
def get_contact(
    contact_id: UUID,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ContactRead:
    contact = _get_owned_contact(ContactService(session), current_user, contact_id)
    return ContactRead.model_validate(contact, from_attributes=True)


@router.patch("/{contact_id}", response_model=ContactRead)
def update_contact(
    contact_id: UUID,
    payload: ContactUpdate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ContactRead:
    service = ContactService(session)
    contact = _get_owned_contact(service, current_user, contact_id)
    try:
        contact = service.update(contact, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ContactRead.model_validate(contact, from_attributes=True)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: UUID,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    service = ContactService(session)
    contact = _get_owned_contact(service, current_user, contact_id)
    service.delete(contact)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
