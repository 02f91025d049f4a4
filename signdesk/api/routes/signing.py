from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from signdesk.api.deps import get_current_principal, get_db, get_document_store, get_signing_registry
from signdesk.core.errors import InvalidSessionState, NotFound, ValidationFailed
from signdesk.models.document import Document
from signdesk.models.user import Principal
from signdesk.schemas.document import (
    ChallengeVerifyRequest,
    DocumentRead,
    IdentityReferenceRequest,
    SignatureImageRequest,
    SigningSessionRead,
    SignMethodRequest,
    StrokeRequest,
    TypedSignatureRequest,
)
from signdesk.services.access import can_view
from signdesk.services.audit import AuditService
from signdesk.services.document_store import DocumentStore
from signdesk.services.signing import SigningSession, SigningSessionRegistry

router = APIRouter(tags=["signing"])


def _session_to_read(session: SigningSession) -> SigningSessionRead:
    return SigningSessionRead(
        id=session.id,
        document_id=session.document_id,
        state=session.state.value,
        method=session.method,
        capture_empty=session.surface.is_empty(),
        typed_name=session.typed_name,
        typed_style=session.typed_style,
        signature=session.signature,
    )


def _load_session(registry: SigningSessionRegistry, session_id: str, principal: Principal) -> SigningSession:
    try:
        return registry.get(session_id, principal)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _apply(session: SigningSession, action, *args) -> SigningSessionRead:
    try:
        action(*args)
    except ValidationFailed as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InvalidSessionState as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _session_to_read(session)


def _finish(session: SigningSession, db: Session, action, *args) -> DocumentRead:
    try:
        document: Document = action(*args)
    except ValidationFailed as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InvalidSessionState as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    AuditService(db).record_event(
        event_type="document_signed",
        actor=session.principal,
        document_id=session.document_id,
        details={"method": session.method.value if session.method else None},
    )
    return DocumentRead.from_document(document)


@router.post(
    "/documents/{document_id}/signing-sessions",
    response_model=SigningSessionRead,
    status_code=status.HTTP_201_CREATED,
)
def start_signing_session(
    document_id: str,
    store: DocumentStore = Depends(get_document_store),
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    document = store.get(document_id)
    if document is None or not can_view(principal, document):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return _session_to_read(registry.start(document_id, principal))


@router.get("/signing-sessions/{session_id}", response_model=SigningSessionRead)
def get_signing_session(
    session_id: str,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    return _session_to_read(_load_session(registry, session_id, principal))


@router.put("/signing-sessions/{session_id}/method", response_model=SigningSessionRead)
def select_method(
    session_id: str,
    payload: SignMethodRequest,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.select_method, payload.method)


@router.post("/signing-sessions/{session_id}/strokes", response_model=SigningSessionRead)
def add_stroke(
    session_id: str,
    payload: StrokeRequest,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.add_stroke, payload.points)


@router.post("/signing-sessions/{session_id}/image", response_model=SigningSessionRead)
def set_image(
    session_id: str,
    payload: SignatureImageRequest,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.set_image, payload.image)


@router.post("/signing-sessions/{session_id}/clear", response_model=SigningSessionRead)
def clear_capture(
    session_id: str,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.clear)


@router.post("/signing-sessions/{session_id}/typed", response_model=SigningSessionRead)
def set_typed(
    session_id: str,
    payload: TypedSignatureRequest,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.set_typed, payload.name, payload.style)


@router.post("/signing-sessions/{session_id}/reference", response_model=SigningSessionRead)
def set_reference(
    session_id: str,
    payload: IdentityReferenceRequest,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.set_reference, payload.number)


@router.post("/signing-sessions/{session_id}/challenge", response_model=SigningSessionRead)
def request_challenge(
    session_id: str,
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> SigningSessionRead:
    session = _load_session(registry, session_id, principal)
    return _apply(session, session.request_challenge)


@router.post("/signing-sessions/{session_id}/challenge/verify", response_model=DocumentRead)
def verify_challenge(
    session_id: str,
    payload: ChallengeVerifyRequest,
    db: Session = Depends(get_db),
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> DocumentRead:
    session = _load_session(registry, session_id, principal)
    return _finish(session, db, session.submit_challenge, payload.code)


@router.post("/signing-sessions/{session_id}/commit", response_model=DocumentRead)
def commit_signature(
    session_id: str,
    db: Session = Depends(get_db),
    registry: SigningSessionRegistry = Depends(get_signing_registry),
    principal: Principal = Depends(get_current_principal),
) -> DocumentRead:
    session = _load_session(registry, session_id, principal)
    return _finish(session, db, session.commit)
