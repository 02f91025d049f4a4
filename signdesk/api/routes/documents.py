from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile, status
from pydantic import ValidationError
from sqlmodel import Session

from signdesk.api.deps import get_current_principal, get_db, get_document_store
from signdesk.core.config import settings
from signdesk.core.logging_setup import logger
from signdesk.models.document import Attachment, Document, DocumentDraft, DocumentStatus, Signer
from signdesk.models.user import Principal
from signdesk.schemas.document import DocumentCreate, DocumentRead, DocumentShareRequest
from signdesk.services.access import can_view, visible_documents
from signdesk.services.audit import AuditService
from signdesk.services.document_store import DocumentStore, search_documents

router = APIRouter(prefix="/documents", tags=["documents"])

_SCOPES = {"all", "mine", "shared"}


def _get_visible_document(store: DocumentStore, principal: Principal, document_id: str) -> Document:
    document = store.get(document_id)
    if document is None or not can_view(principal, document):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


async def _read_attachment(upload: UploadFile) -> Attachment:
    filename = (upload.filename or "").strip()
    if not filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File name is required")
    if not settings.is_allowed_filename(filename):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"File type not allowed: {filename}",
        )
    content = await upload.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"{filename} exceeds the {settings.max_upload_bytes // (1024 * 1024)}MB limit",
        )
    return Attachment(
        name=filename,
        media_type=upload.content_type or "application/octet-stream",
        content=content,
    )


@router.post("", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    metadata: str = Form(...),
    files: List[UploadFile] = File(default=[]),
    durable: bool = Query(False),
    session: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> DocumentRead:
    try:
        payload = DocumentCreate.model_validate_json(metadata)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors()) from exc

    attachments = [await _read_attachment(upload) for upload in files]
    draft = DocumentDraft(
        title=payload.title.strip(),
        description=payload.description,
        type=payload.type,
        signers=[Signer(email=signer.email.lower(), role=signer.role) for signer in payload.signers],
        files=attachments,
    )
    document = store.create(principal, draft)
    if durable and not store.flush():
        logger.error("Document %s created but the collection could not be persisted", document.id)

    AuditService(session).record_event(
        event_type="document_created",
        actor=principal,
        document_id=document.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        details={"title": document.title, "files": len(document.files), "signers": len(document.signers)},
    )
    return DocumentRead.from_document(document)


@router.get("", response_model=List[DocumentRead])
def list_documents(
    scope: str = Query("all"),
    q: str | None = Query(None),
    status_filter: DocumentStatus | None = Query(None, alias="status"),
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> List[DocumentRead]:
    if scope not in _SCOPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="scope must be all, mine or shared")

    if scope == "mine":
        documents = store.list_owned(principal.email)
    elif scope == "shared":
        documents = store.list_shared(principal.email)
    else:
        documents = visible_documents(principal, store.all())

    return [DocumentRead.from_document(document) for document in search_documents(documents, q, status_filter)]


@router.get("/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: str,
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> DocumentRead:
    return DocumentRead.from_document(_get_visible_document(store, principal, document_id))


@router.get("/{document_id}/files/{index}")
def download_file(
    document_id: str,
    index: int,
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    document = _get_visible_document(store, principal, document_id)
    if index < 0 or index >= len(document.files):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    attachment = document.files[index]
    return Response(
        content=attachment.content,
        media_type=attachment.media_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.name}"'},
    )


@router.post("/{document_id}/share", response_model=DocumentRead)
def share_document(
    document_id: str,
    payload: DocumentShareRequest,
    session: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> DocumentRead:
    _get_visible_document(store, principal, document_id)
    target = payload.email.lower()
    document = store.share(document_id, target)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    AuditService(session).record_event(
        event_type="document_shared",
        actor=principal,
        document_id=document_id,
        details={"email": target},
    )
    return DocumentRead.from_document(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    session: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    document = _get_visible_document(store, principal, document_id)
    if not store.delete(document_id, principal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the document owner can delete the document",
        )
    AuditService(session).record_event(
        event_type="document_deleted",
        actor=principal,
        document_id=document_id,
        details={"title": document.title},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
