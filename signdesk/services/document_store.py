from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from signdesk.core.errors import CorruptAttachment
from signdesk.core.logging_setup import logger
from signdesk.models.document import Document, DocumentDraft, DocumentStatus, Signature
from signdesk.models.user import Principal
from signdesk.services.blob_codec import decode_collection, encode_collection
from signdesk.services.storage import SlotStorage


class DocumentStore:
    """
    In-process document collection mirrored to a single storage slot.

    Every mutation re-serializes the whole collection. With ``write_behind``
    the write runs on a background worker and the caller gets control back
    immediately; ``last_write`` / ``flush()`` expose completion. Reads always
    come from memory.
    """

    def __init__(
        self,
        storage: SlotStorage,
        slot_key: str = "documents",
        write_behind: bool = True,
    ) -> None:
        self.storage = storage
        self.slot_key = slot_key
        self.write_behind = write_behind
        self._documents: list[Document] = []
        self._lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="signdesk-persist") if write_behind else None
        )
        self.last_write: Future[bool] | None = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> int:
        try:
            raw = self.storage.read(self.slot_key)
        except Exception as exc:
            logger.error("Error reading documents slot %r: %s", self.slot_key, exc)
            raw = None

        documents: list[Document] = []
        if raw:
            try:
                documents = decode_collection(raw)
            except CorruptAttachment as exc:
                logger.error("Error parsing documents from slot %r: %s", self.slot_key, exc)
                documents = []

        with self._lock:
            self._documents = documents
        logger.info("Loaded %s documents from slot %r", len(documents), self.slot_key)
        return len(documents)

    def _write_snapshot(self, snapshot: list[Document]) -> bool:
        try:
            self.storage.write(self.slot_key, encode_collection(snapshot))
        except Exception as exc:
            logger.error("Error saving documents to slot %r: %s", self.slot_key, exc)
            return False
        return True

    def _persist(self) -> Future[bool]:
        with self._lock:
            snapshot = [document.model_copy(deep=True) for document in self._documents]

        if self._executor is None:
            future: Future[bool] = Future()
            future.set_result(self._write_snapshot(snapshot))
        else:
            future = self._executor.submit(self._write_snapshot, snapshot)
        self.last_write = future
        return future

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for the most recent write. Returns whether it succeeded."""
        future = self.last_write
        if future is None:
            return True
        return future.result(timeout=timeout)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _find(self, document_id: str) -> Document | None:
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def get(self, document_id: str) -> Document | None:
        with self._lock:
            return self._find(document_id)

    def all(self) -> list[Document]:
        with self._lock:
            return list(self._documents)

    def query(self, predicate: Callable[[Document], bool]) -> list[Document]:
        with self._lock:
            return [document for document in self._documents if predicate(document)]

    def list_owned(self, email: str | None) -> list[Document]:
        if not email:
            return []
        return self.query(lambda document: document.owner_email == email)

    def list_shared(self, email: str | None) -> list[Document]:
        if not email:
            return []
        return self.query(
            lambda document: document.owner_email != email
            and (
                email in document.shared_with
                or any(signer.email == email for signer in document.signers)
            )
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, principal: Principal, draft: DocumentDraft) -> Document:
        document = Document(
            id=str(uuid4()),
            title=draft.title,
            description=draft.description,
            type=draft.type,
            status=draft.status,
            uploaded_at=draft.uploaded_at or datetime.utcnow(),
            signers=[signer.model_copy(deep=True) for signer in draft.signers],
            files=[item.model_copy() for item in draft.files],
            owner_email=principal.email,
            shared_with=[],
        )
        with self._lock:
            self._documents.append(document)
        logger.info("Document %s (%r) created by %s", document.id, document.title, principal.email)
        self._persist()
        return document

    def update_status(
        self,
        document_id: str,
        status: DocumentStatus,
        signature: Signature | None,
        principal: Principal,
    ) -> Document | None:
        with self._lock:
            document = self._find(document_id)
            if document is None:
                logger.warning("update_status: document %s not found", document_id)
                return None

            was_signed = document.status == DocumentStatus.SIGNED
            document.status = status
            if status == DocumentStatus.SIGNED and not (was_signed and document.signed_at):
                document.signed_at = datetime.utcnow()

            signer = document.signer_for(principal.email)
            if signer is not None:
                signer.signature = signature
            else:
                logger.info("update_status: %s is not a signer of document %s", principal.email, document_id)

        self._persist()
        return document

    def delete(self, document_id: str, principal: Principal) -> bool:
        with self._lock:
            document = self._find(document_id)
            if document is None:
                logger.warning("delete: document %s not found", document_id)
                return False
            if document.owner_email != principal.email:
                logger.error("Only the document owner can delete the document (%s, %s)", document_id, principal.email)
                return False
            self._documents = [item for item in self._documents if item.id != document_id]

        logger.info(
            "Document %r has been deleted. %s user(s) who had access will no longer be able to view it.",
            document.title,
            len(set(document.shared_with) | {signer.email for signer in document.signers}),
        )
        self._persist()
        return True

    def share(self, document_id: str, target_email: str) -> Document | None:
        with self._lock:
            document = self._find(document_id)
            if document is None:
                logger.warning("share: document %s not found", document_id)
                return None
            if target_email in document.shared_with:
                return document
            document.shared_with.append(target_email)

        logger.info("Document %s shared with %s", document_id, target_email)
        self._persist()
        return document


def search_documents(
    documents: Iterable[Document],
    term: str | None = None,
    status: DocumentStatus | None = None,
) -> list[Document]:
    needle = (term or "").strip().lower()
    matches: Sequence[Document] = [
        document
        for document in documents
        if (not needle or needle in document.title.lower() or needle in document.description.lower())
        and (status is None or document.status == status)
    ]
    return sorted(matches, key=lambda document: document.uploaded_at, reverse=True)
