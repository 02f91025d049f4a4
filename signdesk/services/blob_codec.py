from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from signdesk.core.errors import CorruptAttachment
from signdesk.core.logging_setup import logger
from signdesk.models.document import Attachment, Document


class EncodedAttachment(BaseModel):
    name: str
    media_type: str
    length: int
    payload: str


def encode_attachment(attachment: Attachment) -> EncodedAttachment:
    return EncodedAttachment(
        name=attachment.name,
        media_type=attachment.media_type,
        length=len(attachment.content),
        payload=base64.b64encode(attachment.content).decode("ascii"),
    )


def decode_attachment(encoded: EncodedAttachment | dict[str, Any]) -> Attachment:
    """
    Rebuild an attachment from its stored form.

    The reported size is the stored ``length``, not the size of whatever the
    payload decodes to.
    """
    try:
        if not isinstance(encoded, EncodedAttachment):
            encoded = EncodedAttachment.model_validate(encoded)
        content = base64.b64decode(encoded.payload.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, ValidationError) as exc:
        raise CorruptAttachment(f"Attachment could not be decoded: {exc}") from exc

    if len(content) != encoded.length:
        logger.warning(
            "Attachment %r decoded to %s bytes, stored length is %s",
            encoded.name,
            len(content),
            encoded.length,
        )
    return Attachment(
        name=encoded.name,
        media_type=encoded.media_type,
        content=content,
        size=encoded.length,
    )


def _document_to_record(document: Document) -> dict[str, Any]:
    record = document.model_dump(mode="json", exclude={"files"})
    record["files"] = [encode_attachment(item).model_dump() for item in document.files]
    return record


def encode_collection(documents: Iterable[Document]) -> str:
    return json.dumps([_document_to_record(document) for document in documents])


def decode_collection(raw: str) -> list[Document]:
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptAttachment(f"Document collection is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise CorruptAttachment("Document collection must be a JSON array")

    documents: list[Document] = []
    for record in records:
        if not isinstance(record, dict):
            raise CorruptAttachment("Document record must be a JSON object")
        raw_files = record.get("files") or []
        if not isinstance(raw_files, list):
            raise CorruptAttachment(f"Document record {record.get('id')!r} has malformed files")
        try:
            files = [decode_attachment(item) for item in raw_files]
            document = Document.model_validate({**record, "files": []})
        except (ValidationError, TypeError, AttributeError) as exc:
            raise CorruptAttachment(f"Document record {record.get('id')!r} is invalid: {exc}") from exc
        document.files = files
        documents.append(document)
    return documents
