from __future__ import annotations

from typing import Iterable

from signdesk.models.document import Document
from signdesk.models.user import Principal


def is_owner(principal: Principal, document: Document) -> bool:
    return document.owner_email == principal.email


def is_shared_with(principal: Principal, document: Document) -> bool:
    if is_owner(principal, document):
        return False
    return principal.email in document.shared_with or any(
        signer.email == principal.email for signer in document.signers
    )


def can_view(principal: Principal, document: Document) -> bool:
    return principal.is_admin or is_owner(principal, document) or is_shared_with(principal, document)


def visible_documents(principal: Principal, documents: Iterable[Document]) -> list[Document]:
    """
    Documents the principal may list or act upon.

    Admins see the whole collection. Everyone else gets their own documents
    followed by the ones shared with them or where they are a signer.
    """
    collection = list(documents)
    if principal.is_admin:
        return collection
    owned = [document for document in collection if is_owner(principal, document)]
    shared = [document for document in collection if is_shared_with(principal, document)]
    return owned + shared
