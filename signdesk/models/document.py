from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class DocumentStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    EXPIRED = "expired"


class SignMethod(str, Enum):
    DRAW = "draw"
    TYPE = "type"
    AADHAAR = "aadhaar"
    DSC = "dsc"


SUGGESTED_SIGNER_ROLES = ("signer", "reviewer", "approver", "cc")
SUGGESTED_DOCUMENT_TYPES = ("contract", "agreement", "nda", "offer", "proposal", "other")
TYPED_SIGNATURE_STYLES = ("style1", "style2", "style3")


# -------------------------------------------------------------------------
# Signature variants
# -------------------------------------------------------------------------

class DrawnSignature(BaseModel):
    kind: Literal["drawn"] = "drawn"
    image: str = Field(min_length=1)


class TypedSignature(BaseModel):
    kind: Literal["typed"] = "typed"
    name: str = Field(min_length=1)
    style: str = "style1"


class AadhaarSignature(BaseModel):
    kind: Literal["aadhaar"] = "aadhaar"


class DscSignature(BaseModel):
    kind: Literal["dsc"] = "dsc"


Signature = Annotated[
    Union[DrawnSignature, TypedSignature, AadhaarSignature, DscSignature],
    Field(discriminator="kind"),
]


# -------------------------------------------------------------------------
# Document aggregate
# -------------------------------------------------------------------------

class Signer(BaseModel):
    email: str
    role: str = "signer"
    signature: Optional[Signature] = None

    @property
    def has_signed(self) -> bool:
        return self.signature is not None


class Attachment(BaseModel):
    name: str
    media_type: str = "application/octet-stream"
    content: bytes = b""
    size: int = -1

    @model_validator(mode="after")
    def _default_size(self) -> "Attachment":
        if self.size < 0:
            self.size = len(self.content)
        return self


class Document(BaseModel):
    id: str
    title: str
    description: str = ""
    type: str = "contract"
    status: DocumentStatus = DocumentStatus.PENDING
    uploaded_at: datetime
    signed_at: datetime | None = None
    signers: List[Signer] = Field(default_factory=list)
    files: List[Attachment] = Field(default_factory=list)
    owner_email: str
    shared_with: List[str] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        # Vacuously true for documents without signers.
        return all(signer.has_signed for signer in self.signers)

    def signer_for(self, email: str) -> Signer | None:
        for signer in self.signers:
            if signer.email == email:
                return signer
        return None


class DocumentDraft(BaseModel):
    """Everything the upload flow supplies; the store fills in id, owner and sharing."""

    title: str
    description: str = ""
    type: str = "contract"
    status: DocumentStatus = DocumentStatus.PENDING
    uploaded_at: datetime | None = None
    signers: List[Signer] = Field(default_factory=list)
    files: List[Attachment] = Field(default_factory=list)
