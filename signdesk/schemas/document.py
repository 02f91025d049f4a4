from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from signdesk.models.document import Document, DocumentStatus, Signature, SignMethod


# -------------------------------------------------------------------------
# Document schemas
# -------------------------------------------------------------------------

class SignerCreate(BaseModel):
    email: EmailStr
    role: str = "signer"

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value: str | None) -> str:
        return (value or "signer").strip() or "signer"


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    type: str = "contract"
    signers: List[SignerCreate] = Field(default_factory=list)


class SignerRead(BaseModel):
    email: str
    role: str
    signature: Optional[Signature] = None
    has_signed: bool = False


class AttachmentRead(BaseModel):
    index: int
    name: str
    media_type: str
    size: int


class DocumentRead(BaseModel):
    id: str
    title: str
    description: str
    type: str
    status: DocumentStatus
    uploaded_at: datetime
    signed_at: datetime | None = None
    signers: List[SignerRead]
    files: List[AttachmentRead]
    owner_email: str
    shared_with: List[str]
    is_completed: bool

    @classmethod
    def from_document(cls, document: Document) -> "DocumentRead":
        return cls(
            id=document.id,
            title=document.title,
            description=document.description,
            type=document.type,
            status=document.status,
            uploaded_at=document.uploaded_at,
            signed_at=document.signed_at,
            signers=[
                SignerRead(
                    email=signer.email,
                    role=signer.role,
                    signature=signer.signature,
                    has_signed=signer.has_signed,
                )
                for signer in document.signers
            ],
            files=[
                AttachmentRead(index=index, name=item.name, media_type=item.media_type, size=item.size)
                for index, item in enumerate(document.files)
            ],
            owner_email=document.owner_email,
            shared_with=list(document.shared_with),
            is_completed=document.is_completed,
        )


class DocumentShareRequest(BaseModel):
    email: EmailStr


# -------------------------------------------------------------------------
# Signing sessions
# -------------------------------------------------------------------------

class SigningSessionRead(BaseModel):
    id: str
    document_id: str
    state: str
    method: SignMethod | None = None
    capture_empty: bool = True
    typed_name: str = ""
    typed_style: str = "style1"
    signature: Optional[Signature] = None


class SignMethodRequest(BaseModel):
    method: SignMethod


class StrokeRequest(BaseModel):
    points: List[List[float]] = Field(min_length=1)

    @field_validator("points")
    @classmethod
    def validate_points(cls, value: List[List[float]]) -> List[List[float]]:
        if any(len(point) != 2 for point in value):
            raise ValueError("each point must be an [x, y] pair")
        return value


class SignatureImageRequest(BaseModel):
    image: str


class TypedSignatureRequest(BaseModel):
    name: str
    style: str | None = None


class IdentityReferenceRequest(BaseModel):
    number: str


class ChallengeVerifyRequest(BaseModel):
    code: str
