"""
Document Sharing Schemas
Request/response models for documents, share grants and document requests
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.enums import DocumentRequestStatus, DocumentType
from core.time_utils import to_naive_utc


class RegisterDocumentRequest(BaseModel):
    """Metadata of an uploaded file; storage itself lives elsewhere"""
    file_name: str = Field(..., min_length=1, max_length=500)
    content_type: str = Field(..., min_length=1, max_length=255, examples=["application/pdf"])
    file_size_bytes: int = Field(0, ge=0)
    storage_key: Optional[str] = Field(None, max_length=1000)


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    uploaded_by: UUID
    file_name: str
    content_type: str
    file_size_bytes: int
    uploaded_at: datetime


class GrantAccessRequest(BaseModel):
    business_user_id: UUID
    application_id: Optional[UUID] = None
    document_request_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class GrantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    organization_id: UUID
    candidate_user_id: UUID
    business_user_id: UUID
    application_id: Optional[UUID] = None
    document_request_id: Optional[UUID] = None
    granted_at: datetime
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[UUID] = None
    revocation_reason: Optional[str] = None


class AccessCheckResponse(BaseModel):
    document_id: UUID
    user_id: UUID
    application_id: Optional[UUID] = None
    has_access: bool


class CreateDocumentRequestRequest(BaseModel):
    candidate_user_id: UUID
    document_type: DocumentType
    application_id: Optional[UUID] = None
    description: Optional[str] = Field(None, max_length=2000)
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class ApproveDocumentRequestRequest(BaseModel):
    document_id: UUID = Field(..., description="Candidate document that fulfils the request")


class RejectDocumentRequestRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class DocumentRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    candidate_user_id: UUID
    requested_by: UUID
    application_id: Optional[UUID] = None
    document_type: DocumentType
    description: Optional[str] = None
    status: DocumentRequestStatus
    created_at: datetime
    expires_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    fulfilled_by_grant_id: Optional[UUID] = None
