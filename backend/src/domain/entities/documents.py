"""
Document Sharing Domain Entities
Uploaded documents, explicit share grants and business requests for documents
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from ..enums import DocumentRequestStatus, DocumentType


@dataclass(frozen=True)
class Document:
    """Candidate-owned file; only the uploader may share it"""

    id: UUID
    organization_id: UUID
    uploaded_by: UUID
    file_name: str
    content_type: str
    uploaded_at: datetime
    storage_key: Optional[str] = None
    file_size_bytes: int = 0
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[UUID] = None


@dataclass(frozen=True)
class DocumentShareGrant:
    """Revocable authorization for one business user to fetch one document"""

    id: UUID
    document_id: UUID
    organization_id: UUID
    candidate_user_id: UUID
    business_user_id: UUID
    granted_at: datetime
    application_id: Optional[UUID] = None
    document_request_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[UUID] = None
    revocation_reason: Optional[str] = None

    def is_active(self, now: datetime) -> bool:
        """Not revoked and not expired"""
        if self.revoked_at is not None:
            return False
        return self.expires_at is None or self.expires_at > now


@dataclass(frozen=True)
class DocumentRequest:
    """Business ask for a candidate to share a document of a given type"""

    id: UUID
    organization_id: UUID
    candidate_user_id: UUID
    requested_by: UUID
    document_type: DocumentType
    status: DocumentRequestStatus
    created_at: datetime
    application_id: Optional[UUID] = None
    description: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    fulfilled_by_grant_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_open(self, now: datetime) -> bool:
        return self.status == DocumentRequestStatus.PENDING and not self.is_expired(now)
