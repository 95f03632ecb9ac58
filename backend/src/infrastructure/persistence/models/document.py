"""
Document ORM Models
Uploaded documents, share grants and document requests
"""
import uuid
from sqlalchemy import Column, String, DateTime, Text, BigInteger, ForeignKey, Index, Uuid

from core.database import Base
from core.time_utils import utc_now
from domain.enums import DocumentRequestStatus
from .mixins import SoftDeleteMixin


class DocumentModel(SoftDeleteMixin, Base):
    """Document table ORM model"""

    __tablename__ = "documents"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    uploaded_by = Column(Uuid(as_uuid=True), nullable=False, index=True)

    file_name = Column(String(500), nullable=False)
    content_type = Column(String(255), nullable=False)
    storage_key = Column(String(1000), nullable=True)
    file_size_bytes = Column(BigInteger, nullable=False, default=0)
    uploaded_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<DocumentModel {self.id} {self.file_name}>"


class DocumentShareGrantModel(SoftDeleteMixin, Base):
    """Share grant ledger; revocation stamps the row, never deletes it"""

    __tablename__ = "document_share_grants"
    __table_args__ = (
        Index("ix_document_share_grants_document_business", "document_id", "business_user_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    candidate_user_id = Column(Uuid(as_uuid=True), nullable=False)
    business_user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    application_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    document_request_id = Column(Uuid(as_uuid=True), ForeignKey("document_requests.id"), nullable=True)

    granted_at = Column(DateTime, nullable=False, default=utc_now)
    expires_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    revoked_by = Column(Uuid(as_uuid=True), nullable=True)
    revocation_reason = Column(Text, nullable=True)

    def __repr__(self):
        return f"<DocumentShareGrantModel doc={self.document_id} to={self.business_user_id}>"


class DocumentRequestModel(SoftDeleteMixin, Base):
    """Business request for a candidate document"""

    __tablename__ = "document_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    application_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    candidate_user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    requested_by = Column(Uuid(as_uuid=True), nullable=False)

    document_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default=DocumentRequestStatus.PENDING.value, index=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    expires_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    responded_by = Column(Uuid(as_uuid=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    fulfilled_by_grant_id = Column(Uuid(as_uuid=True), nullable=True)

    def __repr__(self):
        return f"<DocumentRequestModel {self.id} {self.status}>"
