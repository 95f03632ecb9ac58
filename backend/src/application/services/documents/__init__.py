"""
Document Sharing Service Interface
Owner-granted, revocable access to candidate documents
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from domain.entities import Document, DocumentShareGrant, DocumentRequest
from domain.enums import DocumentType


class IDocumentShareService(ABC):
    """Document sharing authorization interface"""

    @abstractmethod
    async def register_document(
        self,
        organization_id: UUID,
        uploaded_by: UUID,
        file_name: str,
        content_type: str,
        file_size_bytes: int = 0,
        storage_key: Optional[str] = None
    ) -> Document:
        pass

    @abstractmethod
    async def grant_access(
        self,
        document_id: UUID,
        candidate_user_id: UUID,
        business_user_id: UUID,
        application_id: Optional[UUID] = None,
        document_request_id: Optional[UUID] = None,
        expires_at: Optional[datetime] = None
    ) -> DocumentShareGrant:
        """Grant access; returns the existing active grant for the pair when there is one"""
        pass

    @abstractmethod
    async def revoke_access(
        self,
        document_id: UUID,
        business_user_id: UUID,
        revoked_by: UUID,
        reason: Optional[str] = None
    ) -> DocumentShareGrant:
        pass

    @abstractmethod
    async def user_has_access(
        self,
        document_id: UUID,
        user_id: UUID,
        application_id: Optional[UUID] = None
    ) -> bool:
        pass

    @abstractmethod
    async def list_grants(self, document_id: UUID, actor_id: UUID) -> List[DocumentShareGrant]:
        pass

    @abstractmethod
    async def create_request(
        self,
        organization_id: UUID,
        candidate_user_id: UUID,
        requested_by: UUID,
        document_type: DocumentType,
        application_id: Optional[UUID] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None
    ) -> DocumentRequest:
        pass

    @abstractmethod
    async def approve_request(
        self, request_id: UUID, document_id: UUID, candidate_user_id: UUID
    ) -> DocumentRequest:
        pass

    @abstractmethod
    async def reject_request(
        self, request_id: UUID, candidate_user_id: UUID, reason: Optional[str] = None
    ) -> DocumentRequest:
        pass

    @abstractmethod
    async def cancel_request(self, request_id: UUID, requested_by: UUID) -> DocumentRequest:
        pass
