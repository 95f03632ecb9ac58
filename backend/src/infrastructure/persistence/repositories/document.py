"""
Document Repository Implementations
SQLAlchemy persistence for documents, share grants and document requests
"""
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from sqlalchemy import select, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from domain.entities import Document, DocumentShareGrant, DocumentRequest
from domain.enums import DocumentRequestStatus, DocumentType
from application.repositories.interfaces import (
    IDocumentRepository,
    IDocumentShareGrantRepository,
    IDocumentRequestRepository,
)
from infrastructure.persistence.models.document import (
    DocumentModel,
    DocumentShareGrantModel,
    DocumentRequestModel,
)
from core.exceptions import InfrastructureError


class SQLAlchemyDocumentRepository(IDocumentRepository):
    """SQLAlchemy implementation of document repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, document_id: UUID, for_update: bool = False) -> Optional[Document]:
        query = select(DocumentModel).where(
            and_(DocumentModel.id == document_id, DocumentModel.is_deleted.is_(False))
        )
        if for_update:
            # Serializes concurrent grants on one document; ignored by SQLite
            query = query.with_for_update()
        try:
            result = await self.session.execute(query)
            model = result.scalar_one_or_none()
            if not model:
                return None
            return Document(
                id=model.id,
                organization_id=model.organization_id,
                uploaded_by=model.uploaded_by,
                file_name=model.file_name,
                content_type=model.content_type,
                uploaded_at=model.uploaded_at,
                storage_key=model.storage_key,
                file_size_bytes=model.file_size_bytes,
                is_deleted=model.is_deleted,
                deleted_at=model.deleted_at,
                deleted_by=model.deleted_by,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to get document {document_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get document: {str(e)}") from e

    async def create(self, document: Document) -> Document:
        try:
            self.session.add(
                DocumentModel(
                    id=document.id,
                    organization_id=document.organization_id,
                    uploaded_by=document.uploaded_by,
                    file_name=document.file_name,
                    content_type=document.content_type,
                    storage_key=document.storage_key,
                    file_size_bytes=document.file_size_bytes,
                    uploaded_at=document.uploaded_at,
                )
            )
            await self.session.flush()
            return document
        except SQLAlchemyError as e:
            logger.error(f"Failed to register document {document.file_name}: {str(e)}")
            raise InfrastructureError(f"Failed to register document: {str(e)}") from e


class SQLAlchemyDocumentShareGrantRepository(IDocumentShareGrantRepository):
    """Grant ledger; rows are revoked in place and never removed"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, grant_id: UUID) -> Optional[DocumentShareGrant]:
        try:
            model = await self.session.get(DocumentShareGrantModel, grant_id)
            return self._to_entity(model) if model and not model.is_deleted else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get grant {grant_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get grant: {str(e)}") from e

    async def find_active(
        self, document_id: UUID, business_user_id: UUID, now: datetime
    ) -> Optional[DocumentShareGrant]:
        try:
            result = await self.session.execute(
                select(DocumentShareGrantModel)
                .where(
                    and_(
                        DocumentShareGrantModel.document_id == document_id,
                        DocumentShareGrantModel.business_user_id == business_user_id,
                        DocumentShareGrantModel.is_deleted.is_(False),
                        DocumentShareGrantModel.revoked_at.is_(None),
                        or_(
                            DocumentShareGrantModel.expires_at.is_(None),
                            DocumentShareGrantModel.expires_at > now,
                        ),
                    )
                )
                .order_by(DocumentShareGrantModel.granted_at.desc())
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to find grant for document {document_id}: {str(e)}")
            raise InfrastructureError(f"Failed to find grant: {str(e)}") from e

    async def exists_active(
        self, document_id: UUID, business_user_id: UUID, now: datetime, application_id: Optional[UUID] = None
    ) -> bool:
        conditions = [
            DocumentShareGrantModel.document_id == document_id,
            DocumentShareGrantModel.business_user_id == business_user_id,
            DocumentShareGrantModel.is_deleted.is_(False),
            DocumentShareGrantModel.revoked_at.is_(None),
            or_(
                DocumentShareGrantModel.expires_at.is_(None),
                DocumentShareGrantModel.expires_at > now,
            ),
        ]
        if application_id is not None:
            conditions.append(
                or_(
                    DocumentShareGrantModel.application_id.is_(None),
                    DocumentShareGrantModel.application_id == application_id,
                )
            )
        try:
            result = await self.session.execute(
                select(DocumentShareGrantModel.id).where(and_(*conditions)).limit(1)
            )
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to check access to document {document_id}: {str(e)}")
            raise InfrastructureError(f"Failed to check document access: {str(e)}") from e

    async def create(self, grant: DocumentShareGrant) -> DocumentShareGrant:
        try:
            self.session.add(
                DocumentShareGrantModel(
                    id=grant.id,
                    document_id=grant.document_id,
                    organization_id=grant.organization_id,
                    candidate_user_id=grant.candidate_user_id,
                    business_user_id=grant.business_user_id,
                    application_id=grant.application_id,
                    document_request_id=grant.document_request_id,
                    granted_at=grant.granted_at,
                    expires_at=grant.expires_at,
                )
            )
            await self.session.flush()
            return grant
        except SQLAlchemyError as e:
            logger.error(f"Failed to create grant for document {grant.document_id}: {str(e)}")
            raise InfrastructureError(f"Failed to create grant: {str(e)}") from e

    async def update(self, grant: DocumentShareGrant) -> DocumentShareGrant:
        try:
            model = await self.session.get(DocumentShareGrantModel, grant.id)
            if model is None:
                raise InfrastructureError(f"Grant row vanished: {grant.id}")
            model.revoked_at = grant.revoked_at
            model.revoked_by = grant.revoked_by
            model.revocation_reason = grant.revocation_reason
            await self.session.flush()
            return grant
        except SQLAlchemyError as e:
            logger.error(f"Failed to update grant {grant.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update grant: {str(e)}") from e

    async def list_for_document(self, document_id: UUID) -> List[DocumentShareGrant]:
        try:
            result = await self.session.execute(
                select(DocumentShareGrantModel)
                .where(
                    and_(
                        DocumentShareGrantModel.document_id == document_id,
                        DocumentShareGrantModel.is_deleted.is_(False),
                    )
                )
                .order_by(DocumentShareGrantModel.granted_at.desc())
            )
            return [self._to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list grants of document {document_id}: {str(e)}")
            raise InfrastructureError(f"Failed to list grants: {str(e)}") from e

    def _to_entity(self, model: DocumentShareGrantModel) -> DocumentShareGrant:
        return DocumentShareGrant(
            id=model.id,
            document_id=model.document_id,
            organization_id=model.organization_id,
            candidate_user_id=model.candidate_user_id,
            business_user_id=model.business_user_id,
            granted_at=model.granted_at,
            application_id=model.application_id,
            document_request_id=model.document_request_id,
            expires_at=model.expires_at,
            revoked_at=model.revoked_at,
            revoked_by=model.revoked_by,
            revocation_reason=model.revocation_reason,
        )


class SQLAlchemyDocumentRequestRepository(IDocumentRequestRepository):
    """SQLAlchemy implementation of document request repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, request_id: UUID) -> Optional[DocumentRequest]:
        try:
            model = await self.session.get(DocumentRequestModel, request_id)
            return self._to_entity(model) if model and not model.is_deleted else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get document request {request_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get document request: {str(e)}") from e

    async def create(self, request: DocumentRequest) -> DocumentRequest:
        try:
            self.session.add(
                DocumentRequestModel(
                    id=request.id,
                    organization_id=request.organization_id,
                    application_id=request.application_id,
                    candidate_user_id=request.candidate_user_id,
                    requested_by=request.requested_by,
                    document_type=request.document_type.value,
                    description=request.description,
                    status=request.status.value,
                    created_at=request.created_at,
                    expires_at=request.expires_at,
                )
            )
            await self.session.flush()
            return request
        except SQLAlchemyError as e:
            logger.error(f"Failed to create document request: {str(e)}")
            raise InfrastructureError(f"Failed to create document request: {str(e)}") from e

    async def update(self, request: DocumentRequest) -> DocumentRequest:
        try:
            model = await self.session.get(DocumentRequestModel, request.id)
            if model is None:
                raise InfrastructureError(f"Document request row vanished: {request.id}")
            model.status = request.status.value
            model.responded_at = request.responded_at
            model.responded_by = request.responded_by
            model.rejection_reason = request.rejection_reason
            model.fulfilled_by_grant_id = request.fulfilled_by_grant_id
            await self.session.flush()
            return request
        except SQLAlchemyError as e:
            logger.error(f"Failed to update document request {request.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update document request: {str(e)}") from e

    def _to_entity(self, model: DocumentRequestModel) -> DocumentRequest:
        return DocumentRequest(
            id=model.id,
            organization_id=model.organization_id,
            candidate_user_id=model.candidate_user_id,
            requested_by=model.requested_by,
            document_type=DocumentType(model.document_type),
            status=DocumentRequestStatus(model.status),
            created_at=model.created_at,
            application_id=model.application_id,
            description=model.description,
            responded_at=model.responded_at,
            responded_by=model.responded_by,
            rejection_reason=model.rejection_reason,
            fulfilled_by_grant_id=model.fulfilled_by_grant_id,
            expires_at=model.expires_at,
        )
