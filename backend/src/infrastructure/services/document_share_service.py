"""
DocumentShareService Implementation
Owner-granted document access and the document request lifecycle
"""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from application.services.documents import IDocumentShareService
from application.services.eligibility import IApplicationsReadService
from application.services.audit import IAuditSink
from application.repositories.interfaces import (
    IDocumentRepository,
    IDocumentShareGrantRepository,
    IDocumentRequestRepository,
    IOrganizationMemberRepository,
)
from domain.entities import Document, DocumentShareGrant, DocumentRequest
from domain.enums import AuditAction, AuditEntityType, DocumentRequestStatus, DocumentType
from core.exceptions import (
    NotFoundError,
    ParticipantNotInvolvedError,
    PreconditionFailedError,
    UnauthorizedError,
    ValidationException,
)
from core.logging_config import logger
from core.time_utils import utc_now


class DocumentShareService(IDocumentShareService):
    """
    Grant ledger for document access.

    Access is driven by the uploader's explicit consent, not by pipeline
    stage. The eligibility facade is only used to check that a request's
    candidate actually belongs to the referenced application.
    """

    def __init__(
        self,
        document_repository: IDocumentRepository,
        grant_repository: IDocumentShareGrantRepository,
        request_repository: IDocumentRequestRepository,
        member_repository: IOrganizationMemberRepository,
        applications_read_service: IApplicationsReadService,
        audit_sink: IAuditSink,
    ):
        self.document_repo = document_repository
        self.grant_repo = grant_repository
        self.request_repo = request_repository
        self.member_repo = member_repository
        self.applications = applications_read_service
        self.audit = audit_sink

    async def register_document(
        self,
        organization_id: UUID,
        uploaded_by: UUID,
        file_name: str,
        content_type: str,
        file_size_bytes: int = 0,
        storage_key: Optional[str] = None
    ) -> Document:
        if not file_name or not file_name.strip():
            raise ValidationException("file_name", "File name is required")
        if file_size_bytes < 0:
            raise ValidationException("file_size_bytes", "File size cannot be negative")

        document = await self.document_repo.create(
            Document(
                id=uuid.uuid4(),
                organization_id=organization_id,
                uploaded_by=uploaded_by,
                file_name=file_name.strip(),
                content_type=content_type,
                uploaded_at=utc_now(),
                storage_key=storage_key,
                file_size_bytes=file_size_bytes,
            )
        )
        logger.info(f"Document registered. DocumentId={document.id}, UploadedBy={uploaded_by}")
        return document

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    async def grant_access(
        self,
        document_id: UUID,
        candidate_user_id: UUID,
        business_user_id: UUID,
        application_id: Optional[UUID] = None,
        document_request_id: Optional[UUID] = None,
        expires_at: Optional[datetime] = None
    ) -> DocumentShareGrant:
        now = utc_now()
        if expires_at is not None and expires_at <= now:
            raise ValidationException("expires_at", "Expiry must be in the future")

        # Row lock serializes concurrent grants for this document
        document = await self.document_repo.get_by_id(document_id, for_update=True)
        if document is None:
            raise NotFoundError("Document", document_id)

        if document.uploaded_by != candidate_user_id:
            logger.warning(
                f"Grant blocked: user {candidate_user_id} does not own document {document_id}"
            )
            raise UnauthorizedError("Only the document owner can grant access")

        existing = await self.grant_repo.find_active(document_id, business_user_id, now)
        if existing is not None:
            logger.warning(
                f"Share grant already exists and is active. DocumentId={document_id}, "
                f"CandidateId={candidate_user_id}, BusinessId={business_user_id}"
            )
            return existing

        grant = await self.grant_repo.create(
            DocumentShareGrant(
                id=uuid.uuid4(),
                document_id=document_id,
                organization_id=document.organization_id,
                candidate_user_id=candidate_user_id,
                business_user_id=business_user_id,
                granted_at=now,
                application_id=application_id,
                document_request_id=document_request_id,
                expires_at=expires_at,
            )
        )
        await self.audit.record(
            organization_id=document.organization_id,
            actor_id=candidate_user_id,
            action=AuditAction.DOCUMENT_ACCESS_GRANTED,
            entity_type=AuditEntityType.DOCUMENT_SHARE_GRANT,
            entity_id=grant.id,
            details={
                "document_id": document_id,
                "candidate_user_id": candidate_user_id,
                "business_user_id": business_user_id,
                "application_id": application_id,
                "document_request_id": document_request_id,
                "expires_at": expires_at,
            },
            timestamp=now,
        )

        logger.info(
            f"Share grant created. GrantId={grant.id}, DocumentId={document_id}, "
            f"CandidateId={candidate_user_id}, BusinessId={business_user_id}"
        )
        return grant

    async def revoke_access(
        self,
        document_id: UUID,
        business_user_id: UUID,
        revoked_by: UUID,
        reason: Optional[str] = None
    ) -> DocumentShareGrant:
        document = await self.document_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        if document.uploaded_by != revoked_by:
            logger.warning(f"Revoke blocked: user {revoked_by} does not own document {document_id}")
            raise UnauthorizedError("Only the document owner can revoke access")

        now = utc_now()
        grant = await self.grant_repo.find_active(document_id, business_user_id, now)
        if grant is None:
            raise NotFoundError("DocumentShareGrant", f"{document_id}/{business_user_id}")

        revoked = await self.grant_repo.update(
            replace(grant, revoked_at=now, revoked_by=revoked_by, revocation_reason=reason)
        )
        await self.audit.record(
            organization_id=grant.organization_id,
            actor_id=revoked_by,
            action=AuditAction.DOCUMENT_ACCESS_REVOKED,
            entity_type=AuditEntityType.DOCUMENT_SHARE_GRANT,
            entity_id=grant.id,
            details={
                "document_id": document_id,
                "business_user_id": business_user_id,
                "revoked_by": revoked_by,
                "reason": reason,
            },
            timestamp=now,
        )

        logger.info(
            f"Share grant revoked. GrantId={grant.id}, DocumentId={document_id}, "
            f"BusinessId={business_user_id}, RevokedBy={revoked_by}"
        )
        return revoked

    async def user_has_access(
        self,
        document_id: UUID,
        user_id: UUID,
        application_id: Optional[UUID] = None
    ) -> bool:
        has_access = await self.grant_repo.exists_active(document_id, user_id, utc_now(), application_id)
        logger.info(
            f"Document access check: DocumentId={document_id}, UserId={user_id}, "
            f"ApplicationId={application_id}, HasAccess={has_access}"
        )
        return has_access

    async def list_grants(self, document_id: UUID, actor_id: UUID) -> List[DocumentShareGrant]:
        document = await self.document_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        if document.uploaded_by != actor_id:
            raise UnauthorizedError("Only the document owner can view its grants")
        return await self.grant_repo.list_for_document(document_id)

    # ------------------------------------------------------------------
    # Document requests
    # ------------------------------------------------------------------

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
        now = utc_now()
        if expires_at is not None and expires_at <= now:
            raise ValidationException("expires_at", "Expiry must be in the future")

        if not await self.member_repo.is_member(organization_id, requested_by):
            logger.warning(f"Document request blocked: {requested_by} is not staff of {organization_id}")
            raise UnauthorizedError("Only organization staff can request documents")

        if application_id is not None:
            involved = await self.applications.is_user_in_application(
                application_id, organization_id, candidate_user_id
            )
            if not involved:
                raise ParticipantNotInvolvedError(candidate_user_id, application_id)

        request = await self.request_repo.create(
            DocumentRequest(
                id=uuid.uuid4(),
                organization_id=organization_id,
                candidate_user_id=candidate_user_id,
                requested_by=requested_by,
                document_type=DocumentType(document_type),
                status=DocumentRequestStatus.PENDING,
                created_at=now,
                application_id=application_id,
                description=description,
                expires_at=expires_at,
            )
        )
        await self.audit.record(
            organization_id=organization_id,
            actor_id=requested_by,
            action=AuditAction.DOCUMENT_REQUEST_CREATED,
            entity_type=AuditEntityType.DOCUMENT_REQUEST,
            entity_id=request.id,
            details={
                "candidate_user_id": candidate_user_id,
                "document_type": request.document_type,
                "application_id": application_id,
            },
            timestamp=now,
        )
        logger.info(f"Document request created. RequestId={request.id}, CandidateId={candidate_user_id}")
        return request

    async def approve_request(
        self, request_id: UUID, document_id: UUID, candidate_user_id: UUID
    ) -> DocumentRequest:
        request = await self._load_open_request(request_id, candidate_user_id)

        grant = await self.grant_access(
            document_id,
            candidate_user_id,
            request.requested_by,
            application_id=request.application_id,
            document_request_id=request.id,
        )

        now = utc_now()
        approved = await self.request_repo.update(
            replace(
                request,
                status=DocumentRequestStatus.APPROVED,
                responded_at=now,
                responded_by=candidate_user_id,
                fulfilled_by_grant_id=grant.id,
            )
        )
        await self.audit.record(
            organization_id=request.organization_id,
            actor_id=candidate_user_id,
            action=AuditAction.DOCUMENT_REQUEST_APPROVED,
            entity_type=AuditEntityType.DOCUMENT_REQUEST,
            entity_id=request_id,
            details={"document_id": document_id, "grant_id": grant.id},
            timestamp=now,
        )
        logger.info(f"Document request approved. RequestId={request_id}, GrantId={grant.id}")
        return approved

    async def reject_request(
        self, request_id: UUID, candidate_user_id: UUID, reason: Optional[str] = None
    ) -> DocumentRequest:
        request = await self._load_open_request(request_id, candidate_user_id)

        now = utc_now()
        rejected = await self.request_repo.update(
            replace(
                request,
                status=DocumentRequestStatus.REJECTED,
                responded_at=now,
                responded_by=candidate_user_id,
                rejection_reason=reason,
            )
        )
        await self.audit.record(
            organization_id=request.organization_id,
            actor_id=candidate_user_id,
            action=AuditAction.DOCUMENT_REQUEST_REJECTED,
            entity_type=AuditEntityType.DOCUMENT_REQUEST,
            entity_id=request_id,
            details={"reason": reason},
            timestamp=now,
        )
        logger.info(f"Document request rejected. RequestId={request_id}")
        return rejected

    async def cancel_request(self, request_id: UUID, requested_by: UUID) -> DocumentRequest:
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("DocumentRequest", request_id)
        if request.requested_by != requested_by:
            raise UnauthorizedError("Only the requester can cancel a document request")
        if request.status != DocumentRequestStatus.PENDING:
            raise PreconditionFailedError(
                f"Document request is already {request.status.value} and cannot be cancelled"
            )

        now = utc_now()
        cancelled = await self.request_repo.update(
            replace(request, status=DocumentRequestStatus.CANCELLED, responded_at=now, responded_by=requested_by)
        )
        await self.audit.record(
            organization_id=request.organization_id,
            actor_id=requested_by,
            action=AuditAction.DOCUMENT_REQUEST_CANCELLED,
            entity_type=AuditEntityType.DOCUMENT_REQUEST,
            entity_id=request_id,
            timestamp=now,
        )
        logger.info(f"Document request cancelled. RequestId={request_id}")
        return cancelled

    async def _load_open_request(self, request_id: UUID, candidate_user_id: UUID) -> DocumentRequest:
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("DocumentRequest", request_id)
        if request.candidate_user_id != candidate_user_id:
            raise UnauthorizedError("Only the requested candidate can answer a document request")
        if not request.is_open(utc_now()):
            raise PreconditionFailedError("Document request is no longer pending")
        return request
