"""
Dependency Injection Container
Wires repositories and services onto the request's database session
"""
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends

from core.database import get_db
from application.repositories.interfaces import (
    IApplicationRepository,
    IOrganizationMemberRepository,
)
from application.services.audit import IAuditSink
from application.services.eligibility import IApplicationsReadService
from application.services.pipeline import IPipelineService
from application.services.messaging import IMessagingService
from application.services.documents import IDocumentShareService
from infrastructure.persistence.repositories.application import (
    SQLAlchemyApplicationRepository,
    SQLAlchemyApplicationHistoryRepository,
    SQLAlchemyPreHireConfirmationRepository,
)
from infrastructure.persistence.repositories.organization_member import SQLAlchemyOrganizationMemberRepository
from infrastructure.persistence.repositories.conversation import (
    SQLAlchemyConversationRepository,
    SQLAlchemyParticipantRepository,
    SQLAlchemyMessageRepository,
    SQLAlchemyRatingRepository,
)
from infrastructure.persistence.repositories.document import (
    SQLAlchemyDocumentRepository,
    SQLAlchemyDocumentShareGrantRepository,
    SQLAlchemyDocumentRequestRepository,
)
from infrastructure.services.audit_sink import SQLAlchemyAuditSink
from infrastructure.services.applications_read_service import ApplicationsReadService


# FastAPI caches Depends(get_db) per request, so every repository, the
# audit sink and the services below share one session and one transaction.

def get_application_repository(
    session: AsyncSession = Depends(get_db)
) -> IApplicationRepository:
    """Get application repository instance (per-request)"""
    return SQLAlchemyApplicationRepository(session)


def get_member_repository(
    session: AsyncSession = Depends(get_db)
) -> IOrganizationMemberRepository:
    """Get organization member repository instance (per-request)"""
    return SQLAlchemyOrganizationMemberRepository(session)


def get_audit_sink(
    session: AsyncSession = Depends(get_db)
) -> IAuditSink:
    """Get audit sink bound to the request transaction"""
    return SQLAlchemyAuditSink(session)


def get_applications_read_service(
    application_repo: IApplicationRepository = Depends(get_application_repository),
    member_repo: IOrganizationMemberRepository = Depends(get_member_repository)
) -> IApplicationsReadService:
    """Get eligibility read facade (per-request)"""
    return ApplicationsReadService(application_repo, member_repo)


def get_pipeline_service(
    session: AsyncSession = Depends(get_db),
    application_repo: IApplicationRepository = Depends(get_application_repository),
    member_repo: IOrganizationMemberRepository = Depends(get_member_repository),
    audit_sink: IAuditSink = Depends(get_audit_sink)
) -> IPipelineService:
    """Get pipeline service instance (per-request)"""
    from infrastructure.services.pipeline_service import PipelineService
    return PipelineService(
        application_repo,
        SQLAlchemyApplicationHistoryRepository(session),
        SQLAlchemyPreHireConfirmationRepository(session),
        member_repo,
        audit_sink,
    )


def get_messaging_service(
    session: AsyncSession = Depends(get_db),
    read_service: IApplicationsReadService = Depends(get_applications_read_service),
    audit_sink: IAuditSink = Depends(get_audit_sink)
) -> IMessagingService:
    """Get messaging service instance (per-request)"""
    from infrastructure.services.messaging_service import MessagingService
    return MessagingService(
        session,
        SQLAlchemyConversationRepository(session),
        SQLAlchemyParticipantRepository(session),
        SQLAlchemyMessageRepository(session),
        SQLAlchemyRatingRepository(session),
        read_service,
        audit_sink,
    )


def get_document_share_service(
    session: AsyncSession = Depends(get_db),
    member_repo: IOrganizationMemberRepository = Depends(get_member_repository),
    read_service: IApplicationsReadService = Depends(get_applications_read_service),
    audit_sink: IAuditSink = Depends(get_audit_sink)
) -> IDocumentShareService:
    """Get document sharing service instance (per-request)"""
    from infrastructure.services.document_share_service import DocumentShareService
    return DocumentShareService(
        SQLAlchemyDocumentRepository(session),
        SQLAlchemyDocumentShareGrantRepository(session),
        SQLAlchemyDocumentRequestRepository(session),
        member_repo,
        read_service,
        audit_sink,
    )
