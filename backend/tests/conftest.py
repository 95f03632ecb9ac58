"""
Shared test fixtures
In-memory SQLite database, wired services and seeded actors
"""
import os

# Configure settings before any application module is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_FILE_PATH"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database import Base
import infrastructure.persistence.models  # noqa: F401
from domain.enums import OrganizationRole
from domain.value_objects import ApplicationStatus
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
from infrastructure.services.pipeline_service import PipelineService
from infrastructure.services.messaging_service import MessagingService
from infrastructure.services.document_share_service import DocumentShareService


@dataclass
class Actors:
    """Ids used across a test"""
    organization_id: UUID
    other_organization_id: UUID
    staff_id: UUID
    second_staff_id: UUID
    candidate_id: UUID
    outsider_id: UUID
    job_id: UUID


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def actors(session) -> Actors:
    actors = Actors(
        organization_id=uuid4(),
        other_organization_id=uuid4(),
        staff_id=uuid4(),
        second_staff_id=uuid4(),
        candidate_id=uuid4(),
        outsider_id=uuid4(),
        job_id=uuid4(),
    )
    members = SQLAlchemyOrganizationMemberRepository(session)
    await members.add(actors.organization_id, actors.staff_id, OrganizationRole.RECRUITER.value)
    await members.add(actors.organization_id, actors.second_staff_id, OrganizationRole.HIRING_MANAGER.value)
    return actors


@pytest.fixture
def audit_sink(session):
    return SQLAlchemyAuditSink(session)


@pytest.fixture
def application_repo(session):
    return SQLAlchemyApplicationRepository(session)


@pytest.fixture
def message_repo(session):
    return SQLAlchemyMessageRepository(session)


@pytest.fixture
def participant_repo(session):
    return SQLAlchemyParticipantRepository(session)


@pytest.fixture
def read_service(session, application_repo):
    return ApplicationsReadService(application_repo, SQLAlchemyOrganizationMemberRepository(session))


@pytest.fixture
def pipeline_service(session, application_repo, audit_sink):
    return PipelineService(
        application_repo,
        SQLAlchemyApplicationHistoryRepository(session),
        SQLAlchemyPreHireConfirmationRepository(session),
        SQLAlchemyOrganizationMemberRepository(session),
        audit_sink,
    )


@pytest.fixture
def messaging_service(session, participant_repo, message_repo, read_service, audit_sink):
    return MessagingService(
        session,
        SQLAlchemyConversationRepository(session),
        participant_repo,
        message_repo,
        SQLAlchemyRatingRepository(session),
        read_service,
        audit_sink,
    )


@pytest.fixture
def document_service(session, read_service, audit_sink):
    return DocumentShareService(
        SQLAlchemyDocumentRepository(session),
        SQLAlchemyDocumentShareGrantRepository(session),
        SQLAlchemyDocumentRequestRepository(session),
        SQLAlchemyOrganizationMemberRepository(session),
        read_service,
        audit_sink,
    )


@pytest_asyncio.fixture
async def application(pipeline_service, actors):
    """Fresh application in Applied"""
    return await pipeline_service.apply(actors.job_id, actors.candidate_id, actors.organization_id)


@pytest_asyncio.fixture
async def screened_application(pipeline_service, application, actors):
    """Application advanced to Screening"""
    return await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.staff_id)
