"""
Application Repository Implementation
SQLAlchemy-based persistence for applications, status history and pre-hire confirmations
"""
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from domain.entities import Application, ApplicationStatusHistory, PreHireConfirmation
from domain.value_objects import ApplicationStatus
from application.repositories.interfaces import (
    IApplicationRepository,
    IApplicationHistoryRepository,
    IPreHireConfirmationRepository,
)
from infrastructure.persistence.models.application import (
    ApplicationModel,
    ApplicationStatusHistoryModel,
    PreHireConfirmationModel,
)
from core.exceptions import AlreadyExistsError, ConcurrencyConflictError, InfrastructureError

# Columns a transition is allowed to touch
_MUTABLE_FIELDS = (
    "status",
    "screened_at",
    "interviewed_at",
    "offered_at",
    "pre_hire_checks_started_at",
    "hired_at",
    "rejected_at",
    "withdrawn_at",
    "rejection_reason",
    "updated_at",
)


class SQLAlchemyApplicationRepository(IApplicationRepository):
    """SQLAlchemy implementation of application repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, application_id: UUID, include_deleted: bool = False) -> Optional[Application]:
        try:
            # populate_existing: version-guarded UPDATEs bypass the identity map
            query = (
                select(ApplicationModel)
                .where(ApplicationModel.id == application_id)
                .execution_options(populate_existing=True)
            )
            if not include_deleted:
                query = query.where(ApplicationModel.is_deleted.is_(False))
            result = await self.session.execute(query)
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get application {application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get application: {str(e)}") from e

    async def find_live(self, job_id: UUID, candidate_id: UUID) -> Optional[Application]:
        try:
            result = await self.session.execute(
                select(ApplicationModel).where(
                    and_(
                        ApplicationModel.job_id == job_id,
                        ApplicationModel.candidate_id == candidate_id,
                        ApplicationModel.status != ApplicationStatus.WITHDRAWN.value,
                        ApplicationModel.is_deleted.is_(False),
                    )
                )
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up application for job={job_id} candidate={candidate_id}: {str(e)}")
            raise InfrastructureError(f"Failed to look up application: {str(e)}") from e

    async def create(self, application: Application) -> Application:
        try:
            model = self._to_model(application)
            self.session.add(model)
            await self.session.flush()
            await self.session.refresh(model)
            return self._to_entity(model)
        except IntegrityError as e:
            # Lost the race against a concurrent apply for the same (job, candidate)
            logger.warning(
                f"Live application already exists for job={application.job_id} candidate={application.candidate_id}"
            )
            raise AlreadyExistsError("Application", "job_id", application.job_id) from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to create application: {str(e)}")
            raise InfrastructureError(f"Failed to create application: {str(e)}") from e

    async def update_with_version(self, application: Application, expected_version: int) -> Application:
        values = {name: getattr(application, name) for name in _MUTABLE_FIELDS}
        values["status"] = application.status.value
        values["version"] = expected_version + 1
        try:
            result = await self.session.execute(
                update(ApplicationModel)
                .where(
                    and_(
                        ApplicationModel.id == application.id,
                        ApplicationModel.version == expected_version,
                    )
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to update application {application.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update application: {str(e)}") from e

        if result.rowcount != 1:
            logger.warning(
                f"Version conflict on application {application.id}: expected version {expected_version}"
            )
            raise ConcurrencyConflictError("Application", application.id)

        updated = await self.get_by_id(application.id, include_deleted=True)
        return updated

    async def soft_delete(self, application_id: UUID, deleted_by: UUID, deleted_at: datetime) -> None:
        try:
            await self.session.execute(
                update(ApplicationModel)
                .where(ApplicationModel.id == application_id)
                .values(is_deleted=True, deleted_at=deleted_at, deleted_by=deleted_by)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete application {application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to delete application: {str(e)}") from e

    async def list_for_job(self, job_id: UUID, organization_id: UUID) -> List[Application]:
        try:
            result = await self.session.execute(
                select(ApplicationModel)
                .where(
                    and_(
                        ApplicationModel.job_id == job_id,
                        ApplicationModel.organization_id == organization_id,
                        ApplicationModel.is_deleted.is_(False),
                    )
                )
                .order_by(ApplicationModel.applied_at.desc())
            )
            return [self._to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list applications for job {job_id}: {str(e)}")
            raise InfrastructureError(f"Failed to list applications: {str(e)}") from e

    def _to_entity(self, model: ApplicationModel) -> Application:
        """Convert ORM model to domain entity"""
        return Application(
            id=model.id,
            job_id=model.job_id,
            candidate_id=model.candidate_id,
            organization_id=model.organization_id,
            status=ApplicationStatus(model.status),
            applied_at=model.applied_at,
            cover_letter=model.cover_letter,
            screened_at=model.screened_at,
            interviewed_at=model.interviewed_at,
            offered_at=model.offered_at,
            pre_hire_checks_started_at=model.pre_hire_checks_started_at,
            hired_at=model.hired_at,
            rejected_at=model.rejected_at,
            withdrawn_at=model.withdrawn_at,
            rejection_reason=model.rejection_reason,
            version=model.version,
            is_deleted=model.is_deleted,
            deleted_at=model.deleted_at,
            deleted_by=model.deleted_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Application) -> ApplicationModel:
        """Convert domain entity to ORM model"""
        return ApplicationModel(
            id=entity.id,
            job_id=entity.job_id,
            candidate_id=entity.candidate_id,
            organization_id=entity.organization_id,
            status=entity.status.value,
            applied_at=entity.applied_at,
            cover_letter=entity.cover_letter,
            version=entity.version,
            is_deleted=entity.is_deleted,
            created_at=entity.created_at or entity.applied_at,
        )


class SQLAlchemyApplicationHistoryRepository(IApplicationHistoryRepository):
    """Insert-only status history"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: ApplicationStatusHistory) -> ApplicationStatusHistory:
        try:
            model = ApplicationStatusHistoryModel(
                id=entry.id,
                application_id=entry.application_id,
                from_status=entry.from_status.value if entry.from_status else None,
                to_status=entry.to_status.value,
                changed_by=entry.changed_by,
                changed_at=entry.changed_at,
                notes=entry.notes,
                pre_hire_confirmation=entry.pre_hire_confirmation,
                pre_hire_confirmation_text=entry.pre_hire_confirmation_text,
            )
            self.session.add(model)
            await self.session.flush()
            return entry
        except SQLAlchemyError as e:
            logger.error(f"Failed to append history for application {entry.application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to append history: {str(e)}") from e

    async def list_for_application(self, application_id: UUID) -> List[ApplicationStatusHistory]:
        try:
            result = await self.session.execute(
                select(ApplicationStatusHistoryModel)
                .where(
                    and_(
                        ApplicationStatusHistoryModel.application_id == application_id,
                        ApplicationStatusHistoryModel.is_deleted.is_(False),
                    )
                )
                .order_by(ApplicationStatusHistoryModel.changed_at.asc())
            )
            return [
                ApplicationStatusHistory(
                    id=m.id,
                    application_id=m.application_id,
                    from_status=ApplicationStatus(m.from_status) if m.from_status else None,
                    to_status=ApplicationStatus(m.to_status),
                    changed_by=m.changed_by,
                    changed_at=m.changed_at,
                    notes=m.notes,
                    pre_hire_confirmation=m.pre_hire_confirmation,
                    pre_hire_confirmation_text=m.pre_hire_confirmation_text,
                )
                for m in result.scalars().all()
            ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load history for application {application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to load history: {str(e)}") from e


class SQLAlchemyPreHireConfirmationRepository(IPreHireConfirmationRepository):
    """SQLAlchemy implementation of pre-hire confirmation repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_application(self, application_id: UUID) -> Optional[PreHireConfirmation]:
        try:
            result = await self.session.execute(
                select(PreHireConfirmationModel).where(
                    and_(
                        PreHireConfirmationModel.application_id == application_id,
                        PreHireConfirmationModel.is_deleted.is_(False),
                    )
                )
            )
            model = result.scalar_one_or_none()
            if not model:
                return None
            return PreHireConfirmation(
                id=model.id,
                application_id=model.application_id,
                organization_id=model.organization_id,
                confirmed_by=model.confirmed_by,
                right_to_work_confirmed=model.right_to_work_confirmed,
                confirmed_at=model.confirmed_at,
                confirmation_text=model.confirmation_text,
                confirmation_version=model.confirmation_version,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to get pre-hire confirmation for {application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get pre-hire confirmation: {str(e)}") from e

    async def create(self, confirmation: PreHireConfirmation) -> PreHireConfirmation:
        try:
            self.session.add(
                PreHireConfirmationModel(
                    id=confirmation.id,
                    application_id=confirmation.application_id,
                    organization_id=confirmation.organization_id,
                    confirmed_by=confirmation.confirmed_by,
                    right_to_work_confirmed=confirmation.right_to_work_confirmed,
                    confirmed_at=confirmation.confirmed_at,
                    confirmation_text=confirmation.confirmation_text,
                    confirmation_version=confirmation.confirmation_version,
                )
            )
            await self.session.flush()
            return confirmation
        except SQLAlchemyError as e:
            logger.error(f"Failed to record pre-hire confirmation for {confirmation.application_id}: {str(e)}")
            raise InfrastructureError(f"Failed to record pre-hire confirmation: {str(e)}") from e
