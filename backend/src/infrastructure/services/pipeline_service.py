"""
PipelineService Implementation
Application pipeline state machine: apply, advance, pre-hire confirmation, read views
"""
import uuid
from dataclasses import replace
from typing import Dict, List, Optional
from uuid import UUID

from application.services.pipeline import (
    IPipelineService,
    ApplicationDetail,
    PreHireConfirmationInput,
)
from application.services.audit import IAuditSink
from application.repositories.interfaces import (
    IApplicationRepository,
    IApplicationHistoryRepository,
    IPreHireConfirmationRepository,
    IOrganizationMemberRepository,
)
from domain.entities import Application, ApplicationStatusHistory, PreHireConfirmation
from domain.enums import AuditAction, AuditEntityType
from domain.value_objects import ApplicationStatus
from core.config import settings
from core.exceptions import (
    AlreadyExistsError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    TerminalStateError,
    UnauthorizedError,
)
from core.logging_config import logger
from core.time_utils import utc_now


# Milestone column stamped when an application enters each status
MILESTONE_FIELDS = {
    ApplicationStatus.SCREENING: "screened_at",
    ApplicationStatus.INTERVIEWED: "interviewed_at",
    ApplicationStatus.OFFERED: "offered_at",
    ApplicationStatus.PRE_HIRE_CHECKS: "pre_hire_checks_started_at",
    ApplicationStatus.HIRED: "hired_at",
    ApplicationStatus.REJECTED: "rejected_at",
    ApplicationStatus.WITHDRAWN: "withdrawn_at",
}


class PipelineService(IPipelineService):
    """Sole writer of application status"""

    def __init__(
        self,
        application_repository: IApplicationRepository,
        history_repository: IApplicationHistoryRepository,
        confirmation_repository: IPreHireConfirmationRepository,
        member_repository: IOrganizationMemberRepository,
        audit_sink: IAuditSink,
    ):
        """
        Initialize pipeline service

        Args:
            application_repository: Application repository
            history_repository: Insert-only status history
            confirmation_repository: Pre-hire confirmation repository
            member_repository: Organization staff lookup for write access
            audit_sink: Audit sink sharing the same unit of work
        """
        self.application_repo = application_repository
        self.history_repo = history_repository
        self.confirmation_repo = confirmation_repository
        self.member_repo = member_repository
        self.audit = audit_sink

    async def apply(
        self,
        job_id: UUID,
        candidate_id: UUID,
        organization_id: UUID,
        cover_letter: Optional[str] = None
    ) -> Application:
        existing = await self.application_repo.find_live(job_id, candidate_id)
        if existing is not None:
            logger.warning(f"Candidate {candidate_id} already applied to job {job_id}: {existing.id}")
            raise AlreadyExistsError("Application", "job_id", job_id)

        now = utc_now()
        application = await self.application_repo.create(
            Application(
                id=uuid.uuid4(),
                job_id=job_id,
                candidate_id=candidate_id,
                organization_id=organization_id,
                status=ApplicationStatus.APPLIED,
                applied_at=now,
                cover_letter=cover_letter,
                created_at=now,
            )
        )

        # Creation row: from-status is NULL
        await self.history_repo.append(
            ApplicationStatusHistory(
                id=uuid.uuid4(),
                application_id=application.id,
                from_status=None,
                to_status=ApplicationStatus.APPLIED,
                changed_by=candidate_id,
                changed_at=now,
            )
        )
        await self.audit.record(
            organization_id=organization_id,
            actor_id=candidate_id,
            action=AuditAction.APPLICATION_CREATED,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application.id,
            details={"job_id": job_id, "candidate_id": candidate_id},
            timestamp=now,
        )

        logger.info(f"Application {application.id} created for job {job_id} by candidate {candidate_id}")
        return application

    async def advance(
        self,
        application_id: UUID,
        target_status: ApplicationStatus,
        actor_id: UUID,
        notes: Optional[str] = None,
        pre_hire_confirmation: Optional[PreHireConfirmationInput] = None,
        organization_id: Optional[UUID] = None,
        rejection_reason: Optional[str] = None
    ) -> Application:
        target_status = ApplicationStatus(target_status)
        application = await self._load(application_id, organization_id)

        # Candidates may only withdraw their own application
        candidate_withdrawing = (
            target_status == ApplicationStatus.WITHDRAWN and actor_id == application.candidate_id
        )
        if not candidate_withdrawing:
            await self._require_staff(application, actor_id, f"move to {target_status.value}")

        current = application.status

        if current.is_terminal:
            logger.warning(f"Blocked transition of application {application_id}: terminal status {current.value}")
            raise TerminalStateError(current)

        if not current.can_transition_to(target_status):
            logger.warning(
                f"Blocked transition of application {application_id}: {current.value} -> {target_status.value}"
            )
            raise InvalidTransitionError(current, target_status)

        confirmation = None
        if target_status == ApplicationStatus.HIRED:
            if pre_hire_confirmation is not None:
                await self.record_pre_hire_confirmation(
                    application_id,
                    actor_id,
                    pre_hire_confirmation.right_to_work_confirmed,
                    pre_hire_confirmation.confirmation_text,
                    organization_id=organization_id,
                )
            confirmation = await self.confirmation_repo.get_by_application(application_id)
            if confirmation is None or not confirmation.right_to_work_confirmed:
                logger.warning(f"Blocked hire of application {application_id}: right to work not confirmed")
                raise PreconditionFailedError(
                    "Pre-hire checks confirmation is required before marking as Hired"
                )

        if target_status == ApplicationStatus.REJECTED and not notes and not rejection_reason:
            logger.warning(f"Rejection without notes for application {application_id}")

        now = utc_now()
        changes = {
            "status": target_status,
            MILESTONE_FIELDS[target_status]: now,
            "updated_at": now,
        }
        if target_status == ApplicationStatus.REJECTED:
            changes["rejection_reason"] = rejection_reason

        updated = await self.application_repo.update_with_version(
            replace(application, **changes),
            expected_version=application.version,
        )

        await self.history_repo.append(
            ApplicationStatusHistory(
                id=uuid.uuid4(),
                application_id=application_id,
                from_status=current,
                to_status=target_status,
                changed_by=actor_id,
                changed_at=now,
                notes=notes,
                pre_hire_confirmation=confirmation.right_to_work_confirmed if confirmation else None,
                pre_hire_confirmation_text=confirmation.confirmation_text if confirmation else None,
            )
        )
        await self.audit.record(
            organization_id=application.organization_id,
            actor_id=actor_id,
            action=AuditAction.APPLICATION_STATUS_CHANGED,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application_id,
            details={
                "application_id": application_id,
                "job_id": application.job_id,
                "from_status": current,
                "to_status": target_status,
                "notes": notes,
                "pre_hire_confirmation": confirmation.right_to_work_confirmed if confirmation else None,
            },
            timestamp=now,
        )

        logger.info(
            f"Application {application_id} moved from {current.value} to {target_status.value} by user {actor_id}"
        )
        return updated

    async def record_pre_hire_confirmation(
        self,
        application_id: UUID,
        actor_id: UUID,
        confirmed: bool,
        text: Optional[str] = None,
        organization_id: Optional[UUID] = None
    ) -> PreHireConfirmation:
        application = await self._load(application_id, organization_id)
        await self._require_staff(application, actor_id, "confirm right to work")

        existing = await self.confirmation_repo.get_by_application(application_id)
        if existing is not None:
            logger.info(f"Pre-hire confirmation for application {application_id} already recorded; keeping it")
            return existing

        now = utc_now()
        confirmation = await self.confirmation_repo.create(
            PreHireConfirmation(
                id=uuid.uuid4(),
                application_id=application_id,
                organization_id=application.organization_id,
                confirmed_by=actor_id,
                right_to_work_confirmed=bool(confirmed),
                confirmed_at=now,
                confirmation_text=text,
                confirmation_version=settings.PRE_HIRE_CONFIRMATION_VERSION,
            )
        )
        await self.audit.record(
            organization_id=application.organization_id,
            actor_id=actor_id,
            action=AuditAction.PRE_HIRE_CHECK_CONFIRMED,
            entity_type=AuditEntityType.PRE_HIRE_CONFIRMATION,
            entity_id=confirmation.id,
            details={
                "application_id": application_id,
                "right_to_work_confirmed": confirmation.right_to_work_confirmed,
                "confirmation_version": confirmation.confirmation_version,
            },
            timestamp=now,
        )

        logger.info(
            f"Pre-hire confirmation recorded for application {application_id} "
            f"(confirmed={confirmation.right_to_work_confirmed}) by user {actor_id}"
        )
        return confirmation

    async def get_application(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> ApplicationDetail:
        application = await self._load(application_id, organization_id)
        confirmation = await self.confirmation_repo.get_by_application(application_id)
        return ApplicationDetail(
            application=application,
            pre_hire_check_confirmed=bool(confirmation and confirmation.right_to_work_confirmed),
        )

    async def get_history(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> List[ApplicationStatusHistory]:
        await self._load(application_id, organization_id)
        return await self.history_repo.list_for_application(application_id)

    async def get_pipeline_view(
        self,
        job_id: UUID,
        organization_id: UUID
    ) -> Dict[ApplicationStatus, List[Application]]:
        view = {status: [] for status in ApplicationStatus}
        for application in await self.application_repo.list_for_job(job_id, organization_id):
            view[application.status].append(application)
        return view

    async def soft_delete_application(
        self,
        application_id: UUID,
        actor_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> None:
        application = await self._load(application_id, organization_id)
        await self._require_staff(application, actor_id, "delete")
        now = utc_now()
        await self.application_repo.soft_delete(application_id, deleted_by=actor_id, deleted_at=now)
        await self.audit.record(
            organization_id=application.organization_id,
            actor_id=actor_id,
            action=AuditAction.APPLICATION_DELETED,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application_id,
            details={"status": application.status},
            timestamp=now,
        )
        logger.info(f"Application {application_id} soft-deleted by user {actor_id}")

    async def _load(self, application_id: UUID, organization_id: Optional[UUID]) -> Application:
        """Other tenants get NotFound, never a hint that the application exists"""
        application = await self.application_repo.get_by_id(application_id)
        if application is None or (
            organization_id is not None and application.organization_id != organization_id
        ):
            raise NotFoundError("Application", application_id)
        return application

    async def _require_staff(self, application: Application, actor_id: UUID, action: str) -> None:
        if not await self.member_repo.is_member(application.organization_id, actor_id):
            logger.warning(
                f"Blocked {action} on application {application.id}: "
                f"{actor_id} is not staff of {application.organization_id}"
            )
            raise UnauthorizedError("Only organization staff can change an application")
