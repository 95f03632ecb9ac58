"""
Pipeline Service Interface
Owns application status and its transitions
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from domain.entities import Application, ApplicationStatusHistory, PreHireConfirmation
from domain.value_objects import ApplicationStatus


@dataclass(frozen=True)
class PreHireConfirmationInput:
    """Inline confirmation supplied together with an advance to Hired"""
    right_to_work_confirmed: bool
    confirmation_text: Optional[str] = None


@dataclass(frozen=True)
class ApplicationDetail:
    application: Application
    pre_hire_check_confirmed: bool


class IPipelineService(ABC):
    """Pipeline state machine interface"""

    @abstractmethod
    async def apply(
        self,
        job_id: UUID,
        candidate_id: UUID,
        organization_id: UUID,
        cover_letter: Optional[str] = None
    ) -> Application:
        """
        Create an Applied application for (job, candidate)

        Raises:
            AlreadyExistsError: a non-withdrawn application already exists
        """
        pass

    @abstractmethod
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
        """
        Move an application to target_status

        Raises:
            NotFoundError: missing, soft-deleted or owned by another organization
            TerminalStateError: current status is Hired, Rejected or Withdrawn
            InvalidTransitionError: target not reachable from current status
            PreconditionFailedError: Hired without a confirmed right-to-work check
            ConcurrencyConflictError: a concurrent transition won
        """
        pass

    @abstractmethod
    async def record_pre_hire_confirmation(
        self,
        application_id: UUID,
        actor_id: UUID,
        confirmed: bool,
        text: Optional[str] = None,
        organization_id: Optional[UUID] = None
    ) -> PreHireConfirmation:
        """Record the attestation once; later calls return the stored record"""
        pass

    @abstractmethod
    async def get_application(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> ApplicationDetail:
        pass

    @abstractmethod
    async def get_history(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> List[ApplicationStatusHistory]:
        pass

    @abstractmethod
    async def get_pipeline_view(
        self,
        job_id: UUID,
        organization_id: UUID
    ) -> Dict[ApplicationStatus, List[Application]]:
        """Applications of a job keyed by every status, newest first"""
        pass

    @abstractmethod
    async def soft_delete_application(
        self,
        application_id: UUID,
        actor_id: UUID,
        organization_id: Optional[UUID] = None
    ) -> None:
        pass
