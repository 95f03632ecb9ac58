"""
Application Domain Entities
One candidate's pipeline instance for one job, its history and pre-hire attestation
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from ..value_objects import ApplicationStatus


@dataclass(frozen=True)
class Application:
    """Job application domain entity - immutable"""

    id: UUID
    job_id: UUID
    candidate_id: UUID
    organization_id: UUID

    status: ApplicationStatus
    applied_at: datetime

    cover_letter: Optional[str] = None

    # Milestones
    screened_at: Optional[datetime] = None
    interviewed_at: Optional[datetime] = None
    offered_at: Optional[datetime] = None
    pre_hire_checks_started_at: Optional[datetime] = None
    hired_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    # Optimistic concurrency stamp
    version: int = 1

    # Soft delete
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[UUID] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_terminal(self) -> bool:
        """Check if application is in terminal state"""
        return self.status.is_terminal

    def is_screening_or_later(self) -> bool:
        """Eligible for guarded actions (messaging, sharing)"""
        return not self.is_deleted and self.status.is_screening_or_later()

    def __str__(self) -> str:
        return f"Application({self.id}, status={self.status.value})"


@dataclass(frozen=True)
class ApplicationStatusHistory:
    """Append-only record of one pipeline transition"""

    id: UUID
    application_id: UUID
    from_status: Optional[ApplicationStatus]
    to_status: ApplicationStatus
    changed_by: UUID
    changed_at: datetime
    notes: Optional[str] = None
    pre_hire_confirmation: Optional[bool] = None
    pre_hire_confirmation_text: Optional[str] = None


@dataclass(frozen=True)
class PreHireConfirmation:
    """Right-to-work attestation recorded by a staff member; immutable once stored"""

    id: UUID
    application_id: UUID
    organization_id: UUID
    confirmed_by: UUID
    right_to_work_confirmed: bool
    confirmed_at: datetime
    confirmation_text: Optional[str] = None
    confirmation_version: int = 1
