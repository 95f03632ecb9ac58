"""
Pipeline Schemas
Request/response models for applications and their transitions
"""
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.value_objects import ApplicationStatus


class ApplyRequest(BaseModel):
    """Candidate applies to a job"""
    organization_id: UUID = Field(..., description="Hiring organization that owns the job")
    cover_letter: Optional[str] = Field(None, max_length=10000)


class PreHireConfirmationRequest(BaseModel):
    """Right-to-work attestation"""
    right_to_work_confirmed: bool = Field(..., description="Staff confirmed the candidate's right to work")
    confirmation_text: Optional[str] = Field(None, max_length=4000, description="Text shown at confirmation time")


class AdvanceRequest(BaseModel):
    """Move an application to another pipeline status"""
    target_status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=4000)
    rejection_reason: Optional[str] = Field(None, max_length=4000)
    pre_hire_confirmation: Optional[PreHireConfirmationRequest] = Field(
        None, description="Inline confirmation, only honoured when advancing to hired"
    )


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    candidate_id: UUID
    organization_id: UUID
    status: ApplicationStatus
    applied_at: datetime
    cover_letter: Optional[str] = None
    screened_at: Optional[datetime] = None
    interviewed_at: Optional[datetime] = None
    offered_at: Optional[datetime] = None
    pre_hire_checks_started_at: Optional[datetime] = None
    hired_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    version: int
    pre_hire_check_confirmed: Optional[bool] = None


class StatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    from_status: Optional[ApplicationStatus] = None
    to_status: ApplicationStatus
    changed_by: UUID
    changed_at: datetime
    notes: Optional[str] = None
    pre_hire_confirmation: Optional[bool] = None
    pre_hire_confirmation_text: Optional[str] = None


class PreHireConfirmationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    organization_id: UUID
    confirmed_by: UUID
    right_to_work_confirmed: bool
    confirmed_at: datetime
    confirmation_text: Optional[str] = None
    confirmation_version: int


class PipelineViewResponse(BaseModel):
    """Applications of one job grouped by stage"""
    job_id: UUID
    total: int
    stages: Dict[ApplicationStatus, List[ApplicationResponse]]
