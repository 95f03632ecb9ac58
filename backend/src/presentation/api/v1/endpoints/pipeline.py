"""
Pipeline API Endpoints
Applications, transitions and the per-job pipeline board
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from application.services.pipeline import IPipelineService, PreHireConfirmationInput
from presentation.api.v1.container import get_pipeline_service
from presentation.api.v1.dependencies import CallerContext, get_caller, get_org_caller
from presentation.api.v1.schemas.pipeline import (
    ApplyRequest,
    AdvanceRequest,
    ApplicationResponse,
    StatusHistoryResponse,
    PreHireConfirmationRequest,
    PreHireConfirmationResponse,
    PipelineViewResponse,
)


router = APIRouter()


@router.post(
    "/jobs/{job_id}/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_job(
    job_id: UUID,
    request: ApplyRequest,
    caller: CallerContext = Depends(get_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    """Apply to a job as the calling candidate"""
    application = await pipeline.apply(
        job_id=job_id,
        candidate_id=caller.user_id,
        organization_id=request.organization_id,
        cover_letter=request.cover_letter,
    )
    return ApplicationResponse.model_validate(application)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    detail = await pipeline.get_application(application_id, organization_id=caller.organization_id)
    response = ApplicationResponse.model_validate(detail.application)
    response.pre_hire_check_confirmed = detail.pre_hire_check_confirmed
    return response


@router.get("/applications/{application_id}/history", response_model=List[StatusHistoryResponse])
async def get_application_history(
    application_id: UUID,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    history = await pipeline.get_history(application_id, organization_id=caller.organization_id)
    return [StatusHistoryResponse.model_validate(entry) for entry in history]


@router.post("/applications/{application_id}/advance", response_model=ApplicationResponse)
async def advance_application(
    application_id: UUID,
    request: AdvanceRequest,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    """
    Move an application through the pipeline.

    Advancing to `hired` requires a right-to-work confirmation, either
    recorded earlier or supplied inline in `pre_hire_confirmation`.
    """
    inline = None
    if request.pre_hire_confirmation is not None:
        inline = PreHireConfirmationInput(
            right_to_work_confirmed=request.pre_hire_confirmation.right_to_work_confirmed,
            confirmation_text=request.pre_hire_confirmation.confirmation_text,
        )

    application = await pipeline.advance(
        application_id,
        request.target_status,
        caller.user_id,
        notes=request.notes,
        pre_hire_confirmation=inline,
        organization_id=caller.organization_id,
        rejection_reason=request.rejection_reason,
    )
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/pre-hire-confirmation",
    response_model=PreHireConfirmationResponse,
)
async def record_pre_hire_confirmation(
    application_id: UUID,
    request: PreHireConfirmationRequest,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    """Record the right-to-work attestation; repeated calls return the first record"""
    confirmation = await pipeline.record_pre_hire_confirmation(
        application_id,
        caller.user_id,
        request.right_to_work_confirmed,
        request.confirmation_text,
        organization_id=caller.organization_id,
    )
    return PreHireConfirmationResponse.model_validate(confirmation)


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: UUID,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    await pipeline.soft_delete_application(
        application_id, caller.user_id, organization_id=caller.organization_id
    )


@router.get("/pipeline/jobs/{job_id}", response_model=PipelineViewResponse)
async def get_pipeline_view(
    job_id: UUID,
    caller: CallerContext = Depends(get_org_caller),
    pipeline: IPipelineService = Depends(get_pipeline_service)
):
    view = await pipeline.get_pipeline_view(job_id, caller.organization_id)
    return PipelineViewResponse(
        job_id=job_id,
        total=sum(len(apps) for apps in view.values()),
        stages={
            stage: [ApplicationResponse.model_validate(a) for a in apps]
            for stage, apps in view.items()
        },
    )
