"""
Document Sharing API Endpoints
Document registration, share grants and document requests
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from application.services.documents import IDocumentShareService
from presentation.api.v1.container import get_document_share_service
from presentation.api.v1.dependencies import CallerContext, get_caller, get_org_caller
from presentation.api.v1.schemas.documents import (
    RegisterDocumentRequest,
    DocumentResponse,
    GrantAccessRequest,
    GrantResponse,
    AccessCheckResponse,
    CreateDocumentRequestRequest,
    ApproveDocumentRequestRequest,
    RejectDocumentRequestRequest,
    DocumentRequestResponse,
)


router = APIRouter()


@router.post("/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def register_document(
    request: RegisterDocumentRequest,
    caller: CallerContext = Depends(get_org_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    document = await documents.register_document(
        organization_id=caller.organization_id,
        uploaded_by=caller.user_id,
        file_name=request.file_name,
        content_type=request.content_type,
        file_size_bytes=request.file_size_bytes,
        storage_key=request.storage_key,
    )
    return DocumentResponse.model_validate(document)


@router.post("/documents/{document_id}/grants", response_model=GrantResponse)
async def grant_access(
    document_id: UUID,
    request: GrantAccessRequest,
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    """Share a document you uploaded; an active grant for the same user is returned as-is"""
    grant = await documents.grant_access(
        document_id,
        caller.user_id,
        request.business_user_id,
        application_id=request.application_id,
        document_request_id=request.document_request_id,
        expires_at=request.expires_at,
    )
    return GrantResponse.model_validate(grant)


@router.delete("/documents/{document_id}/grants/{business_user_id}", response_model=GrantResponse)
async def revoke_access(
    document_id: UUID,
    business_user_id: UUID,
    reason: Optional[str] = Query(None, max_length=2000),
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    grant = await documents.revoke_access(document_id, business_user_id, caller.user_id, reason)
    return GrantResponse.model_validate(grant)


@router.get("/documents/{document_id}/grants", response_model=List[GrantResponse])
async def list_grants(
    document_id: UUID,
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    grants = await documents.list_grants(document_id, caller.user_id)
    return [GrantResponse.model_validate(g) for g in grants]


@router.get("/documents/{document_id}/access", response_model=AccessCheckResponse)
async def check_access(
    document_id: UUID,
    application_id: Optional[UUID] = Query(None),
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    """Whether the caller may currently fetch the document"""
    has_access = await documents.user_has_access(document_id, caller.user_id, application_id)
    return AccessCheckResponse(
        document_id=document_id,
        user_id=caller.user_id,
        application_id=application_id,
        has_access=has_access,
    )


@router.post(
    "/document-requests",
    response_model=DocumentRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_document_request(
    request: CreateDocumentRequestRequest,
    caller: CallerContext = Depends(get_org_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    created = await documents.create_request(
        organization_id=caller.organization_id,
        candidate_user_id=request.candidate_user_id,
        requested_by=caller.user_id,
        document_type=request.document_type,
        application_id=request.application_id,
        description=request.description,
        expires_at=request.expires_at,
    )
    return DocumentRequestResponse.model_validate(created)


@router.post("/document-requests/{request_id}/approve", response_model=DocumentRequestResponse)
async def approve_document_request(
    request_id: UUID,
    request: ApproveDocumentRequestRequest,
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    approved = await documents.approve_request(request_id, request.document_id, caller.user_id)
    return DocumentRequestResponse.model_validate(approved)


@router.post("/document-requests/{request_id}/reject", response_model=DocumentRequestResponse)
async def reject_document_request(
    request_id: UUID,
    request: RejectDocumentRequestRequest,
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    rejected = await documents.reject_request(request_id, caller.user_id, request.reason)
    return DocumentRequestResponse.model_validate(rejected)


@router.post("/document-requests/{request_id}/cancel", response_model=DocumentRequestResponse)
async def cancel_document_request(
    request_id: UUID,
    caller: CallerContext = Depends(get_caller),
    documents: IDocumentShareService = Depends(get_document_share_service)
):
    cancelled = await documents.cancel_request(request_id, caller.user_id)
    return DocumentRequestResponse.model_validate(cancelled)
