"""
Messaging API Endpoints
Conversations, messages, participants and ratings
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from application.services.messaging import IMessagingService
from presentation.api.v1.container import get_messaging_service
from presentation.api.v1.dependencies import CallerContext, get_caller, get_org_caller
from presentation.api.v1.schemas.messaging import (
    CreateConversationRequest,
    ConversationResponse,
    ConversationPageResponse,
    SendMessageRequest,
    EditMessageRequest,
    MessageResponse,
    MessagePageResponse,
    AddParticipantRequest,
    AddParticipantsRequest,
    ParticipantResponse,
    BulkAddResponse,
    RateConversationRequest,
    RatingResponse,
    UnreadCountResponse,
)


router = APIRouter()


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    request: CreateConversationRequest,
    caller: CallerContext = Depends(get_org_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    """Create a conversation; an identical existing one is returned instead"""
    conversation = await messaging.create_conversation(
        organization_id=caller.organization_id,
        subject=request.subject,
        participant_ids=request.participant_ids,
        creator_id=caller.user_id,
        application_id=request.application_id,
        description=request.description,
    )
    return ConversationResponse.model_validate(conversation)


@router.get("/conversations", response_model=ConversationPageResponse)
async def list_conversations(
    page_number: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    page = await messaging.list_conversations(
        caller.user_id, caller.organization_id, page_number=page_number, page_size=page_size
    )
    return ConversationPageResponse(
        items=[ConversationResponse.model_validate(c) for c in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    conversation = await messaging.get_conversation(conversation_id, caller.user_id)
    return ConversationResponse.model_validate(conversation)


@router.post("/conversations/{conversation_id}/archive", response_model=ConversationResponse)
async def archive_conversation(
    conversation_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    conversation = await messaging.archive_conversation(conversation_id, caller.user_id)
    return ConversationResponse.model_validate(conversation)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: UUID,
    request: SendMessageRequest,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    message = await messaging.send_message(conversation_id, request.content, caller.user_id)
    return MessageResponse.model_validate(message)


@router.get("/conversations/{conversation_id}/messages", response_model=MessagePageResponse)
async def get_messages(
    conversation_id: UUID,
    page_number: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    """Messages newest first"""
    page = await messaging.get_messages(
        conversation_id, caller.user_id, page_number=page_number, page_size=page_size
    )
    return MessagePageResponse(
        items=[MessageResponse.model_validate(m) for m in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.put("/conversations/{conversation_id}/messages/{message_id}", response_model=MessageResponse)
async def edit_message(
    conversation_id: UUID,
    message_id: UUID,
    request: EditMessageRequest,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    message = await messaging.edit_message(message_id, request.content, caller.user_id)
    return MessageResponse.model_validate(message)


@router.delete(
    "/conversations/{conversation_id}/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_message(
    conversation_id: UUID,
    message_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    await messaging.delete_message(message_id, caller.user_id)


@router.post(
    "/conversations/{conversation_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_participant(
    conversation_id: UUID,
    request: AddParticipantRequest,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    """Add one participant; fails if they have no standing on the application"""
    participant = await messaging.add_participant(conversation_id, request.user_id, caller.user_id)
    return ParticipantResponse.model_validate(participant)


@router.post("/conversations/{conversation_id}/participants/bulk", response_model=BulkAddResponse)
async def add_participants(
    conversation_id: UUID,
    request: AddParticipantsRequest,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    """Add several participants; ineligible ones are reported in `skipped`"""
    result = await messaging.add_participants(conversation_id, request.user_ids, caller.user_id)
    return BulkAddResponse(
        added=[ParticipantResponse.model_validate(p) for p in result.added],
        skipped=result.skipped,
    )


@router.get("/conversations/{conversation_id}/participants", response_model=List[ParticipantResponse])
async def get_participants(
    conversation_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    participants = await messaging.get_participants(conversation_id, caller.user_id)
    return [ParticipantResponse.model_validate(p) for p in participants]


@router.delete(
    "/conversations/{conversation_id}/participants/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_participant(
    conversation_id: UUID,
    user_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    await messaging.remove_participant(conversation_id, user_id, caller.user_id)


@router.put("/conversations/{conversation_id}/mark-read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_as_read(
    conversation_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    await messaging.mark_as_read(conversation_id, caller.user_id)


@router.put("/conversations/{conversation_id}/last-seen", status_code=status.HTTP_204_NO_CONTENT)
async def update_last_seen(
    conversation_id: UUID,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    await messaging.update_last_seen(conversation_id, caller.user_id)


@router.post(
    "/conversations/{conversation_id}/rating",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def rate_conversation(
    conversation_id: UUID,
    request: RateConversationRequest,
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    rating = await messaging.rate_conversation(
        conversation_id, caller.user_id, request.score, request.comment
    )
    return RatingResponse.model_validate(rating)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    caller: CallerContext = Depends(get_caller),
    messaging: IMessagingService = Depends(get_messaging_service)
):
    count = await messaging.get_unread_count(caller.user_id, caller.organization_id)
    return UnreadCountResponse(unread_count=count)
