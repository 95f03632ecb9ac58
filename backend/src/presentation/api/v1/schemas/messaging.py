"""
Messaging Schemas
Request/response models for conversations, messages and ratings
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateConversationRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    participant_ids: List[UUID] = Field(..., min_length=1, description="Other members; the caller is added automatically")
    application_id: Optional[UUID] = Field(None, description="Scope the conversation to one application")


class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    application_id: Optional[UUID] = None
    subject: str
    description: Optional[str] = None
    is_active: bool
    created_by: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    archived_by: Optional[UUID] = None


class ConversationPageResponse(BaseModel):
    items: List[ConversationResponse]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class EditMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    sent_by: UUID
    content: str
    sent_at: datetime
    edited_at: Optional[datetime] = None
    edited_by: Optional[UUID] = None


class MessagePageResponse(BaseModel):
    items: List[MessageResponse]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class AddParticipantRequest(BaseModel):
    user_id: UUID


class AddParticipantsRequest(BaseModel):
    user_ids: List[UUID] = Field(..., min_length=1)


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    user_id: UUID
    joined_at: datetime
    last_read_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None


class BulkAddResponse(BaseModel):
    added: List[ParticipantResponse]
    skipped: List[UUID]


class RateConversationRequest(BaseModel):
    score: int = Field(..., description="1 to 5")
    comment: Optional[str] = Field(None, max_length=2000)


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    user_id: UUID
    score: int
    comment: Optional[str] = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread_count: int
