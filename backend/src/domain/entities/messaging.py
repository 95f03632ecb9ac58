"""
Messaging Domain Entities
Conversations, their members, messages and ratings
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class Conversation:
    """Messaging thread, optionally scoped to one application"""

    id: UUID
    organization_id: UUID
    subject: str
    created_by: UUID
    created_at: datetime
    application_id: Optional[UUID] = None
    description: Optional[str] = None
    is_active: bool = True
    archived_at: Optional[datetime] = None
    archived_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None

    @property
    def is_application_scoped(self) -> bool:
        return self.application_id is not None


@dataclass(frozen=True)
class ConversationParticipant:
    """Membership of one user in one conversation"""

    id: UUID
    conversation_id: UUID
    user_id: UUID
    joined_at: datetime
    last_read_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    has_left: bool = False
    left_at: Optional[datetime] = None

    @property
    def read_watermark(self) -> datetime:
        """Messages sent after this instant are unread"""
        return self.last_read_at or self.joined_at


@dataclass(frozen=True)
class Message:
    """Content sent by a participant"""

    id: UUID
    conversation_id: UUID
    organization_id: UUID
    sent_by: UUID
    content: str
    sent_at: datetime
    edited_at: Optional[datetime] = None
    edited_by: Optional[UUID] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[UUID] = None


@dataclass(frozen=True)
class Rating:
    """One user's rating of one conversation"""

    id: UUID
    conversation_id: UUID
    organization_id: UUID
    user_id: UUID
    score: int
    created_at: datetime
    comment: Optional[str] = None
