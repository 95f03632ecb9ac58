"""
Messaging Service Interface
Conversations gated by application eligibility
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

from domain.entities import Conversation, ConversationParticipant, Message, Rating
from domain.value_objects import Page


@dataclass(frozen=True)
class BulkAddResult:
    """Outcome of a best-effort participant batch"""
    added: List[ConversationParticipant]
    skipped: List[UUID]


class IMessagingService(ABC):
    """Messaging gate interface"""

    @abstractmethod
    async def create_conversation(
        self,
        organization_id: UUID,
        subject: str,
        participant_ids: Sequence[UUID],
        creator_id: UUID,
        application_id: Optional[UUID] = None,
        description: Optional[str] = None
    ) -> Conversation:
        """Create a conversation, or return the identical one that already exists"""
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        pass

    @abstractmethod
    async def list_conversations(
        self,
        user_id: UUID,
        organization_id: Optional[UUID] = None,
        page_number: int = 1,
        page_size: Optional[int] = None
    ) -> Page:
        pass

    @abstractmethod
    async def archive_conversation(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        pass

    @abstractmethod
    async def send_message(self, conversation_id: UUID, content: str, sender_id: UUID) -> Message:
        pass

    @abstractmethod
    async def get_messages(
        self,
        conversation_id: UUID,
        user_id: UUID,
        page_number: int = 1,
        page_size: Optional[int] = None
    ) -> Page:
        pass

    @abstractmethod
    async def edit_message(self, message_id: UUID, content: str, user_id: UUID) -> Message:
        pass

    @abstractmethod
    async def delete_message(self, message_id: UUID, user_id: UUID) -> None:
        pass

    @abstractmethod
    async def add_participant(
        self, conversation_id: UUID, user_id: UUID, added_by: UUID
    ) -> ConversationParticipant:
        """Strict: any ineligible participant fails the call"""
        pass

    @abstractmethod
    async def add_participants(
        self, conversation_id: UUID, user_ids: Sequence[UUID], added_by: UUID
    ) -> BulkAddResult:
        """Best-effort: ineligible participants are skipped"""
        pass

    @abstractmethod
    async def remove_participant(self, conversation_id: UUID, user_id: UUID, removed_by: UUID) -> None:
        pass

    @abstractmethod
    async def get_participants(self, conversation_id: UUID, user_id: UUID) -> List[ConversationParticipant]:
        pass

    @abstractmethod
    async def mark_as_read(self, conversation_id: UUID, user_id: UUID) -> None:
        pass

    @abstractmethod
    async def update_last_seen(self, conversation_id: UUID, user_id: UUID) -> None:
        pass

    @abstractmethod
    async def get_unread_count(self, user_id: UUID, organization_id: Optional[UUID] = None) -> int:
        pass

    @abstractmethod
    async def rate_conversation(
        self,
        conversation_id: UUID,
        user_id: UUID,
        score: int,
        comment: Optional[str] = None
    ) -> Rating:
        pass
