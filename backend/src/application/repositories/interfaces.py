"""
Repository Interfaces (Abstract Base Classes)
Define contracts for data access without implementation details
"""
from abc import ABC, abstractmethod
from typing import Optional, List, Sequence, Tuple
from uuid import UUID
from datetime import datetime

from domain.entities import (
    Application,
    ApplicationStatusHistory,
    PreHireConfirmation,
    Conversation,
    ConversationParticipant,
    Message,
    Rating,
    Document,
    DocumentShareGrant,
    DocumentRequest,
)


class IApplicationRepository(ABC):
    """Application repository interface"""

    @abstractmethod
    async def get_by_id(self, application_id: UUID, include_deleted: bool = False) -> Optional[Application]:
        """Get application by ID"""
        pass

    @abstractmethod
    async def find_live(self, job_id: UUID, candidate_id: UUID) -> Optional[Application]:
        """Find the non-withdrawn, non-deleted application for (job, candidate)"""
        pass

    @abstractmethod
    async def create(self, application: Application) -> Application:
        """Create new application"""
        pass

    @abstractmethod
    async def update_with_version(self, application: Application, expected_version: int) -> Application:
        """
        Persist a transition guarded by the version stamp.

        Raises ConcurrencyConflictError when the stored version moved on.
        """
        pass

    @abstractmethod
    async def soft_delete(self, application_id: UUID, deleted_by: UUID, deleted_at: datetime) -> None:
        """Flag application as deleted"""
        pass

    @abstractmethod
    async def list_for_job(self, job_id: UUID, organization_id: UUID) -> List[Application]:
        """Non-deleted applications of a job, newest first"""
        pass


class IApplicationHistoryRepository(ABC):
    """Insert-only status history"""

    @abstractmethod
    async def append(self, entry: ApplicationStatusHistory) -> ApplicationStatusHistory:
        pass

    @abstractmethod
    async def list_for_application(self, application_id: UUID) -> List[ApplicationStatusHistory]:
        """History oldest first"""
        pass


class IPreHireConfirmationRepository(ABC):
    """Pre-hire confirmation repository interface"""

    @abstractmethod
    async def get_by_application(self, application_id: UUID) -> Optional[PreHireConfirmation]:
        pass

    @abstractmethod
    async def create(self, confirmation: PreHireConfirmation) -> PreHireConfirmation:
        pass


class IOrganizationMemberRepository(ABC):
    """Read access to organization staff"""

    @abstractmethod
    async def is_member(self, organization_id: UUID, user_id: UUID) -> bool:
        """True when user is active staff of the organization"""
        pass

    @abstractmethod
    async def add(self, organization_id: UUID, user_id: UUID, role: str) -> None:
        pass


class IConversationRepository(ABC):
    """Conversation repository interface"""

    @abstractmethod
    async def get_by_id(self, conversation_id: UUID) -> Optional[Conversation]:
        """Get non-deleted conversation by ID"""
        pass

    @abstractmethod
    async def create(self, conversation: Conversation) -> Conversation:
        pass

    @abstractmethod
    async def update(self, conversation: Conversation) -> Conversation:
        pass

    @abstractmethod
    async def find_active_with_participants(
        self,
        organization_id: UUID,
        application_id: Optional[UUID],
        participant_ids: Sequence[UUID],
    ) -> Optional[Conversation]:
        """Active conversation whose active-participant set equals participant_ids exactly"""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: UUID,
        organization_id: Optional[UUID],
        limit: int,
        offset: int,
    ) -> Tuple[List[Conversation], int]:
        """Active conversations the user actively participates in, most recently updated first"""
        pass


class IParticipantRepository(ABC):
    """Conversation participant repository interface"""

    @abstractmethod
    async def get_active(self, conversation_id: UUID, user_id: UUID) -> Optional[ConversationParticipant]:
        pass

    @abstractmethod
    async def list_active(self, conversation_id: UUID) -> List[ConversationParticipant]:
        pass

    @abstractmethod
    async def add(self, participant: ConversationParticipant) -> ConversationParticipant:
        pass

    @abstractmethod
    async def update(self, participant: ConversationParticipant) -> ConversationParticipant:
        pass


class IMessageRepository(ABC):
    """Message repository interface"""

    @abstractmethod
    async def get_by_id(self, message_id: UUID) -> Optional[Message]:
        """Get non-deleted message by ID"""
        pass

    @abstractmethod
    async def create(self, message: Message) -> Message:
        pass

    @abstractmethod
    async def update(self, message: Message) -> Message:
        pass

    @abstractmethod
    async def list_for_conversation(
        self, conversation_id: UUID, limit: int, offset: int
    ) -> Tuple[List[Message], int]:
        """Non-deleted messages, newest first, with total count"""
        pass

    @abstractmethod
    async def count_for_conversation(self, conversation_id: UUID) -> int:
        """Non-deleted messages in the conversation"""
        pass

    @abstractmethod
    async def window_for_sender(
        self, conversation_id: UUID, sender_id: UUID, since: datetime
    ) -> Tuple[int, Optional[datetime]]:
        """Count and oldest timestamp of non-deleted messages sent after `since`"""
        pass

    @abstractmethod
    async def count_unread(
        self, user_id: UUID, organization_id: Optional[UUID], conversation_id: Optional[UUID] = None
    ) -> int:
        """Messages newer than the user's read watermark in conversations they actively joined"""
        pass


class IRatingRepository(ABC):
    """Conversation rating repository interface"""

    @abstractmethod
    async def get_for_user(self, conversation_id: UUID, user_id: UUID) -> Optional[Rating]:
        pass

    @abstractmethod
    async def create(self, rating: Rating) -> Rating:
        pass


class IDocumentRepository(ABC):
    """Document repository interface"""

    @abstractmethod
    async def get_by_id(self, document_id: UUID, for_update: bool = False) -> Optional[Document]:
        """Get non-deleted document; `for_update` locks the row until commit"""
        pass

    @abstractmethod
    async def create(self, document: Document) -> Document:
        pass


class IDocumentShareGrantRepository(ABC):
    """Share grant ledger interface"""

    @abstractmethod
    async def get_by_id(self, grant_id: UUID) -> Optional[DocumentShareGrant]:
        pass

    @abstractmethod
    async def find_active(
        self, document_id: UUID, business_user_id: UUID, now: datetime
    ) -> Optional[DocumentShareGrant]:
        """Unrevoked, unexpired grant for the pair"""
        pass

    @abstractmethod
    async def exists_active(
        self, document_id: UUID, business_user_id: UUID, now: datetime, application_id: Optional[UUID] = None
    ) -> bool:
        """Active grant exists; with application_id, unscoped grants and grants for that application count"""
        pass

    @abstractmethod
    async def create(self, grant: DocumentShareGrant) -> DocumentShareGrant:
        pass

    @abstractmethod
    async def update(self, grant: DocumentShareGrant) -> DocumentShareGrant:
        pass

    @abstractmethod
    async def list_for_document(self, document_id: UUID) -> List[DocumentShareGrant]:
        """All grants of a document including revoked ones, newest first"""
        pass


class IDocumentRequestRepository(ABC):
    """Document request repository interface"""

    @abstractmethod
    async def get_by_id(self, request_id: UUID) -> Optional[DocumentRequest]:
        pass

    @abstractmethod
    async def create(self, request: DocumentRequest) -> DocumentRequest:
        pass

    @abstractmethod
    async def update(self, request: DocumentRequest) -> DocumentRequest:
        pass
