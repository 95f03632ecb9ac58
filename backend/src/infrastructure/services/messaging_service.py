"""
MessagingService Implementation
Conversations, participants and messages behind the application eligibility gate
"""
import math
import uuid
from dataclasses import replace
from datetime import timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from application.services.messaging import IMessagingService, BulkAddResult
from application.services.eligibility import IApplicationsReadService
from application.services.audit import IAuditSink
from application.repositories.interfaces import (
    IConversationRepository,
    IParticipantRepository,
    IMessageRepository,
    IRatingRepository,
)
from domain.entities import Conversation, ConversationParticipant, Message, Rating
from domain.enums import AuditAction, AuditEntityType
from domain.value_objects import Page, RatingScore
from core.config import settings
from core.database import acquire_advisory_lock
from core.exceptions import (
    AlreadyExistsError,
    IneligibleApplicationError,
    NotFoundError,
    ParticipantNotInvolvedError,
    PreconditionFailedError,
    RateLimitedError,
    UnauthorizedError,
    ValidationException,
)
from core.logging_config import logger
from core.time_utils import utc_now


class MessagingService(IMessagingService):
    """
    Messaging gate.

    Application-scoped conversations consult the eligibility facade on
    creation, on every send and on every participant addition. Message
    content is never logged.
    """

    def __init__(
        self,
        session: AsyncSession,
        conversation_repository: IConversationRepository,
        participant_repository: IParticipantRepository,
        message_repository: IMessageRepository,
        rating_repository: IRatingRepository,
        applications_read_service: IApplicationsReadService,
        audit_sink: IAuditSink,
    ):
        self.session = session
        self.conversation_repo = conversation_repository
        self.participant_repo = participant_repository
        self.message_repo = message_repository
        self.rating_repo = rating_repository
        self.applications = applications_read_service
        self.audit = audit_sink

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(
        self,
        organization_id: UUID,
        subject: str,
        participant_ids: Sequence[UUID],
        creator_id: UUID,
        application_id: Optional[UUID] = None,
        description: Optional[str] = None
    ) -> Conversation:
        if not subject or not subject.strip():
            raise ValidationException("subject", "Subject is required")

        members = sorted(set(participant_ids) | {creator_id})
        if len(members) < settings.MIN_CONVERSATION_PARTICIPANTS:
            raise ValidationException(
                "participant_ids",
                f"Conversation requires at least {settings.MIN_CONVERSATION_PARTICIPANTS} participants",
            )

        if application_id is not None:
            if not await self.applications.is_application_in_screening_or_later(application_id, organization_id):
                logger.warning(
                    f"Conversation creation blocked: application {application_id} not eligible "
                    f"(org {organization_id}, user {creator_id})"
                )
                raise IneligibleApplicationError(
                    application_id,
                    "Cannot create conversation - application must be in screening or later stage",
                )
            for member in members:
                if not await self.applications.is_user_in_application(application_id, organization_id, member):
                    logger.warning(
                        f"Conversation creation blocked: participant {member} not in application {application_id}"
                    )
                    raise ParticipantNotInvolvedError(member, application_id)

        # Serialize find-or-create for one (org, application, member set)
        lock_key = f"conversation:{organization_id}:{application_id}:{','.join(str(m) for m in members)}"
        await acquire_advisory_lock(self.session, lock_key)

        existing = await self.conversation_repo.find_active_with_participants(
            organization_id, application_id, members
        )
        if existing is not None:
            logger.info(
                f"Idempotent conversation creation: returning existing conversation {existing.id} "
                f"for application {application_id}"
            )
            return existing

        now = utc_now()
        conversation = await self.conversation_repo.create(
            Conversation(
                id=uuid.uuid4(),
                organization_id=organization_id,
                subject=subject.strip(),
                description=description,
                created_by=creator_id,
                created_at=now,
                updated_at=now,
                application_id=application_id,
            )
        )
        for member in members:
            await self.participant_repo.add(
                ConversationParticipant(
                    id=uuid.uuid4(),
                    conversation_id=conversation.id,
                    user_id=member,
                    joined_at=now,
                )
            )

        await self.audit.record(
            organization_id=organization_id,
            actor_id=creator_id,
            action=AuditAction.CONVERSATION_CREATED,
            entity_type=AuditEntityType.CONVERSATION,
            entity_id=conversation.id,
            details={
                "subject": conversation.subject,
                "application_id": application_id,
                "participant_count": len(members),
            },
            timestamp=now,
        )

        logger.info(
            f"Conversation created: {conversation.id} in org {organization_id} by user {creator_id}"
        )
        return conversation

    async def get_conversation(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        conversation = await self._get_conversation(conversation_id)
        await self._require_participant(conversation_id, user_id)
        return conversation

    async def list_conversations(
        self,
        user_id: UUID,
        organization_id: Optional[UUID] = None,
        page_number: int = 1,
        page_size: Optional[int] = None
    ) -> Page:
        page_number, page_size = _page_bounds(page_number, page_size)
        items, total = await self.conversation_repo.list_for_user(
            user_id, organization_id, limit=page_size, offset=(page_number - 1) * page_size
        )
        return Page(items=items, total_count=total, page_number=page_number, page_size=page_size)

    async def archive_conversation(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        conversation = await self._get_active_conversation(conversation_id)
        if await self.participant_repo.get_active(conversation_id, user_id) is None:
            raise UnauthorizedError("Only participants can archive conversations")

        now = utc_now()
        archived = await self.conversation_repo.update(
            replace(conversation, is_active=False, archived_at=now, archived_by=user_id, updated_at=now)
        )
        await self.audit.record(
            organization_id=conversation.organization_id,
            actor_id=user_id,
            action=AuditAction.CONVERSATION_ARCHIVED,
            entity_type=AuditEntityType.CONVERSATION,
            entity_id=conversation_id,
            timestamp=now,
        )
        logger.info(f"Conversation archived: {conversation_id} by user {user_id}")
        return archived

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def send_message(self, conversation_id: UUID, content: str, sender_id: UUID) -> Message:
        if not content or not content.strip():
            raise ValidationException("content", "Message content is required")

        conversation = await self._get_active_conversation(conversation_id)

        if await self.participant_repo.get_active(conversation_id, sender_id) is None:
            logger.warning(
                f"Message send blocked: user not a participant. ConvId: {conversation_id}, UserId: {sender_id}"
            )
            raise UnauthorizedError("User is not a participant in this conversation")

        # Re-checked on every send: the application may have been rejected since creation
        if conversation.is_application_scoped:
            eligible = await self.applications.is_application_in_screening_or_later(
                conversation.application_id, conversation.organization_id
            )
            if not eligible:
                logger.warning(
                    f"Message send blocked: application not eligible. AppId: {conversation.application_id}, "
                    f"ConvId: {conversation_id}, UserId: {sender_id}"
                )
                raise IneligibleApplicationError(
                    conversation.application_id,
                    "Cannot send message - application is no longer in screening or later stage",
                )

        now = utc_now()
        await self._check_rate_limit(conversation_id, sender_id, now)

        message = await self.message_repo.create(
            Message(
                id=uuid.uuid4(),
                conversation_id=conversation_id,
                organization_id=conversation.organization_id,
                sent_by=sender_id,
                content=content,
                sent_at=now,
            )
        )
        await self.conversation_repo.update(replace(conversation, updated_at=now))
        await self.audit.record(
            organization_id=conversation.organization_id,
            actor_id=sender_id,
            action=AuditAction.MESSAGE_SENT,
            entity_type=AuditEntityType.MESSAGE,
            entity_id=message.id,
            details={"conversation_id": conversation_id},
            timestamp=now,
        )

        logger.info(f"Message sent: {message.id} in conversation {conversation_id} by user {sender_id}")
        return message

    async def get_messages(
        self,
        conversation_id: UUID,
        user_id: UUID,
        page_number: int = 1,
        page_size: Optional[int] = None
    ) -> Page:
        await self._get_conversation(conversation_id)
        await self._require_participant(conversation_id, user_id)

        page_number, page_size = _page_bounds(page_number, page_size)
        items, total = await self.message_repo.list_for_conversation(
            conversation_id, limit=page_size, offset=(page_number - 1) * page_size
        )
        return Page(items=items, total_count=total, page_number=page_number, page_size=page_size)

    async def edit_message(self, message_id: UUID, content: str, user_id: UUID) -> Message:
        if not content or not content.strip():
            raise ValidationException("content", "Message content is required")

        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message", message_id)
        if message.sent_by != user_id:
            raise UnauthorizedError("You can only edit your own messages")

        now = utc_now()
        edited = await self.message_repo.update(
            replace(message, content=content, edited_at=now, edited_by=user_id)
        )
        await self.audit.record(
            organization_id=message.organization_id,
            actor_id=user_id,
            action=AuditAction.MESSAGE_EDITED,
            entity_type=AuditEntityType.MESSAGE,
            entity_id=message_id,
            details={"conversation_id": message.conversation_id},
            timestamp=now,
        )
        logger.info(f"Message edited: {message_id} by user {user_id}")
        return edited

    async def delete_message(self, message_id: UUID, user_id: UUID) -> None:
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message", message_id)
        if message.sent_by != user_id:
            raise UnauthorizedError("You can only delete your own messages")

        now = utc_now()
        await self.message_repo.update(
            replace(message, is_deleted=True, deleted_at=now, deleted_by=user_id)
        )
        await self.audit.record(
            organization_id=message.organization_id,
            actor_id=user_id,
            action=AuditAction.MESSAGE_DELETED,
            entity_type=AuditEntityType.MESSAGE,
            entity_id=message_id,
            details={"conversation_id": message.conversation_id},
            timestamp=now,
        )
        logger.info(f"Message deleted: {message_id} by user {user_id}")

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    async def add_participant(
        self, conversation_id: UUID, user_id: UUID, added_by: UUID
    ) -> ConversationParticipant:
        conversation = await self._get_active_conversation(conversation_id)
        if await self.participant_repo.get_active(conversation_id, added_by) is None:
            raise UnauthorizedError("Only conversation participants can add others")

        if await self.participant_repo.get_active(conversation_id, user_id) is not None:
            raise AlreadyExistsError("ConversationParticipant", "user_id", user_id)

        if conversation.is_application_scoped:
            involved = await self.applications.is_user_in_application(
                conversation.application_id, conversation.organization_id, user_id
            )
            if not involved:
                logger.warning(
                    f"Participant add blocked: user not in application. AppId: {conversation.application_id}, "
                    f"ParticipantId: {user_id}"
                )
                raise ParticipantNotInvolvedError(user_id, conversation.application_id)

        now = utc_now()
        participant = await self.participant_repo.add(
            ConversationParticipant(
                id=uuid.uuid4(), conversation_id=conversation_id, user_id=user_id, joined_at=now
            )
        )
        await self.audit.record(
            organization_id=conversation.organization_id,
            actor_id=added_by,
            action=AuditAction.PARTICIPANT_ADDED,
            entity_type=AuditEntityType.CONVERSATION,
            entity_id=conversation_id,
            details={"participant_id": user_id},
            timestamp=now,
        )
        logger.info(f"Participant added: {user_id} to conversation {conversation_id} by user {added_by}")
        return participant

    async def add_participants(
        self, conversation_id: UUID, user_ids: Sequence[UUID], added_by: UUID
    ) -> BulkAddResult:
        conversation = await self._get_active_conversation(conversation_id)
        if await self.participant_repo.get_active(conversation_id, added_by) is None:
            raise UnauthorizedError("Only conversation participants can add others")

        existing = {p.user_id for p in await self.participant_repo.list_active(conversation_id)}
        now = utc_now()
        added: List[ConversationParticipant] = []
        skipped: List[UUID] = []

        for candidate in dict.fromkeys(user_ids):
            if candidate in existing:
                continue
            if conversation.is_application_scoped:
                involved = await self.applications.is_user_in_application(
                    conversation.application_id, conversation.organization_id, candidate
                )
                if not involved:
                    logger.warning(
                        f"Bulk participant add skipped for ineligible user. UserId: {candidate}, "
                        f"ConvId: {conversation_id}"
                    )
                    skipped.append(candidate)
                    continue

            added.append(
                await self.participant_repo.add(
                    ConversationParticipant(
                        id=uuid.uuid4(), conversation_id=conversation_id, user_id=candidate, joined_at=now
                    )
                )
            )

        if added:
            await self.audit.record(
                organization_id=conversation.organization_id,
                actor_id=added_by,
                action=AuditAction.PARTICIPANTS_ADDED,
                entity_type=AuditEntityType.CONVERSATION,
                entity_id=conversation_id,
                details={"participant_ids": [p.user_id for p in added], "skipped": skipped},
                timestamp=now,
            )
            logger.info(
                f"Bulk participants added: {len(added)} to conversation {conversation_id} by user {added_by}"
            )

        return BulkAddResult(added=added, skipped=skipped)

    async def remove_participant(self, conversation_id: UUID, user_id: UUID, removed_by: UUID) -> None:
        conversation = await self._get_active_conversation(conversation_id)
        if user_id != removed_by and conversation.created_by != removed_by:
            raise UnauthorizedError("You can only remove yourself or you must be the conversation creator")

        participant = await self.participant_repo.get_active(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("ConversationParticipant", user_id)

        now = utc_now()
        await self.participant_repo.update(replace(participant, has_left=True, left_at=now))
        await self.audit.record(
            organization_id=conversation.organization_id,
            actor_id=removed_by,
            action=AuditAction.PARTICIPANT_REMOVED,
            entity_type=AuditEntityType.CONVERSATION,
            entity_id=conversation_id,
            details={"participant_id": user_id},
            timestamp=now,
        )
        logger.info(f"Participant removed: {user_id} from conversation {conversation_id} by user {removed_by}")

    async def get_participants(self, conversation_id: UUID, user_id: UUID) -> List[ConversationParticipant]:
        await self._get_conversation(conversation_id)
        await self._require_participant(conversation_id, user_id)
        return await self.participant_repo.list_active(conversation_id)

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------

    async def mark_as_read(self, conversation_id: UUID, user_id: UUID) -> None:
        participant = await self._require_participant(conversation_id, user_id)
        await self.participant_repo.update(replace(participant, last_read_at=utc_now()))
        logger.debug(f"Conversation {conversation_id} marked read by user {user_id}")

    async def update_last_seen(self, conversation_id: UUID, user_id: UUID) -> None:
        participant = await self._require_participant(conversation_id, user_id)
        await self.participant_repo.update(replace(participant, last_seen_at=utc_now()))

    async def get_unread_count(self, user_id: UUID, organization_id: Optional[UUID] = None) -> int:
        return await self.message_repo.count_unread(user_id, organization_id)

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    async def rate_conversation(
        self,
        conversation_id: UUID,
        user_id: UUID,
        score: int,
        comment: Optional[str] = None
    ) -> Rating:
        try:
            rating_score = RatingScore(score)
        except (TypeError, ValueError) as e:
            raise ValidationException("score", str(e)) from e

        conversation = await self._get_conversation(conversation_id)
        if await self.participant_repo.get_active(conversation_id, user_id) is None:
            raise UnauthorizedError("Only participants can rate conversations")

        if await self.message_repo.count_for_conversation(conversation_id) == 0:
            raise PreconditionFailedError("Cannot rate conversation with no messages")

        if await self.rating_repo.get_for_user(conversation_id, user_id) is not None:
            raise AlreadyExistsError("Rating", "conversation_id", conversation_id)

        now = utc_now()
        rating = await self.rating_repo.create(
            Rating(
                id=uuid.uuid4(),
                conversation_id=conversation_id,
                organization_id=conversation.organization_id,
                user_id=user_id,
                score=rating_score.value,
                comment=comment,
                created_at=now,
            )
        )
        await self.audit.record(
            organization_id=conversation.organization_id,
            actor_id=user_id,
            action=AuditAction.CONVERSATION_RATED,
            entity_type=AuditEntityType.RATING,
            entity_id=rating.id,
            details={"conversation_id": conversation_id, "score": rating.score},
            timestamp=now,
        )
        logger.info(f"Conversation {conversation_id} rated {rating.score} by user {user_id}")
        return rating

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_rate_limit(self, conversation_id: UUID, sender_id: UUID, now) -> None:
        """Soft sliding-window cap; concurrent sends may overshoot by a message"""
        window = timedelta(minutes=settings.MESSAGE_RATE_LIMIT_WINDOW_MINUTES)
        count, oldest = await self.message_repo.window_for_sender(conversation_id, sender_id, now - window)
        if count >= settings.MESSAGE_RATE_LIMIT_COUNT:
            retry_after = 1
            if oldest is not None:
                retry_after = max(1, math.ceil((oldest + window - now).total_seconds()))
            logger.warning(
                f"Message send blocked: rate limit exceeded. UserId: {sender_id}, ConvId: {conversation_id}"
            )
            raise RateLimitedError(
                settings.MESSAGE_RATE_LIMIT_COUNT, settings.MESSAGE_RATE_LIMIT_WINDOW_MINUTES, retry_after
            )

    async def _get_conversation(self, conversation_id: UUID) -> Conversation:
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return conversation

    async def _get_active_conversation(self, conversation_id: UUID) -> Conversation:
        """Archived conversations accept no further writes"""
        conversation = await self._get_conversation(conversation_id)
        if not conversation.is_active:
            raise NotFoundError("Conversation", conversation_id)
        return conversation

    async def _require_participant(self, conversation_id: UUID, user_id: UUID) -> ConversationParticipant:
        participant = await self.participant_repo.get_active(conversation_id, user_id)
        if participant is None:
            raise UnauthorizedError("User is not a participant in this conversation")
        return participant


def _page_bounds(page_number: int, page_size: Optional[int]):
    page_number = max(1, page_number or 1)
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    return page_number, max(1, min(page_size, settings.MAX_PAGE_SIZE))
