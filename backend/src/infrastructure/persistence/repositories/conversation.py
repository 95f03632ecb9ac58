"""
Messaging Repository Implementations
SQLAlchemy persistence for conversations, participants, messages and ratings
"""
from collections import defaultdict
from typing import Optional, List, Sequence, Tuple
from uuid import UUID
from datetime import datetime

from sqlalchemy import select, and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from domain.entities import Conversation, ConversationParticipant, Message, Rating
from application.repositories.interfaces import (
    IConversationRepository,
    IParticipantRepository,
    IMessageRepository,
    IRatingRepository,
)
from infrastructure.persistence.models.conversation import (
    ConversationModel,
    ConversationParticipantModel,
    MessageModel,
    RatingModel,
)
from core.exceptions import InfrastructureError


class SQLAlchemyConversationRepository(IConversationRepository):
    """SQLAlchemy implementation of conversation repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, conversation_id: UUID) -> Optional[Conversation]:
        try:
            result = await self.session.execute(
                select(ConversationModel).where(
                    and_(
                        ConversationModel.id == conversation_id,
                        ConversationModel.is_deleted.is_(False),
                    )
                )
            )
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get conversation {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get conversation: {str(e)}") from e

    async def create(self, conversation: Conversation) -> Conversation:
        try:
            self.session.add(
                ConversationModel(
                    id=conversation.id,
                    organization_id=conversation.organization_id,
                    application_id=conversation.application_id,
                    subject=conversation.subject,
                    description=conversation.description,
                    is_active=conversation.is_active,
                    created_by=conversation.created_by,
                    created_at=conversation.created_at,
                    updated_at=conversation.updated_at or conversation.created_at,
                )
            )
            await self.session.flush()
            return conversation
        except SQLAlchemyError as e:
            logger.error(f"Failed to create conversation: {str(e)}")
            raise InfrastructureError(f"Failed to create conversation: {str(e)}") from e

    async def update(self, conversation: Conversation) -> Conversation:
        try:
            model = await self.session.get(ConversationModel, conversation.id)
            if model is None:
                raise InfrastructureError(f"Conversation row vanished: {conversation.id}")
            model.is_active = conversation.is_active
            model.archived_at = conversation.archived_at
            model.archived_by = conversation.archived_by
            model.updated_at = conversation.updated_at
            await self.session.flush()
            return conversation
        except SQLAlchemyError as e:
            logger.error(f"Failed to update conversation {conversation.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update conversation: {str(e)}") from e

    async def find_active_with_participants(
        self,
        organization_id: UUID,
        application_id: Optional[UUID],
        participant_ids: Sequence[UUID],
    ) -> Optional[Conversation]:
        wanted = sorted(set(participant_ids))
        conditions = [
            ConversationModel.organization_id == organization_id,
            ConversationModel.is_active.is_(True),
            ConversationModel.is_deleted.is_(False),
        ]
        if application_id is None:
            conditions.append(ConversationModel.application_id.is_(None))
        else:
            conditions.append(ConversationModel.application_id == application_id)

        try:
            result = await self.session.execute(
                select(ConversationModel, ConversationParticipantModel.user_id)
                .join(
                    ConversationParticipantModel,
                    and_(
                        ConversationParticipantModel.conversation_id == ConversationModel.id,
                        ConversationParticipantModel.has_left.is_(False),
                    ),
                )
                .where(and_(*conditions))
                .order_by(ConversationModel.created_at.asc())
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to search conversations in org {organization_id}: {str(e)}")
            raise InfrastructureError(f"Failed to search conversations: {str(e)}") from e

        members = defaultdict(set)
        models = {}
        for model, user_id in rows:
            members[model.id].add(user_id)
            models.setdefault(model.id, model)

        for conversation_id, model in models.items():
            if sorted(members[conversation_id]) == wanted:
                return self._to_entity(model)
        return None

    async def list_for_user(
        self,
        user_id: UUID,
        organization_id: Optional[UUID],
        limit: int,
        offset: int,
    ) -> Tuple[List[Conversation], int]:
        conditions = [
            ConversationParticipantModel.user_id == user_id,
            ConversationParticipantModel.has_left.is_(False),
            ConversationModel.is_active.is_(True),
            ConversationModel.is_deleted.is_(False),
        ]
        if organization_id is not None:
            conditions.append(ConversationModel.organization_id == organization_id)

        base = (
            select(ConversationModel)
            .join(
                ConversationParticipantModel,
                ConversationParticipantModel.conversation_id == ConversationModel.id,
            )
            .where(and_(*conditions))
        )
        try:
            total = await self.session.scalar(select(func.count()).select_from(base.subquery()))
            result = await self.session.execute(
                base.order_by(ConversationModel.updated_at.desc(), ConversationModel.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [self._to_entity(m) for m in result.scalars().all()], int(total or 0)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list conversations for user {user_id}: {str(e)}")
            raise InfrastructureError(f"Failed to list conversations: {str(e)}") from e

    def _to_entity(self, model: ConversationModel) -> Conversation:
        return Conversation(
            id=model.id,
            organization_id=model.organization_id,
            subject=model.subject,
            created_by=model.created_by,
            created_at=model.created_at,
            application_id=model.application_id,
            description=model.description,
            is_active=model.is_active,
            archived_at=model.archived_at,
            archived_by=model.archived_by,
            updated_at=model.updated_at,
        )


class SQLAlchemyParticipantRepository(IParticipantRepository):
    """SQLAlchemy implementation of participant repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, conversation_id: UUID, user_id: UUID) -> Optional[ConversationParticipant]:
        try:
            result = await self.session.execute(
                select(ConversationParticipantModel).where(
                    and_(
                        ConversationParticipantModel.conversation_id == conversation_id,
                        ConversationParticipantModel.user_id == user_id,
                        ConversationParticipantModel.has_left.is_(False),
                    )
                )
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get participant {user_id} of {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get participant: {str(e)}") from e

    async def list_active(self, conversation_id: UUID) -> List[ConversationParticipant]:
        try:
            result = await self.session.execute(
                select(ConversationParticipantModel)
                .where(
                    and_(
                        ConversationParticipantModel.conversation_id == conversation_id,
                        ConversationParticipantModel.has_left.is_(False),
                    )
                )
                .order_by(ConversationParticipantModel.joined_at.asc())
            )
            return [self._to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list participants of {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to list participants: {str(e)}") from e

    async def add(self, participant: ConversationParticipant) -> ConversationParticipant:
        try:
            self.session.add(
                ConversationParticipantModel(
                    id=participant.id,
                    conversation_id=participant.conversation_id,
                    user_id=participant.user_id,
                    joined_at=participant.joined_at,
                    last_read_at=participant.last_read_at,
                    has_left=participant.has_left,
                )
            )
            await self.session.flush()
            return participant
        except SQLAlchemyError as e:
            logger.error(f"Failed to add participant {participant.user_id}: {str(e)}")
            raise InfrastructureError(f"Failed to add participant: {str(e)}") from e

    async def update(self, participant: ConversationParticipant) -> ConversationParticipant:
        try:
            model = await self.session.get(ConversationParticipantModel, participant.id)
            if model is None:
                raise InfrastructureError(f"Participant row vanished: {participant.id}")
            model.last_read_at = participant.last_read_at
            model.last_seen_at = participant.last_seen_at
            model.has_left = participant.has_left
            model.left_at = participant.left_at
            await self.session.flush()
            return participant
        except SQLAlchemyError as e:
            logger.error(f"Failed to update participant {participant.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update participant: {str(e)}") from e

    def _to_entity(self, model: ConversationParticipantModel) -> ConversationParticipant:
        return ConversationParticipant(
            id=model.id,
            conversation_id=model.conversation_id,
            user_id=model.user_id,
            joined_at=model.joined_at,
            last_read_at=model.last_read_at,
            last_seen_at=model.last_seen_at,
            has_left=model.has_left,
            left_at=model.left_at,
        )


class SQLAlchemyMessageRepository(IMessageRepository):
    """SQLAlchemy implementation of message repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, message_id: UUID) -> Optional[Message]:
        try:
            result = await self.session.execute(
                select(MessageModel).where(
                    and_(MessageModel.id == message_id, MessageModel.is_deleted.is_(False))
                )
            )
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get message {message_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get message: {str(e)}") from e

    async def create(self, message: Message) -> Message:
        try:
            self.session.add(
                MessageModel(
                    id=message.id,
                    conversation_id=message.conversation_id,
                    organization_id=message.organization_id,
                    sent_by=message.sent_by,
                    content=message.content,
                    sent_at=message.sent_at,
                )
            )
            await self.session.flush()
            return message
        except SQLAlchemyError as e:
            logger.error(f"Failed to store message in {message.conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to store message: {str(e)}") from e

    async def update(self, message: Message) -> Message:
        try:
            model = await self.session.get(MessageModel, message.id)
            if model is None:
                raise InfrastructureError(f"Message row vanished: {message.id}")
            model.content = message.content
            model.edited_at = message.edited_at
            model.edited_by = message.edited_by
            model.is_deleted = message.is_deleted
            model.deleted_at = message.deleted_at
            model.deleted_by = message.deleted_by
            await self.session.flush()
            return message
        except SQLAlchemyError as e:
            logger.error(f"Failed to update message {message.id}: {str(e)}")
            raise InfrastructureError(f"Failed to update message: {str(e)}") from e

    async def list_for_conversation(
        self, conversation_id: UUID, limit: int, offset: int
    ) -> Tuple[List[Message], int]:
        condition = and_(
            MessageModel.conversation_id == conversation_id,
            MessageModel.is_deleted.is_(False),
        )
        try:
            total = await self.session.scalar(select(func.count(MessageModel.id)).where(condition))
            result = await self.session.execute(
                select(MessageModel)
                .where(condition)
                .order_by(MessageModel.sent_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [self._to_entity(m) for m in result.scalars().all()], int(total or 0)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list messages of {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to list messages: {str(e)}") from e

    async def count_for_conversation(self, conversation_id: UUID) -> int:
        try:
            total = await self.session.scalar(
                select(func.count(MessageModel.id)).where(
                    and_(
                        MessageModel.conversation_id == conversation_id,
                        MessageModel.is_deleted.is_(False),
                    )
                )
            )
            return int(total or 0)
        except SQLAlchemyError as e:
            logger.error(f"Failed to count messages of {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to count messages: {str(e)}") from e

    async def window_for_sender(
        self, conversation_id: UUID, sender_id: UUID, since: datetime
    ) -> Tuple[int, Optional[datetime]]:
        try:
            result = await self.session.execute(
                select(func.count(MessageModel.id), func.min(MessageModel.sent_at)).where(
                    and_(
                        MessageModel.conversation_id == conversation_id,
                        MessageModel.sent_by == sender_id,
                        MessageModel.is_deleted.is_(False),
                        MessageModel.sent_at > since,
                    )
                )
            )
            count, oldest = result.one()
            return int(count or 0), oldest
        except SQLAlchemyError as e:
            logger.error(f"Failed to read rate window for {sender_id} in {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to read message rate window: {str(e)}") from e

    async def count_unread(
        self, user_id: UUID, organization_id: Optional[UUID], conversation_id: Optional[UUID] = None
    ) -> int:
        conditions = [
            ConversationParticipantModel.user_id == user_id,
            ConversationParticipantModel.has_left.is_(False),
            ConversationModel.is_deleted.is_(False),
            ConversationModel.is_active.is_(True),
            MessageModel.is_deleted.is_(False),
            MessageModel.sent_at > func.coalesce(
                ConversationParticipantModel.last_read_at, ConversationParticipantModel.joined_at
            ),
        ]
        if organization_id is not None:
            conditions.append(ConversationModel.organization_id == organization_id)
        if conversation_id is not None:
            conditions.append(ConversationModel.id == conversation_id)

        try:
            total = await self.session.scalar(
                select(func.count(func.distinct(MessageModel.id)))
                .select_from(ConversationParticipantModel)
                .join(ConversationModel, ConversationModel.id == ConversationParticipantModel.conversation_id)
                .join(MessageModel, MessageModel.conversation_id == ConversationModel.id)
                .where(and_(*conditions))
            )
            return int(total or 0)
        except SQLAlchemyError as e:
            logger.error(f"Failed to count unread messages for {user_id}: {str(e)}")
            raise InfrastructureError(f"Failed to count unread messages: {str(e)}") from e

    def _to_entity(self, model: MessageModel) -> Message:
        return Message(
            id=model.id,
            conversation_id=model.conversation_id,
            organization_id=model.organization_id,
            sent_by=model.sent_by,
            content=model.content,
            sent_at=model.sent_at,
            edited_at=model.edited_at,
            edited_by=model.edited_by,
            is_deleted=model.is_deleted,
            deleted_at=model.deleted_at,
            deleted_by=model.deleted_by,
        )


class SQLAlchemyRatingRepository(IRatingRepository):
    """SQLAlchemy implementation of rating repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_user(self, conversation_id: UUID, user_id: UUID) -> Optional[Rating]:
        try:
            result = await self.session.execute(
                select(RatingModel).where(
                    and_(
                        RatingModel.conversation_id == conversation_id,
                        RatingModel.user_id == user_id,
                        RatingModel.is_deleted.is_(False),
                    )
                )
            )
            model = result.scalar_one_or_none()
            if not model:
                return None
            return Rating(
                id=model.id,
                conversation_id=model.conversation_id,
                organization_id=model.organization_id,
                user_id=model.user_id,
                score=model.score,
                created_at=model.created_at,
                comment=model.comment,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to get rating of {user_id} for {conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to get rating: {str(e)}") from e

    async def create(self, rating: Rating) -> Rating:
        try:
            self.session.add(
                RatingModel(
                    id=rating.id,
                    conversation_id=rating.conversation_id,
                    organization_id=rating.organization_id,
                    user_id=rating.user_id,
                    score=rating.score,
                    comment=rating.comment,
                    created_at=rating.created_at,
                )
            )
            await self.session.flush()
            return rating
        except SQLAlchemyError as e:
            logger.error(f"Failed to store rating for {rating.conversation_id}: {str(e)}")
            raise InfrastructureError(f"Failed to store rating: {str(e)}") from e
