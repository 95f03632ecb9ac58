"""
Conversation ORM Models
Messaging threads, participants, messages and ratings
"""
import uuid
from sqlalchemy import (
    Column, String, DateTime, Text, Boolean, Integer, ForeignKey, Index, UniqueConstraint, CheckConstraint, Uuid, text
)

from core.database import Base
from core.time_utils import utc_now
from .mixins import SoftDeleteMixin


class ConversationModel(SoftDeleteMixin, Base):
    """Conversation table ORM model"""

    __tablename__ = "conversations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    application_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by = Column(Uuid(as_uuid=True), nullable=False)

    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(Uuid(as_uuid=True), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=True, default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<ConversationModel {self.id} app={self.application_id}>"


class ConversationParticipantModel(SoftDeleteMixin, Base):
    """Conversation membership; HasLeft is a soft removal"""

    __tablename__ = "conversation_participants"
    __table_args__ = (
        # Unique (conversation, user) among active members
        Index(
            "uq_conversation_participants_active",
            "conversation_id",
            "user_id",
            unique=True,
            postgresql_where=text("has_left = false"),
            sqlite_where=text("has_left = 0"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    joined_at = Column(DateTime, nullable=False, default=utc_now)
    last_read_at = Column(DateTime, nullable=True)
    last_seen_at = Column(DateTime, nullable=True)
    has_left = Column(Boolean, nullable=False, default=False)
    left_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<ConversationParticipantModel conv={self.conversation_id} user={self.user_id}>"


class MessageModel(SoftDeleteMixin, Base):
    """Message table ORM model"""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_sender_sent", "conversation_id", "sent_by", "sent_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    sent_by = Column(Uuid(as_uuid=True), nullable=False)

    content = Column(Text, nullable=False)
    sent_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    edited_at = Column(DateTime, nullable=True)
    edited_by = Column(Uuid(as_uuid=True), nullable=True)

    def __repr__(self):
        return f"<MessageModel {self.id} conv={self.conversation_id}>"


class RatingModel(SoftDeleteMixin, Base):
    """Conversation rating; one per (conversation, user)"""

    __tablename__ = "conversation_ratings"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_ratings_conv_user"),
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_conversation_ratings_score"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), nullable=False)
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    score = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<RatingModel conv={self.conversation_id} score={self.score}>"
