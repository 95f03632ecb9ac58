"""
Real-time Messaging Hub
Socket.IO namespace for conversation rooms, live message delivery and typing indicators.

Every message still goes through MessagingService.send_message, so the
participant, eligibility and rate-limit checks apply exactly as over HTTP.
"""
from typing import Any, Callable, Dict, Optional
from uuid import UUID

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db_session
from core.exceptions import DomainException, NotFoundError, RateLimitedError
from core.logging_config import logger
from core.time_utils import utc_now
from infrastructure.persistence.repositories.application import SQLAlchemyApplicationRepository
from infrastructure.persistence.repositories.organization_member import SQLAlchemyOrganizationMemberRepository
from infrastructure.persistence.repositories.conversation import (
    SQLAlchemyConversationRepository,
    SQLAlchemyParticipantRepository,
    SQLAlchemyMessageRepository,
    SQLAlchemyRatingRepository,
)
from infrastructure.services.audit_sink import SQLAlchemyAuditSink
from infrastructure.services.applications_read_service import ApplicationsReadService
from infrastructure.services.messaging_service import MessagingService


MESSAGING_NAMESPACE = "/messaging"


def conversation_room(organization_id: UUID, conversation_id: UUID) -> str:
    return f"conversation-{organization_id}-{conversation_id}"


def build_messaging_service(session: AsyncSession) -> MessagingService:
    """Messaging service bound to one unit of work"""
    return MessagingService(
        session,
        SQLAlchemyConversationRepository(session),
        SQLAlchemyParticipantRepository(session),
        SQLAlchemyMessageRepository(session),
        SQLAlchemyRatingRepository(session),
        ApplicationsReadService(
            SQLAlchemyApplicationRepository(session),
            SQLAlchemyOrganizationMemberRepository(session),
        ),
        SQLAlchemyAuditSink(session),
    )


def _parse_uuid(value: Any) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class MessagingNamespace(socketio.AsyncNamespace):
    """
    Conversation rooms keyed by organization and conversation.

    Clients identify with `auth={"user_id": ...}` or the X-User-Id header.
    Failures are reported to the caller only, as an `error` event carrying
    the exception class name and message.
    """

    def __init__(
        self,
        namespace: str = MESSAGING_NAMESPACE,
        session_scope: Callable = get_db_session
    ):
        super().__init__(namespace)
        self.session_scope = session_scope

    async def on_connect(self, sid, environ, auth=None):
        raw_user_id = (auth or {}).get("user_id") or environ.get("HTTP_X_USER_ID")
        user_id = _parse_uuid(raw_user_id)
        if user_id is None:
            logger.warning(f"Rejected socket {sid}: missing or invalid user id")
            raise SocketConnectionRefused("Unauthorized")

        await self.save_session(sid, {"user_id": str(user_id)})
        logger.info(f"Socket {sid} connected as user {user_id}")

    async def on_disconnect(self, sid, *args):
        logger.info(f"Socket {sid} disconnected")

    async def on_join_conversation(self, sid, data):
        """Join the conversation room and mark it read for the caller"""
        try:
            user_id, organization_id, conversation_id = await self._resolve(sid, data)
            async with self.session_scope() as session:
                service = build_messaging_service(session)
                await self._check_conversation(service, organization_id, conversation_id, user_id)
                await service.mark_as_read(conversation_id, user_id)
        except DomainException as e:
            await self._emit_error(sid, e)
            return

        room = conversation_room(organization_id, conversation_id)
        await self.enter_room(sid, room)
        await self.emit(
            "user_joined",
            {"user_id": str(user_id), "timestamp": utc_now().isoformat()},
            room=room,
        )
        logger.info(f"User {user_id} joined conversation {conversation_id}")

    async def on_leave_conversation(self, sid, data):
        try:
            user_id, organization_id, conversation_id = await self._resolve(sid, data)
        except DomainException as e:
            await self._emit_error(sid, e)
            return

        room = conversation_room(organization_id, conversation_id)
        await self.leave_room(sid, room)
        await self.emit(
            "user_left",
            {"user_id": str(user_id), "timestamp": utc_now().isoformat()},
            room=room,
        )
        logger.info(f"User {user_id} left conversation {conversation_id}")

    async def on_send_message(self, sid, data):
        """Send through the gated service, then broadcast once committed"""
        try:
            user_id, organization_id, conversation_id = await self._resolve(sid, data)
            async with self.session_scope() as session:
                service = build_messaging_service(session)
                await self._check_conversation(service, organization_id, conversation_id, user_id)
                message = await service.send_message(conversation_id, data.get("content"), user_id)
        except DomainException as e:
            logger.warning(f"Socket send rejected for {sid}: {str(e)}")
            await self._emit_error(sid, e)
            return
        except Exception as e:
            logger.error(f"Socket send failed for {sid}: {str(e)}")
            await self.emit(
                "error", {"error": "InternalError", "detail": "Failed to send message"}, to=sid
            )
            return

        await self.emit(
            "message_received",
            {
                "id": str(message.id),
                "conversation_id": str(conversation_id),
                "user_id": str(message.sent_by),
                "content": message.content,
                "timestamp": message.sent_at.isoformat(),
            },
            room=conversation_room(organization_id, conversation_id),
        )
        logger.info(f"Message {message.id} broadcast in conversation {conversation_id}")

    async def on_user_typing(self, sid, data):
        await self._broadcast_typing(sid, data, "user_typing")

    async def on_user_stopped_typing(self, sid, data):
        await self._broadcast_typing(sid, data, "user_stopped_typing")

    async def _broadcast_typing(self, sid, data, event: str) -> None:
        try:
            user_id, organization_id, conversation_id = await self._resolve(sid, data)
        except DomainException as e:
            await self._emit_error(sid, e)
            return

        room = conversation_room(organization_id, conversation_id)
        if room not in self.rooms(sid):
            return
        payload: Dict[str, Any] = {"user_id": str(user_id)}
        if event == "user_typing":
            payload["timestamp"] = utc_now().isoformat()
        await self.emit(event, payload, room=room, skip_sid=sid)

    async def _resolve(self, sid, data):
        session = await self.get_session(sid)
        data = data or {}
        organization_id = _parse_uuid(data.get("organization_id"))
        conversation_id = _parse_uuid(data.get("conversation_id"))
        if organization_id is None or conversation_id is None:
            raise NotFoundError("Conversation", data.get("conversation_id"))
        return UUID(session["user_id"]), organization_id, conversation_id

    async def _check_conversation(self, service, organization_id, conversation_id, user_id) -> None:
        conversation = await service.get_conversation(conversation_id, user_id)
        if conversation.organization_id != organization_id:
            raise NotFoundError("Conversation", conversation_id)

    async def _emit_error(self, sid, error: DomainException) -> None:
        payload: Dict[str, Any] = {"error": type(error).__name__, "detail": str(error)}
        if isinstance(error, RateLimitedError):
            payload["retry_after"] = error.retry_after
        await self.emit("error", payload, to=sid)


# Socket.IO server for real-time messaging
sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*" if "*" in settings.CORS_ORIGINS else settings.CORS_ORIGINS,
    logger=settings.DEBUG,
    engineio_logger=settings.DEBUG,
)
sio.register_namespace(MessagingNamespace())
