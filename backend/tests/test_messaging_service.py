"""
Tests for the messaging gate
"""
import uuid
from datetime import timedelta

import pytest
import pytest_asyncio

from domain.entities import Message
from domain.enums import AuditAction, AuditEntityType
from domain.value_objects import ApplicationStatus
from core.config import settings
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
from core.time_utils import utc_now


@pytest_asyncio.fixture
async def conversation(messaging_service, screened_application, actors):
    """Application-scoped conversation between staff and candidate"""
    return await messaging_service.create_conversation(
        actors.organization_id,
        "Interview scheduling",
        [actors.candidate_id],
        actors.staff_id,
        application_id=screened_application.id,
    )


async def _seed_messages(message_repo, conversation, sender_id, count, age):
    sent_at = utc_now() - age
    for _ in range(count):
        await message_repo.create(
            Message(
                id=uuid.uuid4(),
                conversation_id=conversation.id,
                organization_id=conversation.organization_id,
                sent_by=sender_id,
                content="earlier",
                sent_at=sent_at,
            )
        )


class TestCreateConversation:
    """Test conversation creation"""

    @pytest.mark.asyncio
    async def test_applied_application_is_ineligible(self, messaging_service, application, actors):
        with pytest.raises(IneligibleApplicationError):
            await messaging_service.create_conversation(
                actors.organization_id,
                "Hello",
                [actors.candidate_id],
                actors.staff_id,
                application_id=application.id,
            )

    @pytest.mark.asyncio
    async def test_creation_succeeds_after_screening(
        self, messaging_service, pipeline_service, application, actors
    ):
        await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.staff_id)

        conversation = await messaging_service.create_conversation(
            actors.organization_id,
            "Hello",
            [actors.candidate_id],
            actors.staff_id,
            application_id=application.id,
        )

        participants = await messaging_service.get_participants(conversation.id, actors.staff_id)
        assert {p.user_id for p in participants} == {actors.staff_id, actors.candidate_id}
        assert conversation.application_id == application.id

    @pytest.mark.asyncio
    async def test_creation_is_idempotent_for_same_participants(
        self, messaging_service, conversation, screened_application, actors
    ):
        again = await messaging_service.create_conversation(
            actors.organization_id,
            "Different subject",
            [actors.candidate_id, actors.staff_id],
            actors.staff_id,
            application_id=screened_application.id,
        )

        assert again.id == conversation.id
        participants = await messaging_service.get_participants(conversation.id, actors.staff_id)
        assert len(participants) == 2

    @pytest.mark.asyncio
    async def test_different_participant_set_creates_new_conversation(
        self, messaging_service, conversation, screened_application, actors
    ):
        other = await messaging_service.create_conversation(
            actors.organization_id,
            "Panel",
            [actors.candidate_id, actors.second_staff_id],
            actors.staff_id,
            application_id=screened_application.id,
        )

        assert other.id != conversation.id

    @pytest.mark.asyncio
    async def test_uninvolved_participant_is_rejected(
        self, messaging_service, screened_application, actors
    ):
        with pytest.raises(ParticipantNotInvolvedError):
            await messaging_service.create_conversation(
                actors.organization_id,
                "Hello",
                [actors.candidate_id, actors.outsider_id],
                actors.staff_id,
                application_id=screened_application.id,
            )

    @pytest.mark.asyncio
    async def test_requires_two_participants(self, messaging_service, actors):
        with pytest.raises(ValidationException):
            await messaging_service.create_conversation(
                actors.organization_id, "Alone", [actors.staff_id], actors.staff_id
            )

    @pytest.mark.asyncio
    async def test_requires_subject(self, messaging_service, actors):
        with pytest.raises(ValidationException):
            await messaging_service.create_conversation(
                actors.organization_id, "  ", [actors.candidate_id], actors.staff_id
            )

    @pytest.mark.asyncio
    async def test_general_conversation_skips_eligibility(self, messaging_service, actors):
        conversation = await messaging_service.create_conversation(
            actors.organization_id, "Team chat", [actors.outsider_id], actors.staff_id
        )

        assert conversation.application_id is None


class TestSendMessage:
    """Test the send gate and rate limit"""

    @pytest.mark.asyncio
    async def test_participant_can_send(self, messaging_service, conversation, actors, audit_sink):
        message = await messaging_service.send_message(conversation.id, "See you at 10", actors.candidate_id)

        assert message.sent_by == actors.candidate_id
        events = await audit_sink.list_events(entity_id=message.id)
        assert events[0].action == AuditAction.MESSAGE_SENT.value
        assert "content" not in events[0].details

    @pytest.mark.asyncio
    async def test_non_participant_is_unauthorized(self, messaging_service, conversation, actors):
        with pytest.raises(UnauthorizedError):
            await messaging_service.send_message(conversation.id, "Hi", actors.outsider_id)

    @pytest.mark.asyncio
    async def test_send_blocked_after_rejection(
        self, messaging_service, pipeline_service, conversation, screened_application, actors
    ):
        await pipeline_service.advance(screened_application.id, ApplicationStatus.REJECTED, actors.staff_id)

        with pytest.raises(IneligibleApplicationError):
            await messaging_service.send_message(conversation.id, "Hi", actors.staff_id)

    @pytest.mark.asyncio
    async def test_empty_content_is_rejected(self, messaging_service, conversation, actors):
        with pytest.raises(ValidationException):
            await messaging_service.send_message(conversation.id, "   ", actors.staff_id)

    @pytest.mark.asyncio
    async def test_unknown_conversation_raises_not_found(self, messaging_service, actors):
        with pytest.raises(NotFoundError):
            await messaging_service.send_message(uuid.uuid4(), "Hi", actors.staff_id)

    @pytest.mark.asyncio
    async def test_archived_conversation_rejects_messages(self, messaging_service, conversation, actors):
        await messaging_service.archive_conversation(conversation.id, actors.staff_id)

        with pytest.raises(NotFoundError):
            await messaging_service.send_message(conversation.id, "Hi", actors.staff_id)

    @pytest.mark.asyncio
    async def test_rate_limit_allows_limit_then_blocks(self, messaging_service, conversation, actors):
        limit = settings.MESSAGE_RATE_LIMIT_COUNT
        for i in range(limit):
            await messaging_service.send_message(conversation.id, f"message {i}", actors.staff_id)

        with pytest.raises(RateLimitedError) as exc_info:
            await messaging_service.send_message(conversation.id, "one too many", actors.staff_id)

        assert exc_info.value.retry_after >= 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_sender(self, messaging_service, message_repo, conversation, actors):
        await _seed_messages(
            message_repo, conversation, actors.staff_id, settings.MESSAGE_RATE_LIMIT_COUNT, timedelta(minutes=5)
        )

        message = await messaging_service.send_message(conversation.id, "My turn", actors.candidate_id)

        assert message.sent_by == actors.candidate_id

    @pytest.mark.asyncio
    async def test_retry_after_tracks_oldest_message_in_window(
        self, messaging_service, message_repo, conversation, actors
    ):
        await _seed_messages(
            message_repo, conversation, actors.staff_id, settings.MESSAGE_RATE_LIMIT_COUNT, timedelta(minutes=59)
        )

        with pytest.raises(RateLimitedError) as exc_info:
            await messaging_service.send_message(conversation.id, "Hi", actors.staff_id)

        assert 1 <= exc_info.value.retry_after <= 60

    @pytest.mark.asyncio
    async def test_messages_outside_window_do_not_count(
        self, messaging_service, message_repo, conversation, actors
    ):
        window = timedelta(minutes=settings.MESSAGE_RATE_LIMIT_WINDOW_MINUTES + 1)
        await _seed_messages(
            message_repo, conversation, actors.staff_id, settings.MESSAGE_RATE_LIMIT_COUNT, window
        )

        message = await messaging_service.send_message(conversation.id, "Fresh window", actors.staff_id)

        assert message.content == "Fresh window"


class TestEditAndDelete:
    """Test message edits and soft deletes"""

    @pytest.mark.asyncio
    async def test_author_can_edit(self, messaging_service, conversation, actors):
        message = await messaging_service.send_message(conversation.id, "Typo", actors.staff_id)

        edited = await messaging_service.edit_message(message.id, "Fixed", actors.staff_id)

        assert edited.content == "Fixed"
        assert edited.edited_by == actors.staff_id
        assert edited.edited_at is not None

    @pytest.mark.asyncio
    async def test_only_author_can_edit(self, messaging_service, conversation, actors):
        message = await messaging_service.send_message(conversation.id, "Mine", actors.staff_id)

        with pytest.raises(UnauthorizedError):
            await messaging_service.edit_message(message.id, "Hijacked", actors.candidate_id)

    @pytest.mark.asyncio
    async def test_deleted_message_disappears(self, messaging_service, conversation, actors):
        message = await messaging_service.send_message(conversation.id, "Oops", actors.staff_id)

        await messaging_service.delete_message(message.id, actors.staff_id)

        page = await messaging_service.get_messages(conversation.id, actors.candidate_id)
        assert page.total_count == 0
        with pytest.raises(NotFoundError):
            await messaging_service.edit_message(message.id, "Back", actors.staff_id)

    @pytest.mark.asyncio
    async def test_messages_are_newest_first(self, messaging_service, conversation, actors):
        await messaging_service.send_message(conversation.id, "first", actors.staff_id)
        await messaging_service.send_message(conversation.id, "second", actors.candidate_id)

        page = await messaging_service.get_messages(conversation.id, actors.staff_id)

        assert [m.content for m in page.items] == ["second", "first"]

    @pytest.mark.asyncio
    async def test_outsider_cannot_read_messages(self, messaging_service, conversation, actors):
        with pytest.raises(UnauthorizedError):
            await messaging_service.get_messages(conversation.id, actors.outsider_id)


class TestParticipants:
    """Test participant management"""

    @pytest.mark.asyncio
    async def test_add_involved_staff(self, messaging_service, conversation, actors):
        participant = await messaging_service.add_participant(
            conversation.id, actors.second_staff_id, actors.staff_id
        )

        assert participant.user_id == actors.second_staff_id

    @pytest.mark.asyncio
    async def test_single_add_rejects_uninvolved_user(self, messaging_service, conversation, actors):
        with pytest.raises(ParticipantNotInvolvedError):
            await messaging_service.add_participant(conversation.id, actors.outsider_id, actors.staff_id)

    @pytest.mark.asyncio
    async def test_single_add_rejects_existing_participant(self, messaging_service, conversation, actors):
        with pytest.raises(AlreadyExistsError):
            await messaging_service.add_participant(conversation.id, actors.candidate_id, actors.staff_id)

    @pytest.mark.asyncio
    async def test_bulk_add_skips_uninvolved_users(self, messaging_service, conversation, actors):
        result = await messaging_service.add_participants(
            conversation.id,
            [actors.second_staff_id, actors.outsider_id, actors.candidate_id],
            actors.staff_id,
        )

        assert [p.user_id for p in result.added] == [actors.second_staff_id]
        assert result.skipped == [actors.outsider_id]

    @pytest.mark.asyncio
    async def test_non_participant_cannot_add(self, messaging_service, conversation, actors):
        with pytest.raises(UnauthorizedError):
            await messaging_service.add_participant(conversation.id, actors.second_staff_id, actors.outsider_id)

    @pytest.mark.asyncio
    async def test_participant_can_leave(self, messaging_service, conversation, actors):
        await messaging_service.remove_participant(conversation.id, actors.candidate_id, actors.candidate_id)

        with pytest.raises(UnauthorizedError):
            await messaging_service.send_message(conversation.id, "Still here?", actors.candidate_id)

    @pytest.mark.asyncio
    async def test_creator_can_remove_others(self, messaging_service, conversation, actors):
        await messaging_service.remove_participant(conversation.id, actors.candidate_id, actors.staff_id)

        participants = await messaging_service.get_participants(conversation.id, actors.staff_id)
        assert [p.user_id for p in participants] == [actors.staff_id]

    @pytest.mark.asyncio
    async def test_non_creator_cannot_remove_others(self, messaging_service, conversation, actors):
        with pytest.raises(UnauthorizedError):
            await messaging_service.remove_participant(conversation.id, actors.staff_id, actors.candidate_id)

    @pytest.mark.asyncio
    async def test_left_participant_can_be_added_back(self, messaging_service, conversation, actors):
        await messaging_service.remove_participant(conversation.id, actors.candidate_id, actors.candidate_id)

        participant = await messaging_service.add_participant(
            conversation.id, actors.candidate_id, actors.staff_id
        )

        assert participant.has_left is False


class TestReadState:
    """Test unread counts and read markers"""

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_as_read(self, messaging_service, conversation, actors):
        await messaging_service.send_message(conversation.id, "One", actors.staff_id)
        await messaging_service.send_message(conversation.id, "Two", actors.staff_id)

        assert await messaging_service.get_unread_count(actors.candidate_id) == 2

        await messaging_service.mark_as_read(conversation.id, actors.candidate_id)

        assert await messaging_service.get_unread_count(actors.candidate_id) == 0

    @pytest.mark.asyncio
    async def test_unread_count_filters_organization(self, messaging_service, conversation, actors):
        await messaging_service.send_message(conversation.id, "One", actors.staff_id)

        assert await messaging_service.get_unread_count(actors.candidate_id, actors.organization_id) == 1
        assert await messaging_service.get_unread_count(actors.candidate_id, actors.other_organization_id) == 0

    @pytest.mark.asyncio
    async def test_deleted_messages_are_not_unread(self, messaging_service, conversation, actors):
        message = await messaging_service.send_message(conversation.id, "One", actors.staff_id)
        await messaging_service.delete_message(message.id, actors.staff_id)

        assert await messaging_service.get_unread_count(actors.candidate_id) == 0

    @pytest.mark.asyncio
    async def test_archived_conversation_is_not_unread(self, messaging_service, conversation, actors):
        await messaging_service.send_message(conversation.id, "One", actors.staff_id)
        await messaging_service.archive_conversation(conversation.id, actors.staff_id)

        assert await messaging_service.get_unread_count(actors.candidate_id) == 0
        assert (await messaging_service.list_conversations(actors.candidate_id)).total_count == 0

    @pytest.mark.asyncio
    async def test_list_conversations_for_participant(self, messaging_service, conversation, actors):
        page = await messaging_service.list_conversations(actors.candidate_id)
        outsider_page = await messaging_service.list_conversations(actors.outsider_id)

        assert [c.id for c in page.items] == [conversation.id]
        assert page.total_count == 1
        assert outsider_page.total_count == 0

    @pytest.mark.asyncio
    async def test_update_last_seen(self, messaging_service, participant_repo, conversation, actors):
        await messaging_service.update_last_seen(conversation.id, actors.candidate_id)

        participant = await participant_repo.get_active(conversation.id, actors.candidate_id)
        assert participant.last_seen_at is not None


class TestRating:
    """Test conversation ratings"""

    @pytest.mark.asyncio
    async def test_cannot_rate_empty_conversation(self, messaging_service, conversation, actors):
        with pytest.raises(PreconditionFailedError):
            await messaging_service.rate_conversation(conversation.id, actors.candidate_id, 5)

    @pytest.mark.asyncio
    async def test_rate_once(self, messaging_service, conversation, actors):
        await messaging_service.send_message(conversation.id, "Thanks", actors.staff_id)

        rating = await messaging_service.rate_conversation(conversation.id, actors.candidate_id, 4, "Helpful")

        assert rating.score == 4
        with pytest.raises(AlreadyExistsError):
            await messaging_service.rate_conversation(conversation.id, actors.candidate_id, 5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [0, 6])
    async def test_score_out_of_range(self, messaging_service, conversation, actors, score):
        with pytest.raises(ValidationException):
            await messaging_service.rate_conversation(conversation.id, actors.candidate_id, score)


class TestEligibilityFacadeUsage:
    """Test that the gate only talks to the eligibility facade"""

    @pytest.fixture
    def facade(self):
        from unittest.mock import AsyncMock

        facade = AsyncMock()
        facade.is_application_in_screening_or_later.return_value = True
        facade.is_user_in_application.return_value = True
        return facade

    @pytest.fixture
    def gated_service(self, session, participant_repo, message_repo, audit_sink, facade):
        from infrastructure.persistence.repositories.conversation import (
            SQLAlchemyConversationRepository,
            SQLAlchemyRatingRepository,
        )
        from infrastructure.services.messaging_service import MessagingService

        return MessagingService(
            session,
            SQLAlchemyConversationRepository(session),
            participant_repo,
            message_repo,
            SQLAlchemyRatingRepository(session),
            facade,
            audit_sink,
        )

    @pytest.mark.asyncio
    async def test_every_send_rechecks_stage(self, gated_service, facade, actors):
        application_id = uuid.uuid4()
        conversation = await gated_service.create_conversation(
            actors.organization_id, "Hi", [actors.candidate_id], actors.staff_id, application_id=application_id
        )

        await gated_service.send_message(conversation.id, "one", actors.staff_id)
        await gated_service.send_message(conversation.id, "two", actors.staff_id)

        # Creation plus one check per send
        assert facade.is_application_in_screening_or_later.await_count == 3
        facade.is_application_in_screening_or_later.assert_awaited_with(application_id, actors.organization_id)

    @pytest.mark.asyncio
    async def test_general_conversation_never_consults_facade(self, gated_service, facade, actors):
        conversation = await gated_service.create_conversation(
            actors.organization_id, "Hi", [actors.candidate_id], actors.staff_id
        )
        await gated_service.send_message(conversation.id, "one", actors.staff_id)

        facade.is_application_in_screening_or_later.assert_not_awaited()
        facade.is_user_in_application.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_blocked_until_screening_then_allowed(
        self, gated_service, facade, message_repo, audit_sink, actors
    ):
        # Creation sees Screening, the first send sees the application back in Applied
        facade.is_application_in_screening_or_later.side_effect = [True, False, True]
        conversation = await gated_service.create_conversation(
            actors.organization_id, "Hi", [actors.candidate_id], actors.staff_id, application_id=uuid.uuid4()
        )

        with pytest.raises(IneligibleApplicationError):
            await gated_service.send_message(conversation.id, "too early", actors.staff_id)

        assert await message_repo.count_for_conversation(conversation.id) == 0
        assert await audit_sink.list_events(entity_type=AuditEntityType.MESSAGE) == []

        message = await gated_service.send_message(conversation.id, "now eligible", actors.staff_id)

        assert message.content == "now eligible"
        assert await message_repo.count_for_conversation(conversation.id) == 1
        events = await audit_sink.list_events(entity_type=AuditEntityType.MESSAGE)
        assert [e.entity_id for e in events] == [str(message.id)]
