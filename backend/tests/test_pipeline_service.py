"""
Tests for the pipeline state machine service
"""
import pytest

from application.services.pipeline import PreHireConfirmationInput
from domain.enums import AuditAction, AuditEntityType
from domain.value_objects import ApplicationStatus
from core.exceptions import (
    AlreadyExistsError,
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    TerminalStateError,
    UnauthorizedError,
)


async def _advance_to_pre_hire_checks(pipeline_service, application_id, actor_id):
    for target in (
        ApplicationStatus.SCREENING,
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.PRE_HIRE_CHECKS,
    ):
        await pipeline_service.advance(application_id, target, actor_id)


class TestApply:
    """Test application creation"""

    @pytest.mark.asyncio
    async def test_apply_creates_applied_application_with_creation_history(
        self, pipeline_service, actors, audit_sink
    ):
        application = await pipeline_service.apply(
            actors.job_id, actors.candidate_id, actors.organization_id, cover_letter="Hello"
        )

        assert application.status == ApplicationStatus.APPLIED
        assert application.version == 1

        history = await pipeline_service.get_history(application.id)
        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].to_status == ApplicationStatus.APPLIED

        events = await audit_sink.list_events(entity_id=application.id)
        assert [e.action for e in events] == [AuditAction.APPLICATION_CREATED.value]

    @pytest.mark.asyncio
    async def test_second_live_application_is_rejected(self, pipeline_service, application, actors):
        with pytest.raises(AlreadyExistsError):
            await pipeline_service.apply(actors.job_id, actors.candidate_id, actors.organization_id)

    @pytest.mark.asyncio
    async def test_can_reapply_after_withdrawing(self, pipeline_service, application, actors):
        await pipeline_service.advance(application.id, ApplicationStatus.WITHDRAWN, actors.candidate_id)

        again = await pipeline_service.apply(actors.job_id, actors.candidate_id, actors.organization_id)

        assert again.id != application.id
        assert again.status == ApplicationStatus.APPLIED


class TestAdvance:
    """Test pipeline transitions"""

    @pytest.mark.asyncio
    async def test_advance_updates_status_milestone_history_and_audit(
        self, pipeline_service, application, actors, audit_sink
    ):
        updated = await pipeline_service.advance(
            application.id, ApplicationStatus.SCREENING, actors.staff_id, notes="Good CV"
        )

        assert updated.status == ApplicationStatus.SCREENING
        assert updated.screened_at is not None
        assert updated.version == application.version + 1

        history = await pipeline_service.get_history(application.id)
        assert history[-1].from_status == ApplicationStatus.APPLIED
        assert history[-1].to_status == ApplicationStatus.SCREENING
        assert history[-1].changed_by == actors.staff_id
        assert history[-1].notes == "Good CV"

        events = await audit_sink.list_events(
            entity_type=AuditEntityType.APPLICATION, entity_id=application.id
        )
        assert events[-1].action == AuditAction.APPLICATION_STATUS_CHANGED.value
        assert events[-1].details["from_status"] == "applied"
        assert events[-1].details["to_status"] == "screening"

    @pytest.mark.asyncio
    async def test_unreachable_target_raises_invalid_transition(self, pipeline_service, application, actors):
        with pytest.raises(InvalidTransitionError):
            await pipeline_service.advance(application.id, ApplicationStatus.OFFERED, actors.staff_id)

        unchanged = await pipeline_service.get_application(application.id)
        assert unchanged.application.status == ApplicationStatus.APPLIED
        assert len(await pipeline_service.get_history(application.id)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", [ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN])
    async def test_terminal_status_blocks_every_target(self, pipeline_service, application, actors, terminal):
        await pipeline_service.advance(application.id, terminal, actors.staff_id)

        for target in ApplicationStatus:
            with pytest.raises(TerminalStateError):
                await pipeline_service.advance(application.id, target, actors.staff_id)

    @pytest.mark.asyncio
    async def test_hired_is_terminal(self, pipeline_service, application, actors):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)
        await pipeline_service.record_pre_hire_confirmation(application.id, actors.staff_id, True, "RTW seen")
        await pipeline_service.advance(application.id, ApplicationStatus.HIRED, actors.staff_id)

        with pytest.raises(TerminalStateError):
            await pipeline_service.advance(application.id, ApplicationStatus.REJECTED, actors.staff_id)

    @pytest.mark.asyncio
    async def test_missing_application_raises_not_found(self, pipeline_service, actors):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            await pipeline_service.advance(uuid4(), ApplicationStatus.SCREENING, actors.staff_id)

    @pytest.mark.asyncio
    async def test_other_organization_sees_not_found(self, pipeline_service, application, actors):
        with pytest.raises(NotFoundError):
            await pipeline_service.advance(
                application.id,
                ApplicationStatus.SCREENING,
                actors.staff_id,
                organization_id=actors.other_organization_id,
            )

    @pytest.mark.asyncio
    async def test_soft_deleted_application_raises_not_found(self, pipeline_service, application, actors):
        await pipeline_service.soft_delete_application(application.id, actors.staff_id)

        with pytest.raises(NotFoundError):
            await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.staff_id)

    @pytest.mark.asyncio
    async def test_rejection_stores_reason(self, pipeline_service, application, actors):
        rejected = await pipeline_service.advance(
            application.id, ApplicationStatus.REJECTED, actors.staff_id, rejection_reason="No visa"
        )

        assert rejected.rejected_at is not None
        assert rejected.rejection_reason == "No visa"

    @pytest.mark.asyncio
    async def test_stale_version_raises_concurrency_conflict(
        self, pipeline_service, application_repo, application, actors
    ):
        from dataclasses import replace

        await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.staff_id)

        # Writer still holding the version it read before the transition above
        with pytest.raises(ConcurrencyConflictError):
            await application_repo.update_with_version(
                replace(application, status=ApplicationStatus.REJECTED),
                expected_version=application.version,
            )


class TestPreHireConfirmation:
    """Test the hire precondition"""

    @pytest.mark.asyncio
    async def test_hire_without_confirmation_fails(self, pipeline_service, application, actors):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)

        with pytest.raises(PreconditionFailedError):
            await pipeline_service.advance(application.id, ApplicationStatus.HIRED, actors.staff_id)

        detail = await pipeline_service.get_application(application.id)
        assert detail.application.status == ApplicationStatus.PRE_HIRE_CHECKS

    @pytest.mark.asyncio
    async def test_hire_with_negative_confirmation_fails(self, pipeline_service, application, actors):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)
        await pipeline_service.record_pre_hire_confirmation(application.id, actors.staff_id, False)

        with pytest.raises(PreconditionFailedError):
            await pipeline_service.advance(application.id, ApplicationStatus.HIRED, actors.staff_id)

    @pytest.mark.asyncio
    async def test_hire_with_recorded_confirmation_succeeds(self, pipeline_service, application, actors):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)
        await pipeline_service.record_pre_hire_confirmation(
            application.id, actors.staff_id, True, "I confirm the right to work"
        )

        hired = await pipeline_service.advance(application.id, ApplicationStatus.HIRED, actors.staff_id)

        assert hired.status == ApplicationStatus.HIRED
        assert hired.hired_at is not None
        history = await pipeline_service.get_history(application.id)
        assert history[-1].pre_hire_confirmation is True
        assert history[-1].pre_hire_confirmation_text == "I confirm the right to work"

    @pytest.mark.asyncio
    async def test_inline_confirmation_is_recorded_and_hires(self, pipeline_service, application, actors):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)

        hired = await pipeline_service.advance(
            application.id,
            ApplicationStatus.HIRED,
            actors.staff_id,
            pre_hire_confirmation=PreHireConfirmationInput(True, "Checked passport"),
        )

        assert hired.status == ApplicationStatus.HIRED
        detail = await pipeline_service.get_application(application.id)
        assert detail.pre_hire_check_confirmed is True

    @pytest.mark.asyncio
    async def test_confirmation_is_immutable(self, pipeline_service, application, actors):
        first = await pipeline_service.record_pre_hire_confirmation(
            application.id, actors.staff_id, False, "Not yet"
        )
        second = await pipeline_service.record_pre_hire_confirmation(
            application.id, actors.second_staff_id, True, "Now confirmed"
        )

        assert second.id == first.id
        assert second.right_to_work_confirmed is False
        assert second.confirmed_by == actors.staff_id


class TestWriteAccess:
    """Test that only organization staff drive the pipeline"""

    @pytest.mark.asyncio
    async def test_outsider_cannot_advance(self, pipeline_service, application, actors):
        with pytest.raises(UnauthorizedError):
            await pipeline_service.advance(
                application.id,
                ApplicationStatus.SCREENING,
                actors.outsider_id,
                organization_id=actors.organization_id,
            )

        detail = await pipeline_service.get_application(application.id)
        assert detail.application.status == ApplicationStatus.APPLIED
        assert len(await pipeline_service.get_history(application.id)) == 1

    @pytest.mark.asyncio
    async def test_candidate_cannot_advance_own_application(self, pipeline_service, application, actors):
        with pytest.raises(UnauthorizedError):
            await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.candidate_id)

    @pytest.mark.asyncio
    async def test_candidate_cannot_hire_self_with_inline_confirmation(
        self, pipeline_service, application, actors
    ):
        await _advance_to_pre_hire_checks(pipeline_service, application.id, actors.staff_id)

        with pytest.raises(UnauthorizedError):
            await pipeline_service.advance(
                application.id,
                ApplicationStatus.HIRED,
                actors.candidate_id,
                pre_hire_confirmation=PreHireConfirmationInput(True, "I say so"),
            )

        detail = await pipeline_service.get_application(application.id)
        assert detail.application.status == ApplicationStatus.PRE_HIRE_CHECKS
        assert detail.pre_hire_check_confirmed is False

    @pytest.mark.asyncio
    async def test_candidate_cannot_confirm_right_to_work(self, pipeline_service, application, actors):
        with pytest.raises(UnauthorizedError):
            await pipeline_service.record_pre_hire_confirmation(application.id, actors.candidate_id, True)

        detail = await pipeline_service.get_application(application.id)
        assert detail.pre_hire_check_confirmed is False

    @pytest.mark.asyncio
    async def test_candidate_can_withdraw(self, pipeline_service, application, actors):
        withdrawn = await pipeline_service.advance(
            application.id, ApplicationStatus.WITHDRAWN, actors.candidate_id
        )

        assert withdrawn.status == ApplicationStatus.WITHDRAWN
        assert withdrawn.withdrawn_at is not None

    @pytest.mark.asyncio
    async def test_outsider_cannot_withdraw_for_candidate(self, pipeline_service, application, actors):
        with pytest.raises(UnauthorizedError):
            await pipeline_service.advance(application.id, ApplicationStatus.WITHDRAWN, actors.outsider_id)

    @pytest.mark.asyncio
    async def test_candidate_cannot_delete(self, pipeline_service, application, actors):
        with pytest.raises(UnauthorizedError):
            await pipeline_service.soft_delete_application(application.id, actors.candidate_id)

        assert (await pipeline_service.get_application(application.id)).application.id == application.id


class TestReadViews:
    """Test pipeline read operations"""

    @pytest.mark.asyncio
    async def test_pipeline_view_groups_every_status(self, pipeline_service, actors):
        from uuid import uuid4

        first = await pipeline_service.apply(actors.job_id, uuid4(), actors.organization_id)
        second = await pipeline_service.apply(actors.job_id, uuid4(), actors.organization_id)
        await pipeline_service.advance(second.id, ApplicationStatus.SCREENING, actors.staff_id)

        view = await pipeline_service.get_pipeline_view(actors.job_id, actors.organization_id)

        assert set(view) == set(ApplicationStatus)
        assert [a.id for a in view[ApplicationStatus.APPLIED]] == [first.id]
        assert [a.id for a in view[ApplicationStatus.SCREENING]] == [second.id]
        assert view[ApplicationStatus.HIRED] == []

    @pytest.mark.asyncio
    async def test_pipeline_view_hides_deleted_and_foreign(self, pipeline_service, application, actors):
        await pipeline_service.soft_delete_application(application.id, actors.staff_id)

        view = await pipeline_service.get_pipeline_view(actors.job_id, actors.organization_id)
        foreign = await pipeline_service.get_pipeline_view(actors.job_id, actors.other_organization_id)

        assert sum(len(v) for v in view.values()) == 0
        assert sum(len(v) for v in foreign.values()) == 0

    @pytest.mark.asyncio
    async def test_history_is_oldest_first(self, pipeline_service, application, actors):
        await pipeline_service.advance(application.id, ApplicationStatus.SCREENING, actors.staff_id)
        await pipeline_service.advance(application.id, ApplicationStatus.INTERVIEWED, actors.staff_id)

        history = await pipeline_service.get_history(application.id)

        assert [h.to_status for h in history] == [
            ApplicationStatus.APPLIED,
            ApplicationStatus.SCREENING,
            ApplicationStatus.INTERVIEWED,
        ]
