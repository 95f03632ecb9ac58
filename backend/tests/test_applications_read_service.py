"""
Tests for the eligibility read facade
"""
from uuid import uuid4

import pytest

from domain.value_objects import ApplicationStatus


class TestIsApplicationInScreeningOrLater:
    """Test the stage gate"""

    @pytest.mark.asyncio
    async def test_applied_is_not_eligible(self, read_service, application, actors):
        assert not await read_service.is_application_in_screening_or_later(
            application.id, actors.organization_id
        )

    @pytest.mark.asyncio
    async def test_screening_is_eligible(self, read_service, screened_application, actors):
        assert await read_service.is_application_in_screening_or_later(
            screened_application.id, actors.organization_id
        )

    @pytest.mark.asyncio
    async def test_rejected_is_not_eligible(self, read_service, pipeline_service, screened_application, actors):
        await pipeline_service.advance(screened_application.id, ApplicationStatus.REJECTED, actors.staff_id)

        assert not await read_service.is_application_in_screening_or_later(
            screened_application.id, actors.organization_id
        )

    @pytest.mark.asyncio
    async def test_unknown_application_is_not_eligible(self, read_service, actors):
        assert not await read_service.is_application_in_screening_or_later(uuid4(), actors.organization_id)

    @pytest.mark.asyncio
    async def test_other_organization_is_not_eligible(self, read_service, screened_application, actors):
        assert not await read_service.is_application_in_screening_or_later(
            screened_application.id, actors.other_organization_id
        )

    @pytest.mark.asyncio
    async def test_deleted_application_is_not_eligible(
        self, read_service, pipeline_service, screened_application, actors
    ):
        await pipeline_service.soft_delete_application(screened_application.id, actors.staff_id)

        assert not await read_service.is_application_in_screening_or_later(
            screened_application.id, actors.organization_id
        )


class TestIsUserInApplication:
    """Test involvement checks"""

    @pytest.mark.asyncio
    async def test_candidate_is_involved(self, read_service, application, actors):
        assert await read_service.is_user_in_application(
            application.id, actors.organization_id, actors.candidate_id
        )

    @pytest.mark.asyncio
    async def test_organization_staff_is_involved(self, read_service, application, actors):
        assert await read_service.is_user_in_application(
            application.id, actors.organization_id, actors.second_staff_id
        )

    @pytest.mark.asyncio
    async def test_outsider_is_not_involved(self, read_service, application, actors):
        assert not await read_service.is_user_in_application(
            application.id, actors.organization_id, actors.outsider_id
        )

    @pytest.mark.asyncio
    async def test_wrong_organization_is_not_involved(self, read_service, application, actors):
        assert not await read_service.is_user_in_application(
            application.id, actors.other_organization_id, actors.candidate_id
        )
