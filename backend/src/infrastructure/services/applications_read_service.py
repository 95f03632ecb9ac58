"""
ApplicationsReadService Implementation
Eligibility read facade over the applications store
"""
from uuid import UUID

from application.services.eligibility import IApplicationsReadService
from application.repositories.interfaces import IApplicationRepository, IOrganizationMemberRepository
from core.logging_config import logger


class ApplicationsReadService(IApplicationsReadService):
    """Answers eligibility questions without exposing application internals"""

    def __init__(
        self,
        application_repository: IApplicationRepository,
        member_repository: IOrganizationMemberRepository,
    ):
        self.application_repo = application_repository
        self.member_repo = member_repository

    async def is_application_in_screening_or_later(
        self,
        application_id: UUID,
        organization_id: UUID
    ) -> bool:
        application = await self.application_repo.get_by_id(application_id)
        if application is None or application.organization_id != organization_id:
            logger.debug(f"Application {application_id} not found in organization {organization_id}")
            return False

        eligible = application.is_screening_or_later()
        if not eligible:
            logger.debug(
                f"Application {application_id} not eligible: status={application.status.value}"
            )
        return eligible

    async def is_user_in_application(
        self,
        application_id: UUID,
        organization_id: UUID,
        user_id: UUID
    ) -> bool:
        application = await self.application_repo.get_by_id(application_id)
        if application is None or application.organization_id != organization_id:
            return False

        if application.candidate_id == user_id:
            return True

        return await self.member_repo.is_member(organization_id, user_id)
