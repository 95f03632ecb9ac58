"""
Eligibility Read Facade
The only window other subsystems get onto pipeline state
"""
from abc import ABC, abstractmethod
from uuid import UUID


class IApplicationsReadService(ABC):
    """
    Read-only eligibility queries over applications.

    Keep this to two methods: messaging and documents must not learn
    anything else about applications (history, notes, write access).
    """

    @abstractmethod
    async def is_application_in_screening_or_later(
        self,
        application_id: UUID,
        organization_id: UUID
    ) -> bool:
        """
        True iff the application belongs to the organization, is not
        soft-deleted and has reached Screening or later without exiting
        through Rejected or Withdrawn.
        """
        pass

    @abstractmethod
    async def is_user_in_application(
        self,
        application_id: UUID,
        organization_id: UUID,
        user_id: UUID
    ) -> bool:
        """True iff user is the candidate or staff of the owning organization"""
        pass
