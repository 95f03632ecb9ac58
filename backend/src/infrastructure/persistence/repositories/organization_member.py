"""
Organization Member Repository Implementation
"""
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from application.repositories.interfaces import IOrganizationMemberRepository
from infrastructure.persistence.models.organization_member import OrganizationMemberModel
from core.exceptions import InfrastructureError


class SQLAlchemyOrganizationMemberRepository(IOrganizationMemberRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_member(self, organization_id: UUID, user_id: UUID) -> bool:
        try:
            result = await self.session.execute(
                select(OrganizationMemberModel.id).where(
                    and_(
                        OrganizationMemberModel.organization_id == organization_id,
                        OrganizationMemberModel.user_id == user_id,
                        OrganizationMemberModel.is_active.is_(True),
                    )
                )
            )
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to check membership org={organization_id} user={user_id}: {str(e)}")
            raise InfrastructureError(f"Failed to check organization membership: {str(e)}") from e

    async def add(self, organization_id: UUID, user_id: UUID, role: str) -> None:
        try:
            self.session.add(
                OrganizationMemberModel(organization_id=organization_id, user_id=user_id, role=role)
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to add member org={organization_id} user={user_id}: {str(e)}")
            raise InfrastructureError(f"Failed to add organization member: {str(e)}") from e
