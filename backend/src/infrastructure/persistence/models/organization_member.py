"""
Organization Member ORM Model
Staff membership of hiring organizations (read by the eligibility facade)
"""
import uuid
from sqlalchemy import Column, String, DateTime, Boolean, UniqueConstraint, Uuid

from core.database import Base
from core.time_utils import utc_now
from domain.enums import OrganizationRole


class OrganizationMemberModel(Base):
    """Organization staff table ORM model"""

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    role = Column(String(50), nullable=False, default=OrganizationRole.RECRUITER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<OrganizationMemberModel org={self.organization_id} user={self.user_id}>"
