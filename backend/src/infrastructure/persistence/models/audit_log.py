"""
Audit Log ORM Model
Append-only record of state-changing actions
"""
import uuid
from sqlalchemy import Column, String, DateTime, JSON, Uuid

from core.database import Base
from core.time_utils import utc_now


class AuditLogModel(Base):
    """Audit log table ORM model"""

    __tablename__ = "audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    actor_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(100), nullable=False, index=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utc_now, index=True)

    def __repr__(self):
        return f"<AuditLogModel {self.action} {self.entity_type}:{self.entity_id}>"
