"""
SQL Audit Sink
Writes audit events into the caller's session so they commit with the change they describe
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from application.services.audit import IAuditSink
from domain.entities import AuditEvent
from infrastructure.persistence.models.audit_log import AuditLogModel
from core.exceptions import InfrastructureError
from core.logging_config import logger
from core.time_utils import utc_now


def _json_safe(value: Any) -> Any:
    """Coerce UUIDs, datetimes and enums into JSON column values"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(v) for v in value]
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SQLAlchemyAuditSink(IAuditSink):
    """Audit sink backed by the audit_logs table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        organization_id: Optional[UUID],
        actor_id: Optional[UUID],
        action: str,
        entity_type: str,
        entity_id: Any,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            id=uuid.uuid4(),
            action=getattr(action, "value", action),
            entity_type=getattr(entity_type, "value", entity_type),
            entity_id=str(entity_id),
            timestamp=timestamp or utc_now(),
            organization_id=organization_id,
            actor_id=actor_id,
            details=_json_safe(details or {}),
        )
        try:
            self.session.add(
                AuditLogModel(
                    id=event.id,
                    organization_id=event.organization_id,
                    actor_id=event.actor_id,
                    action=event.action,
                    entity_type=event.entity_type,
                    entity_id=event.entity_id,
                    details=event.details,
                    timestamp=event.timestamp,
                )
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write audit event {event.action} for {event.entity_id}: {str(e)}")
            raise InfrastructureError(f"Failed to write audit event: {str(e)}") from e

        logger.debug(f"Audit {event.action} {event.entity_type}:{event.entity_id} by {actor_id}")
        return event

    async def list_events(
        self,
        entity_type: Optional[str] = None,
        entity_id: Any = None,
        organization_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        query = select(AuditLogModel)
        if entity_type is not None:
            query = query.where(AuditLogModel.entity_type == getattr(entity_type, "value", entity_type))
        if entity_id is not None:
            query = query.where(AuditLogModel.entity_id == str(entity_id))
        if organization_id is not None:
            query = query.where(AuditLogModel.organization_id == organization_id)
        query = query.order_by(AuditLogModel.timestamp.asc()).limit(limit)

        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read audit events: {str(e)}")
            raise InfrastructureError(f"Failed to read audit events: {str(e)}") from e

        return [
            AuditEvent(
                id=m.id,
                action=m.action,
                entity_type=m.entity_type,
                entity_id=m.entity_id,
                timestamp=m.timestamp,
                organization_id=m.organization_id,
                actor_id=m.actor_id,
                details=m.details or {},
            )
            for m in result.scalars().all()
        ]
