"""
Audit Sink Interface
Append-only record of state-changing actions
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from domain.entities import AuditEvent


class IAuditSink(ABC):
    """
    Audit sink interface.

    Writes join the caller's unit of work: an event is visible only if the
    state change it describes commits with it.
    """

    @abstractmethod
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
        """Append one audit event"""
        pass

    @abstractmethod
    async def list_events(
        self,
        entity_type: Optional[str] = None,
        entity_id: Any = None,
        organization_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Events oldest first, optionally filtered"""
        pass
