"""
Audit Event Entity
Append-only record of a state-changing action
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID


@dataclass(frozen=True)
class AuditEvent:
    """Audit log entry - immutable"""

    id: UUID
    action: str
    entity_type: str
    entity_id: str
    timestamp: datetime
    organization_id: Optional[UUID] = None
    actor_id: Optional[UUID] = None
    details: Dict[str, Any] = field(default_factory=dict)
