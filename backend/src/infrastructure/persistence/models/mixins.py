"""
Shared ORM column sets
"""
from sqlalchemy import Column, Boolean, DateTime, Uuid


class SoftDeleteMixin:
    """Deletion flags; guarded rows are never physically removed"""

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(Uuid(as_uuid=True), nullable=True)
