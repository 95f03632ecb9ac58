"""
Application ORM Models
SQLAlchemy models for applications, their status history and pre-hire confirmations
"""
import uuid
from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship

from core.database import Base
from core.time_utils import utc_now
from domain.value_objects import ApplicationStatus
from .mixins import SoftDeleteMixin


class ApplicationModel(SoftDeleteMixin, Base):
    """Job application table ORM model"""

    __tablename__ = "applications"
    __table_args__ = (
        # At most one live application per (job, candidate)
        Index(
            "uq_applications_job_candidate_live",
            "job_id",
            "candidate_id",
            unique=True,
            postgresql_where=text("status <> 'withdrawn'"),
            sqlite_where=text("status <> 'withdrawn'"),
        ),
    )

    # Primary Key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # References
    job_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    candidate_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # Pipeline
    status = Column(String(50), nullable=False, default=ApplicationStatus.APPLIED.value, index=True)
    cover_letter = Column(Text, nullable=True)
    applied_at = Column(DateTime, nullable=False, default=utc_now)

    # Milestones
    screened_at = Column(DateTime, nullable=True)
    interviewed_at = Column(DateTime, nullable=True)
    offered_at = Column(DateTime, nullable=True)
    pre_hire_checks_started_at = Column(DateTime, nullable=True)
    hired_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    withdrawn_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Optimistic concurrency stamp, bumped on every transition
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=True, onupdate=utc_now)

    history = relationship("ApplicationStatusHistoryModel", back_populates="application", lazy="noload")

    def __repr__(self):
        return f"<ApplicationModel {self.id} - {self.status}>"


class ApplicationStatusHistoryModel(SoftDeleteMixin, Base):
    """Insert-only transition log"""

    __tablename__ = "application_status_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid(as_uuid=True), ForeignKey("applications.id"), nullable=False, index=True)

    from_status = Column(String(50), nullable=True)  # NULL for the creation row
    to_status = Column(String(50), nullable=False)
    changed_by = Column(Uuid(as_uuid=True), nullable=False)
    changed_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    notes = Column(Text, nullable=True)

    pre_hire_confirmation = Column(Boolean, nullable=True)
    pre_hire_confirmation_text = Column(Text, nullable=True)

    application = relationship("ApplicationModel", back_populates="history")

    def __repr__(self):
        return f"<ApplicationStatusHistoryModel {self.application_id} {self.from_status}->{self.to_status}>"


class PreHireConfirmationModel(SoftDeleteMixin, Base):
    """Right-to-work attestation, one per application"""

    __tablename__ = "pre_hire_confirmations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id"), nullable=False, unique=True, index=True
    )
    organization_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    confirmed_by = Column(Uuid(as_uuid=True), nullable=False)

    right_to_work_confirmed = Column(Boolean, nullable=False, default=False)
    confirmed_at = Column(DateTime, nullable=False, default=utc_now)
    confirmation_text = Column(Text, nullable=True)
    confirmation_version = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<PreHireConfirmationModel {self.application_id} confirmed={self.right_to_work_confirmed}>"
