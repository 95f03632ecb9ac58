"""
Domain Enums
Business enumerations for the recruitment core
"""
from enum import Enum


class OrganizationRole(str, Enum):
    """Role of a staff member inside a hiring organization"""
    OWNER = "owner"
    ADMIN = "admin"
    RECRUITER = "recruiter"
    HIRING_MANAGER = "hiring_manager"


class DocumentType(str, Enum):
    """Kinds of candidate documents a business may request"""
    CV = "cv"
    CERTIFICATION = "certification"
    RIGHT_TO_WORK = "right_to_work"
    REFERENCE = "reference"
    IDENTIFICATION = "identification"
    OTHER = "other"


class DocumentRequestStatus(str, Enum):
    """Lifecycle of a business request for a candidate document"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class AuditEntityType(str, Enum):
    """Entity kinds recorded in the audit log"""
    APPLICATION = "Application"
    PRE_HIRE_CONFIRMATION = "PreHireConfirmation"
    CONVERSATION = "Conversation"
    MESSAGE = "Message"
    RATING = "Rating"
    DOCUMENT_SHARE_GRANT = "DocumentShareGrant"
    DOCUMENT_REQUEST = "DocumentRequest"


class AuditAction(str, Enum):
    """State-changing actions written to the audit sink"""
    APPLICATION_CREATED = "ApplicationCreated"
    APPLICATION_STATUS_CHANGED = "ApplicationStatusChanged"
    APPLICATION_DELETED = "ApplicationDeleted"
    PRE_HIRE_CHECK_CONFIRMED = "PreHireCheckConfirmed"
    CONVERSATION_CREATED = "ConversationCreated"
    CONVERSATION_ARCHIVED = "ConversationArchived"
    CONVERSATION_RATED = "ConversationRated"
    MESSAGE_SENT = "MessageSent"
    MESSAGE_EDITED = "MessageEdited"
    MESSAGE_DELETED = "MessageDeleted"
    PARTICIPANT_ADDED = "ParticipantAdded"
    PARTICIPANTS_ADDED = "BulkParticipantsAdded"
    PARTICIPANT_REMOVED = "ParticipantRemoved"
    DOCUMENT_ACCESS_GRANTED = "DocumentAccessGranted"
    DOCUMENT_ACCESS_REVOKED = "DocumentAccessRevoked"
    DOCUMENT_REQUEST_CREATED = "DocumentRequestCreated"
    DOCUMENT_REQUEST_APPROVED = "DocumentRequestApproved"
    DOCUMENT_REQUEST_REJECTED = "DocumentRequestRejected"
    DOCUMENT_REQUEST_CANCELLED = "DocumentRequestCancelled"
