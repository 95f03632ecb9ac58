"""Domain Entities - Core business objects"""

from .application import Application, ApplicationStatusHistory, PreHireConfirmation
from .messaging import Conversation, ConversationParticipant, Message, Rating
from .documents import Document, DocumentShareGrant, DocumentRequest
from .audit_event import AuditEvent
__all__ = [
    "Application",
    "ApplicationStatusHistory",
    "PreHireConfirmation",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "Rating",
    "Document",
    "DocumentShareGrant",
    "DocumentRequest",
    "AuditEvent",
]
