"""ORM Models Package"""

from .application import ApplicationModel, ApplicationStatusHistoryModel, PreHireConfirmationModel
from .organization_member import OrganizationMemberModel
from .conversation import ConversationModel, ConversationParticipantModel, MessageModel, RatingModel
from .document import DocumentModel, DocumentShareGrantModel, DocumentRequestModel
from .audit_log import AuditLogModel

__all__ = [
    "ApplicationModel",
    "ApplicationStatusHistoryModel",
    "PreHireConfirmationModel",
    "OrganizationMemberModel",
    "ConversationModel",
    "ConversationParticipantModel",
    "MessageModel",
    "RatingModel",
    "DocumentModel",
    "DocumentShareGrantModel",
    "DocumentRequestModel",
    "AuditLogModel",
]
