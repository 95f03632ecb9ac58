"""
Custom Exception Hierarchy
Domain and application-level exceptions
"""
from typing import Optional


class DomainException(Exception):
    """Base exception for all domain errors"""
    pass


class ValidationException(DomainException):
    """Data validation failed"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFoundError(DomainException):
    """Requested resource does not exist or is soft-deleted"""

    def __init__(self, resource_type: str, identifier):
        self.resource_type = resource_type
        self.identifier = str(identifier)
        super().__init__(f"{resource_type} not found: {identifier}")


class InvalidTransitionError(DomainException):
    """Target status is not reachable from the current status"""

    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition: {_status_name(from_status)} -> {_status_name(to_status)}")


class TerminalStateError(DomainException):
    """Application is in a terminal status and cannot move"""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Application is in terminal status '{_status_name(status)}'")


class PreconditionFailedError(DomainException):
    """A prerequisite for the requested action is missing"""
    pass


class IneligibleApplicationError(DomainException):
    """Application stage does not satisfy the eligibility gate"""

    def __init__(self, application_id, message: Optional[str] = None):
        self.application_id = application_id
        super().__init__(
            message or f"Application {application_id} is not in screening or a later stage"
        )


class ParticipantNotInvolvedError(DomainException):
    """Proposed participant has no standing on the application"""

    def __init__(self, user_id, application_id):
        self.user_id = user_id
        self.application_id = application_id
        super().__init__(f"Participant {user_id} is not involved in application {application_id}")


class UnauthorizedError(DomainException):
    """Actor lacks the ownership or membership this action requires"""
    pass


class RateLimitedError(DomainException):
    """Sliding-window message cap exceeded"""

    def __init__(self, limit: int, window_minutes: int, retry_after: int):
        self.limit = limit
        self.window_minutes = window_minutes
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded: maximum {limit} messages per {window_minutes} minutes. "
            f"Retry after {retry_after} seconds"
        )


class AlreadyExistsError(DomainException):
    """Resource already exists and cannot be collapsed onto the existing one"""

    def __init__(self, resource_type: str, field: str, value):
        self.resource_type = resource_type
        self.field = field
        self.value = str(value)
        super().__init__(f"{resource_type} with {field}='{value}' already exists")


class ConcurrencyConflictError(DomainException):
    """Optimistic write lost against a concurrent update"""

    def __init__(self, resource_type: str, identifier):
        self.resource_type = resource_type
        self.identifier = str(identifier)
        super().__init__(f"{resource_type} {identifier} was modified concurrently; reload and retry")


class InfrastructureError(DomainException):
    """Storage operation failed"""
    pass


def _status_name(status) -> str:
    return getattr(status, "value", status)
