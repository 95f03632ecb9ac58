"""Value Objects - Immutable objects defined by their attributes"""

from .application_status import (
    ApplicationStatus,
    ALLOWED_TRANSITIONS,
    PIPELINE_ORDER,
    SIDE_EXITS,
    TERMINAL_STATUSES,
)
from .page import Page
from .rating_score import RatingScore
__all__ = [
    "ApplicationStatus",
    "ALLOWED_TRANSITIONS",
    "PIPELINE_ORDER",
    "SIDE_EXITS",
    "TERMINAL_STATUSES",
    "Page",
    "RatingScore",
]
