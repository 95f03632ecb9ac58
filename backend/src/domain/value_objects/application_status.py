"""
Application Status
Hiring pipeline statuses and the transition table that governs them
"""
from enum import Enum
from typing import Dict, FrozenSet


class ApplicationStatus(str, Enum):
    """Application status in the hiring pipeline"""
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEWED = "interviewed"
    OFFERED = "offered"
    PRE_HIRE_CHECKS = "pre_hire_checks"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    @property
    def rank(self) -> int:
        """Position in the forward pipeline; side exits have no rank"""
        return PIPELINE_ORDER.get(self, -1)

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_side_exit(self) -> bool:
        return self in SIDE_EXITS

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]

    def is_screening_or_later(self) -> bool:
        """Forward stages from Screening up to and including Hired"""
        return not self.is_side_exit and self.rank >= PIPELINE_ORDER[ApplicationStatus.SCREENING]


# Forward ordering of the pipeline
PIPELINE_ORDER: Dict[ApplicationStatus, int] = {
    ApplicationStatus.APPLIED: 0,
    ApplicationStatus.SCREENING: 1,
    ApplicationStatus.INTERVIEWED: 2,
    ApplicationStatus.OFFERED: 3,
    ApplicationStatus.PRE_HIRE_CHECKS: 4,
    ApplicationStatus.HIRED: 5,
}

SIDE_EXITS: FrozenSet[ApplicationStatus] = frozenset({
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    ApplicationStatus.HIRED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})

# Single source of truth for pipeline moves: from -> allowed targets
ALLOWED_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.APPLIED: frozenset({
        ApplicationStatus.SCREENING,
    }) | SIDE_EXITS,
    ApplicationStatus.SCREENING: frozenset({
        ApplicationStatus.INTERVIEWED,
    }) | SIDE_EXITS,
    ApplicationStatus.INTERVIEWED: frozenset({
        ApplicationStatus.OFFERED,
        ApplicationStatus.PRE_HIRE_CHECKS,
    }) | SIDE_EXITS,
    ApplicationStatus.OFFERED: frozenset({
        ApplicationStatus.PRE_HIRE_CHECKS,
    }) | SIDE_EXITS,
    # Failed checks can send a candidate back to screening
    ApplicationStatus.PRE_HIRE_CHECKS: frozenset({
        ApplicationStatus.HIRED,
        ApplicationStatus.SCREENING,
    }) | SIDE_EXITS,
    ApplicationStatus.HIRED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}
