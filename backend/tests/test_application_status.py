"""
Tests for the pipeline transition table
"""
import pytest

from domain.value_objects import (
    ApplicationStatus,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    RatingScore,
)


class TestTransitionTable:
    """Test the static from -> allowed-to table"""

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(ApplicationStatus)

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_statuses_have_no_exits(self, status):
        assert status.is_terminal
        assert ALLOWED_TRANSITIONS[status] == frozenset()
        assert not any(status.can_transition_to(target) for target in ApplicationStatus)

    @pytest.mark.parametrize(
        "status",
        [s for s in ApplicationStatus if s not in TERMINAL_STATUSES],
    )
    def test_side_exits_reachable_from_every_open_status(self, status):
        assert status.can_transition_to(ApplicationStatus.REJECTED)
        assert status.can_transition_to(ApplicationStatus.WITHDRAWN)

    def test_forward_path(self):
        path = [
            ApplicationStatus.APPLIED,
            ApplicationStatus.SCREENING,
            ApplicationStatus.INTERVIEWED,
            ApplicationStatus.OFFERED,
            ApplicationStatus.PRE_HIRE_CHECKS,
            ApplicationStatus.HIRED,
        ]
        for current, target in zip(path, path[1:]):
            assert current.can_transition_to(target)

    def test_skipping_stages_is_rejected(self):
        assert not ApplicationStatus.APPLIED.can_transition_to(ApplicationStatus.INTERVIEWED)
        assert not ApplicationStatus.SCREENING.can_transition_to(ApplicationStatus.HIRED)
        assert not ApplicationStatus.OFFERED.can_transition_to(ApplicationStatus.HIRED)

    def test_interviewed_can_skip_offer(self):
        assert ApplicationStatus.INTERVIEWED.can_transition_to(ApplicationStatus.PRE_HIRE_CHECKS)

    def test_failed_checks_return_to_screening(self):
        assert ApplicationStatus.PRE_HIRE_CHECKS.can_transition_to(ApplicationStatus.SCREENING)
        assert not ApplicationStatus.OFFERED.can_transition_to(ApplicationStatus.SCREENING)


class TestScreeningOrLater:
    """Test the eligibility ordering"""

    def test_applied_is_not_eligible(self):
        assert not ApplicationStatus.APPLIED.is_screening_or_later()

    @pytest.mark.parametrize("status", [
        ApplicationStatus.SCREENING,
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.OFFERED,
        ApplicationStatus.PRE_HIRE_CHECKS,
        ApplicationStatus.HIRED,
    ])
    def test_forward_stages_are_eligible(self, status):
        assert status.is_screening_or_later()

    @pytest.mark.parametrize("status", [ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN])
    def test_side_exits_are_never_eligible(self, status):
        assert status.is_side_exit
        assert not status.is_screening_or_later()


class TestRatingScore:
    """Test rating score validation"""

    def test_accepts_bounds(self):
        assert RatingScore(1).value == 1
        assert int(RatingScore(5)) == 5

    @pytest.mark.parametrize("value", [0, 6, -1])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValueError):
            RatingScore(value)

    @pytest.mark.parametrize("value", [True, 3.0, "4"])
    def test_rejects_non_integers(self, value):
        with pytest.raises(TypeError):
            RatingScore(value)
