"""
Tests for state tables, domain models and error payloads.
"""

import uuid

import pytest
from pydantic import ValidationError as PydanticValidationError

from indexpilot.core.exceptions import (
    AppException,
    InvalidTransitionError,
    NotFoundError,
    OracleResponseError,
    ResponseIssue,
    UnknownScoreError,
    ValidationError,
)
from indexpilot.domain.scoring import ApprovalSummary, CompositionEntry, IndexRunSummary
from indexpilot.domain.states import (
    CONSTITUENT_TRANSITIONS,
    RUN_TRANSITIONS,
    ConstituentState,
    RunStatus,
    can_transition_constituent,
    can_transition_run,
    ensure_constituent_transition,
    ensure_run_transition,
    is_terminal_run,
)


# =============================================================================
# TRANSITION TABLES
# =============================================================================


class TestRunTransitions:
    def test_every_status_has_an_entry(self):
        assert set(RUN_TRANSITIONS) == set(RunStatus)

    @pytest.mark.parametrize(
        "current,target",
        [
            (RunStatus.PENDING, RunStatus.RUNNING),
            (RunStatus.PENDING, RunStatus.FAILED),
            (RunStatus.RUNNING, RunStatus.COMPLETE),
            (RunStatus.RUNNING, RunStatus.FAILED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition_run(current, target)
        ensure_run_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (RunStatus.PENDING, RunStatus.COMPLETE),
            (RunStatus.RUNNING, RunStatus.PENDING),
            (RunStatus.COMPLETE, RunStatus.FAILED),
            (RunStatus.FAILED, RunStatus.RUNNING),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition_run(current, target)
        with pytest.raises(InvalidTransitionError):
            ensure_run_transition(current, target)

    def test_terminal(self):
        assert is_terminal_run(RunStatus.COMPLETE)
        assert is_terminal_run(RunStatus.FAILED)
        assert not is_terminal_run(RunStatus.RUNNING)


class TestConstituentTransitions:
    def test_every_state_has_an_entry(self):
        assert set(CONSTITUENT_TRANSITIONS) == set(ConstituentState)

    @pytest.mark.parametrize(
        "target",
        [ConstituentState.APPROVED, ConstituentState.REJECTED, ConstituentState.ON_HOLD],
    )
    def test_pending_moves_once(self, target):
        assert can_transition_constituent(ConstituentState.PENDING, target)
        for other in ConstituentState:
            assert not can_transition_constituent(target, other)

    def test_error_names_states(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_constituent_transition(ConstituentState.APPROVED, ConstituentState.REJECTED)

        assert exc_info.value.to_dict() == {
            "error": "INVALID_TRANSITION",
            "message": "constituent score cannot move from approved to rejected",
            "details": {"entity": "constituent score", "from": "approved", "to": "rejected"},
        }


# =============================================================================
# ERRORS
# =============================================================================


class TestExceptions:
    def test_defaults(self):
        error = NotFoundError()
        assert error.to_dict() == {"error": "NOT_FOUND", "message": "Resource not found"}

    def test_unknown_score_is_validation_error(self):
        score_id = uuid.uuid4()
        error = UnknownScoreError(score_id)

        assert isinstance(error, ValidationError)
        assert isinstance(error, AppException)
        assert error.details == {"score_id": str(score_id)}

    def test_oracle_response_error_carries_issue(self):
        error = OracleResponseError(ResponseIssue.SCHEMA_VIOLATION, ["score: too large"])

        assert error.issue is ResponseIssue.SCHEMA_VIOLATION
        assert "score: too large" in error.message
        assert error.details["issue"] == "schema_violation"


# =============================================================================
# MODELS
# =============================================================================


class TestModels:
    def test_composition_entry_strips_sector(self):
        assert CompositionEntry(sector="  Energy ", percentage=10).sector == "Energy"

    @pytest.mark.parametrize("percentage", [0, 100, 100.005])
    def test_composition_entry_accepts_tolerance(self, percentage):
        assert CompositionEntry(sector="Energy", percentage=percentage).percentage == percentage

    @pytest.mark.parametrize("percentage", [-0.1, 100.1])
    def test_composition_entry_bounds(self, percentage):
        with pytest.raises(PydanticValidationError):
            CompositionEntry(sector="Energy", percentage=percentage)

    def test_index_run_summary_failed_count(self):
        summary = IndexRunSummary(
            index_run_id=uuid.uuid4(),
            index_id="US_TOP5",
            effective_date="2025-01-02",
            status=RunStatus.COMPLETE,
            attempted=5,
            succeeded=3,
            failed_tickers=["A", "B"],
        )
        assert summary.failed == 2

    def test_approval_summary_total(self):
        summary = ApprovalSummary(
            effective_date="2025-01-02", total_pending=1, approved=2, rejected=3, on_hold=4
        )
        assert summary.total == 10
