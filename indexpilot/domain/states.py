"""Closed enumerations and their transition tables.

Runs and constituent scores move through small state machines. Every
allowed move is listed in a ``*_TRANSITIONS`` table; terminal states map
to an empty set. ``ensure_*_transition`` raises ``InvalidTransitionError``
for anything else.
"""

from __future__ import annotations

from enum import Enum

from indexpilot.core.exceptions import InvalidTransitionError


class RunStatus(str, Enum):
    """Lifecycle of a ScoreRun or IndexScoreRun."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


class ConstituentState(str, Enum):
    """Approval state of a constituent score."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"


class Direction(str, Enum):
    """Expected price direction over the scoring horizon."""

    UP = "up"
    FLAT = "flat"
    DOWN = "down"


class Sentiment(str, Enum):
    """Coarse news sentiment attached to a constituent score."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


RUN_TRANSITIONS: dict[RunStatus, set[RunStatus]] = {
    RunStatus.PENDING: {RunStatus.RUNNING, RunStatus.FAILED},
    RunStatus.RUNNING: {RunStatus.COMPLETE, RunStatus.FAILED},
    RunStatus.COMPLETE: set(),
    RunStatus.FAILED: set(),
}

CONSTITUENT_TRANSITIONS: dict[ConstituentState, set[ConstituentState]] = {
    ConstituentState.PENDING: {
        ConstituentState.APPROVED,
        ConstituentState.REJECTED,
        ConstituentState.ON_HOLD,
    },
    ConstituentState.APPROVED: set(),
    ConstituentState.REJECTED: set(),
    ConstituentState.ON_HOLD: set(),
}


def can_transition_run(current: RunStatus, target: RunStatus) -> bool:
    return target in RUN_TRANSITIONS[current]


def can_transition_constituent(
    current: ConstituentState, target: ConstituentState
) -> bool:
    return target in CONSTITUENT_TRANSITIONS[current]


def ensure_run_transition(current: RunStatus, target: RunStatus) -> None:
    if not can_transition_run(current, target):
        raise InvalidTransitionError("score run", current, target)


def ensure_constituent_transition(
    current: ConstituentState, target: ConstituentState
) -> None:
    if not can_transition_constituent(current, target):
        raise InvalidTransitionError("constituent score", current, target)


def is_terminal_run(status: RunStatus) -> bool:
    return not RUN_TRANSITIONS[status]
