"""Approval workflow states and transitions.

Shared by listing approval, deletion-request approval and NDA approval.

State Machine Diagram:

    ┌──────────┐
    │ PENDING  │ ← Initial state (submitted request)
    └────┬─────┘
         │
    ┌────┴──────────┐
    │               │
┌───▼──────┐  ┌─────▼────┐
│ APPROVED │  │ REJECTED │
└──────────┘  └──────────┘

Both outcomes are terminal: no transition leaves them.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional, Set


class ApprovalState(str, Enum):
    """States a reviewable request can be in."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalTransition(str, Enum):
    """Verdicts a decider can hand down."""

    APPROVE = "approve"
    REJECT = "reject"

    @classmethod
    def from_flag(cls, approved: bool) -> "ApprovalTransition":
        """Map the ``approved: true|false`` flag handlers receive onto a verdict."""
        return cls.APPROVE if approved else cls.REJECT


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: ApprovalState
    to_state: ApprovalState
    transition: ApprovalTransition


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(ApprovalState.PENDING, ApprovalState.APPROVED, ApprovalTransition.APPROVE),
    TransitionRule(ApprovalState.PENDING, ApprovalState.REJECTED, ApprovalTransition.REJECT),
]

# Build lookup tables for efficient access
VALID_TRANSITIONS: Dict[ApprovalState, Set[ApprovalTransition]] = {}
TRANSITION_TARGETS: Dict[tuple[ApprovalState, ApprovalTransition], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.transition)
    TRANSITION_TARGETS[(rule.from_state, rule.transition)] = rule


TERMINAL_STATES: Set[ApprovalState] = {
    ApprovalState.APPROVED,
    ApprovalState.REJECTED,
}

OPEN_STATES: Set[ApprovalState] = set(ApprovalState) - TERMINAL_STATES


def can_transition(from_state: ApprovalState, transition: ApprovalTransition) -> bool:
    """Check if a transition is valid from the given state."""
    return transition in VALID_TRANSITIONS.get(from_state, set())


def get_transition_rule(from_state: ApprovalState, transition: ApprovalTransition) -> Optional[TransitionRule]:
    """Get the transition rule for a state/verdict combination."""
    return TRANSITION_TARGETS.get((from_state, transition))


def get_target_state(from_state: ApprovalState, transition: ApprovalTransition) -> Optional[ApprovalState]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, transition)
    return rule.to_state if rule else None


def available_transitions(state: ApprovalState) -> list[ApprovalTransition]:
    """Verdicts that may still be applied from ``state``."""
    return [t for t in ApprovalTransition if can_transition(state, t)]
