"""Tests for approval workflow states and transitions."""

import pytest

from marketplace.core.approval.states import (
    OPEN_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ApprovalState,
    ApprovalTransition,
    available_transitions,
    can_transition,
    get_target_state,
    get_transition_rule,
)


class TestApprovalStates:
    """Test approval state definitions."""

    def test_all_states_defined(self):
        """Test that all expected states exist."""
        assert {s.value for s in ApprovalState} == {"pending", "approved", "rejected"}

    def test_terminal_states(self):
        """Test terminal state definitions."""
        assert ApprovalState.APPROVED in TERMINAL_STATES
        assert ApprovalState.REJECTED in TERMINAL_STATES
        assert ApprovalState.PENDING not in TERMINAL_STATES

    def test_open_states(self):
        assert OPEN_STATES == {ApprovalState.PENDING}


class TestApprovalTransitions:
    """Test valid state transitions."""

    def test_pending_transitions(self):
        """Test valid transitions from PENDING state."""
        assert can_transition(ApprovalState.PENDING, ApprovalTransition.APPROVE)
        assert can_transition(ApprovalState.PENDING, ApprovalTransition.REJECT)

    @pytest.mark.parametrize("state", [ApprovalState.APPROVED, ApprovalState.REJECTED])
    @pytest.mark.parametrize("transition", list(ApprovalTransition))
    def test_terminal_states_have_no_exits(self, state, transition):
        assert not can_transition(state, transition)
        assert get_transition_rule(state, transition) is None
        assert get_target_state(state, transition) is None

    def test_target_states(self):
        assert get_target_state(ApprovalState.PENDING, ApprovalTransition.APPROVE) is ApprovalState.APPROVED
        assert get_target_state(ApprovalState.PENDING, ApprovalTransition.REJECT) is ApprovalState.REJECTED

    def test_valid_transitions_only_from_pending(self):
        assert set(VALID_TRANSITIONS) == {ApprovalState.PENDING}

    def test_available_transitions(self):
        assert available_transitions(ApprovalState.PENDING) == [
            ApprovalTransition.APPROVE,
            ApprovalTransition.REJECT,
        ]
        assert available_transitions(ApprovalState.APPROVED) == []

    def test_from_flag(self):
        """The boolean approved flag maps onto a verdict."""
        assert ApprovalTransition.from_flag(True) is ApprovalTransition.APPROVE
        assert ApprovalTransition.from_flag(False) is ApprovalTransition.REJECT
