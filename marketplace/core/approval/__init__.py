"""Approval workflow module.

Implements the shared pending → approved/rejected state machine and the
three workflows built on it: listing approval, deletion-request approval
and NDA approval. Import the machine and services from their submodules.
"""

from .states import (
    ApprovalState,
    ApprovalTransition,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
)

__all__ = [
    "ApprovalState",
    "ApprovalTransition",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
]
