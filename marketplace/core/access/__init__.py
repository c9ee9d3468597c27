"""Access control: who may see which listing and which business file."""

from .visibility import (
    AccessDecision,
    VisibilityPolicy,
    can_view,
    can_view_listing,
    filter_visible,
)

__all__ = [
    "AccessDecision",
    "VisibilityPolicy",
    "can_view",
    "can_view_listing",
    "filter_visible",
]
