"""Error kinds raised by the access-control and workflow core.

Each error is scoped to the single operation that raised it. Only
``StorageFailureError`` reflects an infrastructure problem; the others are
deterministic policy outcomes and are never retried.
"""

from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base class for every error the core surfaces to request handlers."""

    code = "marketplace_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(MarketplaceError):
    """The requested entity does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} {entity_id} not found",
            details={"entity": entity, "id": str(entity_id)},
        )
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(MarketplaceError):
    """The actor lacks the role or ownership the operation requires."""

    code = "forbidden"


class ConflictError(MarketplaceError):
    """An open request already exists for the same underlying entity."""

    code = "conflict"


class InvalidStateError(MarketplaceError):
    """A transition was attempted from a state that does not allow it."""

    code = "invalid_state"

    def __init__(self, message: str, *, from_state: Optional[str] = None):
        super().__init__(message, details={"from_state": from_state} if from_state else None)
        self.from_state = from_state


class StaleRecordError(InvalidStateError):
    """A conditional write found the row no longer in the expected state."""

    code = "invalid_state"


class StorageFailureError(MarketplaceError):
    """The data store could not complete an operation."""

    code = "storage_failure"


class IdentityProviderError(MarketplaceError):
    """The identity provider refused or could not apply an account change."""

    code = "identity_provider_error"
