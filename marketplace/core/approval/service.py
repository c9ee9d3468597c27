"""Approval services for listings and deletion requests.

Provides the high-level API request handlers call: submitting requests,
deciding them, admin review queues, batch decisions and the audit history.
NDA approval goes through ``marketplace.core.nda.NdaTracker``, which is
built on the same ``ApprovalService``.
"""

import time
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar
from uuid import UUID

from slugify import slugify

from marketplace.common.logger import get_logger
from marketplace.core.entities import (
    Actor,
    BusinessListing,
    DeletionRequest,
    HistoryEntry,
)
from marketplace.core.errors import ForbiddenError, MarketplaceError
from marketplace.core.store import APPROVAL_HISTORY, BUSINESSES, DataStore

from .machine import ApprovalStateMachine, Workflow
from .states import ApprovalState, ApprovalTransition
from .workflows import deletion_request_workflow, listing_approval_workflow

logger = get_logger("approval.service")

E = TypeVar("E")


class ApprovalService(Generic[E]):
    """
    High-level service for one approval workflow.

    Handles:
    - Submitting requests
    - Deciding them through the shared state machine
    - Listing the pending review queue
    - Batch decisions
    - Reading the decision history
    """

    def __init__(self, store: DataStore, workflow: Workflow, *, machine: Optional[ApprovalStateMachine] = None):
        self.store = store
        self.workflow = workflow
        self.machine = machine or ApprovalStateMachine(store)

    def _entity(self, record: Dict[str, Any]) -> E:
        return self.workflow.entity.from_record(record)

    def get(self, request_id: UUID) -> E:
        return self._entity(self.store.get(self.workflow.table, request_id))

    def decide(
        self,
        request_id: UUID,
        transition: ApprovalTransition,
        decider: Actor,
        *,
        comment: Optional[str] = None,
    ) -> E:
        record = self.machine.decide(self.workflow, request_id, transition, decider, comment=comment)
        return self._entity(record)

    def approve(self, request_id: UUID, decider: Actor, *, comment: Optional[str] = None) -> E:
        return self.decide(request_id, ApprovalTransition.APPROVE, decider, comment=comment)

    def reject(self, request_id: UUID, decider: Actor, *, comment: Optional[str] = None) -> E:
        return self.decide(request_id, ApprovalTransition.REJECT, decider, comment=comment)

    def list_pending(self, viewer: Actor, *, page: int = 1, per_page: int = 10) -> Tuple[List[E], int]:
        """Admin review queue, newest first. Returns (items, total)."""
        if not viewer.is_admin:
            raise ForbiddenError("Admin role required")
        page = max(page, 1)
        pending = {"status": ApprovalState.PENDING.value}
        total = self.store.count(self.workflow.table, pending)
        rows = self.store.query(
            self.workflow.table,
            pending,
            offset=(page - 1) * per_page,
            limit=per_page,
            order_by="-created_at",
        )
        return [self._entity(row) for row in rows], total

    def batch_decide(
        self,
        request_ids: List[UUID],
        transition: ApprovalTransition,
        decider: Actor,
        *,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Decide several requests independently.

        Each request is its own atomic unit; one failure does not undo the
        others.

        Returns:
            Summary of results
        """
        results: Dict[str, Any] = {"succeeded": [], "failed": []}

        for request_id in request_ids:
            try:
                self.decide(request_id, transition, decider, comment=comment)
                results["succeeded"].append(str(request_id))
            except MarketplaceError as e:
                results["failed"].append({
                    "id": str(request_id),
                    "error": e.message,
                    "code": e.code,
                })

        logger.info(
            "Batch %s on %s: %d succeeded, %d failed",
            transition.value, self.workflow.name,
            len(results["succeeded"]), len(results["failed"]),
        )
        return results

    def history(self, request_id: UUID) -> List[HistoryEntry]:
        rows = self.store.query(
            APPROVAL_HISTORY,
            {"workflow": self.workflow.name, "request_id": request_id},
            order_by="created_at",
        )
        return [HistoryEntry.from_record(row) for row in rows]


class ListingService(ApprovalService[BusinessListing]):
    """Listing submission and admin approval."""

    def __init__(self, store: DataStore, *, machine: Optional[ApprovalStateMachine] = None):
        super().__init__(store, listing_approval_workflow(), machine=machine)

    def submit_listing(
        self,
        actor: Actor,
        *,
        name: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
        asking_price: Optional[float] = None,
    ) -> BusinessListing:
        """Create a listing in the pending state, owned by ``actor``."""
        if not actor.can_participate:
            raise ForbiddenError("Only members can submit listings")

        slug = slugify(name) or f"business-{int(time.time() * 1000)}"
        record = self.machine.submit(
            self.workflow,
            {
                "owner_id": actor.account_id,
                "name": name,
                "slug": slug,
                "category": category,
                "description": description,
                "location": location,
                "asking_price": asking_price,
            },
        )
        return self._entity(record)


class DeletionService(ApprovalService[DeletionRequest]):
    """Owner-initiated listing deletion with admin approval."""

    def __init__(self, store: DataStore, *, machine: Optional[ApprovalStateMachine] = None):
        super().__init__(store, deletion_request_workflow(), machine=machine)

    def request_deletion(self, actor: Actor, listing_id: UUID, *, reason: Optional[str] = None) -> DeletionRequest:
        """
        Ask for a listing to be removed.

        Raises:
            NotFoundError: If the listing does not exist
            ForbiddenError: If ``actor`` does not own the listing
            ConflictError: If a deletion request for the listing is already pending
        """
        listing = BusinessListing.from_record(self.store.get(BUSINESSES, listing_id))
        if not actor.owns(listing):
            raise ForbiddenError("Only the listing owner may request its deletion")

        record = self.machine.submit(
            self.workflow,
            {
                "requester_id": actor.account_id,
                "business_id": listing.id,
                "reason": reason,
            },
        )
        return self._entity(record)
