"""NDA state tracking.

Tracks, per (account, listing) pair, whether a non-disclosure agreement has
been signed and approved. Expiry is evaluated lazily whenever a record is
read; nothing sweeps expired records.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from marketplace.common.logger import get_logger
from marketplace.core.approval.machine import ApprovalStateMachine
from marketplace.core.approval.service import ApprovalService
from marketplace.core.approval.states import ApprovalState, ApprovalTransition
from marketplace.core.approval.workflows import nda_approval_workflow
from marketplace.core.config import Settings, get_settings
from marketplace.core.entities import Actor, BusinessListing, NdaRecord, utcnow
from marketplace.core.errors import ForbiddenError
from marketplace.core.store import BUSINESSES, NDAS, DataStore

logger = get_logger("nda")

Decision = Union[ApprovalTransition, bool]


class NdaTracker:
    """Request, resolve and look up NDA records."""

    def __init__(
        self,
        store: DataStore,
        settings: Optional[Settings] = None,
        *,
        machine: Optional[ApprovalStateMachine] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.approvals: ApprovalService[NdaRecord] = ApprovalService(
            store,
            nda_approval_workflow(self.settings.nda_validity_days),
            machine=machine,
        )

    @property
    def clock(self):
        return self.approvals.machine.clock

    def request(
        self,
        actor: Actor,
        listing_id: UUID,
        terms: Optional[Dict[str, Any]] = None,
    ) -> NdaRecord:
        """
        Sign an NDA for a listing, opening a pending request.

        The signer's identity and signing time are captured in ``terms``
        next to whatever the caller supplied. When the signer owns the
        listing and ``nda_auto_approve_owner`` is set, the record is approved
        on the owner's behalf in the same call.

        Raises:
            ForbiddenError: If the actor is anonymous or a guest
            NotFoundError: If the listing does not exist
            ConflictError: If a pending NDA already exists for the pair
        """
        if not actor.can_participate:
            raise ForbiddenError("Sign in as a member to request NDA access")

        listing = BusinessListing.from_record(self.store.get(BUSINESSES, listing_id))
        now = self.clock()
        signed_terms = {
            **(terms or {}),
            "agreed_at": now.isoformat(),
            "user_email": actor.email,
            "user_id": str(actor.account_id),
        }
        record = self.approvals.machine.submit(
            self.approvals.workflow,
            {
                "user_id": actor.account_id,
                "business_id": listing.id,
                "terms": signed_terms,
                "signed_at": now,
            },
        )

        if self.settings.nda_auto_approve_owner and actor.owns(listing):
            logger.info("Auto-approving owner NDA %s on listing %s", record["id"], listing.id)
            return self.approvals.approve(record["id"], actor, comment="owner signature")

        return NdaRecord.from_record(record)

    def resolve(
        self,
        request_id: UUID,
        decision: Decision,
        resolver: Actor,
        *,
        validity_days: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> NdaRecord:
        """
        Approve or reject a pending NDA.

        Args:
            request_id: NDA record id
            decision: verdict, or ``True``/``False`` for approve/reject
            resolver: listing owner or admin
            validity_days: overrides the configured expiry horizon for this approval

        Raises:
            NotFoundError: If the record does not exist
            InvalidStateError: If the record is not pending
            ForbiddenError: If the resolver is neither owner nor admin
        """
        transition = decision if isinstance(decision, ApprovalTransition) else ApprovalTransition.from_flag(decision)

        service = self.approvals
        if validity_days is not None:
            service = ApprovalService(
                self.store,
                nda_approval_workflow(validity_days),
                machine=self.approvals.machine,
            )
        return service.decide(request_id, transition, resolver, comment=comment)

    def active_record(
        self,
        actor: Actor,
        listing_id: UUID,
        now: Optional[datetime] = None,
    ) -> Optional[NdaRecord]:
        """The approved, unexpired NDA for exactly (actor, listing), if any."""
        if actor.account_id is None:
            return None
        now = now or self.clock()
        rows = self.store.query(
            NDAS,
            {
                "user_id": actor.account_id,
                "business_id": listing_id,
                "status": ApprovalState.APPROVED.value,
            },
            order_by="-resolved_at",
        )
        for row in rows:
            record = NdaRecord.from_record(row)
            if record.is_active_at(now):
                return record
        return None

    def is_active(self, actor: Actor, listing_id: UUID, now: Optional[datetime] = None) -> bool:
        return self.active_record(actor, listing_id, now) is not None

    def list_for_actor(self, actor: Actor, business_id: Optional[UUID] = None) -> List[NdaRecord]:
        """NDAs the actor has signed, optionally for one listing."""
        if actor.account_id is None:
            return []
        criteria: Dict[str, Any] = {"user_id": actor.account_id}
        if business_id is not None:
            criteria["business_id"] = business_id
        return [NdaRecord.from_record(row) for row in self.store.query(NDAS, criteria, order_by="-created_at")]

    def list_pending_for_owner(self, owner: Actor) -> List[NdaRecord]:
        """Pending NDAs on listings ``owner`` owns, awaiting their decision."""
        if owner.account_id is None:
            return []
        listing_ids = [row["id"] for row in self.store.query(BUSINESSES, {"owner_id": owner.account_id})]
        if not listing_ids:
            return []
        rows = self.store.query(
            NDAS,
            {"business_id": listing_ids, "status": ApprovalState.PENDING.value},
            order_by="created_at",
        )
        return [NdaRecord.from_record(row) for row in rows]
