"""The three concrete approval workflows.

    listing_approval   admin decides; approval only flips the listing status
    deletion_request   admin decides; approval removes the listing, its files
                       and its NDA records in the same transaction
    nda_approval       listing owner or admin decides; approval stamps an
                       expiry ``validity_days`` after the decision
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List

from marketplace.core.entities import (
    Actor,
    BusinessListing,
    DeletionRequest,
    NdaRecord,
)
from marketplace.core.store import (
    BUSINESS_FILES,
    BUSINESSES,
    DELETION_REQUESTS,
    NDAS,
    DataStore,
    Delete,
    DeleteWhere,
    Operation,
    Record,
)

from .machine import Workflow
from .states import ApprovalState

LISTING_APPROVAL = "listing_approval"
DELETION_REQUEST = "deletion_request"
NDA_APPROVAL = "nda_approval"


def admin_only(actor: Actor, record: Record, store: DataStore) -> bool:
    return actor.is_admin


def listing_owner_or_admin(actor: Actor, record: Record, store: DataStore) -> bool:
    if actor.is_admin:
        return True
    listing = store.get(BUSINESSES, record["business_id"])
    return actor.account_id is not None and actor.account_id == listing["owner_id"]


def cascade_listing_delete(record: Record) -> List[Operation]:
    """Writes that remove a listing together with everything referencing it."""
    business_id = record["business_id"]
    return [
        DeleteWhere(BUSINESS_FILES, {"business_id": business_id}),
        DeleteWhere(NDAS, {"business_id": business_id}),
        Delete(BUSINESSES, business_id),
    ]


def _stamp_listing(record: Record, to_state: ApprovalState, decider: Actor, now: datetime) -> Dict[str, Any]:
    return {"updated_at": now}


def _stamp_deletion(record: Record, to_state: ApprovalState, decider: Actor, now: datetime) -> Dict[str, Any]:
    return {"processed_at": now, "processed_by": decider.account_id}


def listing_approval_workflow() -> Workflow:
    return Workflow(
        name=LISTING_APPROVAL,
        table=BUSINESSES,
        entity=BusinessListing,
        authorize=admin_only,
        stamp=_stamp_listing,
    )


def deletion_request_workflow() -> Workflow:
    return Workflow(
        name=DELETION_REQUEST,
        table=DELETION_REQUESTS,
        entity=DeletionRequest,
        authorize=admin_only,
        duplicate_key=lambda values: {"business_id": values["business_id"]},
        on_approve=cascade_listing_delete,
        stamp=_stamp_deletion,
    )


def nda_approval_workflow(validity_days: int) -> Workflow:
    horizon = timedelta(days=validity_days)

    def stamp(record: Record, to_state: ApprovalState, decider: Actor, now: datetime) -> Dict[str, Any]:
        patch = {"resolved_at": now, "resolved_by": decider.account_id}
        if to_state is ApprovalState.APPROVED:
            patch["expires_at"] = now + horizon
        return patch

    return Workflow(
        name=NDA_APPROVAL,
        table=NDAS,
        entity=NdaRecord,
        authorize=listing_owner_or_admin,
        forbidden_message="Only the listing owner or an admin may resolve this NDA",
        duplicate_key=lambda values: {
            "user_id": values["user_id"],
            "business_id": values["business_id"],
        },
        stamp=stamp,
    )
