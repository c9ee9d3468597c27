"""Admin review queues, decisions, account promotion and dashboard stats."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from marketplace.api.deps import (
    get_account_service,
    get_deletion_service,
    get_listing_service,
    get_stats_service,
    require_signed_in,
)
from marketplace.api.schemas.common import BatchDecisionResponse, DecisionAction, PaginatedResponse
from marketplace.api.schemas.marketplace import (
    AccountResponse,
    BatchDecisionRequest,
    DeletionRequestResponse,
    HistoryEntryResponse,
    ListingResponse,
    PromoteRequest,
    StatsResponse,
)
from marketplace.core.accounts import AccountService, AdminStatsService
from marketplace.core.approval.service import DeletionService, ListingService
from marketplace.core.approval.states import ApprovalTransition
from marketplace.core.config import Settings, get_settings
from marketplace.core.entities import Actor
from marketplace.core.errors import ForbiddenError

router = APIRouter(prefix="/admin", tags=["admin"])


def _page_size(per_page: Optional[int], settings: Settings) -> int:
    if per_page is None:
        return settings.default_page_size
    return min(per_page, settings.max_page_size)


# Listings
@router.get("/businesses/pending", response_model=PaginatedResponse[ListingResponse])
def list_pending_listings(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
    settings: Settings = Depends(get_settings),
):
    """Listings awaiting review, newest first."""
    size = _page_size(per_page, settings)
    items, total = listings.list_pending(actor, page=page, per_page=size)
    return PaginatedResponse.create(
        [ListingResponse.model_validate(i) for i in items], total, page, size
    )


@router.post("/businesses/batch/approve", response_model=BatchDecisionResponse)
def batch_approve_listings(
    batch: BatchDecisionRequest,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    result = listings.batch_decide(batch.request_ids, ApprovalTransition.APPROVE, actor, comment=batch.comment)
    return BatchDecisionResponse(**result)


@router.post("/businesses/batch/reject", response_model=BatchDecisionResponse)
def batch_reject_listings(
    batch: BatchDecisionRequest,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    result = listings.batch_decide(batch.request_ids, ApprovalTransition.REJECT, actor, comment=batch.comment)
    return BatchDecisionResponse(**result)


@router.post("/businesses/{business_id}/approve", response_model=ListingResponse)
def approve_listing(
    business_id: UUID,
    action: DecisionAction,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    return ListingResponse.model_validate(listings.approve(business_id, actor, comment=action.comment))


@router.post("/businesses/{business_id}/reject", response_model=ListingResponse)
def reject_listing(
    business_id: UUID,
    action: DecisionAction,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    return ListingResponse.model_validate(listings.reject(business_id, actor, comment=action.comment))


# Deletion requests
@router.get("/deletion-requests", response_model=PaginatedResponse[DeletionRequestResponse])
def list_pending_deletions(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(require_signed_in),
    deletions: DeletionService = Depends(get_deletion_service),
    settings: Settings = Depends(get_settings),
):
    size = _page_size(per_page, settings)
    items, total = deletions.list_pending(actor, page=page, per_page=size)
    return PaginatedResponse.create(
        [DeletionRequestResponse.model_validate(i) for i in items], total, page, size
    )


@router.post("/deletion-requests/{request_id}/approve", response_model=DeletionRequestResponse)
def approve_deletion(
    request_id: UUID,
    action: DecisionAction,
    actor: Actor = Depends(require_signed_in),
    deletions: DeletionService = Depends(get_deletion_service),
):
    """Approve the request and remove the listing with its files and NDAs."""
    return DeletionRequestResponse.model_validate(deletions.approve(request_id, actor, comment=action.comment))


@router.post("/deletion-requests/{request_id}/reject", response_model=DeletionRequestResponse)
def reject_deletion(
    request_id: UUID,
    action: DecisionAction,
    actor: Actor = Depends(require_signed_in),
    deletions: DeletionService = Depends(get_deletion_service),
):
    return DeletionRequestResponse.model_validate(deletions.reject(request_id, actor, comment=action.comment))


# Accounts
@router.get("/users", response_model=PaginatedResponse[AccountResponse])
def list_users(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(require_signed_in),
    accounts: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
):
    size = _page_size(per_page, settings)
    items, total = accounts.list_accounts(actor, page=page, per_page=size)
    return PaginatedResponse.create(
        [AccountResponse.model_validate(a) for a in items], total, page, size
    )


@router.post("/promote", response_model=AccountResponse)
def promote_account(
    payload: PromoteRequest,
    actor: Actor = Depends(require_signed_in),
    accounts: AccountService = Depends(get_account_service),
):
    return AccountResponse.model_validate(accounts.promote(actor, payload.email))


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    actor: Actor = Depends(require_signed_in),
    stats: AdminStatsService = Depends(get_stats_service),
):
    return StatsResponse(**stats.stats(actor))


# History

@router.get("/businesses/{business_id}/history", response_model=List[HistoryEntryResponse])
def get_listing_history(
    business_id: UUID,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    """Review decisions recorded for a listing."""
    if not actor.is_admin:
        raise ForbiddenError("Admin role required")
    return [HistoryEntryResponse.model_validate(h) for h in listings.history(business_id)]


@router.get("/deletion-requests/{request_id}/history", response_model=List[HistoryEntryResponse])
def get_deletion_history(
    request_id: UUID,
    actor: Actor = Depends(require_signed_in),
    deletions: DeletionService = Depends(get_deletion_service),
):
    if not actor.is_admin:
        raise ForbiddenError("Admin role required")
    return [HistoryEntryResponse.model_validate(h) for h in deletions.history(request_id)]
