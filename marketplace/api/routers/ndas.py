"""NDA signing and resolution endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_nda_tracker, require_signed_in
from marketplace.api.schemas.marketplace import NdaCreate, NdaDecision, NdaResponse
from marketplace.core.approval.states import ApprovalTransition
from marketplace.core.entities import Actor
from marketplace.core.nda import NdaTracker

router = APIRouter(prefix="/ndas", tags=["ndas"])


@router.get("", response_model=List[NdaResponse])
def list_my_ndas(
    business_id: Optional[UUID] = None,
    actor: Actor = Depends(require_signed_in),
    ndas: NdaTracker = Depends(get_nda_tracker),
):
    """NDAs the caller has signed, newest first."""
    return [NdaResponse.model_validate(r) for r in ndas.list_for_actor(actor, business_id)]


@router.get("/pending", response_model=List[NdaResponse])
def list_pending_for_my_listings(
    actor: Actor = Depends(require_signed_in),
    ndas: NdaTracker = Depends(get_nda_tracker),
):
    """Pending NDAs on listings the caller owns."""
    return [NdaResponse.model_validate(r) for r in ndas.list_pending_for_owner(actor)]


@router.post("", response_model=NdaResponse, status_code=status.HTTP_201_CREATED)
def sign_nda(
    payload: NdaCreate,
    actor: Actor = Depends(require_signed_in),
    ndas: NdaTracker = Depends(get_nda_tracker),
):
    return NdaResponse.model_validate(ndas.request(actor, payload.business_id, payload.terms))


@router.post("/{nda_id}/approve", response_model=NdaResponse)
def approve_nda(
    nda_id: UUID,
    payload: NdaDecision,
    actor: Actor = Depends(require_signed_in),
    ndas: NdaTracker = Depends(get_nda_tracker),
):
    record = ndas.resolve(
        nda_id,
        ApprovalTransition.APPROVE,
        actor,
        validity_days=payload.validity_days,
        comment=payload.comment,
    )
    return NdaResponse.model_validate(record)


@router.post("/{nda_id}/reject", response_model=NdaResponse)
def reject_nda(
    nda_id: UUID,
    payload: NdaDecision,
    actor: Actor = Depends(require_signed_in),
    ndas: NdaTracker = Depends(get_nda_tracker),
):
    record = ndas.resolve(nda_id, ApprovalTransition.REJECT, actor, comment=payload.comment)
    return NdaResponse.model_validate(record)
