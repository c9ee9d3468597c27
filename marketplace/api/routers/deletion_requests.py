"""Owner-facing deletion request endpoint."""

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_deletion_service, require_signed_in
from marketplace.api.schemas.marketplace import DeletionRequestCreate, DeletionRequestResponse
from marketplace.core.approval.service import DeletionService
from marketplace.core.entities import Actor

router = APIRouter(prefix="/deletion-requests", tags=["deletion-requests"])


@router.post("", response_model=DeletionRequestResponse, status_code=status.HTTP_201_CREATED)
def request_deletion(
    payload: DeletionRequestCreate,
    actor: Actor = Depends(require_signed_in),
    deletions: DeletionService = Depends(get_deletion_service),
):
    """Ask an admin to remove one of the caller's listings."""
    request = deletions.request_deletion(actor, payload.business_id, reason=payload.reason)
    return DeletionRequestResponse.model_validate(request)
