"""Business listing endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import (
    get_actor,
    get_file_service,
    get_listing_service,
    get_visibility_policy,
    require_signed_in,
)
from marketplace.api.schemas.marketplace import (
    FileCreate,
    FileResponse,
    ListingCreate,
    ListingResponse,
)
from marketplace.core.access import VisibilityPolicy
from marketplace.core.approval.service import ListingService
from marketplace.core.entities import Actor
from marketplace.core.files import FileService

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
def submit_listing(
    payload: ListingCreate,
    actor: Actor = Depends(require_signed_in),
    listings: ListingService = Depends(get_listing_service),
):
    """Submit a listing for admin review."""
    listing = listings.submit_listing(actor, **payload.model_dump())
    return ListingResponse.model_validate(listing)


@router.get("/{business_id}", response_model=ListingResponse)
def get_listing(
    business_id: UUID,
    actor: Actor = Depends(get_actor),
    policy: VisibilityPolicy = Depends(get_visibility_policy),
):
    return ListingResponse.model_validate(policy.view_listing(actor, business_id))


@router.get("/{business_id}/files", response_model=List[FileResponse])
def list_visible_files(
    business_id: UUID,
    actor: Actor = Depends(get_actor),
    policy: VisibilityPolicy = Depends(get_visibility_policy),
):
    """Files of the listing the caller may view; the rest are omitted."""
    return [FileResponse.model_validate(f) for f in policy.visible_files(actor, business_id)]


@router.post("/{business_id}/files", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
def add_file(
    business_id: UUID,
    payload: FileCreate,
    actor: Actor = Depends(require_signed_in),
    files: FileService = Depends(get_file_service),
):
    business_file = files.add_file(
        actor,
        business_id,
        file_path=payload.file_path,
        file_name=payload.file_name,
        visibility=payload.visibility,
    )
    return FileResponse.model_validate(business_file)
