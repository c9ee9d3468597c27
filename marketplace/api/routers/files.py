"""Business file access endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from marketplace.api.deps import (
    get_actor,
    get_file_service,
    get_visibility_policy,
    require_signed_in,
)
from marketplace.api.schemas.marketplace import (
    AccessDecisionResponse,
    FileResponse,
    FileVisibilityUpdate,
)
from marketplace.core.access import VisibilityPolicy
from marketplace.core.entities import Actor
from marketplace.core.files import FileService

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/access", response_model=AccessDecisionResponse)
def check_path_access(
    path: str = Query(..., min_length=1),
    actor: Actor = Depends(get_actor),
    policy: VisibilityPolicy = Depends(get_visibility_policy),
):
    """Decide access for a storage object path, as the blob proxy sees it."""
    file, decision = policy.resolve_path(actor, path)
    return AccessDecisionResponse(file_id=file.id, allowed=decision.allowed, reason=decision.reason)


@router.get("/{file_id}/access", response_model=AccessDecisionResponse)
def check_access(
    file_id: UUID,
    actor: Actor = Depends(get_actor),
    policy: VisibilityPolicy = Depends(get_visibility_policy),
):
    decision = policy.check(actor, file_id)
    return AccessDecisionResponse(file_id=file_id, allowed=decision.allowed, reason=decision.reason)


@router.patch("/{file_id}", response_model=FileResponse)
def update_visibility(
    file_id: UUID,
    payload: FileVisibilityUpdate,
    actor: Actor = Depends(require_signed_in),
    files: FileService = Depends(get_file_service),
):
    """Change a file's visibility tier (owner or admin)."""
    return FileResponse.model_validate(files.set_visibility(actor, file_id, payload.visibility))
