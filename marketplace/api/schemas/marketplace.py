"""Listing, file, NDA and deletion-request schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from marketplace.core.approval.states import ApprovalState
from marketplace.core.entities import Role, Visibility


# Listings
class ListingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    asking_price: Optional[float] = Field(None, ge=0)


class ListingResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    slug: Optional[str]
    category: Optional[str]
    description: Optional[str]
    location: Optional[str]
    asking_price: Optional[float]
    status: ApprovalState
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


# Files
class FileCreate(BaseModel):
    file_path: str = Field(..., min_length=1, max_length=1024)
    file_name: Optional[str] = Field(None, max_length=255)
    visibility: Optional[Visibility] = None


class FileVisibilityUpdate(BaseModel):
    visibility: Visibility


class FileResponse(BaseModel):
    id: UUID
    business_id: UUID
    file_path: str
    file_name: Optional[str]
    visibility: Visibility
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class AccessDecisionResponse(BaseModel):
    file_id: UUID
    allowed: bool
    reason: str


# NDAs
class NdaCreate(BaseModel):
    business_id: UUID
    terms: Dict[str, Any] = {}


class NdaDecision(BaseModel):
    comment: Optional[str] = None
    validity_days: Optional[int] = Field(None, ge=1)


class NdaResponse(BaseModel):
    id: UUID
    user_id: UUID
    business_id: UUID
    status: ApprovalState
    terms: Dict[str, Any]
    signed_at: Optional[datetime]
    resolved_at: Optional[datetime]
    resolved_by: Optional[UUID]
    expires_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Deletion requests
class DeletionRequestCreate(BaseModel):
    business_id: UUID
    reason: Optional[str] = Field(None, max_length=2000)


class DeletionRequestResponse(BaseModel):
    id: UUID
    requester_id: UUID
    business_id: UUID
    status: ApprovalState
    reason: Optional[str]
    processed_at: Optional[datetime]
    processed_by: Optional[UUID]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Admin
class BatchDecisionRequest(BaseModel):
    request_ids: List[UUID]
    comment: Optional[str] = None


class PromoteRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class AccountResponse(BaseModel):
    id: UUID
    email: Optional[str]
    name: Optional[str]
    role: Role

    class Config:
        from_attributes = True


class StatsResponse(BaseModel):
    total_users: int
    total_businesses: int
    pending_approvals: int
    pending_deletions: int
    pending_ndas: int


class HistoryEntryResponse(BaseModel):
    id: UUID
    workflow: str
    request_id: UUID
    from_state: ApprovalState
    to_state: ApprovalState
    actor_id: Optional[UUID]
    comment: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
