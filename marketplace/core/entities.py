"""Typed views of the records that cross the data-access interface.

The store hands back plain dictionaries; the core converts them into these
frozen dataclasses so that statuses, roles and visibility tiers are closed
enums. An unknown enum value in a stored record fails at construction time
instead of falling through a policy check.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from uuid import UUID

from marketplace.core.approval.states import ApprovalState

T = TypeVar("T")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form the store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    """Role claim carried by an account."""

    GUEST = "guest"
    MEMBER = "member"
    ADMIN = "admin"


class Visibility(str, Enum):
    """Exposure tier declared on a business file."""

    PUBLIC = "public"
    NDA = "nda"
    PRIVATE = "private"


def _from_record(cls: Type[T], record: Mapping[str, Any], **coerce: Any) -> T:
    known = {f.name for f in fields(cls)}
    values = {key: value for key, value in record.items() if key in known}
    for name, enum_type in coerce.items():
        if name in values and values[name] is not None:
            values[name] = enum_type(values[name])
    return cls(**values)


@dataclass(frozen=True)
class Actor:
    """The resolved identity a request acts as."""

    account_id: Optional[UUID]
    role: Role
    email: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.account_id is None

    @property
    def is_admin(self) -> bool:
        return self.account_id is not None and self.role is Role.ADMIN

    @property
    def can_participate(self) -> bool:
        """Members and admins may submit listings and request NDAs."""
        return self.account_id is not None and self.role in (Role.MEMBER, Role.ADMIN)

    def owns(self, listing: "BusinessListing") -> bool:
        return self.account_id is not None and self.account_id == listing.owner_id


ANONYMOUS = Actor(account_id=None, role=Role.GUEST)


@dataclass(frozen=True)
class Account:
    id: UUID
    email: Optional[str]
    role: Role = Role.MEMBER
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Account":
        return _from_record(cls, record, role=Role)


@dataclass(frozen=True)
class BusinessListing:
    id: UUID
    owner_id: UUID
    name: str
    status: ApprovalState
    slug: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    asking_price: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BusinessListing":
        return _from_record(cls, record, status=ApprovalState)


@dataclass(frozen=True)
class BusinessFile:
    id: UUID
    business_id: UUID
    file_path: str
    visibility: Visibility
    file_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BusinessFile":
        return _from_record(cls, record, visibility=Visibility)


@dataclass(frozen=True)
class NdaRecord:
    id: UUID
    user_id: UUID
    business_id: UUID
    status: ApprovalState
    terms: Dict[str, Any] = field(default_factory=dict)
    signed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "NdaRecord":
        return _from_record(cls, record, status=ApprovalState)

    def is_active_at(self, now: datetime) -> bool:
        """Approved and not yet expired at ``now``."""
        if self.status is not ApprovalState.APPROVED:
            return False
        return self.expires_at is None or self.expires_at > now


@dataclass(frozen=True)
class DeletionRequest:
    id: UUID
    requester_id: UUID
    business_id: UUID
    status: ApprovalState
    reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DeletionRequest":
        return _from_record(cls, record, status=ApprovalState)


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded decision on a reviewable request."""

    id: UUID
    workflow: str
    request_id: UUID
    from_state: ApprovalState
    to_state: ApprovalState
    actor_id: Optional[UUID] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "HistoryEntry":
        return _from_record(cls, record, from_state=ApprovalState, to_state=ApprovalState)
