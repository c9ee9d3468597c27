"""Factory functions for creating test records.

Each factory writes through the ``DataStore`` and returns the typed entity,
so generated fields (id, created_at, ...) are populated. All fields have
sensible defaults but can be overridden via keyword arguments.

Usage::

    from tests.factories import create_account, create_listing

    def test_something(store):
        owner = create_account(store)
        listing = create_listing(store, owner=owner, status=ApprovalState.APPROVED)
        assert listing.owner_id == owner.id
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from jose import jwt

from marketplace.core.approval.states import ApprovalState
from marketplace.core.entities import (
    Account,
    Actor,
    BusinessFile,
    BusinessListing,
    NdaRecord,
    Role,
    Visibility,
)
from marketplace.core.errors import IdentityProviderError
from marketplace.core.identity import IdentityProviderAdmin
from marketplace.core.store import ACCOUNTS, BUSINESS_FILES, BUSINESSES, NDAS, DataStore


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


def _without_none(values: Dict[str, Any]) -> Dict[str, Any]:
    # Omitted columns fall back to their model defaults.
    return {key: value for key, value in values.items() if value is not None}


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def create_account(
    store: DataStore,
    *,
    email: Optional[str] = None,
    role: Role = Role.MEMBER,
    name: Optional[str] = None,
) -> Account:
    n = _next_id()
    record = store.insert(
        ACCOUNTS,
        {
            "email": email or f"user{n}@example.com",
            "name": name or f"Test User {n}",
            "role": role.value,
        },
    )
    return Account.from_record(record)


def actor_for(account: Account) -> Actor:
    return Actor(account_id=account.id, role=account.role, email=account.email)


def make_token(
    account_id: Any,
    *,
    secret: str,
    role: Optional[str] = None,
    email: Optional[str] = None,
    audience: Optional[str] = None,
    expires_in: int = 3600,
) -> str:
    """Session token shaped like the identity provider's."""
    claims: Dict[str, Any] = {
        "sub": str(account_id),
        "exp": int(time.time()) + expires_in,
    }
    if email is not None:
        claims["email"] = email
    if role is not None:
        claims["user_metadata"] = {"role": role}
    if audience is not None:
        claims["aud"] = audience
    return jwt.encode(claims, secret, algorithm="HS256")


class FakeIdentityProvider(IdentityProviderAdmin):
    """In-memory identity provider: keeps role claims and issues sessions carrying them."""

    def __init__(self, secret: str):
        self.secret = secret
        self.roles: Dict[UUID, Role] = {}

    def set_role(self, account_id: UUID, role: Role) -> None:
        self.roles[account_id] = role

    def issue_token(self, account: Account) -> str:
        role = self.roles.get(account.id, account.role)
        return make_token(account.id, secret=self.secret, role=role.value, email=account.email)


class UnavailableIdentityProvider(IdentityProviderAdmin):
    """Identity provider whose admin API always fails."""

    def set_role(self, account_id: UUID, role: Role) -> None:
        raise IdentityProviderError("Identity provider unreachable")


# ---------------------------------------------------------------------------
# Listings and files
# ---------------------------------------------------------------------------


def create_listing(
    store: DataStore,
    *,
    owner: Account,
    name: Optional[str] = None,
    status: ApprovalState = ApprovalState.PENDING,
    category: Optional[str] = None,
    asking_price: Optional[float] = None,
    created_at: Optional[datetime] = None,
) -> BusinessListing:
    n = _next_id()
    record = store.insert(
        BUSINESSES,
        _without_none({
            "owner_id": owner.id,
            "name": name or f"Test Business {n}",
            "slug": f"test-business-{n}",
            "status": status.value,
            "category": category or "retail",
            "asking_price": asking_price,
            "created_at": created_at,
        }),
    )
    return BusinessListing.from_record(record)


def create_file(
    store: DataStore,
    *,
    listing: BusinessListing,
    visibility: Visibility = Visibility.PUBLIC,
    file_path: Optional[str] = None,
) -> BusinessFile:
    n = _next_id()
    record = store.insert(
        BUSINESS_FILES,
        {
            "business_id": listing.id,
            "file_path": file_path or f"{listing.id}/document-{n}.pdf",
            "file_name": f"document-{n}.pdf",
            "visibility": visibility.value,
        },
    )
    return BusinessFile.from_record(record)


# ---------------------------------------------------------------------------
# NDAs
# ---------------------------------------------------------------------------


def create_nda(
    store: DataStore,
    *,
    account: Account,
    listing: BusinessListing,
    status: ApprovalState = ApprovalState.PENDING,
    expires_at: Optional[datetime] = None,
    resolved_at: Optional[datetime] = None,
) -> NdaRecord:
    record = store.insert(
        NDAS,
        _without_none({
            "user_id": account.id,
            "business_id": listing.id,
            "status": status.value,
            "terms": {"user_email": account.email},
            "expires_at": expires_at,
            "resolved_at": resolved_at,
        }),
    )
    return NdaRecord.from_record(record)
