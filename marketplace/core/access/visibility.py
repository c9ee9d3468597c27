"""File visibility policy.

Decides whether an actor may view a business file. The decision itself
(``can_view``) is a pure function of the actor, the file, its listing, the
actor's NDA record for that listing and the current time. ``VisibilityPolicy``
is the thin layer that loads those inputs from the data store.

Rules, first match wins:
    1. admin            -> allow
    2. listing owner    -> allow
    3. public file      -> allow
    4. nda file         -> allow iff an approved, unexpired NDA exists for
                           exactly this (actor, listing) pair
    5. private file     -> deny
    6. anything else    -> deny
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from marketplace.common.logger import get_logger
from marketplace.core.approval.states import ApprovalState
from marketplace.core.entities import (
    Actor,
    BusinessFile,
    BusinessListing,
    NdaRecord,
    Visibility,
    utcnow,
)
from marketplace.core.errors import ForbiddenError, NotFoundError
from marketplace.core.nda import NdaTracker
from marketplace.core.store import BUSINESS_FILES, BUSINESSES, DataStore

logger = get_logger("visibility")

STORAGE_PREFIX = "businesses/"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a visibility check."""
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def _allow(reason: str) -> AccessDecision:
    return AccessDecision(True, reason)


def _deny(reason: str) -> AccessDecision:
    return AccessDecision(False, reason)


def nda_covers(nda: Optional[NdaRecord], actor: Actor, listing: BusinessListing, now: datetime) -> bool:
    """True iff ``nda`` is an active agreement for exactly (actor, listing)."""
    if nda is None or actor.account_id is None:
        return False
    if nda.user_id != actor.account_id or nda.business_id != listing.id:
        return False
    return nda.is_active_at(now)


def can_view(
    actor: Actor,
    file: BusinessFile,
    listing: BusinessListing,
    *,
    nda: Optional[NdaRecord] = None,
    now: Optional[datetime] = None,
) -> AccessDecision:
    """Decide whether ``actor`` may view ``file``, which belongs to ``listing``."""
    if file.business_id != listing.id:
        raise ValueError(f"File {file.id} does not belong to listing {listing.id}")

    if actor.is_admin:
        return _allow("admin")
    if actor.owns(listing):
        return _allow("owner")

    if file.visibility is Visibility.PUBLIC:
        return _allow("public")
    if file.visibility is Visibility.NDA:
        if nda_covers(nda, actor, listing, now or utcnow()):
            return _allow("nda_approved")
        return _deny("nda_required")
    if file.visibility is Visibility.PRIVATE:
        return _deny("private")

    return _deny("unknown_visibility")


def can_view_listing(actor: Actor, listing: BusinessListing) -> AccessDecision:
    """A listing's details are public once approved; before that only its owner and admins see it."""
    if actor.is_admin:
        return _allow("admin")
    if actor.owns(listing):
        return _allow("owner")
    if listing.status is ApprovalState.APPROVED:
        return _allow("approved")
    return _deny("not_approved")


def filter_visible(
    actor: Actor,
    listing: BusinessListing,
    files: Iterable[BusinessFile],
    *,
    nda: Optional[NdaRecord] = None,
    now: Optional[datetime] = None,
) -> List[BusinessFile]:
    now = now or utcnow()
    return [f for f in files if can_view(actor, f, listing, nda=nda, now=now)]


def normalize_storage_path(path: str) -> str:
    """Strip the leading slash and the optional ``businesses/`` bucket prefix."""
    path = path.lstrip("/")
    if path.startswith(STORAGE_PREFIX):
        path = path[len(STORAGE_PREFIX):]
    return path


class VisibilityPolicy:
    """Loads the inputs of ``can_view`` from the data store and evaluates it."""

    def __init__(self, store: DataStore, ndas: NdaTracker):
        self.store = store
        self.ndas = ndas

    def _listing(self, listing_id: UUID) -> BusinessListing:
        return BusinessListing.from_record(self.store.get(BUSINESSES, listing_id))

    def _nda_for(self, actor: Actor, listing: BusinessListing, now: datetime) -> Optional[NdaRecord]:
        # Admins and owners never reach the NDA rule.
        if actor.is_admin or actor.owns(listing):
            return None
        return self.ndas.active_record(actor, listing.id, now)

    def evaluate(self, actor: Actor, file: BusinessFile, now: Optional[datetime] = None) -> AccessDecision:
        now = now or self.ndas.clock()
        listing = self._listing(file.business_id)
        nda = None
        if file.visibility is Visibility.NDA:
            nda = self._nda_for(actor, listing, now)
        decision = can_view(actor, file, listing, nda=nda, now=now)
        if not decision.allowed:
            logger.info(
                "Denied file %s (%s) to account %s: %s",
                file.id, file.visibility.value, actor.account_id, decision.reason,
            )
        return decision

    def check(self, actor: Actor, file_id: UUID, now: Optional[datetime] = None) -> AccessDecision:
        file = BusinessFile.from_record(self.store.get(BUSINESS_FILES, file_id))
        return self.evaluate(actor, file, now)

    def resolve_path(
        self, actor: Actor, path: str, now: Optional[datetime] = None
    ) -> Tuple[BusinessFile, AccessDecision]:
        """
        Find and evaluate the file stored at ``path``.

        Paths are matched with and without the ``businesses/`` prefix. A file
        recorded under exactly ``path`` wins over one recorded under the other
        spelling; otherwise the oldest match is used. A path with no matching
        file record is not served.

        Raises:
            NotFoundError: If no business file is recorded at ``path``
        """
        normalized = normalize_storage_path(path)
        candidates = {normalized, STORAGE_PREFIX + normalized, path}
        rows = self.store.query(BUSINESS_FILES, {"file_path": sorted(candidates)}, order_by="created_at")
        if not rows:
            raise NotFoundError("business file", path)
        row = next((r for r in rows if r["file_path"] == path), rows[0])
        file = BusinessFile.from_record(row)
        return file, self.evaluate(actor, file, now)

    def check_path(self, actor: Actor, path: str, now: Optional[datetime] = None) -> AccessDecision:
        return self.resolve_path(actor, path, now)[1]

    def view_listing(self, actor: Actor, listing_id: UUID) -> BusinessListing:
        listing = self._listing(listing_id)
        if not can_view_listing(actor, listing):
            raise ForbiddenError("This listing is not available")
        return listing

    def visible_files(self, actor: Actor, listing_id: UUID, now: Optional[datetime] = None) -> List[BusinessFile]:
        """Files of a listing the actor may view.

        Raises:
            ForbiddenError: If the listing itself is not visible to the actor
        """
        now = now or self.ndas.clock()
        listing = self.view_listing(actor, listing_id)
        files = [
            BusinessFile.from_record(row)
            for row in self.store.query(BUSINESS_FILES, {"business_id": listing.id}, order_by="created_at")
        ]
        nda = None
        if any(f.visibility is Visibility.NDA for f in files):
            nda = self._nda_for(actor, listing, now)
        return filter_visible(actor, listing, files, nda=nda, now=now)
