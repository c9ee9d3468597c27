"""Tests for the pure file visibility evaluator."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from marketplace.core.access.visibility import (
    can_view,
    can_view_listing,
    filter_visible,
    normalize_storage_path,
)
from marketplace.core.approval.states import ApprovalState
from marketplace.core.entities import (
    ANONYMOUS,
    Actor,
    BusinessFile,
    BusinessListing,
    NdaRecord,
    Role,
    Visibility,
)

NOW = datetime(2024, 3, 1, 12, 0, 0)

OWNER = Actor(account_id=uuid4(), role=Role.MEMBER)
BUYER = Actor(account_id=uuid4(), role=Role.MEMBER)
GUEST = Actor(account_id=uuid4(), role=Role.GUEST)
ADMIN = Actor(account_id=uuid4(), role=Role.ADMIN)

LISTING = BusinessListing(id=uuid4(), owner_id=OWNER.account_id, name="Corner Bakery", status=ApprovalState.APPROVED)
OTHER_LISTING = BusinessListing(id=uuid4(), owner_id=OWNER.account_id, name="Bike Shop", status=ApprovalState.APPROVED)


def make_file(visibility, listing=LISTING):
    return BusinessFile(id=uuid4(), business_id=listing.id, file_path="a/b.pdf", visibility=visibility)


def make_nda(actor=BUYER, listing=LISTING, status=ApprovalState.APPROVED, expires_at=NOW + timedelta(days=30)):
    return NdaRecord(
        id=uuid4(),
        user_id=actor.account_id,
        business_id=listing.id,
        status=status,
        expires_at=expires_at,
    )


NDA_VARIANTS = [
    None,
    make_nda(),
    make_nda(status=ApprovalState.PENDING),
    make_nda(status=ApprovalState.REJECTED),
    make_nda(expires_at=NOW - timedelta(seconds=1)),
]


class TestPrecedence:
    """Rules are evaluated in order; the first match wins."""

    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_admin_sees_everything(self, visibility):
        decision = can_view(ADMIN, make_file(visibility), LISTING, now=NOW)
        assert decision.allowed
        assert decision.reason == "admin"

    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_owner_sees_everything(self, visibility):
        decision = can_view(OWNER, make_file(visibility), LISTING, now=NOW)
        assert decision.allowed
        assert decision.reason == "owner"

    def test_admin_who_owns_is_reported_as_admin(self):
        admin_owner = Actor(account_id=OWNER.account_id, role=Role.ADMIN)
        assert can_view(admin_owner, make_file(Visibility.PRIVATE), LISTING).reason == "admin"


class TestPublicFiles:

    @pytest.mark.parametrize("actor", [ANONYMOUS, GUEST, BUYER, OWNER, ADMIN])
    @pytest.mark.parametrize("nda", NDA_VARIANTS)
    def test_public_is_visible_regardless_of_nda(self, actor, nda):
        assert can_view(actor, make_file(Visibility.PUBLIC), LISTING, nda=nda, now=NOW)


class TestNdaFiles:

    def test_approved_unexpired_nda_allows(self):
        decision = can_view(BUYER, make_file(Visibility.NDA), LISTING, nda=make_nda(), now=NOW)
        assert decision.allowed
        assert decision.reason == "nda_approved"

    def test_missing_nda_denies(self):
        decision = can_view(BUYER, make_file(Visibility.NDA), LISTING, now=NOW)
        assert not decision.allowed
        assert decision.reason == "nda_required"

    @pytest.mark.parametrize("status", [ApprovalState.PENDING, ApprovalState.REJECTED])
    def test_unapproved_nda_denies(self, status):
        assert not can_view(BUYER, make_file(Visibility.NDA), LISTING, nda=make_nda(status=status), now=NOW)

    def test_expired_nda_denies(self):
        nda = make_nda(expires_at=NOW)
        assert not can_view(BUYER, make_file(Visibility.NDA), LISTING, nda=nda, now=NOW)

    def test_nda_without_expiry_allows(self):
        nda = make_nda(expires_at=None)
        assert can_view(BUYER, make_file(Visibility.NDA), LISTING, nda=nda, now=NOW)

    def test_nda_for_another_listing_does_not_transfer(self):
        """An NDA covers exactly one (account, listing) pair."""
        nda = make_nda(listing=OTHER_LISTING)
        assert not can_view(BUYER, make_file(Visibility.NDA), LISTING, nda=nda, now=NOW)

    def test_nda_of_another_account_does_not_transfer(self):
        nda = make_nda(actor=BUYER)
        other = Actor(account_id=uuid4(), role=Role.MEMBER)
        assert not can_view(other, make_file(Visibility.NDA), LISTING, nda=nda, now=NOW)

    def test_anonymous_is_denied(self):
        assert not can_view(ANONYMOUS, make_file(Visibility.NDA), LISTING, nda=make_nda(), now=NOW)


class TestPrivateFiles:

    @pytest.mark.parametrize("actor", [ANONYMOUS, GUEST, BUYER])
    def test_private_denied_even_with_nda(self, actor):
        decision = can_view(actor, make_file(Visibility.PRIVATE), LISTING, nda=make_nda(), now=NOW)
        assert not decision.allowed
        assert decision.reason == "private"


def test_file_from_another_listing_is_rejected():
    with pytest.raises(ValueError):
        can_view(BUYER, make_file(Visibility.PUBLIC, listing=OTHER_LISTING), LISTING)


def test_filter_visible_keeps_only_allowed_files():
    files = [make_file(v) for v in (Visibility.PUBLIC, Visibility.NDA, Visibility.PRIVATE)]

    assert [f.visibility for f in filter_visible(BUYER, LISTING, files, now=NOW)] == [Visibility.PUBLIC]
    assert [f.visibility for f in filter_visible(BUYER, LISTING, files, nda=make_nda(), now=NOW)] == [
        Visibility.PUBLIC,
        Visibility.NDA,
    ]
    assert len(filter_visible(OWNER, LISTING, files, now=NOW)) == 3


class TestListingVisibility:

    def test_approved_listing_is_public(self):
        assert can_view_listing(ANONYMOUS, LISTING).reason == "approved"

    @pytest.mark.parametrize("status", [ApprovalState.PENDING, ApprovalState.REJECTED])
    def test_unapproved_listing_hidden_from_others(self, status):
        listing = BusinessListing(id=uuid4(), owner_id=OWNER.account_id, name="x", status=status)
        assert not can_view_listing(BUYER, listing)
        assert can_view_listing(OWNER, listing)
        assert can_view_listing(ADMIN, listing)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("abc/report.pdf", "abc/report.pdf"),
        ("businesses/abc/report.pdf", "abc/report.pdf"),
        ("/businesses/abc/report.pdf", "abc/report.pdf"),
    ],
)
def test_normalize_storage_path(path, expected):
    assert normalize_storage_path(path) == expected
