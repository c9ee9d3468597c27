"""Tests for the SQLAlchemy data store."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from marketplace.core.errors import (
    ConflictError,
    NotFoundError,
    StaleRecordError,
    StorageFailureError,
)
from marketplace.core.store import (
    ACCOUNTS,
    BUSINESS_FILES,
    BUSINESSES,
    Delete,
    DeleteWhere,
    Insert,
    Update,
)

from tests.factories import create_account, create_file, create_listing

pytestmark = pytest.mark.integration


class TestReads:

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get(BUSINESSES, uuid4())

    def test_unknown_table(self, store):
        with pytest.raises(ValueError):
            store.query("invoices")

    def test_query_filters_and_orders(self, store, owner_account):
        base = datetime(2024, 1, 1)
        older = create_listing(store, owner=owner_account, created_at=base)
        newer = create_listing(store, owner=owner_account, created_at=base + timedelta(days=1))

        rows = store.query(BUSINESSES, {"owner_id": owner_account.id}, order_by="-created_at")
        assert [r["id"] for r in rows] == [newer.id, older.id]

        rows = store.query(BUSINESSES, {"owner_id": owner_account.id}, order_by="created_at", limit=1)
        assert [r["id"] for r in rows] == [older.id]

    def test_list_filter_matches_any(self, store, owner_account):
        a = create_listing(store, owner=owner_account)
        b = create_listing(store, owner=owner_account)
        create_listing(store, owner=owner_account)

        assert store.count(BUSINESSES, {"id": [a.id, b.id]}) == 2

    def test_first(self, store, owner_account):
        assert store.first(ACCOUNTS, {"email": "nobody@example.com"}) is None
        assert store.first(ACCOUNTS, {"email": owner_account.email})["id"] == owner_account.id


class TestWrites:

    def test_insert_fills_generated_columns(self, store):
        record = store.insert(ACCOUNTS, {"email": "new@example.com"})
        assert record["id"] is not None
        assert record["role"] == "member"
        assert record["created_at"] is not None

    def test_unique_violation_is_conflict(self, store):
        store.insert(ACCOUNTS, {"email": "dup@example.com"})
        with pytest.raises(ConflictError):
            store.insert(ACCOUNTS, {"email": "dup@example.com"})

    def test_update(self, store, owner_account):
        record = store.update(ACCOUNTS, owner_account.id, {"name": "Renamed"})
        assert record["name"] == "Renamed"

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update(ACCOUNTS, uuid4(), {"name": "x"})


class TestTransaction:

    def test_results_per_operation(self, store, owner_account):
        listing = create_listing(store, owner=owner_account)
        create_file(store, listing=listing)
        create_file(store, listing=listing)

        results = store.transaction([
            Update(BUSINESSES, listing.id, {"name": "Renamed"}),
            DeleteWhere(BUSINESS_FILES, {"business_id": listing.id}),
            Delete(BUSINESSES, listing.id),
        ])

        assert results[0]["name"] == "Renamed"
        assert results[1] == 2
        assert results[2] is None
        assert store.count(BUSINESSES, {"id": listing.id}) == 0

    def test_failed_operation_rolls_back_earlier_ones(self, store, owner_account):
        listing = create_listing(store, owner=owner_account)

        with pytest.raises(NotFoundError):
            store.transaction([
                Update(BUSINESSES, listing.id, {"name": "Renamed"}),
                Insert(ACCOUNTS, {"email": "in-transaction@example.com"}),
                Delete(BUSINESSES, uuid4()),
            ])

        assert store.get(BUSINESSES, listing.id)["name"] == listing.name
        assert store.first(ACCOUNTS, {"email": "in-transaction@example.com"}) is None

    def test_expect_precondition(self, store, owner_account):
        listing = create_listing(store, owner=owner_account)

        store.transaction([Update(BUSINESSES, listing.id, {"status": "approved"}, expect={"status": "pending"})])

        with pytest.raises(StaleRecordError) as exc_info:
            store.transaction([Update(BUSINESSES, listing.id, {"status": "rejected"}, expect={"status": "pending"})])
        assert exc_info.value.from_state == "approved"
        assert store.get(BUSINESSES, listing.id)["status"] == "approved"

    def test_delete_where_requires_filter(self, store):
        with pytest.raises(ValueError):
            store.transaction([DeleteWhere(BUSINESS_FILES, {})])

    def test_missing_reference_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.insert(BUSINESSES, {"owner_id": uuid4(), "name": "Orphan", "status": "pending"})
        assert store.count(BUSINESSES) == 0

    def test_other_constraint_violation_is_storage_failure(self, store, owner_account):
        with pytest.raises(StorageFailureError):
            store.insert(BUSINESSES, {"owner_id": owner_account.id, "name": None, "status": "pending"})

    def test_accounts_without_email(self, store):
        first = store.insert(ACCOUNTS, {"email": None})
        second = store.insert(ACCOUNTS, {"email": None})
        assert first["id"] != second["id"]

    def test_records_are_detached_copies(self, store):
        account = create_account(store)
        record = store.get(ACCOUNTS, account.id)
        record["email"] = "changed@example.com"
        assert store.get(ACCOUNTS, account.id)["email"] == account.email
