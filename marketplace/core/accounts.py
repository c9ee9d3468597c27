"""Account role management and admin dashboard counts."""

from typing import Any, Dict, List, Optional, Tuple

from marketplace.common.logger import get_logger
from marketplace.core.approval.states import ApprovalState
from marketplace.core.entities import Account, Actor, Role
from marketplace.core.errors import (
    ConflictError,
    ForbiddenError,
    IdentityProviderError,
    NotFoundError,
)
from marketplace.core.identity import IdentityProviderAdmin
from marketplace.core.store import (
    ACCOUNTS,
    BUSINESSES,
    DELETION_REQUESTS,
    NDAS,
    DataStore,
    Record,
)

logger = get_logger("accounts")


class AccountService:

    def __init__(self, store: DataStore, identity_admin: Optional[IdentityProviderAdmin] = None):
        self.store = store
        self.identity_admin = identity_admin

    def ensure_account(self, actor: Actor) -> Optional[Account]:
        """
        Mirror a signed-in identity into the accounts table on first sight.

        The stored role is only seeded from the session; the session claim
        stays authoritative for authorization. An identity without an email,
        or whose email is already registered under another account, is
        mirrored without one.
        """
        if actor.account_id is None:
            return None
        existing = self.store.first(ACCOUNTS, {"id": actor.account_id})
        if existing is not None:
            return Account.from_record(existing)

        email = actor.email.strip().lower() if actor.email else None
        if email and self.store.first(ACCOUNTS, {"email": email}) is not None:
            logger.warning(
                "Email %s already belongs to another account; registering %s without it",
                email, actor.account_id,
            )
            email = None

        try:
            row = self._register(actor, email)
        except ConflictError:
            # Registered concurrently, or the email was taken in between.
            row = self.store.first(ACCOUNTS, {"id": actor.account_id})
            if row is None:
                row = self._register(actor, None)
        return Account.from_record(row)

    def _register(self, actor: Actor, email: Optional[str]) -> Record:
        values: Dict[str, Any] = {"id": actor.account_id, "email": email, "role": actor.role.value}
        try:
            row = self.store.insert(ACCOUNTS, values)
        except ConflictError:
            if email is not None:
                raise
            # Only the id can clash now: another request won the race.
            return self.store.get(ACCOUNTS, actor.account_id)
        logger.info("Registered account %s", actor.account_id)
        return row

    def get_by_email(self, email: str) -> Account:
        row = self.store.first(ACCOUNTS, {"email": email.strip().lower()})
        if row is None:
            raise NotFoundError("account", email)
        return Account.from_record(row)

    def promote(self, actor: Actor, email: str) -> Account:
        """
        Grant the admin role to the account registered under ``email``.

        The role is written to the identity provider first, so sessions it
        issues from then on carry the admin claim; the local account row is
        stamped afterwards. Promoting an existing admin re-applies the claim
        and changes nothing else.

        Raises:
            ForbiddenError: If ``actor`` is not an admin
            NotFoundError: If no account has that email
            IdentityProviderError: If the provider did not apply the role;
                the local row is left untouched
        """
        if not actor.is_admin:
            raise ForbiddenError("Admin role required")
        if self.identity_admin is None:
            raise IdentityProviderError("No identity provider is configured for role changes")

        account = self.get_by_email(email)
        self.identity_admin.set_role(account.id, Role.ADMIN)
        if account.role is Role.ADMIN:
            return account

        updated = self.store.update(ACCOUNTS, account.id, {"role": Role.ADMIN.value})
        logger.info("Account %s promoted to admin by %s", account.id, actor.account_id)
        return Account.from_record(updated)

    def list_accounts(self, actor: Actor, *, page: int = 1, per_page: int = 10) -> Tuple[List[Account], int]:
        """Registered accounts, newest first. Returns (items, total)."""
        if not actor.is_admin:
            raise ForbiddenError("Admin role required")
        page = max(page, 1)
        rows = self.store.query(
            ACCOUNTS, offset=(page - 1) * per_page, limit=per_page, order_by="-created_at"
        )
        return [Account.from_record(row) for row in rows], self.store.count(ACCOUNTS)


class AdminStatsService:

    def __init__(self, store: DataStore):
        self.store = store

    def stats(self, actor: Actor) -> Dict[str, int]:
        if not actor.is_admin:
            raise ForbiddenError("Admin role required")
        pending = {"status": ApprovalState.PENDING.value}
        return {
            "total_users": self.store.count(ACCOUNTS),
            "total_businesses": self.store.count(BUSINESSES),
            "pending_approvals": self.store.count(BUSINESSES, pending),
            "pending_deletions": self.store.count(DELETION_REQUESTS, pending),
            "pending_ndas": self.store.count(NDAS, pending),
        }
