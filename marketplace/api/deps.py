from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.core.accounts import AccountService, AdminStatsService
from marketplace.core.access import VisibilityPolicy
from marketplace.core.approval.service import DeletionService, ListingService
from marketplace.core.config import Settings, get_settings
from marketplace.core.entities import Actor
from marketplace.core.files import FileService
from marketplace.core.identity import IdentityProviderAdmin, IdentityResolver
from marketplace.core.nda import NdaTracker
from marketplace.core.store import DataStore
from marketplace.db.session import create_session_factory, engine_from_settings, init_db
from marketplace.db.store import SqlAlchemyStore
from marketplace.services.identity_provider import HttpIdentityProviderAdmin

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_store() -> DataStore:
    """Process-wide data store built from settings."""
    engine = engine_from_settings(get_settings())
    init_db(engine)
    return SqlAlchemyStore(create_session_factory(engine))


def get_identity_resolver(settings: Settings = Depends(get_settings)) -> IdentityResolver:
    return IdentityResolver(settings)


def get_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    store: DataStore = Depends(get_store),
) -> Actor:
    """Resolve the session from the bearer header, falling back to the session cookie."""
    token = credentials.credentials if credentials else None
    if token is None:
        token = request.cookies.get(resolver.settings.identity_cookie_name)

    actor = resolver.resolve({"access_token": token} if token else None)
    request.state.actor = actor
    if not actor.is_anonymous:
        AccountService(store).ensure_account(actor)
    return actor


def require_signed_in(actor: Actor = Depends(get_actor)) -> Actor:
    """Reject anonymous callers before reaching the core."""
    if actor.is_anonymous:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


def get_listing_service(store: DataStore = Depends(get_store)) -> ListingService:
    return ListingService(store)


def get_deletion_service(store: DataStore = Depends(get_store)) -> DeletionService:
    return DeletionService(store)


def get_nda_tracker(
    store: DataStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> NdaTracker:
    return NdaTracker(store, settings)


def get_visibility_policy(
    store: DataStore = Depends(get_store),
    ndas: NdaTracker = Depends(get_nda_tracker),
) -> VisibilityPolicy:
    return VisibilityPolicy(store, ndas)


def get_file_service(
    store: DataStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> FileService:
    return FileService(store, settings)


def get_identity_admin(settings: Settings = Depends(get_settings)) -> IdentityProviderAdmin:
    return HttpIdentityProviderAdmin.from_settings(settings)


def get_account_service(
    store: DataStore = Depends(get_store),
    identity_admin: IdentityProviderAdmin = Depends(get_identity_admin),
) -> AccountService:
    return AccountService(store, identity_admin)


def get_stats_service(store: DataStore = Depends(get_store)) -> AdminStatsService:
    return AdminStatsService(store)
