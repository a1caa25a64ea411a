# src/app/deps.py (singletons for the store and identity provider, exposed as dependencies)

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.app.config import settings
from src.app.domain.errors import UnauthorizedError
from src.app.domain.models import VerifiedIdentity
from src.app.infra.identity.base import IdentityProvider
from src.app.infra.identity.supabase_identity import SupabaseIdentityProvider
from src.app.infra.kv.base import KeyValueStore
from src.app.infra.kv.memory import InMemoryKVStore
from src.app.infra.kv.supabase_kv import SupabaseKVStore
from src.app.services.account_service import AccountDirectory
from src.app.services.catalog_service import RecipeCatalog
from src.app.services.order_service import OrderLedger

_store: KeyValueStore | None = None
_identity: IdentityProvider | None = None


def get_store() -> KeyValueStore:
    global _store
    if _store is None:
        if settings.KV_BACKEND == "memory":
            _store = InMemoryKVStore()
        else:
            _store = SupabaseKVStore()
    return _store


def get_identity_provider() -> IdentityProvider:
    global _identity
    if _identity is None:
        _identity = SupabaseIdentityProvider()
    return _identity


auth_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> VerifiedIdentity:
    """
    Takes Authorization: Bearer <access_token>, validates it with the
    identity provider and returns the caller's id and role.
    """
    if cred is None or cred.scheme.lower() != "bearer" or not cred.credentials:
        raise UnauthorizedError("Authorization required")
    return identity.verify(cred.credentials)


def get_account_directory(
    store: KeyValueStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AccountDirectory:
    return AccountDirectory(store, identity)


def get_catalog(store: KeyValueStore = Depends(get_store)) -> RecipeCatalog:
    return RecipeCatalog(store)


def get_ledger(
    store: KeyValueStore = Depends(get_store),
    catalog: RecipeCatalog = Depends(get_catalog),
) -> OrderLedger:
    return OrderLedger(store, catalog)


def get_account_lookup(store: KeyValueStore = Depends(get_store)) -> AccountDirectory:
    """Directory for read paths that never create credentials."""
    return AccountDirectory(store)
