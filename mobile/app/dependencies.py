"""Dependency factories for the client core.

Collaborators are created lazily so importing the package never touches the
network or Redis. Factories cache created instances; the dashboards get
everything they need through `get_app_context()`.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from mobile.app import config
from mobile.app.api.client import BackendApiClient
from mobile.app.auth.accounts import AccountService
from mobile.app.auth.guard import SessionGuard
from mobile.app.auth.login import LoginService
from mobile.app.errors import CredentialStoreError
from mobile.app.navigation import Navigator
from mobile.app.storage import (
    BaseCredentialAdapter,
    CredentialStore,
    InMemoryCredentialAdapter,
    RedisCredentialAdapter,
)


logger = logging.getLogger("dependencies")


@dataclass(frozen=True)
class AppContext:
    store: CredentialStore
    api: BackendApiClient
    navigator: Navigator
    guard: SessionGuard
    login: LoginService
    accounts: AccountService


_store: Optional[CredentialStore] = None
_api: Optional[BackendApiClient] = None
_context: Optional[AppContext] = None


def _build_credential_adapter() -> BaseCredentialAdapter:
    redis_url = config.CREDENTIAL_REDIS_URL or os.getenv("REDIS_URL")
    if redis_url:
        try:
            logger.info("Initializing Redis credential adapter")
            return RedisCredentialAdapter(url=redis_url, namespace=config.CREDENTIAL_NAMESPACE)
        except CredentialStoreError as exc:
            logger.warning("Redis credential adapter initialization failed: %s", exc)

    logger.info("Falling back to in-memory credential adapter")
    return InMemoryCredentialAdapter()


def get_credential_store() -> CredentialStore:
    global _store
    if _store is None:
        _store = CredentialStore(_build_credential_adapter())
    return _store


def get_api_client() -> BackendApiClient:
    global _api
    if _api is None:
        _api = BackendApiClient()
    return _api


def build_app_context(
    *,
    store: Optional[CredentialStore] = None,
    api: Optional[BackendApiClient] = None,
    navigator: Optional[Navigator] = None,
) -> AppContext:
    """Wire one set of collaborators. Explicit arguments win over the cached factories."""
    store = store or get_credential_store()
    api = api or get_api_client()
    navigator = navigator or Navigator()
    return AppContext(
        store=store,
        api=api,
        navigator=navigator,
        guard=SessionGuard(store, navigator),
        login=LoginService(api, store, navigator),
        accounts=AccountService(api, navigator),
    )


def get_app_context() -> AppContext:
    global _context
    if _context is None:
        _context = build_app_context()
    return _context
