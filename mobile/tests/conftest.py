from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx  # type: ignore[import-not-found]
import jwt  # type: ignore[import]
import pytest  # type: ignore[import]

from mobile.app.api.client import BackendApiClient
from mobile.app.auth.guard import SessionGuard
from mobile.app.navigation import Navigator
from mobile.app.storage import CredentialStore, InMemoryCredentialAdapter

BASE_URL = "http://backend.test"
SIGNING_SECRET = "test-signing-secret-with-enough-bytes-0001"
NOW = 1_700_000_000

_SUBJECT_CLAIMS = {
    "STUDENT": "studentNumber",
    "EMPLOYEE": "employeeNumber",
    "GUEST": "guestId",
}


def _encode(claims: Dict[str, Any], secret: str = SIGNING_SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a signed token carrying an ``authorities`` claim for one role."""

    def _make(
        role: str = "STUDENT",
        *,
        subject_id: Optional[str] = "2021-0001",
        exp: Optional[int] = NOW + 3600,
        secret: str = SIGNING_SECRET,
        **extra: Any,
    ) -> str:
        claims: Dict[str, Any] = {
            "sub": "user1",
            "authorities": [{"authority": f"ROLE_{role}"}],
        }
        if exp is not None:
            claims["exp"] = exp
        subject_claim = _SUBJECT_CLAIMS.get(role)
        if subject_claim and subject_id is not None:
            claims[subject_claim] = subject_id
        claims.update(extra)
        return _encode(claims, secret)

    return _make


@pytest.fixture
def adapter() -> InMemoryCredentialAdapter:
    return InMemoryCredentialAdapter()


@pytest.fixture
def store(adapter: InMemoryCredentialAdapter) -> CredentialStore:
    return CredentialStore(adapter)


@pytest.fixture
def navigator() -> Navigator:
    return Navigator()


@pytest.fixture
def guard(store: CredentialStore, navigator: Navigator) -> SessionGuard:
    return SessionGuard(store, navigator, clock=lambda: NOW)


Route = Any


@pytest.fixture
def backend() -> Callable[..., Tuple[BackendApiClient, List[Tuple[str, str]]]]:
    """API client whose transport answers from a ``{(method, path): response}`` table.

    Entries may be an ``httpx.Response`` or a (sync or async) callable taking the
    request. Unrouted requests answer 404. The returned list records every call.
    """

    def _build(routes: Optional[Dict[Tuple[str, str], Route]] = None):
        table = dict(routes or {})
        calls: List[Tuple[str, str]] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            entry = table.get((request.method, request.url.path))
            if entry is None:
                return httpx.Response(404, json={"message": "not found"})
            if callable(entry):
                result = entry(request)
                if not isinstance(result, httpx.Response):
                    result = await result
                return result
            return entry

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
        return BackendApiClient(base_url=BASE_URL, client=client), calls

    return _build


@pytest.fixture
def wall_clock_token(make_token: Callable[..., str]) -> Callable[..., str]:
    """Token whose expiry is relative to the real clock, for code paths that use time.time."""

    def _make(role: str = "STUDENT", **kwargs: Any) -> str:
        kwargs.setdefault("exp", int(time.time()) + 3600)
        return make_token(role, **kwargs)

    return _make
