from __future__ import annotations

import logging
from typing import Any, Awaitable, List, Optional, TypeVar

from mobile.app.api.client import BackendApiClient
from mobile.app.auth.guard import SessionGuard
from mobile.app.auth.roles import Role
from mobile.app.auth.schemas import AuthContext
from mobile.app.core.activation import ActivationScope, ScreenRetired, ScreenState
from mobile.app.errors import (
    NetworkOrServerError,
    RoleMismatch,
    SessionError,
    SessionMissing,
    SessionRejected,
    TokenExpired,
    TokenMalformed,
)
from mobile.app.navigation import Screen

logger = logging.getLogger("dashboards")

T = TypeVar("T")

_FAILURE_STATES = {
    SessionMissing: ScreenState.MISSING,
    TokenMalformed: ScreenState.MALFORMED,
    TokenExpired: ScreenState.EXPIRED,
    RoleMismatch: ScreenState.ROLE_MISMATCH,
    SessionRejected: ScreenState.REJECTED,
}


class DashboardController:
    """Base for the role dashboards.

    One instance per screen activation: `activate()` runs the session guard
    exactly once and, when it passes, loads the screen's data. Read failures
    become an inline `error`; session failures end in logout with a one-time
    `notice` for the alert.
    """

    required_role: Role = Role.UNKNOWN
    screen: Screen = Screen.LOGIN

    def __init__(self, *, guard: SessionGuard, api: BackendApiClient) -> None:
        self._guard = guard
        self._api = api
        self._scope = ActivationScope(self.screen.value)
        self.state = ScreenState.START
        self.state_history: List[ScreenState] = [ScreenState.START]
        self.auth: Optional[AuthContext] = None
        self.loading = False
        self.error: Optional[str] = None
        self.notice: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.state is ScreenState.ACTIVE and not self._scope.closed

    def _transition(self, state: ScreenState) -> None:
        self.state = state
        self.state_history.append(state)

    async def _fetch(self, awaitable: Awaitable[T]) -> T:
        return await self._scope.run(awaitable)

    async def activate(self) -> bool:
        if self.state is not ScreenState.START:
            raise RuntimeError(f"{self.screen.value} was already activated; mount a new controller")

        self._transition(ScreenState.DECODING)
        try:
            self.auth = await self._fetch(self._guard.authorize(self.required_role))
        except SessionError as exc:
            self._session_failed(exc)
            return False
        except ScreenRetired:
            return False

        self._transition(ScreenState.AUTHORIZED)
        self._transition(ScreenState.ACTIVE)
        await self.refresh()
        return self.is_active

    def _session_failed(self, exc: SessionError) -> None:
        self._transition(_FAILURE_STATES.get(type(exc), ScreenState.MISSING))
        self._transition(ScreenState.LOGGED_OUT)
        self.notice = str(exc) or None
        self._scope.close("logged out")

    async def _reject(self, exc: SessionError) -> None:
        await self._guard.force_logout(exc)
        self._session_failed(exc)

    async def refresh(self) -> None:
        if self.auth is None or not self.is_active:
            return
        self.loading = True
        self.error = None
        try:
            await self.load(self.auth)
        except SessionError as exc:
            await self._reject(exc)
        except NetworkOrServerError as exc:
            logger.warning("Loading %s failed: %s", self.screen.value, exc.message)
            self.error = exc.message
        except ScreenRetired:
            return
        finally:
            self.loading = False

    async def load(self, auth: AuthContext) -> None:
        raise NotImplementedError

    def deactivate(self) -> None:
        self._scope.close("navigated away")

    async def logout(self) -> None:
        """User-initiated logout from the dashboard menu."""
        self._scope.close("logout")
        await self._guard.logout(cause="user")
        if self.state is not ScreenState.LOGGED_OUT:
            self._transition(ScreenState.LOGGED_OUT)

    def dismiss_notice(self) -> Optional[str]:
        notice, self.notice = self.notice, None
        return notice

    def _raise_session_errors(self, errors: List[Any]) -> None:
        for error in errors:
            if isinstance(error, SessionError):
                raise error
