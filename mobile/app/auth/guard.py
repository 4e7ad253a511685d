from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from mobile.app.auth.roles import Role
from mobile.app.auth.schemas import AuthContext
from mobile.app.auth.tokens import INVALID_SESSION_MESSAGE, decode_session
from mobile.app.errors import (
    CredentialStoreError,
    RoleMismatch,
    SessionError,
    SessionMissing,
    TokenExpired,
)
from mobile.app.navigation import Navigator, Screen
from mobile.app.storage.credentials import CredentialStore
from mobile.app.utils.observability import record_guard_outcome, record_logout

logger = logging.getLogger("auth.guard")

SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."
UNAUTHORIZED_MESSAGE = "You do not have permission to access this page."


class SessionGuard:
    """Client-side role guard for protected screens.

    Advisory only: the decoded claims are trusted for UX decisions and the
    backend remains the authority on every request. Any failure clears the
    credential store and sends the app back to the login screen.
    """

    def __init__(
        self,
        store: CredentialStore,
        navigator: Navigator,
        *,
        clock: Callable[[], float] = time.time,
        verify_signature: Optional[bool] = None,
    ) -> None:
        self._store = store
        self._navigator = navigator
        self._clock = clock
        self._verify_signature = verify_signature

    async def authorize(self, required_role: Role) -> AuthContext:
        if required_role is Role.UNKNOWN:
            raise ValueError("A protected screen must require a concrete role")

        try:
            context = await self._check(required_role)
        except SessionError as exc:
            await self.force_logout(exc)
            raise

        record_guard_outcome("authorized")
        logger.info(
            "Session authorized",
            extra={"json_fields": {"event": "guard_authorized", "role": context.role.value}},
        )
        return context

    async def _check(self, required_role: Role) -> AuthContext:
        try:
            token = await self._store.get_token()
            role_tag = await self._store.get_role_tag()
        except CredentialStoreError as exc:
            raise SessionMissing(SESSION_EXPIRED_MESSAGE) from exc

        if not token or not role_tag:
            raise SessionMissing(SESSION_EXPIRED_MESSAGE)

        session = decode_session(token, verify_signature=self._verify_signature)

        now = self._clock()
        if session.is_expired(now):
            raise TokenExpired(SESSION_EXPIRED_MESSAGE)

        stored_role = Role.from_tag(role_tag)
        if session.role is not required_role or stored_role is not required_role:
            raise RoleMismatch(UNAUTHORIZED_MESSAGE)

        try:
            subject_id = await self._store.get_subject_id(required_role)
        except CredentialStoreError as exc:
            raise SessionMissing(SESSION_EXPIRED_MESSAGE) from exc
        if not subject_id:
            raise SessionMissing(SESSION_EXPIRED_MESSAGE)

        return AuthContext(
            role=required_role,
            subject_id=subject_id,
            token=token,
            expires_at=session.expires_at,
            claims=session.claims,
        )

    async def force_logout(self, error: SessionError) -> None:
        record_guard_outcome(error.reason)
        logger.warning(
            "Session rejected; logging out",
            extra={"json_fields": {"event": "guard_rejected", "reason": error.reason}},
        )
        await self.logout(cause=error.reason)

    async def logout(self, *, cause: str = "explicit") -> None:
        """Clear every credential and return to the login screen.

        Best-effort: a failing store clear is logged and navigation still happens.
        """
        try:
            await self._store.clear()
        except CredentialStoreError as exc:
            logger.error(
                "Failed to clear credential store during logout",
                extra={"json_fields": {"event": "logout_clear_failed", "error": str(exc)}},
            )
        finally:
            self._navigator.reset_to(Screen.LOGIN)
            record_logout(cause)


__all__ = [
    "SessionGuard",
    "SESSION_EXPIRED_MESSAGE",
    "INVALID_SESSION_MESSAGE",
    "UNAUTHORIZED_MESSAGE",
]
