from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from mobile.app.api.client import BackendApiClient
from mobile.app.auth.roles import Role, subject_key_for
from mobile.app.auth.tokens import decode_session
from mobile.app.errors import FormValidationError, LoginFailed, NetworkOrServerError, TokenMalformed
from mobile.app.navigation import Navigator, Screen, landing_screen
from mobile.app.storage.credentials import CredentialStore

logger = logging.getLogger("auth.login")

TOKEN_MISSING_MESSAGE = "Token not received from server."
UNKNOWN_ROLE_MESSAGE = "Unauthorized role. Please try again."


class LoginResult(BaseModel):
    role: Role
    subject_id: str
    landing: Screen


class LoginService:
    """Exchanges credentials for a token and persists the session it describes."""

    def __init__(self, api: BackendApiClient, store: CredentialStore, navigator: Navigator) -> None:
        self._api = api
        self._store = store
        self._navigator = navigator

    async def login(self, username: str, password: str) -> LoginResult:
        errors = {}
        if not username or not username.strip():
            errors["username"] = "Please enter your username."
        if not password:
            errors["password"] = "Please enter your password."
        if errors:
            raise FormValidationError(errors)

        try:
            token = await self._api.login(username.strip(), password)
        except NetworkOrServerError as exc:
            logger.info("Login refused", extra={"json_fields": {"event": "login_failed", "status": exc.status_code}})
            raise LoginFailed(exc.message) from exc
        if not token:
            raise LoginFailed(TOKEN_MISSING_MESSAGE)

        try:
            session = decode_session(token)
        except TokenMalformed as exc:
            raise LoginFailed(str(exc)) from exc

        landing = landing_screen(session.role)
        if session.role is Role.UNKNOWN or landing is None:
            raise LoginFailed(UNKNOWN_ROLE_MESSAGE)

        subject_id = _subject_id(session.claims, session.role, session.subject)
        if not subject_id:
            raise LoginFailed(UNKNOWN_ROLE_MESSAGE)

        await self._store.save_login(token=token, role=session.role, subject_id=subject_id)
        self._navigator.reset_to(landing)
        logger.info(
            "Login succeeded",
            extra={"json_fields": {"event": "login", "role": session.role.value}},
        )
        return LoginResult(role=session.role, subject_id=subject_id, landing=landing)


def _subject_id(claims: dict, role: Role, fallback: Optional[str]) -> Optional[str]:
    key = subject_key_for(role)
    value = claims.get(key) if key else None
    if value is not None and str(value).strip():
        return str(value).strip()
    return fallback


__all__ = ["LoginService", "LoginResult", "TOKEN_MISSING_MESSAGE", "UNKNOWN_ROLE_MESSAGE"]
