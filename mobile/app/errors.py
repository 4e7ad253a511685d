"""Exception hierarchy shared by the guard, the ledger and the API client."""

from __future__ import annotations

from typing import Dict, Optional


class ClientError(Exception):
    """Base class for every error raised by the client core."""


class SessionError(ClientError):
    """Raised when a protected screen may not proceed; the session is logged out."""

    reason = "session"


class SessionMissing(SessionError):
    reason = "missing"


class TokenMalformed(SessionError):
    reason = "malformed"


class TokenExpired(SessionError):
    reason = "expired"


class RoleMismatch(SessionError):
    reason = "role_mismatch"


class SessionRejected(SessionError):
    """The backend answered a guarded fetch with 401/403."""

    reason = "rejected"


class LedgerValidationError(ClientError):
    """Local validation failure on the service-record draft. Never reaches the network."""


class IncompleteForm(LedgerValidationError):
    pass


class NoTimeIn(LedgerValidationError):
    pass


class TimeOutBeforeOrEqualTimeIn(LedgerValidationError):
    pass


class DurationTooShort(LedgerValidationError):
    pass


class FormValidationError(ClientError):
    """Account form validation failure with per-field messages."""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), "Invalid input.")
        super().__init__(first)


class NetworkOrServerError(ClientError):
    """Any failed fetch or submit. `message` is safe to show to the user."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class LoginFailed(ClientError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CredentialStoreError(RuntimeError):
    """Raised when the credential storage backend encounters an unrecoverable error."""


__all__ = [
    "ClientError",
    "SessionError",
    "SessionMissing",
    "TokenMalformed",
    "TokenExpired",
    "RoleMismatch",
    "SessionRejected",
    "LedgerValidationError",
    "IncompleteForm",
    "NoTimeIn",
    "TimeOutBeforeOrEqualTimeIn",
    "DurationTooShort",
    "FormValidationError",
    "NetworkOrServerError",
    "LoginFailed",
    "CredentialStoreError",
]
