from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from mobile.app.auth.roles import Role


class Session(BaseModel):
    """Decoded view of the stored token. Rebuilt on every activation, never persisted."""

    token: str
    role: Role
    subject: Optional[str] = None
    expires_at: Optional[Union[int, float]] = None
    claims: Dict[str, Any]

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class AuthContext(BaseModel):
    """Represents the authorized principal a protected screen fetches with."""

    role: Role
    subject_id: str
    token: str
    expires_at: Optional[Union[int, float]] = None
    claims: Dict[str, Any]

    @property
    def bearer_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
