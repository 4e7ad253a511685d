from __future__ import annotations

import logging
from typing import Dict, Optional

from mobile.app.auth.roles import Role, subject_key_for
from mobile.app.storage.adapters import BaseCredentialAdapter

logger = logging.getLogger("storage.credentials")

TOKEN_KEY = "token"
ROLE_KEY = "role"
SUBJECT_KEYS = ("studentNumber", "employeeNumber", "guestId")
ALL_KEYS = (TOKEN_KEY, ROLE_KEY) + SUBJECT_KEYS


class CredentialStore:
    """Narrow read/write view over the persisted login state.

    Only login writes and only logout clears; everything else reads.
    """

    def __init__(self, adapter: BaseCredentialAdapter) -> None:
        self._adapter = adapter

    @property
    def adapter(self) -> BaseCredentialAdapter:
        return self._adapter

    async def save_login(self, *, token: str, role: Role, subject_id: str) -> None:
        key = subject_key_for(role)
        if key is None:
            raise ValueError(f"Cannot persist a login for role {role.value}")
        values: Dict[str, str] = {
            TOKEN_KEY: token,
            ROLE_KEY: role.tag,
            key: subject_id,
        }
        # stale ids from a previous account must not survive a new login
        await self._adapter.delete_many(k for k in SUBJECT_KEYS if k != key)
        await self._adapter.set_many(values)

    async def get_token(self) -> Optional[str]:
        return await self._adapter.get(TOKEN_KEY)

    async def get_role_tag(self) -> Optional[str]:
        return await self._adapter.get(ROLE_KEY)

    async def get_subject_id(self, role: Role) -> Optional[str]:
        key = subject_key_for(role)
        if key is None:
            return None
        return await self._adapter.get(key)

    async def clear(self) -> None:
        await self._adapter.delete_many(ALL_KEYS)
        logger.debug("Credential store cleared")
