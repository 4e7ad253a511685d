from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional


class Role(str, Enum):
    """Client roles; each maps to one dashboard family."""

    STUDENT = "STUDENT"
    EMPLOYEE = "EMPLOYEE"
    GUEST = "GUEST"
    UNKNOWN = "UNKNOWN"

    @property
    def tag(self) -> str:
        """Role tag as cached in the credential store (``ROLE_STUDENT`` ...)."""
        return f"ROLE_{self.value}"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "Role":
        if not tag:
            return cls.UNKNOWN
        for role in (cls.STUDENT, cls.EMPLOYEE, cls.GUEST):
            if tag.strip() == role.tag:
                return role
        return cls.UNKNOWN


# Authority priority when a token carries several
_AUTHORITY_ORDER = (Role.STUDENT, Role.EMPLOYEE, Role.GUEST)

_SUBJECT_KEYS = {
    Role.STUDENT: "studentNumber",
    Role.EMPLOYEE: "employeeNumber",
    Role.GUEST: "guestId",
}


def _authority_names(authorities: Any) -> list[str]:
    if isinstance(authorities, str):
        return [authorities]
    if not isinstance(authorities, Iterable):
        return []
    names: list[str] = []
    for entry in authorities:
        # Spring serializes granted authorities either as plain strings or {"authority": ...}
        if isinstance(entry, dict):
            entry = entry.get("authority")
        if isinstance(entry, str):
            names.append(entry)
    return names


def role_from_authorities(authorities: Any) -> Role:
    """Map an ``authorities`` claim to a role. Total: anything unrecognised is UNKNOWN."""
    names = _authority_names(authorities)
    for role in _AUTHORITY_ORDER:
        if any(role.tag in name for name in names):
            return role
    return Role.UNKNOWN


def subject_key_for(role: Role) -> Optional[str]:
    return _SUBJECT_KEYS.get(role)
