"""Session decoding, role mapping and the protected-screen guard."""

from .roles import Role, role_from_authorities
from .schemas import AuthContext, Session

__all__ = ["AuthContext", "Role", "Session", "role_from_authorities"]
