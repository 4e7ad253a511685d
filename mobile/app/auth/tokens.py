from __future__ import annotations

import json
from typing import Any, Optional, Union

import jwt  # type: ignore[import]
from jwt import InvalidTokenError  # type: ignore[import]
from jwt.utils import base64url_decode  # type: ignore[import]

from mobile.app import config
from mobile.app.auth.roles import role_from_authorities
from mobile.app.auth.schemas import Session
from mobile.app.errors import TokenMalformed

INVALID_SESSION_MESSAGE = "Invalid session. Please log in again."


def _coerce_epoch(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _decode_payload_segment(segment: str) -> Any:
    # header and signature are not inspected in advisory mode
    try:
        return json.loads(base64url_decode(segment))
    except (ValueError, TypeError) as exc:
        raise TokenMalformed(INVALID_SESSION_MESSAGE) from exc


def decode_claims(token: str, *, verify_signature: Optional[bool] = None, secret: Optional[str] = None) -> dict[str, Any]:
    """Decode the payload segment of a three-part token.

    The payload is trusted as-is unless signature verification is switched on;
    expiry is deliberately left to the caller so that `exp == now` counts as expired.
    """
    if verify_signature is None:
        verify_signature = config.APP_JWT_VERIFY_SIGNATURE
    if not isinstance(token, str) or token.count(".") != 2:
        raise TokenMalformed(INVALID_SESSION_MESSAGE)

    if verify_signature:
        key = secret or config.APP_JWT_SECRET
        if not key:
            raise RuntimeError("APP_JWT_SECRET must be configured when signature verification is enabled")
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[config.APP_JWT_ALGORITHM],
                options={"verify_exp": False, "verify_aud": False, "verify_iss": False},
            )
        except InvalidTokenError as exc:
            raise TokenMalformed(INVALID_SESSION_MESSAGE) from exc
    else:
        payload = _decode_payload_segment(token.split(".")[1])

    if not isinstance(payload, dict):
        raise TokenMalformed(INVALID_SESSION_MESSAGE)
    return payload


def decode_session(token: str, *, verify_signature: Optional[bool] = None) -> Session:
    claims = decode_claims(token, verify_signature=verify_signature)

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        subject = None

    return Session(
        token=token,
        role=role_from_authorities(claims.get("authorities")),
        subject=subject,
        expires_at=_coerce_epoch(claims.get("exp")),
        claims=claims,
    )
