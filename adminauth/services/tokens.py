from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 60


def issue_access_token(
    claims: Dict[str, Any],
    *,
    secret: str,
    algorithm: str = DEFAULT_ALGORITHM,
    expires_minutes: int = DEFAULT_EXPIRE_MINUTES,
) -> str:
    """Sign ``claims`` into a bearer JWT.

    ``sub`` must be a string for python-jose, so it defaults to the ``id``
    claim rendered as text. ``iat`` and ``exp`` are always set here and
    override whatever the caller passed.
    """
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = dict(claims)
    if "sub" not in payload and payload.get("id") is not None:
        payload["sub"] = str(payload["id"])
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int((now + timedelta(minutes=expires_minutes)).timestamp())
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_access_token(
    token: str,
    *,
    secret: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid token, ``None`` for anything else.

    Bad signature, expiry and garbage input all collapse to ``None``.
    """
    if not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except (JWTError, ValueError, TypeError, AttributeError):
        logger.debug("Rejected bearer token")
        return None


def generate_secure_token(length: int) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    # token_hex yields two characters per byte.
    return secrets.token_hex((length + 1) // 2)[:length]
