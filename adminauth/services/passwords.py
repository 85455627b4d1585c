from __future__ import annotations

import bcrypt

from adminauth.core.config import BCRYPT_ROUNDS

# bcrypt only looks at the first 72 bytes and bcrypt>=4.1 raises past that.
BCRYPT_MAX_BYTES = 72

# Verified against when the email is unknown so that both login failure paths
# pay the same hashing cost.
_DUMMY_HASH = bcrypt.hashpw(b"dummy-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def _normalize_password_for_bcrypt(password: str) -> bytes:
    return (password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_normalize_password_for_bcrypt(password), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            _normalize_password_for_bcrypt(password),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash.
        return False


def burn_password_check(password: str) -> None:
    verify_password(password, _DUMMY_HASH)
