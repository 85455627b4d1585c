from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from adminauth.models.password_reset_token import PasswordResetToken


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def save_reset_token(
    db: Session, admin_id: str, token: str, expires_at: datetime
) -> PasswordResetToken:
    now = _now()
    reset_token = PasswordResetToken(
        admin_id=admin_id,
        token=token,
        expires_at=expires_at,
        used=False,
        created_at=now,
        updated_at=now,
    )
    db.add(reset_token)
    db.flush()
    return reset_token


def find_valid_reset_token(
    db: Session, token: str, now: Optional[datetime] = None
) -> Optional[PasswordResetToken]:
    # Wrong, expired and used tokens all look the same to the caller.
    return (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.token == token,
            PasswordResetToken.expires_at > (now or _now()),
            PasswordResetToken.used.is_(False),
        )
        .first()
    )


def invalidate_reset_token(db: Session, token: str) -> Optional[PasswordResetToken]:
    """Mark ``token`` used. Returns ``None`` when it was already used or unknown.

    The update is conditional on ``used = false`` so that two concurrent
    resets cannot both consume the same token.
    """
    updated = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.token == token,
            PasswordResetToken.used.is_(False),
        )
        .update({"used": True, "updated_at": _now()}, synchronize_session="fetch")
    )
    if not updated:
        return None
    return db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()


def invalidate_outstanding_tokens(db: Session, admin_id: str) -> int:
    return (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.admin_id == admin_id,
            PasswordResetToken.used.is_(False),
        )
        .update({"used": True, "updated_at": _now()}, synchronize_session="fetch")
    )
