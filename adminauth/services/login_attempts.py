from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from adminauth.models.login_attempt import LoginAttempt


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def record_login_attempt(
    db: Session, email: str, success: bool, now: Optional[datetime] = None
) -> LoginAttempt:
    attempt = LoginAttempt(email=email, success=bool(success), attempted_at=now or _now())
    db.add(attempt)
    db.flush()
    return attempt


def count_failed_since(
    db: Session, email: str, window_minutes: int, now: Optional[datetime] = None
) -> int:
    since = (now or _now()) - timedelta(minutes=window_minutes)
    return (
        db.query(func.count(LoginAttempt.id))
        .filter(
            LoginAttempt.email == email,
            LoginAttempt.success.is_(False),
            LoginAttempt.attempted_at > since,
        )
        .scalar()
        or 0
    )
