from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adminauth.core.errors import ConflictError, LimitError
from adminauth.models.admin_user import AdminUser
from adminauth.services.passwords import hash_password

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AdminCredentialStore:
    """Persistence of admin identities.

    The admin ceiling is enforced by the unique ``slot`` column: every admin
    holds one of ``max_admins`` slots, so two registrations racing for the
    last free slot cannot both commit. The loser re-reads the free slots
    and either retries on another one or gives up with ``LimitError``.

    ``create`` commits on its own because it must roll back on constraint
    violations; the other writers only flush and leave the commit to the
    caller's unit of work.
    """

    def __init__(self, db: Session, *, max_admins: int, bcrypt_rounds: int | None = None) -> None:
        self.db = db
        self.max_admins = max_admins
        self.bcrypt_rounds = bcrypt_rounds

    def find_by_email(self, email: str) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(AdminUser.email == email).first()

    def find_by_id(self, admin_id: str) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(AdminUser.id == admin_id).first()

    def count(self) -> int:
        return self.db.query(func.count(AdminUser.id)).scalar() or 0

    def _next_free_slot(self) -> Optional[int]:
        taken = {row[0] for row in self.db.query(AdminUser.slot).all()}
        for slot in range(1, self.max_admins + 1):
            if slot not in taken:
                return slot
        return None

    def create(self, email: str, password: str, role: str = "admin") -> AdminUser:
        password_hash = hash_password(password, rounds=self.bcrypt_rounds)

        for _ in range(self.max_admins + 1):
            slot = self._next_free_slot()
            if slot is None:
                logger.warning("Admin ceiling reached max_admins=%s", self.max_admins)
                raise LimitError(max_admins=self.max_admins)

            now = _now()
            admin = AdminUser(
                email=email,
                password_hash=password_hash,
                role=role,
                slot=slot,
                created_at=now,
                updated_at=now,
            )
            self.db.add(admin)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                if self.find_by_email(email) is not None:
                    raise ConflictError(email=email, constraint="admins.email")
                logger.info("Admin slot %s taken concurrently, retrying", slot)
                continue

            self.db.refresh(admin)
            logger.info("Admin created admin_id=%s email=%s", admin.id, email)
            return admin

        raise LimitError(max_admins=self.max_admins)

    def update_password(self, admin_id: str, password: str) -> Optional[AdminUser]:
        admin = self.find_by_id(admin_id)
        if admin is None:
            return None
        admin.password_hash = hash_password(password, rounds=self.bcrypt_rounds)
        admin.updated_at = _now()
        self.db.flush()
        return admin
