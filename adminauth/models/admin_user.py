import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from adminauth.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class AdminUser(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    # One of 1..MAX_ADMIN_ACCOUNTS; the unique index caps the table size.
    slot = Column(Integer, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    reset_tokens = relationship(
        "PasswordResetToken",
        back_populates="admin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
