from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from adminauth.core.database import Base


class LoginAttempt(Base):
    __tablename__ = "login_attempts"
    __table_args__ = (Index("ix_login_attempts_email_attempted_at", "email", "attempted_at"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False)
    success = Column(Boolean, nullable=False)
    attempted_at = Column(DateTime, nullable=False, default=datetime.utcnow)
