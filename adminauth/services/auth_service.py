from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from urllib.parse import urlencode

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminauth.core.config import AuthSettings
from adminauth.core.errors import (
    AuthServiceError,
    ConflictError,
    DependencyError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    LockoutError,
    NotFoundError,
    ValidationError,
)
from adminauth.mail.base import MailDeliveryError
from adminauth.mail.service import MailService
from adminauth.mail.templates import render_password_reset_email
from adminauth.models.admin_user import AdminUser
from adminauth.services.admin_store import AdminCredentialStore
from adminauth.services.login_attempts import count_failed_since, record_login_attempt
from adminauth.services.passwords import burn_password_check, verify_password
from adminauth.services.reset_tokens import (
    find_valid_reset_token,
    invalidate_outstanding_tokens,
    invalidate_reset_token,
    save_reset_token,
)
from adminauth.services.tokens import generate_secure_token, issue_access_token

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."
RESET_PASSWORD_MESSAGE = "Password has been reset successfully."
REGISTER_MESSAGE = "Admin created successfully."


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require(**fields: Optional[str]) -> None:
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        verb = "is" if len(missing) == 1 else "are"
        raise ValidationError(f"{', '.join(missing)} {verb} required.", missing=missing)


@dataclass
class LoginResult:
    token: str
    admin: AdminUser


class AuthService:
    """Login, registration and password-reset flows for admin accounts.

    One instance serves one request: it wraps that request's ``Session`` and
    commits once per operation. Any ``SQLAlchemyError`` rolls the unit of
    work back and surfaces as ``DependencyError``.
    """

    def __init__(
        self,
        db: Session,
        settings: AuthSettings,
        mailer: MailService,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self.db = db
        self.settings = settings
        self.mailer = mailer
        self.clock = clock
        self.admins = AdminCredentialStore(
            db,
            max_admins=settings.max_admin_accounts,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database commit failed")
            raise DependencyError("database") from exc

    def _run(self, operation: str, func: Callable[[], object]):
        try:
            return func()
        except AuthServiceError:
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database error during %s", operation)
            raise DependencyError("database", operation=operation) from exc

    # Login

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        _require(email=email, password=password)
        return self._run("login", lambda: self._login(email, password))

    def _failed_attempts(self, email: str) -> int:
        return count_failed_since(
            self.db, email, self.settings.attempt_window_minutes, now=self.clock()
        )

    def _login(self, email: str, password: str) -> LoginResult:
        threshold = self.settings.max_failed_attempts

        if self._failed_attempts(email) >= threshold:
            record_login_attempt(self.db, email, False, now=self.clock())
            self._commit()
            logger.warning("Login refused, too many failed attempts email=%s", email)
            raise LockoutError(email=email)

        admin = self.admins.find_by_email(email)
        if admin is None:
            burn_password_check(password)
            matched = False
        else:
            matched = verify_password(password, admin.password_hash)

        record_login_attempt(self.db, email, matched, now=self.clock())
        self._commit()

        if not matched:
            if self._failed_attempts(email) >= threshold:
                logger.warning("Login locked after failed attempt email=%s", email)
                raise LockoutError(email=email)
            logger.info("Login failed email=%s", email)
            raise InvalidCredentialsError()

        token = issue_access_token(
            {"id": admin.id, "email": admin.email, "role": admin.role},
            secret=self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            expires_minutes=self.settings.jwt_expire_minutes,
        )
        logger.info("Login succeeded admin_id=%s", admin.id)
        return LoginResult(token=token, admin=admin)

    # Registration

    def register(self, email: Optional[str], password: Optional[str], role: str = "admin") -> AdminUser:
        _require(email=email, password=password)
        return self._run("register", lambda: self._register(email, password, role))

    def _register(self, email: str, password: str, role: str) -> AdminUser:
        if self.admins.find_by_email(email) is not None:
            raise ConflictError(email=email)
        # Limit and duplicate races are settled inside the store.
        return self.admins.create(email, password, role=role)

    # Forgot password

    def build_reset_link(self, token: str, email: str) -> str:
        query = urlencode({"token": token, "email": email})
        separator = "&" if "?" in self.settings.reset_password_url else "?"
        return f"{self.settings.reset_password_url}{separator}{query}"

    def forgot_password(self, email: Optional[str]) -> str:
        _require(email=email)
        self._run("forgot_password", lambda: self._forgot_password(email))
        return FORGOT_PASSWORD_MESSAGE

    def _forgot_password(self, email: str) -> None:
        admin = self.admins.find_by_email(email)
        if admin is None:
            logger.info("Password reset requested for unknown email")
            return

        if self.settings.reset_token_revoke_previous:
            revoked = invalidate_outstanding_tokens(self.db, admin.id)
            if revoked:
                logger.info("Revoked %s outstanding reset tokens admin_id=%s", revoked, admin.id)

        token = generate_secure_token(self.settings.reset_token_length)
        expires_at = self.clock() + timedelta(minutes=self.settings.reset_token_expire_minutes)
        save_reset_token(self.db, admin.id, token, expires_at)

        subject, html_body = render_password_reset_email(
            self.build_reset_link(token, admin.email),
            self.settings.reset_token_expire_minutes,
        )
        try:
            self.mailer.send(to_address=admin.email, subject=subject, html_body=html_body)
        except MailDeliveryError as exc:
            # The token was never delivered, so it must not outlive this request.
            self.db.rollback()
            logger.error("Password reset email failed admin_id=%s", admin.id)
            raise DependencyError("mailer", admin_id=admin.id) from exc

        self._commit()
        logger.info("Password reset token issued admin_id=%s expires_at=%s", admin.id, expires_at.isoformat())

    # Reset password

    def reset_password(
        self, token: Optional[str], email: Optional[str], new_password: Optional[str]
    ) -> str:
        _require(token=token, email=email, newPassword=new_password)
        self._run("reset_password", lambda: self._reset_password(token, email, new_password))
        return RESET_PASSWORD_MESSAGE

    def _reset_password(self, token: str, email: str, new_password: str) -> None:
        reset_token = find_valid_reset_token(self.db, token, now=self.clock())
        if reset_token is None:
            raise InvalidOrExpiredTokenError()

        admin = self.admins.find_by_id(reset_token.admin_id)
        if admin is None:
            logger.error("Reset token references a missing admin token_id=%s", reset_token.id)
            raise NotFoundError(admin_id=reset_token.admin_id)

        if admin.email != email:
            logger.warning("Reset token email mismatch admin_id=%s", admin.id)
            raise ValidationError("Email does not match the reset token.")

        # Password update and token consumption commit together.
        self.admins.update_password(admin.id, new_password)
        if invalidate_reset_token(self.db, token) is None:
            self.db.rollback()
            logger.warning("Reset token consumed concurrently admin_id=%s", admin.id)
            raise InvalidOrExpiredTokenError()
        self._commit()
        logger.info("Password reset completed admin_id=%s", admin.id)
