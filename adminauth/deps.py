# adminauth/deps.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from adminauth.core.config import AuthSettings, load_auth_settings
from adminauth.core.database import get_db
from adminauth.core.request_context import set_request_context
from adminauth.mail.service import MailService
from adminauth.models.admin_user import AdminUser
from adminauth.services.auth_service import AuthService
from adminauth.services.tokens import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> AuthSettings:
    return load_auth_settings()


@lru_cache
def get_mail_service() -> MailService:
    return MailService()


def get_auth_service(
    db: Session = Depends(get_db),
    settings: AuthSettings = Depends(get_settings),
    mailer: MailService = Depends(get_mail_service),
) -> AuthService:
    return AuthService(db, settings, mailer)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: AuthSettings = Depends(get_settings),
) -> AdminUser:
    """Resolve the admin behind ``Authorization: Bearer <token>``."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Authentication token missing")

    payload = verify_access_token(
        credentials.credentials,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    if not payload:
        raise _unauthorized("Invalid or expired authentication token")

    admin_id = payload.get("id") or payload.get("sub")
    if not admin_id:
        raise _unauthorized("Invalid token payload")

    admin = db.query(AdminUser).filter(AdminUser.id == str(admin_id)).first()
    if admin is None:
        # Token outlived its admin.
        raise _unauthorized("Invalid token: admin not found")

    request.state.user = admin
    set_request_context(admin_id=str(admin.id))
    return admin


def _normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def require_role(roles: Iterable[str]):
    allowed = {_normalize_role(role) for role in roles}

    def _dependency(
        request: Request,
        admin: AdminUser = Depends(get_current_admin),
    ) -> AdminUser:
        if _normalize_role(admin.role) not in allowed:
            logger.warning(
                "Access denied (role_denied): admin_id=%s role=%s endpoint=%s %s",
                admin.id,
                admin.role,
                request.method,
                request.url.path,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return admin

    return _dependency
