from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from adminauth.core.errors import AuthServiceError
from adminauth.deps import get_auth_service, get_current_admin
from adminauth.models.admin_user import AdminUser
from adminauth.services.auth_service import REGISTER_MESSAGE, AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


class CredentialsPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordPayload(BaseModel):
    email: Optional[str] = None


class ResetPasswordPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    email: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class TokenRead(BaseModel):
    token: str


class MessageRead(BaseModel):
    message: str


class AdminRead(BaseModel):
    id: str
    email: str
    role: str


def _to_http_exception(exc: AuthServiceError) -> HTTPException:
    if exc.status_code >= 500:
        logger.error("Auth request failed code=%s context=%s", exc.code, exc.context)
    return HTTPException(
        status_code=exc.status_code,
        detail={"message": exc.message, "code": exc.code},
    )


@router.post("/login", response_model=TokenRead)
def login(payload: CredentialsPayload, service: AuthService = Depends(get_auth_service)):
    try:
        result = service.login(payload.email, payload.password)
    except AuthServiceError as exc:
        raise _to_http_exception(exc) from exc
    return {"token": result.token}


@router.post("/register", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def register(payload: CredentialsPayload, service: AuthService = Depends(get_auth_service)):
    try:
        service.register(payload.email, payload.password)
    except AuthServiceError as exc:
        raise _to_http_exception(exc) from exc
    return {"message": REGISTER_MESSAGE}


@router.post("/forgot-password", response_model=MessageRead)
def forgot_password(payload: ForgotPasswordPayload, service: AuthService = Depends(get_auth_service)):
    try:
        message = service.forgot_password(payload.email)
    except AuthServiceError as exc:
        raise _to_http_exception(exc) from exc
    return {"message": message}


@router.post("/reset-password", response_model=MessageRead)
def reset_password(payload: ResetPasswordPayload, service: AuthService = Depends(get_auth_service)):
    try:
        message = service.reset_password(payload.token, payload.email, payload.new_password)
    except AuthServiceError as exc:
        raise _to_http_exception(exc) from exc
    return {"message": message}


@router.get("/me", response_model=AdminRead)
def me(admin: AdminUser = Depends(get_current_admin)):
    return {"id": admin.id, "email": admin.email, "role": admin.role}
