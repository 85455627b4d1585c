from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_ADMIN_ID_CTX: ContextVar[str | None] = ContextVar("admin_id", default=None)


def set_request_context(*, request_id: str | None = None, admin_id: str | None = None) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if admin_id is not None:
        _ADMIN_ID_CTX.set(admin_id)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_admin_id() -> str | None:
    return _ADMIN_ID_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _ADMIN_ID_CTX.set(None)
