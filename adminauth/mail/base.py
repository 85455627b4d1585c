from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class MailDeliveryError(RuntimeError):
    """Raised by providers when a message could not be handed off."""


@dataclass
class MailSendResult:
    status: str
    provider: str
    message_id: str | None = None


class MailProvider(Protocol):
    name: str

    def send(self, *, to_address: str, subject: str, html_body: str) -> MailSendResult:
        ...


def mask_address(address: str) -> str:
    local, _, domain = (address or "").partition("@")
    if not domain:
        return "****"
    return f"{local[:1]}***@{domain}"
