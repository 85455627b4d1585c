from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from adminauth.mail.base import MailProvider, MailSendResult, mask_address

logger = logging.getLogger(__name__)


@dataclass
class OutboxMessage:
    to_address: str
    subject: str
    html_body: str
    message_id: str = field(default_factory=lambda: f"mock-{uuid.uuid4().hex[:10]}")


class MockMailProvider(MailProvider):
    """Keeps messages in memory instead of sending them."""

    name = "mock"

    def __init__(self) -> None:
        self.outbox: list[OutboxMessage] = []

    def send(self, *, to_address: str, subject: str, html_body: str) -> MailSendResult:
        message = OutboxMessage(to_address=to_address, subject=subject, html_body=html_body)
        self.outbox.append(message)
        logger.info("Mock email queued to=%s subject=%s", mask_address(to_address), subject)
        return MailSendResult(status="sent", provider=self.name, message_id=message.message_id)
