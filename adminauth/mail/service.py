from __future__ import annotations

import logging

from adminauth.core.config import (
    EMAIL_FROM,
    EMAIL_HOST,
    EMAIL_PASS,
    EMAIL_PORT,
    EMAIL_SECURE,
    EMAIL_TIMEOUT_SECONDS,
    EMAIL_USER,
    IS_DEV,
    IS_TEST,
)
from adminauth.mail.base import MailProvider, MailSendResult
from adminauth.mail.mock_provider import MockMailProvider
from adminauth.mail.smtp_provider import SmtpMailProvider

logger = logging.getLogger(__name__)


class MailService:
    def __init__(self, provider: MailProvider | None = None) -> None:
        self._mock_provider = MockMailProvider()
        self._smtp_provider = SmtpMailProvider(
            host=EMAIL_HOST,
            port=EMAIL_PORT,
            username=EMAIL_USER,
            password=EMAIL_PASS,
            sender=EMAIL_FROM,
            use_ssl=EMAIL_SECURE,
            timeout=EMAIL_TIMEOUT_SECONDS,
        )
        self._provider = provider

    @property
    def provider(self) -> MailProvider:
        if self._provider is not None:
            return self._provider
        return self._select_provider()

    def _select_provider(self) -> MailProvider:
        if self._smtp_provider.is_configured:
            return self._smtp_provider
        if IS_DEV or IS_TEST:
            return self._mock_provider
        # Outside dev an unconfigured SMTP provider fails loudly on send.
        return self._smtp_provider

    def send(self, *, to_address: str, subject: str, html_body: str) -> MailSendResult:
        provider = self.provider
        logger.debug("Dispatching email via provider=%s", provider.name)
        return provider.send(to_address=to_address, subject=subject, html_body=html_body)
