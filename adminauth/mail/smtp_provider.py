from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid

from adminauth.mail.base import MailDeliveryError, MailProvider, MailSendResult, mask_address

logger = logging.getLogger(__name__)


class SmtpMailProvider(MailProvider):
    name = "smtp"

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        use_ssl: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_ssl = use_ssl
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender and self.username and self.password)

    def _build_message(self, to_address: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        client.starttls(context=context)
        return client

    def send(self, *, to_address: str, subject: str, html_body: str) -> MailSendResult:
        if not self.is_configured:
            logger.error("SMTP mailer is not configured (EMAIL_HOST/EMAIL_USER/EMAIL_PASS/EMAIL_FROM)")
            raise MailDeliveryError("Email service not configured.")

        message = self._build_message(to_address, subject, html_body)
        try:
            with self._connect() as client:
                client.login(self.username, self.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "SMTP send failed to=%s host=%s port=%s error=%s",
                mask_address(to_address),
                self.host,
                self.port,
                exc.__class__.__name__,
            )
            raise MailDeliveryError("Failed to send email.") from exc

        logger.info("Email sent to=%s message_id=%s", mask_address(to_address), message["Message-ID"])
        return MailSendResult(status="sent", provider=self.name, message_id=message["Message-ID"])
