import logging
from email.message import EmailMessage

import aiosmtplib

from intake.models.upload import NotificationMessage

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "no-reply@example.com"
PLAIN_TEXT_NOTICE = "A new business submission arrived. View this message in an HTML-capable mail client."


class MailError(Exception):
    pass


class MailDispatcher:
    def __init__(
        self,
        host: str | None,
        port: int = 587,
        secure: bool = False,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._secure = secure
        self._username = username
        self._password = password
        self._sender = sender
        self._timeout = timeout

    def build_message(self, message: NotificationMessage, sender: str | None = None) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self._sender or sender or DEFAULT_SENDER
        email["To"] = message.recipient
        email["Subject"] = message.subject
        email.set_content(PLAIN_TEXT_NOTICE)
        email.add_alternative(message.body, subtype="html")
        return email

    async def send(self, message: NotificationMessage, sender: str | None = None) -> None:
        """Deliver message over SMTP. Raises MailError on any configuration or transport failure."""
        if not self._host:
            raise MailError("SMTP_HOST is not configured")
        if not message.recipient:
            raise MailError("RECEIVER_EMAIL is not configured")

        try:
            email = self.build_message(message, sender)
        except ValueError as exc:
            raise MailError(f"invalid message headers: {exc}") from exc
        try:
            await aiosmtplib.send(
                email,
                hostname=self._host,
                port=self._port,
                username=self._username or None,
                password=self._password if self._username else None,
                use_tls=self._secure,
                timeout=self._timeout,
            )
        except (aiosmtplib.SMTPException, OSError, TimeoutError) as exc:
            raise MailError(f"mail delivery failed: {exc}") from exc
        logger.info("[mail] sent | to=%s", message.recipient)
