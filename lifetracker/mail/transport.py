"""Outbound email — message model, transport protocol and SMTP transport."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from lifetracker.config import settings
from lifetracker.errors import SendError

if TYPE_CHECKING:
    from lifetracker.config import Settings

logger = logging.getLogger(__name__)

DEV_MODE_MESSAGE_ID = "dev-mode-message-id"
_SMTP_TIMEOUT_SECONDS = 30


class OutboundEmail(BaseModel):
    """A single email ready to hand to a transport."""

    to: str = Field(min_length=3)
    subject: str
    body_text: str
    body_html: str | None = None


class SendResult(BaseModel):
    message_id: str


@runtime_checkable
class MailTransport(Protocol):
    """Anything that can deliver an OutboundEmail."""

    async def send(self, message: OutboundEmail) -> SendResult:
        """Deliver *message*. Raises SendError on failure."""
        ...


class SMTPTransport:
    """Sends email through the configured SMTP server.

    Singleton accessed via ``SMTPTransport.get()``.  In development, with no
    SMTP host configured, messages are logged instead of sent.
    """

    _instance: SMTPTransport | None = None

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings

    @classmethod
    def get(cls) -> SMTPTransport:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        cls._instance = None

    def build_message(self, message: OutboundEmail) -> EmailMessage:
        """Render an OutboundEmail as a multipart MIME message."""
        mime = EmailMessage()
        mime["From"] = self._config.email_from
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain="lifetracker")
        mime.set_content(message.body_text)
        if message.body_html:
            mime.add_alternative(message.body_html, subtype="html")
        return mime

    async def send(self, message: OutboundEmail) -> SendResult:
        """Deliver *message* over SMTP. Raises SendError on any failure."""
        if not self._config.email_configured:
            if self._config.is_development:
                logger.info(
                    "DEV MODE - email not sent: to=%s subject=%r", message.to, message.subject
                )
                return SendResult(message_id=DEV_MODE_MESSAGE_ID)
            msg = "Email not configured - missing EMAIL_HOST"
            raise SendError(msg)

        mime = self.build_message(message)
        try:
            await asyncio.to_thread(self._deliver, mime)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email send to %s failed: %s", message.to, exc)
            msg = f"Failed to send email to {message.to}"
            raise SendError(msg) from exc

        message_id = str(mime["Message-ID"])
        logger.info("Email sent to %s: %s", message.to, message_id)
        return SendResult(message_id=message_id)

    def _deliver(self, mime: EmailMessage) -> None:
        cfg = self._config
        context = ssl.create_default_context()
        if cfg.email_secure:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                cfg.email_host, cfg.email_port, timeout=_SMTP_TIMEOUT_SECONDS, context=context
            )
        else:
            server = smtplib.SMTP(cfg.email_host, cfg.email_port, timeout=_SMTP_TIMEOUT_SECONDS)
        with server:
            if not cfg.email_secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
            if cfg.email_user:
                server.login(cfg.email_user, cfg.email_password)
            server.send_message(mime)
