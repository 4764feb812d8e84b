"""Outbound email: transport and reminder templates."""

from lifetracker.mail.transport import (
    MailTransport,
    OutboundEmail,
    SendResult,
    SMTPTransport,
)

__all__ = [
    "MailTransport",
    "OutboundEmail",
    "SendResult",
    "SMTPTransport",
]
