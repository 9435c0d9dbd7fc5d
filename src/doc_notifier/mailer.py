"""SMTP dispatch and wire serialization of notification messages."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import TYPE_CHECKING

from doc_notifier.exceptions import DispatchError
from doc_notifier.models import OutgoingMessage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from doc_notifier.config import SmtpConfig

logger = logging.getLogger(__name__)


def build_message(
    *,
    sender_name: str,
    sender_address: str,
    to: str,
    subject: str,
    html: str,
    cc: Sequence[str] = (),
    bcc: str | None = None,
) -> OutgoingMessage:
    """Assemble a notification with a fresh Message-ID."""
    domain = sender_address.rpartition("@")[2] or None
    return OutgoingMessage(
        sender=formataddr((sender_name, sender_address)),
        to=to,
        cc=list(cc),
        bcc=bcc.strip() if bcc and bcc.strip() else None,
        subject=subject,
        html=html,
        message_id=make_msgid(domain=domain),
        date=formatdate(localtime=True),
    )


def to_mime(message: OutgoingMessage) -> EmailMessage:
    """Serialize an OutgoingMessage to an RFC 5322 message.

    The Bcc header is kept; ``smtplib`` strips it from the transmitted copy
    while the archived copy retains it.
    """
    mime = EmailMessage()
    mime["From"] = message.sender
    mime["To"] = message.to
    if message.cc:
        mime["Cc"] = ", ".join(message.cc)
    if message.bcc:
        mime["Bcc"] = message.bcc
    mime["Subject"] = message.subject
    mime["Date"] = message.date or formatdate(localtime=True)
    if message.message_id:
        mime["Message-ID"] = message.message_id
    mime.set_content(message.html, subtype="html")
    return mime


class SmtpMailer:
    """Send notifications through an SMTP server."""

    def __init__(self, config: SmtpConfig) -> None:
        self.config = config

    def send(self, message: OutgoingMessage) -> str:
        """Send a message and return its delivery identifier (Message-ID).

        Raises DispatchError on connection, authentication or send failure.
        """
        mime = to_mime(message)
        try:
            with self._connect() as conn:
                refused = conn.send_message(mime)
        except (smtplib.SMTPException, OSError) as exc:
            msg = f"SMTP send failed: {exc}"
            raise DispatchError(msg) from exc

        if refused:
            logger.warning("Some recipients were refused: %s", ", ".join(refused))
        return message.message_id or ""

    def _connect(self) -> smtplib.SMTP:
        """Open an SMTP connection, upgrade to TLS if configured, log in."""
        conn = smtplib.SMTP(
            self.config.host, self.config.port, timeout=self.config.timeout
        )
        try:
            if self.config.starttls:
                conn.starttls()
            conn.login(self.config.username, self.config.password)
        except BaseException:
            conn.close()
            raise
        return conn
