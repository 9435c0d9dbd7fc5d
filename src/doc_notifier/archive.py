"""IMAP Sent-folder archive for dispatched notifications."""

from __future__ import annotations

import imaplib
import logging
import time
from typing import TYPE_CHECKING

from doc_notifier.exceptions import ArchiveError
from doc_notifier.mailer import to_mime

if TYPE_CHECKING:
    from doc_notifier.config import ImapConfig
    from doc_notifier.models import OutgoingMessage

logger = logging.getLogger(__name__)

SEEN_FLAG = r"(\Seen)"


class SentArchiver:
    """Append copies of sent notifications to the IMAP Sent folder.

    A fresh connection is opened and closed for every message; sessions are
    never reused between appends.
    """

    def __init__(self, config: ImapConfig, delay_seconds: float = 1.0) -> None:
        self.config = config
        self.delay_seconds = delay_seconds

    def archive(self, message: OutgoingMessage) -> None:
        """Store a copy of ``message`` in the Sent folder.

        Never raises: the message has already been delivered, so failures
        are logged and dropped.
        """
        logger.info(
            "Archiving message %s to %s", message.message_id, self.config.sent_folder
        )
        try:
            if self.delay_seconds > 0:
                # Give the SMTP session time to settle before opening IMAP.
                time.sleep(self.delay_seconds)
            raw = to_mime(message).as_bytes()
            logger.debug(
                "Serialized message %s (%d bytes)", message.message_id, len(raw)
            )
            self._append(raw)
        except Exception as exc:
            logger.error(
                "Failed to archive message %s: %s",
                message.message_id,
                exc,
                exc_info=True,
            )
            return
        logger.info(
            "Message %s archived to %s", message.message_id, self.config.sent_folder
        )

    def list_folders(self) -> list[str]:
        """Connect, return the raw folder listing, and log out."""
        conn: imaplib.IMAP4_SSL | None = None
        try:
            conn = self._connect()
            status, data = conn.list()
            if status != "OK":
                msg = f"LIST returned {status}"
                raise ArchiveError(msg)
            return [
                item.decode(errors="replace") if isinstance(item, bytes) else str(item)
                for item in data
                if item is not None
            ]
        finally:
            if conn is not None:
                self._logout(conn)

    def _append(self, raw: bytes) -> None:
        conn: imaplib.IMAP4_SSL | None = None
        try:
            conn = self._connect()
            status, data = conn.append(
                self.config.sent_folder,
                SEEN_FLAG,
                imaplib.Time2Internaldate(time.time()),
                raw,
            )
            if status != "OK":
                msg = f"APPEND to {self.config.sent_folder} returned {status}: {data!r}"
                raise ArchiveError(msg)
        finally:
            if conn is not None:
                self._logout(conn)

    def _connect(self) -> imaplib.IMAP4_SSL:
        """Establish an IMAP4_SSL connection and authenticate."""
        conn = imaplib.IMAP4_SSL(
            self.config.host, self.config.port, timeout=self.config.timeout
        )
        try:
            conn.login(self.config.username, self.config.password)
        except BaseException:
            conn.shutdown()
            raise
        return conn

    @staticmethod
    def _logout(conn: imaplib.IMAP4_SSL) -> None:
        try:
            conn.logout()
        except Exception:
            logger.error("Error during IMAP logout", exc_info=True)
            try:
                conn.shutdown()
            except Exception:
                logger.debug("Error forcing IMAP shutdown", exc_info=True)
