"""Tests for doc_notifier.mailer."""

from __future__ import annotations

import smtplib
from email import message_from_bytes
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from doc_notifier.exceptions import DispatchError
from doc_notifier.mailer import SmtpMailer, build_message, to_mime

if TYPE_CHECKING:
    from doc_notifier.config import SmtpConfig
    from doc_notifier.models import OutgoingMessage


def _message(**overrides: object) -> OutgoingMessage:
    values: dict[str, object] = {
        "sender_name": "Redes y Componentes",
        "sender_address": "notify@example.com",
        "to": "b@x.com, c@x.com",
        "subject": "Notificación automática",
        "html": "<p>Hola</p>",
        "cc": ("office@example.com", "boss@example.com"),
        "bcc": "owner@x.com",
    }
    values.update(overrides)
    return build_message(**values)  # type: ignore[arg-type]


class TestBuildMessage:
    """Tests for build_message()."""

    def test_sender_and_message_id(self) -> None:
        message = _message()

        assert message.sender == "Redes y Componentes <notify@example.com>"
        assert message.message_id is not None
        assert message.message_id.endswith("@example.com>")
        assert message.date

    def test_blank_bcc_is_dropped(self) -> None:
        assert _message(bcc="  ").bcc is None
        assert _message(bcc=None).bcc is None

    def test_unique_message_ids(self) -> None:
        assert _message().message_id != _message().message_id


class TestToMime:
    """Tests for to_mime()."""

    def test_headers_and_body(self) -> None:
        message = _message()
        parsed = message_from_bytes(to_mime(message).as_bytes())

        assert parsed["To"] == "b@x.com, c@x.com"
        assert parsed["Cc"] == "office@example.com, boss@example.com"
        assert parsed["Bcc"] == "owner@x.com"
        assert parsed["Message-ID"] == message.message_id
        assert parsed["Date"] == message.date
        assert parsed.get_content_type() == "text/html"
        payload = parsed.get_payload(decode=True)
        assert isinstance(payload, bytes)
        assert b"<p>Hola</p>" in payload

    def test_serialization_is_stable(self) -> None:
        message = _message()
        assert to_mime(message).as_bytes() == to_mime(message).as_bytes()

    def test_optional_headers_omitted(self) -> None:
        parsed = to_mime(_message(cc=(), bcc=None))
        assert parsed["Cc"] is None
        assert parsed["Bcc"] is None


class TestSmtpMailer:
    """Tests for SmtpMailer.send()."""

    @patch("doc_notifier.mailer.smtplib.SMTP")
    def test_send_returns_message_id(
        self, mock_smtp: MagicMock, smtp_config: SmtpConfig
    ) -> None:
        conn = mock_smtp.return_value
        conn.__enter__.return_value = conn
        conn.send_message.return_value = {}
        message = _message()

        delivery_id = SmtpMailer(smtp_config).send(message)

        assert delivery_id == message.message_id
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("notify@example.com", "secret")
        conn.send_message.assert_called_once()

    @patch("doc_notifier.mailer.smtplib.SMTP")
    def test_auth_failure_raises_dispatch_error(
        self, mock_smtp: MagicMock, smtp_config: SmtpConfig
    ) -> None:
        conn = mock_smtp.return_value
        conn.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad auth")

        with pytest.raises(DispatchError, match="SMTP send failed"):
            SmtpMailer(smtp_config).send(_message())

        conn.close.assert_called_once()

    @patch("doc_notifier.mailer.smtplib.SMTP")
    def test_connection_error_raises_dispatch_error(
        self, mock_smtp: MagicMock, smtp_config: SmtpConfig
    ) -> None:
        mock_smtp.side_effect = TimeoutError("timed out")

        with pytest.raises(DispatchError):
            SmtpMailer(smtp_config).send(_message())

