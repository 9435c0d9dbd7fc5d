"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from doc_notifier.config import ImapConfig, NotifierSettings, SmtpConfig
from doc_notifier.exceptions import StorageError
from doc_notifier.models import PendingDocument

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from doc_notifier.models import AccessToken, DocumentClass


class FakeRepository:
    """In-memory stand-in for DocumentRepository."""

    def __init__(self) -> None:
        self.pending: dict[str, list[PendingDocument]] = {}
        self.subscriptions: list[tuple[str, str, str | None]] = []
        self.tokens: list[AccessToken] = []
        self.notified: list[int] = []
        self.calls: list[str] = []
        self.fail_subscription_lookup_on: int | None = None
        self._subscription_lookups = 0

    def add_document(self, type_tag: str, document: PendingDocument) -> None:
        self.pending.setdefault(type_tag, []).append(document)

    def add_subscription(
        self, client_code: str, purpose_code: str, email: str | None
    ) -> None:
        self.subscriptions.append((client_code, purpose_code, email))

    def fetch_pending(
        self, doc_class: DocumentClass, min_date: date
    ) -> list[PendingDocument]:
        self.calls.append(f"fetch_pending:{doc_class.type_tag}")
        documents = [
            doc
            for doc in self.pending.get(doc_class.type_tag, [])
            if doc.doccon not in self.notified
            and (doc.docfec is None or doc.docfec >= min_date)
        ]
        return sorted(documents, key=lambda doc: doc.doccon, reverse=True)

    def fetch_subscription_emails(
        self, client_code: str | int, purpose_codes: Sequence[str]
    ) -> list[str | None]:
        self.calls.append("fetch_subscription_emails")
        self._subscription_lookups += 1
        if self._subscription_lookups == self.fail_subscription_lookup_on:
            msg = "Query failed: connection reset"
            raise StorageError(msg)
        return [
            email
            for client, code, email in self.subscriptions
            if client == client_code and code in purpose_codes
        ]

    def insert_access_token(self, token: AccessToken) -> None:
        self.calls.append("insert_access_token")
        self.tokens.append(token)

    def mark_notified(self, doccon: int) -> None:
        self.calls.append(f"mark_notified:{doccon}")
        self.notified.append(doccon)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def make_document() -> Callable[..., PendingDocument]:
    """Build a PendingDocument with sensible defaults."""

    def _make(**overrides: Any) -> PendingDocument:
        values: dict[str, Any] = {
            "doccon": 500,
            "doctip": "FC",
            "docclicod": "C1",
            "docenviado": None,
            "doceje": "2025",
            "docser": "A",
            "docnum": "123",
            "docfec": date(2025, 9, 10),
            "docimptot": Decimal("123.45"),
            "docusuariocorreo": None,
            "qdocumento_id": 500,
            "docfichero": "FC-A-123.pdf",
            "user_id": 7,
            "name": "Acme S.L.",
            "email": "a@x.com",
        }
        values.update(overrides)
        return PendingDocument(**values)

    return _make


@pytest.fixture
def settings() -> NotifierSettings:
    return NotifierSettings(
        link_base_url="https://portal.example.com",
        cc=("office@example.com",),
        min_date=date(2025, 9, 2),
        archive_delay_seconds=0,
    )


@pytest.fixture
def smtp_config() -> SmtpConfig:
    """Provide a test SMTP configuration."""
    return SmtpConfig(
        host="smtp.example.com",
        username="notify@example.com",
        password="secret",  # pragma: allowlist secret
        port=587,
    )


@pytest.fixture
def imap_config() -> ImapConfig:
    """Provide a test IMAP configuration."""
    return ImapConfig(
        host="imap.example.com",
        username="notify@example.com",
        password="secret",  # pragma: allowlist secret
        port=993,
        sent_folder="INBOX.Sent",
    )
