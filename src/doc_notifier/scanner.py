"""Scan for pending documents and dispatch one notification per document."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from doc_notifier.config import PRE_COMMIT
from doc_notifier.exceptions import DispatchError
from doc_notifier.mailer import build_message
from doc_notifier.models import DOCUMENT_CLASSES, is_notified
from doc_notifier.recipients import resolve_recipients
from doc_notifier.renderer import build_fields
from doc_notifier.tokens import build_access_link, issue_access_token

if TYPE_CHECKING:
    from collections.abc import Sequence

    from doc_notifier.config import NotifierSettings
    from doc_notifier.models import DocumentClass, OutgoingMessage, PendingDocument
    from doc_notifier.renderer import NotificationRenderer
    from doc_notifier.repository import DocumentRepository

logger = logging.getLogger(__name__)

# Logged when a document was flagged as notified but the email never left.
NOTIFIED_WITHOUT_DELIVERY = "NOTIFIED_WITHOUT_DELIVERY"


class Mailer(Protocol):
    def send(self, message: OutgoingMessage) -> str: ...


class Archiver(Protocol):
    def archive(self, message: OutgoingMessage) -> None: ...


@dataclass
class ScanResult:
    """Outcome of one scan invocation."""

    pending: int = 0
    processed: Counter[str] = field(default_factory=Counter)
    skipped: int = 0
    failed: bool = False

    @property
    def total_processed(self) -> int:
        return sum(self.processed.values())


class DocumentScanner:
    """Drive the token, recipient, render, send and archive steps per document.

    Documents are processed one at a time, in scan order. Any error escaping
    a document ends the whole invocation; documents not yet reached stay
    pending and are picked up by the next scan.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        renderer: NotificationRenderer,
        mailer: Mailer,
        archiver: Archiver,
        settings: NotifierSettings,
        sender_address: str,
        document_classes: Sequence[DocumentClass] = DOCUMENT_CLASSES,
    ) -> None:
        self.repository = repository
        self.renderer = renderer
        self.mailer = mailer
        self.archiver = archiver
        self.settings = settings
        self.sender_address = sender_address
        self.document_classes = tuple(document_classes)
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def scan(self) -> ScanResult | None:
        """Run one scan pass.

        Returns None without doing anything if another scan is in flight.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous scan still running, skipping this tick")
            return None
        try:
            return self._scan()
        finally:
            self._lock.release()

    def _scan(self) -> ScanResult:
        result = ScanResult()
        try:
            min_date = self.settings.min_date
            batches = [
                (doc_class, self.repository.fetch_pending(doc_class, min_date))
                for doc_class in self.document_classes
            ]
            result.pending = sum(len(documents) for _, documents in batches)
            if result.pending == 0:
                logger.info("No new documents to process")
                return result

            # One row per attachment: a document may appear more than once.
            seen: set[int] = set()
            for doc_class, documents in batches:
                if documents:
                    logger.info(
                        "Processing %d pending %s document(s)",
                        len(documents),
                        doc_class.label,
                    )
                for document in documents:
                    if document.doccon in seen:
                        logger.debug(
                            "Doccon %s already handled in this scan (%s)",
                            document.doccon,
                            document.docfichero,
                        )
                        continue
                    if is_notified(document.docenviado):
                        logger.warning(
                            "Skipping doccon %s, already notified", document.doccon
                        )
                        continue
                    seen.add(document.doccon)
                    if self.process_document(doc_class, document) is None:
                        result.skipped += 1
                    else:
                        result.processed[doc_class.type_tag] += 1
        except Exception:
            result.failed = True
            logger.exception(
                "Scan aborted after %d document(s); the rest stay pending",
                result.total_processed,
            )
        return result

    def process_document(
        self, doc_class: DocumentClass, document: PendingDocument
    ) -> str | None:
        """Notify the recipients of a single document.

        Returns the delivery identifier reported by the mailer, or None when
        the document has no recipient and was left pending.
        """
        token = issue_access_token(self.repository, document.user_id)
        link = build_access_link(self.settings.link_base_url, doc_class, token.token)

        recipients = resolve_recipients(
            self.repository,
            document.docclicod,
            doc_class.purpose_code,
            document.email,
        )
        if not recipients:
            logger.error(
                "No recipient for %s %s (client %s), leaving it pending",
                doc_class.label,
                document.doccon,
                document.docclicod,
            )
            return None

        fields = build_fields(document, link)
        html = self.renderer.render(doc_class.template_key, fields)
        message = build_message(
            sender_name=self.settings.sender_name,
            sender_address=self.sender_address,
            to=recipients,
            cc=self.settings.cc,
            bcc=document.docusuariocorreo,
            subject=self.settings.subject,
            html=html,
        )

        pre_commit = self.settings.notify_policy == PRE_COMMIT
        if pre_commit:
            self.repository.mark_notified(document.doccon)

        try:
            delivery_id = self.mailer.send(message)
        except DispatchError:
            if pre_commit:
                logger.error(
                    "%s: %s %s marked notified but the email to [%s] was not sent",
                    NOTIFIED_WITHOUT_DELIVERY,
                    doc_class.label,
                    document.doccon,
                    recipients,
                )
            raise

        if not pre_commit:
            self.repository.mark_notified(document.doccon)

        logger.info(
            "Email sent to %s (doccon %s) and to [%s] | MessageId: %s",
            document.name,
            document.doccon,
            recipients,
            delivery_id,
        )

        if delivery_id:
            self.archiver.archive(message)
        else:
            logger.error(
                "Empty delivery id for doccon %s, not archiving", document.doccon
            )
        return delivery_id
