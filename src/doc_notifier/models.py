"""Domain models for document notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

SHARED_PURPOSE_CODE = "60"

_PENDING_FLAGS = {"", "0", "f", "false"}


@dataclass(frozen=True)
class DocumentClass:
    """Per-type configuration driving one pass of the scan.

    A document is only visible to the scan once it has at least one
    attachment row; the pending query joins on the attachment table.
    """

    type_tag: str
    label: str
    purpose_code: str
    link_segment: str
    template_key: str

    @property
    def purpose_codes(self) -> tuple[str, str]:
        return (self.purpose_code, SHARED_PURPOSE_CODE)


INVOICE = DocumentClass(
    type_tag="FC",
    label="invoice",
    purpose_code="4",
    link_segment="Facturas",
    template_key="invoice",
)
QUOTE = DocumentClass(
    type_tag="PC",
    label="quote",
    purpose_code="1",
    link_segment="Presupuestos",
    template_key="quote",
)
DELIVERY_NOTE = DocumentClass(
    type_tag="AC",
    label="delivery note",
    purpose_code="3",
    link_segment="Albaranes",
    template_key="delivery_note",
)

# Scan order: invoices, then quotes, then delivery notes.
DOCUMENT_CLASSES: tuple[DocumentClass, ...] = (INVOICE, QUOTE, DELIVERY_NOTE)


def is_notified(flag: object) -> bool:
    """Return True if a notified flag value means "already notified".

    NULL, empty string, zero and false (in any spelling) all mean pending.
    """
    if flag is None or flag is False:
        return False
    if isinstance(flag, int | float | Decimal):
        return flag != 0
    return str(flag).strip().lower() not in _PENDING_FLAGS


class PendingDocument(BaseModel):
    """One eligible row from the pending-documents query."""

    doccon: int
    doctip: str | None = None
    docclicod: str | int
    docenviado: Any = None
    doceje: str | int | None = None
    docser: str | int | None = None
    docnum: str | int | None = None
    docfec: datetime | date | None = None
    docimptot: Decimal | None = None
    docusuariocorreo: str | None = None
    qdocumento_id: int | None = None
    docfichero: str | None = None
    user_id: int
    name: str | None = None
    email: str | None = None


@dataclass
class AccessToken:
    """A single-use access credential bound to a user."""

    user_id: int
    token: str
    expires_at: datetime
    created_at: datetime


@dataclass
class OutgoingMessage:
    """A rendered notification ready for dispatch and archiving."""

    sender: str
    to: str
    subject: str
    html: str
    cc: list[str] = field(default_factory=list)
    bcc: str | None = None
    message_id: str | None = None
    date: str | None = None
