"""Notification HTML rendering."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from jinja2 import (
    Environment,
    PackageLoader,
    TemplateNotFound,
    Undefined,
    select_autoescape,
)

from doc_notifier.exceptions import RenderError

if TYPE_CHECKING:
    from doc_notifier.models import PendingDocument

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "usuario"

TEMPLATE_FILES = {
    "invoice": "invoice.html",
    "quote": "quote.html",
    "delivery_note": "delivery_note.html",
}


def format_document_date(value: date | datetime | None) -> str:
    """Format a document date as dd/mm/YYYY (es-ES short date)."""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def build_fields(document: PendingDocument, link: str) -> dict[str, Any]:
    """Build the fixed template field set for one document."""
    return {
        "nombre": document.name or DEFAULT_DISPLAY_NAME,
        "doccon": document.doccon,
        "docid": document.qdocumento_id,
        "doceje": document.doceje,
        "docfec": format_document_date(document.docfec),
        "docimptot": document.docimptot,
        "docser": document.docser,
        "docnum": document.docnum,
        "link": link,
        "docfichero": document.docfichero,
    }


class NotificationRenderer:
    """Render one of the precompiled notification templates.

    All templates are loaded and compiled up front so a missing file fails
    at start-up rather than in the middle of a scan. Missing fields render
    as empty strings.
    """

    def __init__(self, env: Environment | None = None) -> None:
        self.env = env or Environment(
            loader=PackageLoader("doc_notifier", "templates"),
            autoescape=select_autoescape(["html"]),
            undefined=Undefined,
        )
        try:
            self.templates = {
                key: self.env.get_template(filename)
                for key, filename in TEMPLATE_FILES.items()
            }
        except TemplateNotFound as exc:
            msg = f"Notification template not found: {exc.name}"
            raise RenderError(msg) from exc

    def render(self, template_key: str, fields: dict[str, Any]) -> str:
        template = self.templates.get(template_key)
        if template is None:
            msg = f"Unknown template key: {template_key}"
            raise RenderError(msg)
        # None renders as "None" in Jinja2; blank it like a missing field.
        context = {key: value for key, value in fields.items() if value is not None}
        return template.render(**context)
