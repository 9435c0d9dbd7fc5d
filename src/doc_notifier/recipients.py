"""Recipient resolution from the client subscription table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doc_notifier.models import SHARED_PURPOSE_CODE

if TYPE_CHECKING:
    from doc_notifier.repository import DocumentRepository

logger = logging.getLogger(__name__)


def resolve_recipients(
    repository: DocumentRepository,
    client_code: str | int,
    purpose_code: str,
    fallback_email: str | None,
) -> str | None:
    """Return the comma-joined "to" line for a client and purpose.

    Subscribed addresses for the type-specific code and the shared code are
    used in query order. When none remain after trimming, the owner's
    primary email is returned unchanged, which may be None.
    """
    raw_emails = repository.fetch_subscription_emails(
        client_code, (purpose_code, SHARED_PURPOSE_CODE)
    )
    emails = [email.strip() for email in raw_emails if email and email.strip()]

    if not emails:
        logger.debug(
            "No subscribed emails for client %s, falling back to owner email",
            client_code,
        )
        return fallback_email

    return ", ".join(emails)
