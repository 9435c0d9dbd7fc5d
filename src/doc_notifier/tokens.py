"""Access token issuing and link building."""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from doc_notifier.models import AccessToken

if TYPE_CHECKING:
    from doc_notifier.models import DocumentClass
    from doc_notifier.repository import DocumentRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
TOKEN_LIFETIME = timedelta(days=7)


def issue_access_token(
    repository: DocumentRepository,
    user_id: int,
    *,
    now: datetime | None = None,
) -> AccessToken:
    """Generate a random token for a user, persist it and return it.

    Existing tokens for the user are left alone; several may be valid at
    once. Storage failures propagate to the caller.
    """
    issued_at = now or datetime.now(tz=UTC)
    token = AccessToken(
        user_id=user_id,
        token=secrets.token_hex(TOKEN_BYTES),
        expires_at=issued_at + TOKEN_LIFETIME,
        created_at=issued_at,
    )
    repository.insert_access_token(token)
    logger.info("Access token issued for user %s", user_id)
    return token


def build_access_link(base_url: str, doc_class: DocumentClass, token: str) -> str:
    """Return ``<base>/documentos/<Segment>?token=<token>``."""
    return f"{base_url.rstrip('/')}/documentos/{doc_class.link_segment}?token={token}"
