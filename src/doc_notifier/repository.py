"""Storage access for documents, subscriptions and access tokens."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import psycopg
from pydantic import ValidationError

from doc_notifier.exceptions import StorageError
from doc_notifier.models import PendingDocument

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from doc_notifier.models import AccessToken, DocumentClass

logger = logging.getLogger(__name__)

# The notified flag is stored loosely upstream (NULL, '', 0 or false all mean
# pending), so compare its lowercased text form.
PENDING_DOCUMENTS_SQL = """\
SELECT qdocumento.doccon, qdocumento.doctip, qdocumento.docclicod,
       qdocumento.docenviado, qdocumento.doceje, qdocumento.docser,
       qdocumento.docnum, qdocumento.docfec, qdocumento.docimptot,
       qdocumento.docusuariocorreo,
       qdocumento_fichero.qdocumento_id, qdocumento_fichero.docfichero,
       users.id AS user_id, users.name, users.email
FROM qdocumento
JOIN users ON qdocumento.docclicod = users.usuclicod
JOIN qdocumento_fichero ON qdocumento.doccon = qdocumento_fichero.qdocumento_id
WHERE LOWER(COALESCE(CAST(qdocumento.docenviado AS TEXT), ''))
      IN ('', '0', 'f', 'false')
  AND qdocumento.doctip = %s
  AND qdocumento.docfec >= %s
ORDER BY qdocumento.doccon DESC
"""

SUBSCRIPTION_EMAILS_SQL = """\
SELECT ageema
FROM qanet_clienteagenda
WHERE ageclicod = %s AND agefuncion = ANY(%s)
"""

INSERT_ACCESS_TOKEN_SQL = """\
INSERT INTO access_tokens (user_id, token, expires_at, created_at, updated_at)
VALUES (%s, %s, %s, NOW(), NOW())
"""

# An untyped literal is coerced to the column type, integer or boolean alike.
MARK_NOTIFIED_SQL = "UPDATE qdocumento SET docenviado = '1' WHERE doccon = %s"


class DocumentRepository:
    """Thin query layer over a psycopg connection with dict rows."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self.conn = conn

    def fetch_pending(
        self, doc_class: DocumentClass, min_date: date
    ) -> list[PendingDocument]:
        """Return pending documents of one type, newest first.

        Rows that do not validate are logged and left out of the batch.
        """
        rows = self._fetch_all(PENDING_DOCUMENTS_SQL, (doc_class.type_tag, min_date))
        documents: list[PendingDocument] = []
        for row in rows:
            try:
                documents.append(PendingDocument.model_validate(row))
            except ValidationError as exc:
                logger.error(
                    "Skipping invalid %s row (doccon %s): %s",
                    doc_class.label,
                    row.get("doccon"),
                    exc,
                )
        return documents

    def fetch_subscription_emails(
        self, client_code: str | int, purpose_codes: Sequence[str]
    ) -> list[str | None]:
        """Return raw subscription email values in query order."""
        rows = self._fetch_all(
            SUBSCRIPTION_EMAILS_SQL, (client_code, list(purpose_codes))
        )
        return [row["ageema"] for row in rows]

    def insert_access_token(self, token: AccessToken) -> None:
        self._execute(
            INSERT_ACCESS_TOKEN_SQL, (token.user_id, token.token, token.expires_at)
        )

    def mark_notified(self, doccon: int) -> None:
        self._execute(MARK_NOTIFIED_SQL, (doccon,))

    def _fetch_all(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            # Close the read transaction so later scans see fresh rows.
            self.conn.commit()
        except psycopg.Error as exc:
            self._rollback()
            msg = f"Query failed: {exc}"
            raise StorageError(msg) from exc
        return rows

    def _execute(self, sql: str, params: Sequence[Any]) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
            self.conn.commit()
        except psycopg.Error as exc:
            self._rollback()
            msg = f"Write failed: {exc}"
            raise StorageError(msg) from exc

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except psycopg.Error:
            logger.debug("Error during rollback", exc_info=True)
