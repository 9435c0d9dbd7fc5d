"""Exception hierarchy for the notification pipeline."""

from __future__ import annotations


class NotifierError(Exception):
    """Base class for all doc-notifier errors."""


class StorageError(NotifierError):
    """A query, insert or update against the database failed."""


class RenderError(NotifierError):
    """A notification template could not be rendered."""


class DispatchError(NotifierError):
    """The outbound SMTP transport failed to deliver a message."""


class ArchiveError(NotifierError):
    """Appending a sent message to the IMAP archive failed."""
