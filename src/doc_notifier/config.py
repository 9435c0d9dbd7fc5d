"""Configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PRE_COMMIT = "pre-commit"
POST_COMMIT = "post-commit"
NOTIFY_POLICIES = (PRE_COMMIT, POST_COMMIT)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SmtpConfig:
    """Outbound SMTP connection configuration."""

    host: str
    username: str
    password: str
    port: int = 587
    starttls: bool = True
    timeout: float = 30.0


@dataclass(frozen=True)
class ImapConfig:
    """IMAP connection configuration for the Sent archive."""

    host: str
    username: str
    password: str
    port: int = 993
    sent_folder: str = "INBOX.Sent"
    timeout: float = 30.0


@dataclass(frozen=True)
class NotifierSettings:
    """Behavioural settings for the scan and the notification messages."""

    link_base_url: str
    sender_name: str = "Redes y Componentes"
    subject: str = "Notificación automática"
    cc: tuple[str, ...] = field(default_factory=tuple)
    min_date: date = date(2025, 9, 2)
    notify_policy: str = PRE_COMMIT
    archive_delay_seconds: float = 1.0
    scan_interval_seconds: float = 60.0


def get_database_url() -> str:
    """Return the DATABASE_URL from the environment."""
    url = os.environ.get("DATABASE_URL")
    if not url:
        msg = "DATABASE_URL environment variable is required"
        raise ValueError(msg)
    return url


def get_log_dir() -> Path:
    """Return the LOG_DIR, defaulting to ./logs, as an absolute path."""
    return Path(os.environ.get("LOG_DIR", "./logs")).resolve()


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def _require(*names: str) -> dict[str, str]:
    values = {name: os.environ.get(name, "") for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        msg = f"Required environment variables not set: {', '.join(missing)}"
        raise ValueError(msg)
    return values


def _get_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def get_smtp_config() -> SmtpConfig:
    """Build SMTP configuration from environment variables.

    Required: SMTP_HOST, SMTP_USERNAME, SMTP_PASSWORD
    Optional: SMTP_PORT (default 587), SMTP_STARTTLS (default true),
    SMTP_TIMEOUT (default 30 seconds)
    """
    values = _require("SMTP_HOST", "SMTP_USERNAME", "SMTP_PASSWORD")

    return SmtpConfig(
        host=values["SMTP_HOST"],
        username=values["SMTP_USERNAME"],
        password=values["SMTP_PASSWORD"],
        port=int(os.environ.get("SMTP_PORT", "587")),
        starttls=_get_bool("SMTP_STARTTLS", default=True),
        timeout=float(os.environ.get("SMTP_TIMEOUT", "30")),
    )


def get_imap_config() -> ImapConfig:
    """Build IMAP configuration from environment variables.

    Required: IMAP_HOST
    Optional: IMAP_USERNAME and IMAP_PASSWORD (default to the SMTP account),
    IMAP_PORT (default 993), IMAP_SENT_FOLDER (default INBOX.Sent),
    IMAP_TIMEOUT (default 30 seconds)
    """
    host = os.environ.get("IMAP_HOST")
    username = os.environ.get("IMAP_USERNAME") or os.environ.get("SMTP_USERNAME")
    password = os.environ.get("IMAP_PASSWORD") or os.environ.get("SMTP_PASSWORD")

    missing = []
    if not host:
        missing.append("IMAP_HOST")
    if not username:
        missing.append("IMAP_USERNAME")
    if not password:
        missing.append("IMAP_PASSWORD")

    if missing:
        msg = f"Required environment variables not set: {', '.join(missing)}"
        raise ValueError(msg)

    return ImapConfig(
        host=host,  # type: ignore[arg-type]
        username=username,  # type: ignore[arg-type]
        password=password,  # type: ignore[arg-type]
        port=int(os.environ.get("IMAP_PORT", "993")),
        sent_folder=os.environ.get("IMAP_SENT_FOLDER", "INBOX.Sent"),
        timeout=float(os.environ.get("IMAP_TIMEOUT", "30")),
    )


def get_notifier_settings() -> NotifierSettings:
    """Build scan and message settings from environment variables.

    Required: LINK_BASE_URL
    Optional: MAIL_SENDER_NAME, MAIL_SUBJECT, MAIL_CC (comma separated),
    DOCUMENT_MIN_DATE (YYYY-MM-DD), NOTIFY_POLICY (pre-commit or
    post-commit), ARCHIVE_DELAY_SECONDS, SCAN_INTERVAL_SECONDS
    """
    values = _require("LINK_BASE_URL")

    policy = os.environ.get("NOTIFY_POLICY", PRE_COMMIT).strip().lower()
    if policy not in NOTIFY_POLICIES:
        allowed = ", ".join(NOTIFY_POLICIES)
        msg = f"NOTIFY_POLICY must be one of {allowed}, got {policy!r}"
        raise ValueError(msg)

    cc = tuple(
        address.strip()
        for address in os.environ.get("MAIL_CC", "").split(",")
        if address.strip()
    )

    return NotifierSettings(
        link_base_url=values["LINK_BASE_URL"].rstrip("/"),
        sender_name=os.environ.get("MAIL_SENDER_NAME", "Redes y Componentes"),
        subject=os.environ.get("MAIL_SUBJECT", "Notificación automática"),
        cc=cc,
        min_date=date.fromisoformat(os.environ.get("DOCUMENT_MIN_DATE", "2025-09-02")),
        notify_policy=policy,
        archive_delay_seconds=float(os.environ.get("ARCHIVE_DELAY_SECONDS", "1")),
        scan_interval_seconds=float(os.environ.get("SCAN_INTERVAL_SECONDS", "60")),
    )
