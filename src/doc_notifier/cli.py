"""CLI entry point for doc-notifier."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import click

from doc_notifier.archive import SentArchiver
from doc_notifier.config import (
    get_imap_config,
    get_log_dir,
    get_log_level,
    get_notifier_settings,
    get_smtp_config,
)
from doc_notifier.db import get_connection
from doc_notifier.logging_setup import setup_logging
from doc_notifier.mailer import SmtpMailer
from doc_notifier.renderer import NotificationRenderer
from doc_notifier.repository import DocumentRepository
from doc_notifier.scanner import DocumentScanner
from doc_notifier.scheduler import IntervalTrigger

if TYPE_CHECKING:
    import psycopg

logger = logging.getLogger(__name__)


def build_scanner(conn: psycopg.Connection[Any]) -> DocumentScanner:
    """Wire the scan services from environment configuration."""
    settings = get_notifier_settings()
    smtp_config = get_smtp_config()
    return DocumentScanner(
        repository=DocumentRepository(conn),
        renderer=NotificationRenderer(),
        mailer=SmtpMailer(smtp_config),
        archiver=SentArchiver(get_imap_config(), settings.archive_delay_seconds),
        settings=settings,
        sender_address=smtp_config.username,
    )


@click.group()
def cli() -> None:
    """Document notifier — email clients about new business documents."""
    setup_logging(get_log_dir(), get_log_level())


@cli.command()
def run() -> None:
    """Scan for new documents once per interval until interrupted."""
    conn = get_connection()
    trigger: IntervalTrigger | None = None
    try:
        scanner = build_scanner(conn)
        trigger = IntervalTrigger(scanner.scan, scanner.settings.scan_interval_seconds)
        trigger.run_forever()
    finally:
        # A scan thread may still be using the connection.
        if trigger is not None:
            trigger.join()
        conn.close()
        logger.info("Database connection closed")


@cli.command()
def scan() -> None:
    """Run a single scan pass and exit."""
    conn = get_connection()
    try:
        result = build_scanner(conn).scan()
    finally:
        conn.close()

    if result is None:
        return
    click.echo(f"Processed {result.total_processed} of {result.pending} document(s).")
    if result.failed:
        raise SystemExit(1)


@cli.command("check-imap")
def check_imap() -> None:
    """Check the IMAP connection and list the available folders."""
    archiver = SentArchiver(get_imap_config())
    try:
        folders = archiver.list_folders()
    except Exception as exc:
        logger.error("IMAP check failed: %s", exc)
        raise click.ClickException(str(exc)) from exc

    logger.info("IMAP connection OK, %d folder(s)", len(folders))
    for folder in folders:
        click.echo(folder)
