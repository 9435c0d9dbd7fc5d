"""Logging configuration: console plus one log file per day."""

from __future__ import annotations

import logging
import logging.config
from datetime import date
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


class DailyFileHandler(logging.FileHandler):
    """Append to ``<directory>/<prefix>-YYYY-MM-DD.log``, switching daily."""

    def __init__(
        self, directory: str | Path, prefix: str = "app", encoding: str = "utf-8"
    ) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self.current_date = date.today()
        super().__init__(self._path_for(self.current_date), encoding=encoding)

    def _path_for(self, day: date) -> Path:
        return self.directory / f"{self.prefix}-{day.isoformat()}.log"

    def emit(self, record: logging.LogRecord) -> None:
        today = date.today()
        if today != self.current_date:
            self.acquire()
            try:
                if today != self.current_date:
                    self.close()
                    self.current_date = today
                    self.baseFilename = str(self._path_for(today).resolve())
            finally:
                self.release()
        super().emit(record)


def setup_logging(log_dir: str | Path, level: str = "INFO") -> None:
    """Configure the root logger with console and daily file output."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": LOG_FORMAT,
                    "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": level,
                    "stream": "ext://sys.stdout",
                },
                "file": {
                    "()": DailyFileHandler,
                    "formatter": "standard",
                    "level": level,
                    "directory": str(log_dir),
                },
            },
            "root": {
                "handlers": ["console", "file"],
                "level": level,
            },
        }
    )
