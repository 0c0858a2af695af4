"""Logging setup for skillmanager.

Output goes to stderr: stdout carries the tables and markdown the CLI renders.
"""

import json
import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

# Libraries that log every request or event-loop detail at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with ``extra=`` fields merged in.

    Example output::

        {"timestamp": "2026-10-19T08:15:02+00:00", "level": "INFO",
         "logger": "skillmanager.store", "message": "Loaded 4 skill(s)"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _text_handler() -> logging.Handler:
    return RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%H:%M:%S",
    )


def setup_logging(level: str = "INFO", format_type: str = "text") -> None:
    """Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" for one JSON object per line, "text" for rich
            console output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if format_type == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = _text_handler()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)
