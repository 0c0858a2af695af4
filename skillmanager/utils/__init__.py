"""skillmanager utilities."""

from skillmanager.utils.helpers import (
    atomic_write_text,
    expand_path,
    is_hidden,
    now_utc,
    safe_json_loads,
)
from skillmanager.utils.logging import get_logger, setup_logging

__all__ = [
    "atomic_write_text",
    "expand_path",
    "is_hidden",
    "now_utc",
    "safe_json_loads",
    "setup_logging",
    "get_logger",
]
