"""Utility functions for skillmanager."""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def expand_path(value: str | Path) -> Path:
    """Expand ``~`` and environment variables in a filesystem path."""
    return Path(os.path.expandvars(str(value))).expanduser()


def is_hidden(path: Path) -> bool:
    """Return True for dot-files and dot-directories."""
    return path.name.startswith(".")


def safe_json_loads(s: str, default: Any = None) -> Any:
    """Safely parse JSON string, returning default on failure."""
    try:
        return json.loads(s)
    except (json.JSONDecodeError, TypeError):
        return default if default is not None else {}


def atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` so readers see either the old or new file.

    The data goes to a temp file in the target directory which is then moved
    over ``path`` with ``os.replace``.
    """
    fd, temp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp", prefix=f".{path.stem}-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
