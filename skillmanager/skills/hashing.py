"""Content digest of a skill folder, used to detect unpublished changes."""

from __future__ import annotations

import hashlib
from pathlib import Path

from skillmanager.errors import HashError

CHUNK_SIZE = 64 * 1024


def _iter_files(folder: Path) -> list[tuple[str, Path]]:
    files = [
        (path.relative_to(folder).as_posix(), path)
        for path in folder.rglob("*")
        if path.is_file()
    ]
    # Canonical order so the digest does not depend on directory listing order
    return sorted(files, key=lambda item: item[0])


def compute_skill_hash(folder: Path) -> str:
    """Return a SHA-256 hex digest of every file under ``folder``.

    Each file contributes its relative path, its size and its bytes, so
    edits, additions, removals and renames all change the digest.

    Raises:
        HashError: The folder or one of its files cannot be read
    """
    if not folder.is_dir():
        raise HashError(f"Skill folder does not exist: {folder}")

    digest = hashlib.sha256()
    try:
        for relative, path in _iter_files(folder):
            digest.update(relative.encode("utf-8"))
            digest.update(b"\0")
            digest.update(str(path.stat().st_size).encode("ascii"))
            digest.update(b"\0")
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                    digest.update(chunk)
            digest.update(b"\0")
    except OSError as e:
        raise HashError(f"Failed to hash {folder}: {e}") from e

    return digest.hexdigest()
