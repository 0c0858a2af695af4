"""Persisted record of the last published content hash per skill."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from skillmanager.errors import LedgerError
from skillmanager.skills.models import PublishState
from skillmanager.utils import atomic_write_text, get_logger, now_utc

logger = get_logger(__name__)


class PublishStateLedger:
    """One JSON record per slug under a per-user state directory.

    Missing and unreadable records both mean "never published"; the directory
    is only created when the first record is written.

    Example::

        ledger = PublishStateLedger(state_dir)
        ledger.save("pdf-tools", digest)
        ledger.load("pdf-tools").last_published_hash == digest
    """

    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, slug: str) -> Path:
        return self.directory / f"{slug}.json"

    def load(self, slug: str) -> PublishState | None:
        """Return the stored record for ``slug`` or None."""
        path = self.path_for(slug)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read publish state for {slug}: {e}")
            return None

        try:
            return PublishState.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Ignoring corrupt publish state for {slug} at {path}")
            return None

    def save(self, slug: str, digest: str) -> PublishState:
        """Record ``digest`` as the last published hash of ``slug``.

        Raises:
            LedgerError: The record could not be written
        """
        state = PublishState(last_published_hash=digest, last_published_at=now_utc())
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            atomic_write_text(self.path_for(slug), state.model_dump_json(by_alias=True))
        except OSError as e:
            raise LedgerError(f"Failed to save publish state for {slug}: {e}") from e

        logger.debug(f"Saved publish state for {slug}")
        return state
