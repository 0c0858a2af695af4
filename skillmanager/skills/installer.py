"""Install downloaded skill archives into one or more platform roots.

The archive is extracted and validated once in a staging directory; only
then is it copied into each destination, replacing any previous install of
the same slug. Blocking; the store calls it through ``asyncio.to_thread``.
"""

from __future__ import annotations

import json
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

from skillmanager.errors import InstallError
from skillmanager.skills.scanner import MANIFEST_NAME, ORIGIN_RELATIVE_PATH, skill_id
from skillmanager.utils import get_logger, now_utc

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallDestination:
    """A platform root to install into."""

    root: Path
    storage_key: str


def _safe_extract(archive: zipfile.ZipFile, target: Path) -> None:
    target_resolved = target.resolve()
    for member in archive.infolist():
        member_path = (target / member.filename).resolve()
        if not member_path.is_relative_to(target_resolved):
            raise InstallError(f"Archive entry escapes extraction directory: {member.filename}")
    archive.extractall(target)


def _find_skill_root(extracted: Path) -> Path:
    """Locate the folder holding SKILL.md: the archive root or its only directory."""
    if (extracted / MANIFEST_NAME).is_file():
        return extracted

    children = [
        child for child in extracted.iterdir()
        if child.is_dir() and child.name != "__MACOSX"
    ]
    if len(children) == 1 and (children[0] / MANIFEST_NAME).is_file():
        return children[0]

    raise InstallError(f"Archive does not contain a {MANIFEST_NAME}")


def _write_origin(skill_root: Path, slug: str, version: str | None, registry: str | None) -> None:
    origin_path = skill_root / ORIGIN_RELATIVE_PATH
    origin_path.parent.mkdir(parents=True, exist_ok=True)
    origin = {
        "version": 1,
        "registry": registry,
        "slug": slug,
        "installedVersion": version,
        "installedAt": now_utc().isoformat(),
    }
    origin_path.write_text(json.dumps(origin, indent=2), encoding="utf-8")


def _copy_into(staged: Path, destination: InstallDestination, slug: str) -> Path:
    destination.root.mkdir(parents=True, exist_ok=True)
    target = destination.root / slug
    incoming = Path(tempfile.mkdtemp(dir=destination.root, prefix=f".{slug}-incoming-"))
    try:
        shutil.copytree(staged, incoming, dirs_exist_ok=True)
        if target.exists():
            shutil.rmtree(target)
        incoming.rename(target)
    except BaseException:
        shutil.rmtree(incoming, ignore_errors=True)
        raise
    return target


def install_archive(
    archive_path: Path,
    slug: str,
    version: str | None,
    destinations: list[InstallDestination],
    registry: str | None = None,
) -> str | None:
    """Install a skill archive into every destination.

    Args:
        archive_path: Zip archive downloaded from the registry
        slug: Registry slug; also the installed folder name
        version: Installed version, recorded in the origin sidecar
        destinations: Platform roots, in selection preference order
        registry: Registry base URL recorded in the origin sidecar

    Returns:
        Id of the installed skill under the first destination, or None if
        there were no destinations

    Raises:
        InstallError: The archive is unreadable or holds no skill, or a
            destination could not be written
    """
    if not destinations:
        return None

    with tempfile.TemporaryDirectory(prefix="skillmanager-") as staging:
        extracted = Path(staging)
        try:
            with zipfile.ZipFile(archive_path) as archive:
                _safe_extract(archive, extracted)
        except (zipfile.BadZipFile, OSError) as e:
            raise InstallError(f"Failed to extract {archive_path}: {e}") from e

        skill_root = _find_skill_root(extracted)
        _write_origin(skill_root, slug, version, registry)

        for destination in destinations:
            try:
                target = _copy_into(skill_root, destination, slug)
            except OSError as e:
                raise InstallError(f"Failed to install {slug} into {destination.root}: {e}") from e
            logger.info(f"Installed {slug} {version or 'latest'} into {target}")

    return skill_id(destinations[0].storage_key, slug)
