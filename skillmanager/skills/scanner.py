"""Directory scanner for skill roots.

Every function here blocks on the filesystem; the store calls them through
``asyncio.to_thread``.
"""

from __future__ import annotations

from pathlib import Path

from skillmanager.errors import ReadError, ScanError, SkillFileMissingError
from skillmanager.skills.metadata import DEFAULT_DESCRIPTION, format_title, parse_metadata
from skillmanager.skills.models import ScannedSkill, SkillOrigin, SkillReference, SkillStats
from skillmanager.utils import get_logger, is_hidden, safe_json_loads

logger = get_logger(__name__)

MANIFEST_NAME = "SKILL.md"
REFERENCES_DIR = "references"
ORIGIN_RELATIVE_PATH = Path(".clawdhub") / "origin.json"


def skill_id(storage_key: str, folder_name: str) -> str:
    """Identifier of a skill folder under a given platform."""
    return f"{storage_key}:{folder_name}"


def count_entries(directory: Path) -> int:
    """Count non-hidden entries in ``directory``; 0 if it cannot be listed."""
    try:
        return sum(1 for entry in directory.iterdir() if not is_hidden(entry))
    except OSError:
        return 0


def reference_files(directory: Path) -> list[SkillReference]:
    """List ``*.md`` files in a references directory, sorted by display name."""
    try:
        entries = list(directory.iterdir())
    except OSError:
        return []

    references = [
        SkillReference(
            id=str(entry.resolve()),
            name=format_title(entry.stem),
            path=entry,
        )
        for entry in entries
        if not is_hidden(entry) and entry.is_file() and entry.suffix.lower() == ".md"
    ]
    return sorted(references, key=lambda ref: ref.name.casefold())


def load_scanned_skill(skill_dir: Path, storage_key: str) -> ScannedSkill | None:
    """Build a descriptor for one skill folder.

    Returns None when the folder has no manifest or the manifest cannot be
    read.
    """
    manifest = skill_dir / MANIFEST_NAME
    if not manifest.is_file():
        return None

    try:
        markdown = manifest.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Skipping skill {skill_dir}: cannot read {MANIFEST_NAME}: {e}")
        return None

    metadata = parse_metadata(markdown)
    references = reference_files(skill_dir / REFERENCES_DIR)

    return ScannedSkill(
        id=skill_id(storage_key, skill_dir.name),
        name=skill_dir.name,
        display_name=format_title(metadata.name or skill_dir.name),
        description=metadata.description or DEFAULT_DESCRIPTION,
        folder_path=skill_dir,
        manifest_path=manifest,
        references=tuple(references),
        stats=SkillStats(
            references=len(references),
            assets=count_entries(skill_dir / "assets"),
            scripts=count_entries(skill_dir / "scripts"),
            templates=count_entries(skill_dir / "templates"),
        ),
    )


def scan_skills(root: Path, storage_key: str) -> list[ScannedSkill]:
    """Scan the immediate children of ``root`` for skill folders.

    Args:
        root: Platform skill root
        storage_key: Platform storage key used to build skill ids

    Returns:
        Descriptors for every child directory that holds a readable SKILL.md

    Raises:
        ScanError: ``root`` itself cannot be listed
    """
    try:
        children = sorted(root.iterdir())
    except OSError as e:
        raise ScanError(f"Cannot read skill directory {root}: {e}") from e

    skills: list[ScannedSkill] = []
    for child in children:
        if is_hidden(child) or not child.is_dir():
            continue
        scanned = load_scanned_skill(child, storage_key)
        if scanned is not None:
            skills.append(scanned)

    logger.debug(f"Scanned {root}: {len(skills)} skill(s)")
    return skills


def read_origin(skill_dir: Path) -> SkillOrigin | None:
    """Read the registry origin sidecar of a skill folder, if any."""
    origin_path = skill_dir / ORIGIN_RELATIVE_PATH
    try:
        raw = origin_path.read_text(encoding="utf-8")
    except OSError:
        return None

    data = safe_json_loads(raw)
    if not isinstance(data, dict) or not data.get("slug"):
        logger.debug(f"Ignoring malformed origin file {origin_path}")
        return None
    try:
        return SkillOrigin.model_validate(data)
    except ValueError:
        logger.debug(f"Ignoring malformed origin file {origin_path}")
        return None


def read_markdown(path: Path) -> str:
    """Read a manifest or reference file.

    Raises:
        SkillFileMissingError: The file no longer exists
        ReadError: The file exists but cannot be read as UTF-8 text
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SkillFileMissingError(f"{path.name} no longer exists at {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"Failed to read {path}: {e}") from e
