"""``major.minor.patch`` parsing, comparison and bumping."""

from __future__ import annotations

from skillmanager.skills.models import PublishBump

DEFAULT_VERSION = "1.0.0"


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse a strict three-part version; anything else returns None."""
    parts = version.strip().split(".")
    if len(parts) != 3 or not all(part.isascii() and part.isdigit() for part in parts):
        return None
    major, minor, patch = (int(part) for part in parts)
    return major, minor, patch


def is_newer_version(latest: str, installed: str) -> bool:
    """True if ``latest`` is strictly newer than ``installed``.

    Malformed versions are not comparable and never count as newer.
    """
    latest_parts = parse_version(latest)
    installed_parts = parse_version(installed)
    if latest_parts is None or installed_parts is None:
        return False
    return latest_parts > installed_parts


def bump_version(current: str, bump: PublishBump) -> str | None:
    """Increment one component and zero the ones to its right.

    Examples:
        >>> bump_version("2.4.9", PublishBump.MINOR)
        '2.5.0'
    """
    parts = parse_version(current)
    if parts is None:
        return None
    major, minor, patch = parts

    if bump == PublishBump.MAJOR:
        return f"{major + 1}.0.0"
    if bump == PublishBump.MINOR:
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"
