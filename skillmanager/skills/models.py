"""Data models for locally installed skill packages."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Assistant whose skill directory a package lives in."""
    CODEX = "Codex"
    CLAUDE = "Claude Code"
    OPENCODE = "OpenCode"
    COPILOT = "GitHub Copilot"

    @property
    def storage_key(self) -> str:
        return _STORAGE_KEYS[self]

    @classmethod
    def from_storage_key(cls, key: str) -> "Platform":
        for platform, storage_key in _STORAGE_KEYS.items():
            if storage_key == key:
                return platform
        raise ValueError(f"Unknown platform: {key}. Available: {list(_STORAGE_KEYS.values())}")


_STORAGE_KEYS = {
    Platform.CODEX: "codex",
    Platform.CLAUDE: "claude",
    Platform.OPENCODE: "opencode",
    Platform.COPILOT: "copilot",
}

# Which installation represents a slug present under several platforms
PREFERRED_PLATFORM_ORDER = (
    Platform.CODEX,
    Platform.CLAUDE,
    Platform.OPENCODE,
    Platform.COPILOT,
)


class PublishBump(str, Enum):
    """Semantic version component to increment on publish."""
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


class SkillMetadata(BaseModel):
    """Name and description pulled out of a SKILL.md document."""
    name: str | None = None
    description: str | None = None


class SkillReference(BaseModel):
    """A markdown file under a skill's ``references/`` directory."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    path: Path


class SkillStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    references: int = 0
    assets: int = 0
    scripts: int = 0
    templates: int = 0


class ScannedSkill(BaseModel):
    """A skill directory found by the scanner, before platform assignment."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    display_name: str
    description: str
    folder_path: Path
    manifest_path: Path
    references: tuple[SkillReference, ...] = ()
    stats: SkillStats = Field(default_factory=SkillStats)


class Skill(BaseModel):
    """A skill package installed under one platform root.

    ``name`` is the slug (folder name) shared by every installation of the
    same package; ``id`` is unique per platform and slug.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    display_name: str
    description: str
    platform: Platform
    folder_path: Path
    manifest_path: Path
    references: tuple[SkillReference, ...] = ()
    stats: SkillStats = Field(default_factory=SkillStats)


class SkillGroup(BaseModel):
    """All installations of one slug, collapsed for a grouped catalog view."""
    model_config = ConfigDict(frozen=True)

    id: str
    skill: Skill
    installed_platforms: frozenset[Platform]
    delete_ids: tuple[str, ...]


class SkillOrigin(BaseModel):
    """Registry provenance sidecar written next to installed skills."""
    model_config = ConfigDict(populate_by_name=True)

    slug: str
    installed_version: str | None = Field(default=None, alias="installedVersion")
    registry: str | None = None
    installed_at: datetime | None = Field(default=None, alias="installedAt")


class PublishState(BaseModel):
    """Last successful publish of a slug, as recorded by the ledger."""
    model_config = ConfigDict(populate_by_name=True)

    last_published_hash: str = Field(alias="lastPublishedHash")
    last_published_at: datetime = Field(alias="lastPublishedAt")


class CliStatus(BaseModel):
    """Installation and login status of the publishing CLI."""
    is_installed: bool
    is_logged_in: bool
    username: str | None = None
    error_message: str | None = None
