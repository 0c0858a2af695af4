"""Local skill packages: scanning, hashing, versions and publish state."""

from skillmanager.skills.hashing import compute_skill_hash
from skillmanager.skills.ledger import PublishStateLedger
from skillmanager.skills.metadata import format_title, parse_metadata, strip_frontmatter
from skillmanager.skills.models import (
    CliStatus,
    Platform,
    PublishBump,
    PublishState,
    Skill,
    SkillGroup,
    SkillMetadata,
    SkillOrigin,
    SkillReference,
    SkillStats,
)
from skillmanager.skills.scanner import read_origin, scan_skills
from skillmanager.skills.versioning import bump_version, is_newer_version, parse_version

__all__ = [
    "CliStatus",
    "Platform",
    "PublishBump",
    "PublishState",
    "PublishStateLedger",
    "Skill",
    "SkillGroup",
    "SkillMetadata",
    "SkillOrigin",
    "SkillReference",
    "SkillStats",
    "bump_version",
    "compute_skill_hash",
    "format_title",
    "is_newer_version",
    "parse_metadata",
    "parse_version",
    "read_origin",
    "scan_skills",
    "strip_frontmatter",
]
