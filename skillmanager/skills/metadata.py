"""SKILL.md metadata extraction.

Front matter here is the loose ``key: value`` subset used by assistant skill
folders, not full YAML: many published manifests carry unquoted colons or
markdown in their descriptions that a YAML parser rejects.
"""

from __future__ import annotations

from skillmanager.skills.models import SkillMetadata

FRONTMATTER_DELIMITER = "---"
DEFAULT_DESCRIPTION = "No description available"


def _is_delimiter(line: str) -> bool:
    return line.strip() == FRONTMATTER_DELIMITER


def _parse_frontmatter_line(line: str) -> tuple[str, str] | None:
    key, sep, raw_value = line.partition(":")
    if not sep:
        return None
    return key.strip(), raw_value.strip().strip("\"'")


def _parse_markdown_fallback(lines: list[str]) -> SkillMetadata:
    title: str | None = None
    description: str | None = None

    for raw in lines:
        line = raw.strip()
        if title is None and line.startswith("# "):
            title = line[2:].strip()
        elif description is None and line and not line.startswith("#"):
            description = line
            break

    return SkillMetadata(name=title, description=description)


def parse_metadata(markdown: str) -> SkillMetadata:
    """Extract name and description from a manifest.

    Front matter wins; a ``# Heading`` and the first paragraph line after it
    fill whichever field the front matter left unset. A block with no closing
    delimiter is not front matter and is read as body text. Never raises.
    """
    lines = markdown.splitlines()
    name: str | None = None
    description: str | None = None
    body_start = 0

    if lines and _is_delimiter(lines[0]):
        # Unterminated: everything after the opening delimiter is body
        body_start = 1
        fields: dict[str, str] = {}
        for index in range(1, len(lines)):
            line = lines[index]
            if _is_delimiter(line):
                body_start = index + 1
                name = fields.get("name")
                description = fields.get("description")
                break
            parsed = _parse_frontmatter_line(line)
            if parsed is not None:
                key, value = parsed
                fields[key] = value

    if name is None or description is None:
        fallback = _parse_markdown_fallback(lines[body_start:])
        name = name if name is not None else fallback.name
        description = description if description is not None else fallback.description

    return SkillMetadata(name=name, description=description)


def strip_frontmatter(markdown: str) -> str:
    """Return the manifest body without its front-matter block.

    Text with no front matter, or with an unterminated block, comes back
    unchanged.
    """
    lines = markdown.splitlines()
    if not lines or not _is_delimiter(lines[0]):
        return markdown

    for index in range(1, len(lines)):
        if _is_delimiter(lines[index]):
            return "\n".join(lines[index + 1:]).strip("\r\n")

    return markdown


def format_title(title: str) -> str:
    """Turn a slug like ``pdf-tools_v2`` into ``Pdf Tools V2``."""
    normalized = title.replace("-", " ").replace("_", " ")
    return " ".join(word.capitalize() for word in normalized.split())
