"""Data models for skills listed on the remote registry."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class RemoteSkill(BaseModel):
    """A skill as returned by registry search."""
    slug: str
    display_name: str
    summary: str | None = None
    version: str | None = None
    score: float | None = None

    @property
    def id(self) -> str:
        return self.slug

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteSkill":
        slug = data.get("slug") or data.get("name") or ""
        return cls(
            slug=slug,
            display_name=data.get("displayName") or data.get("name") or slug,
            summary=data.get("summary") or data.get("description"),
            version=data.get("version"),
            score=data.get("score"),
        )
