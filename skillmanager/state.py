"""Immutable state snapshots published by the skill store."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from skillmanager.skills.models import Skill, SkillReference


class ListStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class DetailStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    MISSING = "missing"
    FAILED = "failed"


class ListState(BaseModel):
    """Catalog load state; ``message`` is set only when failed."""
    model_config = ConfigDict(frozen=True)

    status: ListStatus = ListStatus.IDLE
    message: str | None = None

    @classmethod
    def idle(cls) -> "ListState":
        return cls()

    @classmethod
    def loading(cls) -> "ListState":
        return cls(status=ListStatus.LOADING)

    @classmethod
    def loaded(cls) -> "ListState":
        return cls(status=ListStatus.LOADED)

    @classmethod
    def failed(cls, message: str) -> "ListState":
        return cls(status=ListStatus.FAILED, message=message)


class DetailState(BaseModel):
    """Load state of a skill body or a reference body."""
    model_config = ConfigDict(frozen=True)

    status: DetailStatus = DetailStatus.IDLE
    message: str | None = None

    @classmethod
    def idle(cls) -> "DetailState":
        return cls()

    @classmethod
    def loading(cls) -> "DetailState":
        return cls(status=DetailStatus.LOADING)

    @classmethod
    def loaded(cls) -> "DetailState":
        return cls(status=DetailStatus.LOADED)

    @classmethod
    def missing(cls) -> "DetailState":
        return cls(status=DetailStatus.MISSING)

    @classmethod
    def failed(cls, message: str) -> "DetailState":
        return cls(status=DetailStatus.FAILED, message=message)


class StoreState(BaseModel):
    """Everything a front end needs to render the local catalog.

    A new snapshot replaces the previous one on every transition; snapshots
    are never modified after publication.
    """
    model_config = ConfigDict(frozen=True)

    skills: tuple[Skill, ...] = ()
    list_state: ListState = ListState()
    detail_state: DetailState = DetailState()
    reference_state: DetailState = DetailState()
    selected_skill_id: str | None = None
    selected_markdown: str = ""
    selected_reference_id: str | None = None
    selected_reference_markdown: str = ""

    @property
    def selected_skill(self) -> Skill | None:
        if self.selected_skill_id is None:
            return None
        return next((s for s in self.skills if s.id == self.selected_skill_id), None)

    @property
    def selected_reference(self) -> SkillReference | None:
        skill = self.selected_skill
        if skill is None or self.selected_reference_id is None:
            return None
        return next((r for r in skill.references if r.id == self.selected_reference_id), None)
