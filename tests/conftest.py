"""Shared fixtures: skill trees on disk, a fake registry and a fake publishing CLI."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from skillmanager.errors import RegistryNotFoundError
from skillmanager.registry.models import RemoteSkill
from skillmanager.skills.ledger import PublishStateLedger
from skillmanager.skills.models import CliStatus, Platform
from skillmanager.skills.versioning import bump_version
from skillmanager.store import SkillStore


def _write_skill(
    root: Path,
    folder: str,
    manifest: str | None = None,
    references: dict[str, str] | None = None,
    assets: list[str] | None = None,
) -> Path:
    skill = root / folder
    skill.mkdir(parents=True, exist_ok=True)
    if manifest is None:
        manifest = f"---\nname: {folder}\ndescription: The {folder} skill.\n---\n\n# {folder}\n\nBody of {folder}.\n"
    (skill / "SKILL.md").write_text(manifest, encoding="utf-8")
    if references:
        refs = skill / "references"
        refs.mkdir(exist_ok=True)
        for name, content in references.items():
            (refs / name).write_text(content, encoding="utf-8")
    if assets:
        assets_dir = skill / "assets"
        assets_dir.mkdir(exist_ok=True)
        for name in assets:
            (assets_dir / name).write_text("x", encoding="utf-8")
    return skill


@pytest.fixture
def write_skill():
    """Factory that creates a skill folder under a root."""
    return _write_skill


@pytest.fixture
def platform_roots(tmp_path: Path) -> dict[Platform, Path]:
    """One root per platform; none of them exist until a test writes a skill."""
    return {p: tmp_path / "roots" / p.storage_key for p in Platform}


@pytest.fixture
def ledger(tmp_path: Path) -> PublishStateLedger:
    return PublishStateLedger(tmp_path / "state" / "skill-state")


class FakeRegistry:
    """In-memory stand-in for RegistryClient that serves zip archives."""

    base_url = "https://registry.test"

    def __init__(self, archive_dir: Path):
        self.archive_dir = archive_dir
        self.latest = "1.2.0"
        self.missing: set[str] = set()
        self.calls: list[tuple] = []

    async def fetch_latest_version(self, slug: str) -> str:
        self.calls.append(("latest", slug))
        if slug in self.missing:
            raise RegistryNotFoundError(f"Not found on registry: {slug}")
        return self.latest

    async def download(self, slug: str, version: str | None = None) -> Path:
        self.calls.append(("download", slug, version))
        if slug in self.missing:
            raise RegistryNotFoundError(f"Not found on registry: {slug}")
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        archive = self.archive_dir / f"{slug}-{version}.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr(
                f"{slug}/SKILL.md",
                f"---\nname: {slug}\ndescription: Remote {slug} {version}.\n---\n\nRemote body {version}.\n",
            )
            zf.writestr(f"{slug}/references/usage.md", "# Usage\n")
        return archive

    async def search(self, query: str, limit: int = 20) -> list[RemoteSkill]:
        self.calls.append(("search", query, limit))
        return [RemoteSkill(slug=query, display_name=query.title(), version=self.latest)]


class FakeCLIWorker:
    """Records publishes instead of running clawdhub."""

    def __init__(self):
        self.published: list[dict] = []
        self.error: Exception | None = None

    async def publish_skill(self, skill_path, slug, name, published_version, bump, changelog, tags) -> str:
        if self.error is not None:
            raise self.error
        version = bump_version(published_version or "", bump) or "1.0.0"
        self.published.append({
            "path": skill_path,
            "slug": slug,
            "version": version,
            "changelog": changelog,
            "tags": tags,
        })
        return version

    async def fetch_status(self) -> CliStatus:
        return CliStatus(is_installed=True, is_logged_in=True, username="tester")


@pytest.fixture
def registry(tmp_path: Path) -> FakeRegistry:
    return FakeRegistry(tmp_path / "archives")


@pytest.fixture
def cli_worker() -> FakeCLIWorker:
    return FakeCLIWorker()


@pytest.fixture
def store(platform_roots, ledger, registry, cli_worker) -> SkillStore:
    return SkillStore(
        platform_roots=platform_roots,
        ledger=ledger,
        registry=registry,
        cli_worker=cli_worker,
    )
