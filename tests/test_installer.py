"""Tests for installing skill archives into platform roots."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from skillmanager.errors import InstallError
from skillmanager.skills.installer import InstallDestination, install_archive


def _make_zip(path: Path, members: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return path


@pytest.fixture
def destinations(tmp_path: Path) -> list[InstallDestination]:
    return [
        InstallDestination(root=tmp_path / "codex", storage_key="codex"),
        InstallDestination(root=tmp_path / "claude", storage_key="claude"),
    ]


class TestInstallArchive:
    def test_flat_archive_into_every_destination(self, tmp_path: Path, destinations):
        archive = _make_zip(tmp_path / "a.zip", {
            "SKILL.md": "---\nname: remote\n---\nBody\n",
            "references/usage.md": "# Usage\n",
        })

        installed_id = install_archive(archive, "remote", "1.4.0", destinations, "https://clawdhub.com")

        assert installed_id == "codex:remote"
        for destination in destinations:
            skill_dir = destination.root / "remote"
            assert (skill_dir / "SKILL.md").read_text() == "---\nname: remote\n---\nBody\n"
            assert (skill_dir / "references" / "usage.md").exists()
            origin = json.loads((skill_dir / ".clawdhub" / "origin.json").read_text())
            assert origin["slug"] == "remote"
            assert origin["installedVersion"] == "1.4.0"
            assert origin["registry"] == "https://clawdhub.com"

    def test_archive_with_single_top_level_folder(self, tmp_path: Path, destinations):
        archive = _make_zip(tmp_path / "a.zip", {"remote-1.0.0/SKILL.md": "# Remote\n"})
        install_archive(archive, "remote", "1.0.0", destinations[:1])
        assert (destinations[0].root / "remote" / "SKILL.md").exists()

    def test_replaces_existing_install(self, tmp_path: Path, destinations):
        old = destinations[0].root / "remote"
        old.mkdir(parents=True)
        (old / "SKILL.md").write_text("old")
        (old / "stale.md").write_text("stale")

        archive = _make_zip(tmp_path / "a.zip", {"SKILL.md": "new"})
        install_archive(archive, "remote", "2.0.0", destinations[:1])

        assert (old / "SKILL.md").read_text() == "new"
        assert not (old / "stale.md").exists()
        assert [p.name for p in destinations[0].root.iterdir()] == ["remote"]

    def test_archive_without_manifest(self, tmp_path: Path, destinations):
        archive = _make_zip(tmp_path / "a.zip", {"README.md": "nope"})
        with pytest.raises(InstallError):
            install_archive(archive, "remote", "1.0.0", destinations)
        assert not destinations[0].root.exists()

    def test_not_a_zip(self, tmp_path: Path, destinations):
        archive = tmp_path / "a.zip"
        archive.write_text("definitely not a zip")
        with pytest.raises(InstallError):
            install_archive(archive, "remote", "1.0.0", destinations)

    def test_rejects_paths_outside_archive(self, tmp_path: Path, destinations):
        archive = _make_zip(tmp_path / "a.zip", {"SKILL.md": "x", "../escape.txt": "x"})
        with pytest.raises(InstallError):
            install_archive(archive, "remote", "1.0.0", destinations)

    def test_no_destinations(self, tmp_path: Path):
        archive = _make_zip(tmp_path / "a.zip", {"SKILL.md": "x"})
        assert install_archive(archive, "remote", "1.0.0", []) is None
