"""Tests for the clawdhub CLI wrapper."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from skillmanager.config import ClawdhubConfig
from skillmanager.errors import CliNotInstalledError, CliNotLoggedInError, CliProcessError
from skillmanager.registry.cli_worker import ClawdhubCLIWorker
from skillmanager.skills.models import PublishBump


class FakeProcess:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.returncode = returncode
        self._stdout = stdout.encode()
        self._stderr = stderr.encode()
        self.killed = False
        self.waited = False

    async def communicate(self):
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        self.waited = True
        return self.returncode


class HangingProcess(FakeProcess):
    async def communicate(self):
        raise asyncio.TimeoutError


@pytest.fixture
def fake_exec(monkeypatch):
    """Replace subprocess creation; maps subcommand -> FakeProcess or exception."""
    responses: dict[str, object] = {}
    calls: list[tuple[str, ...]] = []

    async def create_subprocess_exec(*args, **kwargs):
        calls.append(args)
        response = responses.get(args[1])
        if isinstance(response, Exception):
            raise response
        return response or FakeProcess()

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    return responses, calls


@pytest.fixture
def worker() -> ClawdhubCLIWorker:
    return ClawdhubCLIWorker(ClawdhubConfig(cli_path="clawdhub", timeout_seconds=5))


class TestFetchStatus:
    @pytest.mark.asyncio
    async def test_not_installed(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["--version"] = FileNotFoundError("clawdhub")

        status = await worker.fetch_status()

        assert not status.is_installed
        assert not status.is_logged_in
        assert "not found" in status.error_message

    @pytest.mark.asyncio
    async def test_logged_in(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["--version"] = FakeProcess(stdout="0.3.1\n")
        responses["whoami"] = FakeProcess(stdout="✔ alice\n")

        status = await worker.fetch_status()

        assert status.is_installed
        assert status.is_logged_in
        assert status.username == "alice"

    @pytest.mark.asyncio
    async def test_not_logged_in(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["whoami"] = FakeProcess(returncode=1, stderr="Not logged in\n")

        status = await worker.fetch_status()

        assert status.is_installed
        assert not status.is_logged_in
        assert status.error_message == "Not logged in"


    @pytest.mark.asyncio
    async def test_binary_not_executable(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["--version"] = PermissionError(13, "Permission denied", "clawdhub")

        status = await worker.fetch_status()

        assert not status.is_installed
        assert not status.is_logged_in
        assert "Permission denied" in status.error_message


class TestPublishSkill:
    @pytest.mark.asyncio
    async def test_bumps_published_version(self, fake_exec, worker):
        _, calls = fake_exec

        version = await worker.publish_skill(
            Path("/skills/pdf-tools"), "pdf-tools", "PDF Tools", "1.2.3",
            PublishBump.MINOR, "Add merge", ["latest", " pdf ", ""],
        )

        assert version == "1.3.0"
        assert calls == [(
            "clawdhub", "publish", "/skills/pdf-tools",
            "--slug", "pdf-tools",
            "--name", "PDF Tools",
            "--version", "1.3.0",
            "--changelog", "Add merge",
            "--tags", "latest,pdf",
        )]

    @pytest.mark.asyncio
    async def test_first_publish_defaults_version(self, fake_exec, worker):
        _, calls = fake_exec
        version = await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])
        assert version == "1.0.0"
        assert "--tags" not in calls[0]

    @pytest.mark.asyncio
    async def test_malformed_published_version_defaults(self, fake_exec, worker):
        version = await worker.publish_skill(Path("/s"), "s", "S", "beta", PublishBump.PATCH, "", [])
        assert version == "1.0.0"

    @pytest.mark.asyncio
    async def test_not_installed(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["publish"] = FileNotFoundError("clawdhub")
        with pytest.raises(CliNotInstalledError):
            await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])

    @pytest.mark.asyncio
    async def test_not_logged_in(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["publish"] = FakeProcess(returncode=1, stderr="Error: Not logged in. Run clawdhub login")
        with pytest.raises(CliNotLoggedInError):
            await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])

    @pytest.mark.asyncio
    async def test_process_error_carries_message(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["publish"] = FakeProcess(returncode=2, stderr="Version 1.0.0 already exists\n")
        with pytest.raises(CliProcessError, match="already exists"):
            await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])

    @pytest.mark.asyncio
    async def test_binary_not_executable(self, fake_exec, worker):
        responses, _ = fake_exec
        responses["publish"] = PermissionError(13, "Permission denied", "clawdhub")
        with pytest.raises(CliProcessError, match="Permission denied"):
            await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])

    @pytest.mark.asyncio
    async def test_timeout_kills_and_reaps_process(self, fake_exec, worker):
        responses, _ = fake_exec
        hanging = HangingProcess()
        responses["publish"] = hanging

        with pytest.raises(CliProcessError, match="timed out"):
            await worker.publish_skill(Path("/s"), "s", "S", None, PublishBump.PATCH, "", [])

        assert hanging.killed
        assert hanging.waited
