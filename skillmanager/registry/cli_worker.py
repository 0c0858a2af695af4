"""Wrapper around the ``clawdhub`` CLI used to publish skills.

The CLI is installed separately (``npm i -g clawdhub``) and keeps its own
login session; this module only runs it and maps exit states to errors.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from skillmanager.config import ClawdhubConfig
from skillmanager.errors import CliNotInstalledError, CliNotLoggedInError, CliProcessError
from skillmanager.skills.models import CliStatus, PublishBump
from skillmanager.skills.versioning import DEFAULT_VERSION, bump_version
from skillmanager.utils import get_logger

logger = get_logger(__name__)

NOT_LOGGED_IN_MARKERS = ("not logged in", "unauthorized", "clawdhub login")


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str


class ClawdhubCLIWorker:
    """Runs ``clawdhub`` subcommands as subprocesses.

    Example:
        >>> worker = ClawdhubCLIWorker()
        >>> status = await worker.fetch_status()
        >>> if status.is_logged_in:
        ...     await worker.publish_skill(folder, "pdf-tools", "PDF Tools",
        ...                                "1.2.0", PublishBump.PATCH, "Fix typo", [])
    """

    def __init__(self, config: ClawdhubConfig | None = None):
        self._cfg = config or ClawdhubConfig()

    async def _run(self, *args: str) -> CommandResult:
        """Run the CLI with ``args``.

        Raises:
            CliNotInstalledError: The binary cannot be found.
            CliProcessError: The command could not be started or timed out.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._cfg.cli_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CliNotInstalledError() from e
        except OSError as e:
            raise CliProcessError(f"Cannot run {self._cfg.cli_path}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._cfg.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise CliProcessError(
                f"clawdhub {args[0] if args else ''} timed out after {self._cfg.timeout_seconds}s"
            ) from e

        return CommandResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def fetch_status(self) -> CliStatus:
        """Report whether the CLI is installed and logged in. Never raises."""
        try:
            version = await self._run("--version")
        except CliNotInstalledError as e:
            return CliStatus(is_installed=False, is_logged_in=False, error_message=str(e))
        except CliProcessError as e:
            return CliStatus(is_installed=False, is_logged_in=False, error_message=str(e))

        if version.exit_code != 0:
            return CliStatus(
                is_installed=False,
                is_logged_in=False,
                error_message=version.stderr.strip() or "clawdhub --version failed",
            )

        try:
            whoami = await self._run("whoami")
        except CliProcessError as e:
            return CliStatus(is_installed=True, is_logged_in=False, error_message=str(e))

        if whoami.exit_code != 0:
            return CliStatus(
                is_installed=True,
                is_logged_in=False,
                error_message=whoami.stderr.strip() or None,
            )

        return CliStatus(
            is_installed=True,
            is_logged_in=True,
            username=_parse_username(whoami.stdout),
        )

    async def publish_skill(
        self,
        skill_path: Path,
        slug: str,
        name: str,
        published_version: str | None,
        bump: PublishBump,
        changelog: str,
        tags: list[str],
    ) -> str:
        """Publish a skill folder.

        The new version is ``published_version`` bumped by ``bump``, or
        ``1.0.0`` for a first publish or an unparseable previous version.

        Returns:
            The version that was published.

        Raises:
            CliNotInstalledError: The binary cannot be found.
            CliNotLoggedInError: The CLI has no login session.
            CliProcessError: The publish command failed.
        """
        version = DEFAULT_VERSION
        if published_version:
            version = bump_version(published_version, bump) or DEFAULT_VERSION

        args = [
            "publish", str(skill_path),
            "--slug", slug,
            "--name", name,
            "--version", version,
            "--changelog", changelog,
        ]
        cleaned_tags = [tag.strip() for tag in tags if tag.strip()]
        if cleaned_tags:
            args.extend(["--tags", ",".join(cleaned_tags)])

        logger.info(f"Publishing {slug} {version} from {skill_path}")
        result = await self._run(*args)

        if result.exit_code != 0:
            message = (result.stderr.strip() or result.stdout.strip()
                       or f"clawdhub publish exited with {result.exit_code}")
            if any(marker in message.lower() for marker in NOT_LOGGED_IN_MARKERS):
                raise CliNotLoggedInError()
            logger.error(f"clawdhub publish failed for {slug}: {message}")
            raise CliProcessError(message)

        return version


def _parse_username(output: str) -> str | None:
    """Pick the username out of ``clawdhub whoami`` output."""
    for line in output.splitlines():
        words = line.strip().strip("✔✓- ").split()
        if words:
            return words[-1].lstrip("@")
    return None
