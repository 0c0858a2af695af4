"""Exception hierarchy for skillmanager.

Whole-operation failures (root scan, download, publish) are raised to the
caller; per-item failures inside bulk operations are logged and skipped by the
code that performs them.
"""

from __future__ import annotations


class SkillManagerError(Exception):
    """Base class for all skillmanager errors."""


class ScanError(SkillManagerError):
    """A platform root could not be listed."""


class ReadError(SkillManagerError):
    """A manifest or reference file could not be read."""


class SkillFileMissingError(ReadError):
    """A file recorded at scan time no longer exists."""


class HashError(SkillManagerError):
    """A skill folder could not be hashed."""


class LedgerError(SkillManagerError):
    """The publish-state ledger could not be written."""


class InstallError(SkillManagerError):
    """A downloaded archive could not be installed."""


class RegistryError(SkillManagerError):
    """Base class for registry client failures."""


class RegistryNotFoundError(RegistryError):
    """The registry has no skill (or version) under the requested slug."""


class RegistryNetworkError(RegistryError):
    """The registry could not be reached or returned an error response."""


class RegistryIOError(RegistryError):
    """A downloaded archive could not be written to disk."""


class CliError(SkillManagerError):
    """Base class for publishing CLI failures."""


class CliNotInstalledError(CliError):
    """The clawdhub binary is not on PATH."""

    def __init__(self, message: str = "clawdhub CLI not found. Install with: npm i -g clawdhub") -> None:
        super().__init__(message)


class CliNotLoggedInError(CliError):
    """The clawdhub CLI has no authenticated session."""

    def __init__(self, message: str = "Not logged in to clawdhub. Run: clawdhub login") -> None:
        super().__init__(message)


class CliProcessError(CliError):
    """The clawdhub CLI exited with a non-zero status."""
