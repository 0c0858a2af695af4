"""Remote registry client and publishing CLI wrapper."""

from skillmanager.registry.cli_worker import ClawdhubCLIWorker
from skillmanager.registry.client import RegistryClient
from skillmanager.registry.models import RemoteSkill

__all__ = [
    "ClawdhubCLIWorker",
    "RegistryClient",
    "RemoteSkill",
]
