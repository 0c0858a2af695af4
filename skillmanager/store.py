"""Skill catalog, selection state and install/publish workflows.

The store is owned by a single asyncio event loop. Filesystem work runs in
worker threads and network/CLI work in coroutines; results are folded back
into the state on the loop as whole new ``StoreState`` snapshots.

Each load carries a request token. When a newer load of the same kind has
started by the time a result arrives, the result is dropped, so the latest
catalog load and the latest selection always win.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from skillmanager.config import Config
from skillmanager.errors import (
    HashError,
    InstallError,
    LedgerError,
    ReadError,
    ScanError,
    SkillFileMissingError,
)
from skillmanager.registry.cli_worker import ClawdhubCLIWorker
from skillmanager.registry.client import RegistryClient
from skillmanager.registry.models import RemoteSkill
from skillmanager.skills.hashing import compute_skill_hash
from skillmanager.skills.installer import InstallDestination, install_archive
from skillmanager.skills.ledger import PublishStateLedger
from skillmanager.skills.metadata import strip_frontmatter
from skillmanager.skills.models import (
    PREFERRED_PLATFORM_ORDER,
    CliStatus,
    Platform,
    PublishBump,
    Skill,
    SkillGroup,
    SkillOrigin,
    SkillReference,
)
from skillmanager.skills.scanner import ORIGIN_RELATIVE_PATH, read_markdown, read_origin, scan_skills
from skillmanager.skills.versioning import bump_version, is_newer_version
from skillmanager.state import DetailState, ListState, StoreState
from skillmanager.utils import get_logger

logger = get_logger(__name__)

StateListener = Callable[[StoreState], None]


def _preferred(skills: Iterable[Skill]) -> Skill | None:
    """Pick the installation on the most preferred platform."""
    skills = list(skills)
    for platform in PREFERRED_PLATFORM_ORDER:
        for skill in skills:
            if skill.platform == platform:
                return skill
    return skills[0] if skills else None


class SkillStore:
    """Local skill catalog and the workflows that change it.

    Example::

        store = SkillStore.from_config(load_config())
        store.subscribe(render)
        await store.load_catalog()
        if await store.skill_needs_publish(store.state.selected_skill):
            await store.publish_skill(skill, PublishBump.PATCH, "Fixes", [], "1.0.0")
    """

    def __init__(
        self,
        platform_roots: Mapping[Platform, Path],
        ledger: PublishStateLedger,
        registry: RegistryClient | None = None,
        cli_worker: ClawdhubCLIWorker | None = None,
    ):
        """Initialize the store.

        Args:
            platform_roots: Skill root directory per platform
            ledger: Publish-state ledger
            registry: Registry client for installs and update checks
            cli_worker: Publishing CLI wrapper
        """
        self._roots = dict(platform_roots)
        self._ledger = ledger
        self._registry = registry or RegistryClient()
        self._cli = cli_worker or ClawdhubCLIWorker()

        self._state = StoreState()
        self._listeners: list[StateListener] = []

        self._catalog_token = 0
        self._detail_token = 0
        self._reference_token = 0

    @classmethod
    def from_config(cls, config: Config) -> "SkillStore":
        """Create a store wired to the configured roots, ledger, registry and CLI."""
        return cls(
            platform_roots={p: config.platforms.root_for(p.storage_key) for p in Platform},
            ledger=PublishStateLedger(config.state.path),
            registry=RegistryClient(config.registry),
            cli_worker=ClawdhubCLIWorker(config.clawdhub),
        )

    # ── observable state ─────────────────────────────────────────────────────

    @property
    def state(self) -> StoreState:
        """Latest published snapshot."""
        return self._state

    @property
    def skills(self) -> tuple[Skill, ...]:
        return self._state.skills

    def root_for(self, platform: Platform) -> Path:
        return self._roots[platform]

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)

    # ── catalog ──────────────────────────────────────────────────────────────

    def _scan_platform(self, platform: Platform) -> list[Skill]:
        root = self._roots[platform]
        # An assistant that is not installed simply has no root
        if not root.exists():
            return []
        return [
            Skill(
                id=scanned.id,
                name=scanned.name,
                display_name=scanned.display_name,
                description=scanned.description,
                platform=platform,
                folder_path=scanned.folder_path,
                manifest_path=scanned.manifest_path,
                references=scanned.references,
                stats=scanned.stats,
            )
            for scanned in scan_skills(root, platform.storage_key)
        ]

    def _normalized_selection(self, skills: list[Skill], selected_id: str | None) -> str | None:
        ids = {skill.id for skill in skills}
        if selected_id is None or selected_id not in ids:
            selected_id = skills[0].id if skills else None
        if selected_id is None:
            return None

        slug = next(skill.name for skill in skills if skill.id == selected_id)
        preferred = _preferred(skill for skill in skills if skill.name == slug)
        return preferred.id if preferred else selected_id

    async def load_catalog(self) -> None:
        """Rescan every platform root and replace the catalog.

        On failure the list state becomes failed and the previous catalog is
        kept.
        """
        self._catalog_token += 1
        token = self._catalog_token

        self._publish(
            list_state=ListState.loading(),
            detail_state=DetailState.idle(),
            reference_state=DetailState.idle(),
        )

        try:
            per_platform = await asyncio.gather(
                *(asyncio.to_thread(self._scan_platform, platform) for platform in Platform)
            )
        except ScanError as e:
            if token != self._catalog_token:
                return
            logger.error(f"Skill scan failed: {e}")
            self._publish(list_state=ListState.failed(str(e)))
            return

        if token != self._catalog_token:
            logger.debug("Discarding superseded catalog load")
            return

        skills = sorted(
            (skill for platform_skills in per_platform for skill in platform_skills),
            key=lambda skill: skill.display_name.casefold(),
        )
        selected_id = self._normalized_selection(skills, self._state.selected_skill_id)

        self._publish(
            skills=tuple(skills),
            list_state=ListState.loaded(),
            selected_skill_id=selected_id,
        )
        logger.info(f"Loaded {len(skills)} skill(s)")

        await self.load_selected_body()

    async def select_skill(self, skill_id: str | None) -> None:
        """Select a skill (or clear the selection) and load its body."""
        self._publish(selected_skill_id=skill_id)
        await self.load_selected_body()

    async def load_selected_body(self) -> None:
        """Load the selected skill's SKILL.md body, front matter removed."""
        self._detail_token += 1
        token = self._detail_token
        # Any reference load in flight belongs to the previous selection
        self._reference_token += 1

        skill = self._state.selected_skill
        if skill is None:
            self._publish(
                detail_state=DetailState.idle(),
                selected_markdown="",
                reference_state=DetailState.idle(),
                selected_reference_id=None,
                selected_reference_markdown="",
            )
            return

        self._publish(
            detail_state=DetailState.loading(),
            reference_state=DetailState.idle(),
            selected_reference_id=None,
            selected_reference_markdown="",
        )

        try:
            raw = await asyncio.to_thread(read_markdown, skill.manifest_path)
        except SkillFileMissingError:
            if token == self._detail_token:
                self._publish(detail_state=DetailState.missing(), selected_markdown="")
            return
        except ReadError as e:
            if token == self._detail_token:
                self._publish(detail_state=DetailState.failed(str(e)), selected_markdown="")
            return

        if token != self._detail_token:
            return
        self._publish(detail_state=DetailState.loaded(), selected_markdown=strip_frontmatter(raw))

    async def select_reference(self, reference: SkillReference) -> None:
        """Open a reference file; selecting the open one again closes it."""
        if self._state.selected_reference_id == reference.id:
            self._reference_token += 1
            self._publish(
                selected_reference_id=None,
                reference_state=DetailState.idle(),
                selected_reference_markdown="",
            )
            return

        self._publish(selected_reference_id=reference.id)
        await self.load_selected_reference_body()

    async def load_selected_reference_body(self) -> None:
        self._reference_token += 1
        token = self._reference_token

        reference = self._state.selected_reference
        if reference is None:
            self._publish(reference_state=DetailState.idle(), selected_reference_markdown="")
            return

        self._publish(reference_state=DetailState.loading())

        try:
            raw = await asyncio.to_thread(read_markdown, reference.path)
        except SkillFileMissingError:
            if token == self._reference_token:
                self._publish(reference_state=DetailState.missing(), selected_reference_markdown="")
            return
        except ReadError as e:
            if token == self._reference_token:
                self._publish(
                    reference_state=DetailState.failed(str(e)),
                    selected_reference_markdown="",
                )
            return

        if token != self._reference_token:
            return
        self._publish(
            reference_state=DetailState.loaded(),
            selected_reference_markdown=strip_frontmatter(raw),
        )

    async def delete_skills(self, ids: Iterable[str]) -> None:
        """Remove skill folders from disk, then reload the catalog.

        Ids that are unknown or whose folder cannot be removed are skipped.
        """
        by_id = {skill.id: skill for skill in self._state.skills}
        for skill_id in ids:
            skill = by_id.get(skill_id)
            if skill is None:
                continue
            try:
                await asyncio.to_thread(shutil.rmtree, skill.folder_path)
                logger.info(f"Deleted {skill.id} at {skill.folder_path}")
            except OSError as e:
                logger.warning(f"Failed to delete {skill.id}: {e}")

        await self.load_catalog()

    # ── queries ──────────────────────────────────────────────────────────────

    def get_skill(self, skill_id: str) -> Skill | None:
        return next((s for s in self._state.skills if s.id == skill_id), None)

    def skills_for_slug(self, slug: str) -> list[Skill]:
        return [skill for skill in self._state.skills if skill.name == slug]

    def is_installed(self, slug: str, platform: Platform | None = None) -> bool:
        return any(
            skill.name == slug and (platform is None or skill.platform == platform)
            for skill in self._state.skills
        )

    def installed_platforms(self, slug: str) -> set[Platform]:
        return {skill.platform for skill in self.skills_for_slug(slug)}

    def grouped_skills(self, filtered: Iterable[Skill] | None = None) -> list[SkillGroup]:
        """Collapse installations of the same slug into one group each.

        Args:
            filtered: Subset of the catalog to show (e.g. a search result);
                defaults to the whole catalog

        Returns:
            Groups sorted by display name. The group id is the preferred
            installation across the whole catalog, its content the preferred
            one within ``filtered``.
        """
        subset = list(self._state.skills if filtered is None else filtered)

        by_slug: dict[str, list[Skill]] = {}
        for skill in subset:
            by_slug.setdefault(skill.name, []).append(skill)

        groups: list[SkillGroup] = []
        for slug, filtered_skills in by_slug.items():
            all_for_slug = self.skills_for_slug(slug)
            selection = _preferred(all_for_slug)
            if selection is None:
                continue
            content = _preferred(filtered_skills) or selection
            groups.append(SkillGroup(
                id=selection.id,
                skill=content,
                installed_platforms=frozenset(skill.platform for skill in all_for_slug),
                delete_ids=tuple(skill.id for skill in all_for_slug),
            ))

        return sorted(groups, key=lambda group: group.skill.display_name.casefold())

    def is_owned_skill(self, skill: Skill) -> bool:
        """True for skills authored locally, i.e. with no registry origin file."""
        return not (skill.folder_path / ORIGIN_RELATIVE_PATH).exists()

    async def skill_origin(self, skill: Skill) -> SkillOrigin | None:
        return await asyncio.to_thread(read_origin, skill.folder_path)

    @staticmethod
    def next_version(current: str, bump: PublishBump) -> str | None:
        return bump_version(current, bump)

    @staticmethod
    def is_newer_version(latest: str, installed: str) -> bool:
        return is_newer_version(latest, installed)

    # ── registry ─────────────────────────────────────────────────────────────

    async def search_remote(self, query: str, limit: int = 20) -> list[RemoteSkill]:
        return await self._registry.search(query, limit=limit)

    async def check_for_update(self, skill: Skill) -> str | None:
        """Return the registry's latest version if it is newer than the installed one.

        Owned skills and origins without a recorded version never have
        updates.

        Raises:
            RegistryError: The registry lookup failed
        """
        origin = await self.skill_origin(skill)
        if origin is None or not origin.installed_version:
            return None

        latest = await self._registry.fetch_latest_version(origin.slug)
        if is_newer_version(latest, origin.installed_version):
            return latest
        return None

    async def install_or_update(
        self,
        slug: str,
        version: str | None,
        destinations: Iterable[Platform],
    ) -> str | None:
        """Download ``slug`` and install it under every destination platform.

        Args:
            slug: Registry slug
            version: Version to install; None resolves the latest
            destinations: Platforms to install into

        Returns:
            Id of the installed skill on the most preferred destination

        Raises:
            InstallError: No destinations, or the archive could not be installed
            RegistryError: The download failed; nothing was installed
        """
        wanted = set(destinations)
        ordered = [platform for platform in PREFERRED_PLATFORM_ORDER if platform in wanted]
        if not ordered:
            raise InstallError("No install destination selected")

        if version is None:
            version = await self._registry.fetch_latest_version(slug)

        archive = await self._registry.download(slug, version)
        try:
            selected_id = await asyncio.to_thread(
                install_archive,
                archive,
                slug,
                version,
                [InstallDestination(self._roots[p], p.storage_key) for p in ordered],
                self._registry.base_url,
            )
        finally:
            archive.unlink(missing_ok=True)

        await self.load_catalog()
        if (
            selected_id is not None
            and self.get_skill(selected_id) is not None
            and self._state.selected_skill_id != selected_id
        ):
            await self.select_skill(selected_id)
        return selected_id

    async def install_remote_skill(
        self,
        remote: RemoteSkill,
        destinations: Iterable[Platform],
    ) -> str | None:
        return await self.install_or_update(remote.slug, remote.version, destinations)

    async def update_installed_skill(self, slug: str, version: str | None = None) -> str | None:
        """Reinstall ``slug`` on every platform it is currently installed under.

        Does nothing when the slug is not installed anywhere.
        """
        destinations = self.installed_platforms(slug)
        if not destinations:
            return None
        return await self.install_or_update(slug, version, destinations)

    # ── publishing ───────────────────────────────────────────────────────────

    async def skill_needs_publish(self, skill: Skill) -> bool:
        """True if the folder differs from what was last published (or never was)."""
        try:
            digest = await asyncio.to_thread(compute_skill_hash, skill.folder_path)
        except HashError as e:
            logger.warning(f"Treating {skill.name} as changed: {e}")
            return True

        state = await asyncio.to_thread(self._ledger.load, skill.name)
        return state is None or state.last_published_hash != digest

    async def publish_skill(
        self,
        skill: Skill,
        bump: PublishBump,
        changelog: str,
        tags: list[str],
        published_version: str | None,
    ) -> str:
        """Publish a skill and record its content hash.

        Returns:
            The published version

        Raises:
            CliError: Publishing failed; the ledger is not touched
        """
        version = await self._cli.publish_skill(
            skill.folder_path,
            slug=skill.name,
            name=skill.display_name,
            published_version=published_version,
            bump=bump,
            changelog=changelog,
            tags=tags,
        )

        logger.info(f"Published {skill.name} {version}")
        try:
            digest = await asyncio.to_thread(compute_skill_hash, skill.folder_path)
            await asyncio.to_thread(self._ledger.save, skill.name, digest)
        except (HashError, LedgerError) as e:
            # Unrecorded publishes keep reporting the skill as changed
            logger.error(f"Could not record publish state for {skill.name}: {e}")
        return version

    async def fetch_cli_status(self) -> CliStatus:
        return await self._cli.fetch_status()
