"""CLI interface for skillmanager."""

from __future__ import annotations

import asyncio
import os

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from skillmanager import __version__

console = Console()


def _make_store(config: str):
    from skillmanager.config import load_config
    from skillmanager.store import SkillStore
    from skillmanager.utils import setup_logging

    cfg = load_config(config)
    setup_logging(cfg.logging.level, cfg.logging.format)
    return SkillStore.from_config(cfg)


async def _load(store) -> bool:
    from skillmanager.state import ListStatus

    await store.load_catalog()
    if store.state.list_state.status == ListStatus.FAILED:
        console.print(f"[red]Failed to load skills: {store.state.list_state.message}[/]")
        return False
    return True


def _platform_badges(platforms) -> str:
    from skillmanager.skills.models import PREFERRED_PLATFORM_ORDER

    return ", ".join(p.value for p in PREFERRED_PLATFORM_ORDER if p in platforms)


@click.group()
@click.version_option(version=__version__, prog_name="skillmanager")
def cli():
    """skillmanager - manage Codex, Claude Code, OpenCode and Copilot skills."""
    pass


@cli.command()
def init():
    """Generate default config.yaml."""
    from skillmanager.config import generate_default_config

    config_path = "config.yaml"

    if os.path.exists(config_path):
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/]")
            return

    with open(config_path, "w") as f:
        f.write(generate_default_config())

    console.print(f"[green]Created {config_path}[/]")


@cli.command("list")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def list_skills(config: str):
    """List installed skills, one row per slug."""
    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        groups = store.grouped_skills()
        if not groups:
            console.print("[yellow]No skills found.[/]")
            return

        table = Table(title="Skills")
        table.add_column("Name")
        table.add_column("Slug")
        table.add_column("Platforms")
        table.add_column("Source")
        table.add_column("Refs", justify="right")

        for group in groups:
            skill = group.skill
            if store.is_owned_skill(skill):
                source = "[green]local[/]"
            else:
                origin = await store.skill_origin(skill)
                source = f"clawdhub {origin.installed_version or ''}" if origin else "clawdhub"
            table.add_row(
                skill.display_name,
                skill.name,
                _platform_badges(group.installed_platforms),
                source,
                str(skill.stats.references),
            )

        console.print(table)

    asyncio.run(run())


@cli.command()
@click.argument("slug")
@click.option("--reference", "-r", default=None, help="Show a reference file instead of SKILL.md")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def show(slug: str, reference: str | None, config: str):
    """Render a skill's SKILL.md or one of its references."""
    from skillmanager.state import DetailStatus

    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        groups = [g for g in store.grouped_skills() if g.skill.name == slug]
        if not groups:
            console.print(f"[red]Skill not found: {slug}[/]")
            return

        await store.select_skill(groups[0].id)
        skill = store.state.selected_skill
        state = store.state

        if reference is None:
            detail, body = state.detail_state, state.selected_markdown
        else:
            match = next(
                (r for r in skill.references
                 if reference.lower() in (r.name.lower(), r.path.stem.lower(), r.path.name.lower())),
                None,
            )
            if match is None:
                console.print(f"[red]Reference not found: {reference}[/]")
                return
            await store.select_reference(match)
            state = store.state
            detail, body = state.reference_state, state.selected_reference_markdown

        if detail.status == DetailStatus.MISSING:
            console.print("[yellow]File no longer exists; run list to rescan.[/]")
            return
        if detail.status == DetailStatus.FAILED:
            console.print(f"[red]{detail.message}[/]")
            return

        console.print(Panel.fit(
            f"[bold]{skill.display_name}[/]\n"
            f"{skill.description}\n"
            f"[dim]{skill.folder_path}[/]"
        ))
        if skill.references and reference is None:
            console.print("[dim]References: " + ", ".join(r.name for r in skill.references) + "[/]")
        console.print(Markdown(body))

    asyncio.run(run())


@cli.command()
@click.argument("slug")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def delete(slug: str, force: bool, config: str):
    """Delete a skill from every platform it is installed under."""
    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        installed = store.skills_for_slug(slug)
        if not installed:
            console.print(f"[red]Skill not found: {slug}[/]")
            return

        if not force and not click.confirm(
            f"Delete {slug} from {_platform_badges({s.platform for s in installed})}?"
        ):
            console.print("[yellow]Cancelled.[/]")
            return

        await store.delete_skills([s.id for s in installed])
        if store.is_installed(slug):
            console.print(f"[yellow]Some copies of {slug} could not be removed.[/]")
        else:
            console.print(f"[green]Deleted {slug}[/]")

    asyncio.run(run())


@cli.command()
@click.argument("query")
@click.option("--limit", default=20, help="Maximum number of results")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def search(query: str, limit: int, config: str):
    """Search the clawdhub registry."""
    from skillmanager.errors import RegistryError

    store = _make_store(config)

    async def run():
        try:
            results = await store.search_remote(query, limit=limit)
        except RegistryError as e:
            console.print(f"[red]Search failed: {e}[/]")
            return

        if not results:
            console.print("[yellow]No skills found.[/]")
            return

        table = Table(title=f"clawdhub: {query}")
        table.add_column("Slug")
        table.add_column("Name")
        table.add_column("Version")
        table.add_column("Summary")
        for remote in results:
            table.add_row(remote.slug, remote.display_name, remote.version or "", remote.summary or "")
        console.print(table)

    asyncio.run(run())


@cli.command()
@click.argument("slug")
@click.option(
    "--platform", "-p", "platforms", multiple=True, required=True,
    type=click.Choice(["codex", "claude", "opencode", "copilot"]),
    help="Platform to install into (repeatable)",
)
@click.option("--version", "version", default=None, help="Version to install (default: latest)")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def install(slug: str, platforms: tuple[str, ...], version: str | None, config: str):
    """Install a skill from the clawdhub registry."""
    from skillmanager.errors import SkillManagerError
    from skillmanager.skills.models import Platform

    store = _make_store(config)

    async def run():
        try:
            with console.status(f"[dim]Installing {slug}...[/]", spinner="dots"):
                installed_id = await store.install_or_update(
                    slug, version, [Platform.from_storage_key(key) for key in platforms]
                )
        except SkillManagerError as e:
            console.print(f"[red]Install failed: {e}[/]")
            return
        console.print(f"[green]✓ Installed {slug}[/] [dim]({installed_id})[/]")

    asyncio.run(run())


@cli.command()
@click.argument("slug")
@click.option("--version", "version", default=None, help="Version to install (default: latest)")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def update(slug: str, version: str | None, config: str):
    """Update an installed skill on every platform it is installed under."""
    from skillmanager.errors import SkillManagerError

    store = _make_store(config)

    async def run():
        if not await _load(store):
            return
        if not store.is_installed(slug):
            console.print(f"[red]Skill not installed: {slug}[/]")
            return
        try:
            with console.status(f"[dim]Updating {slug}...[/]", spinner="dots"):
                await store.update_installed_skill(slug, version)
        except SkillManagerError as e:
            console.print(f"[red]Update failed: {e}[/]")
            return
        console.print(f"[green]✓ Updated {slug}[/]")

    asyncio.run(run())


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def outdated(config: str):
    """List registry-installed skills with a newer version available."""
    from skillmanager.errors import RegistryError

    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        table = Table(title="Updates available")
        table.add_column("Slug")
        table.add_column("Installed")
        table.add_column("Latest")

        for group in store.grouped_skills():
            if store.is_owned_skill(group.skill):
                continue
            try:
                latest = await store.check_for_update(group.skill)
            except RegistryError as e:
                console.print(f"[yellow]{group.skill.name}: {e}[/]")
                continue
            if latest:
                origin = await store.skill_origin(group.skill)
                table.add_row(group.skill.name, origin.installed_version if origin else "", latest)

        if table.row_count:
            console.print(table)
        else:
            console.print("[green]All installed skills are up to date.[/]")

    asyncio.run(run())


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def status(config: str):
    """Show clawdhub CLI installation and login status."""
    store = _make_store(config)
    cli_status = asyncio.run(store.fetch_cli_status())

    if not cli_status.is_installed:
        console.print(f"[red]clawdhub CLI not installed[/] {cli_status.error_message or ''}")
    elif not cli_status.is_logged_in:
        console.print("[yellow]clawdhub CLI installed, not logged in.[/] Run: clawdhub login")
    else:
        console.print(f"[green]Logged in to clawdhub as {cli_status.username or 'unknown'}[/]")


@cli.command("needs-publish")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def needs_publish(config: str):
    """List locally authored skills changed since their last publish."""
    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        changed = []
        for group in store.grouped_skills():
            if store.is_owned_skill(group.skill) and await store.skill_needs_publish(group.skill):
                changed.append(group.skill)

        if not changed:
            console.print("[green]Everything is published.[/]")
            return
        for skill in changed:
            console.print(f" [cyan]•[/] {skill.name} [dim]{skill.folder_path}[/]")

    asyncio.run(run())


@cli.command()
@click.argument("slug")
@click.option("--bump", type=click.Choice(["major", "minor", "patch"]), default="patch")
@click.option("--changelog", "-m", default="", help="Changelog entry")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--published-version", default=None, help="Currently published version")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def publish(slug: str, bump: str, changelog: str, tags: tuple[str, ...],
            published_version: str | None, config: str):
    """Publish a locally authored skill to clawdhub."""
    from skillmanager.errors import CliError
    from skillmanager.skills.models import PublishBump

    store = _make_store(config)

    async def run():
        if not await _load(store):
            return

        groups = [g for g in store.grouped_skills() if g.skill.name == slug]
        if not groups:
            console.print(f"[red]Skill not found: {slug}[/]")
            return
        skill = groups[0].skill

        if not await store.skill_needs_publish(skill):
            if not click.confirm(f"{slug} has not changed since its last publish. Publish anyway?"):
                console.print("[yellow]Cancelled.[/]")
                return

        try:
            with console.status(f"[dim]Publishing {slug}...[/]", spinner="dots"):
                version = await store.publish_skill(
                    skill, PublishBump(bump), changelog, list(tags), published_version
                )
        except CliError as e:
            console.print(f"[red]Publish failed: {e}[/]")
            return

        console.print(f"[green]✓ Published {slug} {version}[/]")

    asyncio.run(run())


if __name__ == "__main__":
    cli()
