"""
Command-line interface for Handoff Updater

Operator commands for inspecting and preparing updates. Installing, restarting
and restoring are triggered by the running server itself, since those end the
process that the wrapper supervises.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from handoff_updater import __version__
from handoff_updater.core.config import get_settings
from handoff_updater.core.exceptions import UpdaterError
from handoff_updater.core.logging_setup import configure_logging
from handoff_updater.update.backup import BackupService
from handoff_updater.update.manager import UpdateManager

console = Console()

T = TypeVar("T")


def _run(action: Callable[[UpdateManager], Awaitable[T]]) -> T:
    """Build a manager, run one async action and close the HTTP client"""

    async def runner() -> T:
        manager = UpdateManager.from_settings()
        try:
            return await action(manager)
        finally:
            await manager.aclose()

    try:
        return asyncio.run(runner())
    except UpdaterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Handoff Updater - self-update orchestration for the server"""
    configure_logging(get_settings().log_level)


@main.command()
def status() -> None:
    """Show running and latest version and whether an update is available"""

    async def action(manager: UpdateManager) -> tuple[str, str, bool]:
        available = await manager.is_update_available()
        latest = await manager.get_latest_version_string()
        return manager.current_version_string, latest, available

    current, latest, available = _run(action)
    state = "[green]Update available[/green]" if available else "[cyan]Up to date[/cyan]"
    console.print(
        Panel.fit(
            f"Running version: [bold]{current}[/bold]\n"
            f"Latest version:  [bold]{latest}[/bold]\n"
            f"{state}",
            title="Update status",
            border_style="cyan",
        )
    )


@main.command()
def changes() -> None:
    """List changelog entries newer than the running version"""
    entries = _run(lambda manager: manager.get_changes_since_current_version())
    if not entries:
        console.print("[cyan]No changes since the running version[/cyan]")
        return

    table = Table(title="Changes since running version")
    table.add_column("Version", style="bold")
    table.add_column("Date")
    table.add_column("Changes")
    for entry in entries:
        lines = "\n".join(f"{change.type}: {change.text}" for change in entry.changes)
        table.add_row(entry.version, entry.date or "", lines)
    console.print(table)


@main.command()
@click.argument("version")
def ignore(version: str) -> None:
    """Do not show update notices for VERSION anymore"""

    async def action(manager: UpdateManager):
        return manager.ignore(version)

    ignored = _run(action)
    console.print(f"Version [bold]{ignored}[/bold] ignored")


@main.command()
def backup() -> None:
    """Create a backup of the data directory now"""
    service = BackupService(get_settings().data_dir)
    try:
        backup_file = service.backup()
    except UpdaterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    console.print(f"Backup created: [green]{backup_file}[/green]")


@main.command()
def backups() -> None:
    """List available backups, newest first"""
    service = BackupService(get_settings().data_dir)
    files = service.list_backups()
    if not files:
        console.print("[yellow]No backups found[/yellow]")
        return

    table = Table(title="Backups")
    table.add_column("Name", style="bold")
    table.add_column("Size", justify="right")
    for path in files:
        table.add_row(path.name, f"{path.stat().st_size / 1024:.1f} KB")
    console.print(table)


if __name__ == "__main__":
    main()
