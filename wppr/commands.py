"""`list` and `run` command implementations."""

from __future__ import annotations

from typing import Iterable

from rich.console import Console
from rich.table import Table

from wppr.batch import ResultRow, get_managed_plugins, run_batch
from wppr.settings import RuntimeConfig
from wppr.wordpress.plugin import Plugin


def plugin_table(plugins: Iterable[Plugin]) -> Table:
    table = Table(title="Managed plugins")
    for column in ("Plugin", "Valid", "Version", "Package name", "Remote"):
        table.add_column(column)
    for plugin in plugins:
        table.add_row(
            plugin.display_name or "invalid",
            "true" if plugin.is_valid() else "false",
            plugin.installed_version or "unknown",
            plugin.package_name,
            plugin.remote_repository,
        )
    return table


def results_table(rows: Iterable[ResultRow], dry_run: bool = False) -> Table:
    title = "Upgrade results (dry run)" if dry_run else "Upgrade results"
    table = Table(title=title)
    table.add_column("Plugin")
    table.add_column("Result")
    table.add_column("Note")
    for row in rows:
        result = "[green]PASS[/green]" if row.ok else "[red]FAIL[/red]"
        table.add_row(row.name, result, row.note)
    return table


def list_plugins(config: RuntimeConfig, console: Console | None = None) -> list[Plugin]:
    """Lists managed WordPress plugins."""
    console = console or Console()
    console.print("Listing managed plugins")
    if not config.plugins:
        console.print("Configuration has no plugins defined")
        return []
    plugins = get_managed_plugins(config)
    console.print(plugin_table(plugins))
    return plugins


def run_plugins(config: RuntimeConfig, console: Console | None = None, **factories) -> list[ResultRow]:
    """Runs upgrades and gitifications on managed WordPress plugins.

    Keyword arguments are passed through to run_batch (client factories and
    backup manager); per-plugin failures are reported in the table only.
    """
    console = console or Console()
    if not config.plugins:
        console.print("Configuration has no plugins defined")
        return []
    rows = run_batch(config, **factories)
    console.print(results_table(rows, dry_run=config.dry_run))
    return rows
