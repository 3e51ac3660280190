"""Run the upgrade pipeline over every configured plugin.

Plugins are processed one after another. A failing plugin never stops the
batch; only an unusable backup root does, since no plugin could be rolled
back without it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from wppr.backup import BackupManager
from wppr.errors import BackupRootError, InvalidPackage, WpprError
from wppr.git import GitClient, VersionControl
from wppr.pipeline import Pipeline, RunContext
from wppr.settings import RuntimeConfig
from wppr.utils import log, require
from wppr.wordpress.cli import PluginUpdater, WpCli
from wppr.wordpress.plugin import Plugin

GitFactory = Callable[[RuntimeConfig, Plugin], VersionControl]
WpFactory = Callable[[RuntimeConfig, Plugin], PluginUpdater]


@dataclass(frozen=True)
class ResultRow:
    name: str
    ok: bool
    note: str = ""


def default_git_factory(config: RuntimeConfig, plugin: Plugin) -> VersionControl:
    return GitClient(config.binaries.git, config.git, plugin.plugin_dir)


def default_wp_factory(config: RuntimeConfig, plugin: Plugin) -> PluginUpdater:
    return WpCli(config.binaries.wpcli, plugin.plugin_dir)


def get_managed_plugins(config: RuntimeConfig) -> list[Plugin]:
    return [Plugin.from_config(entry, config.cwd) for entry in config.plugins]


def ensure_backup_root(backup_root: Path, create: bool = True) -> Path:
    try:
        if create:
            backup_root.mkdir(parents=True, exist_ok=True)
        if backup_root.exists():
            # must be listable, not just present
            next(backup_root.iterdir(), None)
    except OSError as err:
        raise BackupRootError(
            f"Backup directory {backup_root} is not usable: {err}",
            remediation="check permissions of the configuration directory",
        ) from err
    return backup_root


def run_plugin(
    plugin: Plugin,
    config: RuntimeConfig,
    git_factory: GitFactory = default_git_factory,
    wp_factory: WpFactory = default_wp_factory,
    backups: BackupManager | None = None,
) -> ResultRow:
    if not require(plugin.is_valid(), f"[{plugin.label}] no readable version", "error"):
        err = InvalidPackage(f"Could not read plugin version from {plugin.index_path}")
        return ResultRow(plugin.display_name or "invalid", False, f"{err.kind}: {err.message}")

    ctx = RunContext.from_config(
        plugin,
        config,
        git=git_factory(config, plugin),
        wp=wp_factory(config, plugin),
        backups=backups or BackupManager(),
    )
    try:
        pipeline = Pipeline(ctx)
    except WpprError as err:
        return ResultRow(plugin.label, False, f"{err.kind}: {err.message}")
    result = pipeline.run()
    return ResultRow(plugin.label, result.ok, result.note)


def run_batch(
    config: RuntimeConfig,
    git_factory: GitFactory = default_git_factory,
    wp_factory: WpFactory = default_wp_factory,
    backups: BackupManager | None = None,
) -> list[ResultRow]:
    """Run every configured plugin and return one row per plugin.

    Raises BackupRootError when the backup root cannot be prepared; every
    other failure ends up in that plugin's row.
    """
    ensure_backup_root(config.backup_root, create=not config.dry_run)
    rows: list[ResultRow] = []
    for plugin in get_managed_plugins(config):
        try:
            row = run_plugin(plugin, config, git_factory, wp_factory, backups)
        except Exception as err:
            logging.exception("Unexpected failure for %s", plugin.label)
            row = ResultRow(plugin.label, False, f"unexpected error: {err}")
        status = "PASS" if row.ok else "FAIL"
        log(f"{status}: {row.name} {row.note}")
        rows.append(row)
    return rows
