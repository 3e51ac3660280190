"""Upgrade pipeline for a single managed plugin.

One Pipeline runs per plugin per batch. Steps, in order:

    INIT -> MANIFEST_ENSURE -> PRE_HOOKS -> BACKUP -> UPDATE
         -> RESTORE_META -> CHANGE_CHECK -> VERSION_CHECK -> PUBLISH

Failures before UPDATE abort without rollback since nothing has been
changed yet. A failed update (R1), an update that changed files without
bumping the version (R2) and a failed commit/tag/push (R3) restore the
backed-up .git directory and hard-reset the working tree before the run
reports its failure. If that rollback fails too, the result carries both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NoReturn

from config import COMMIT_MESSAGE, DEFAULT_BRANCH
from wppr.backup import EMPTY_BACKUP, BackupManager, BackupRecord
from wppr.errors import (
    BackupError,
    InitError,
    PreCommandError,
    PublishError,
    RollbackError,
    UpdateError,
    VersionInconsistency,
    WpprError,
)
from wppr.git import VersionControl
from wppr.settings import RuntimeConfig
from wppr.utils import log, run_tool
from wppr.wordpress.cli import PluginUpdater, UpdateResult, UpdateStatus
from wppr.wordpress.composer import ensure_manifest
from wppr.wordpress.plugin import Plugin


class Outcome(Enum):
    PUBLISHED = "published"
    ALREADY_CURRENT = "already current"
    NO_CHANGES = "no changes"
    DRY_RUN = "dry run"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    ok: bool
    outcome: Outcome
    note: str = ""
    error: WpprError | None = None


@dataclass
class RunContext:
    """Everything one pipeline run needs; built fresh for every plugin."""

    plugin: Plugin
    git: VersionControl
    wp: PluginUpdater
    backups: BackupManager
    backup_root: Path
    dry_run: bool = False
    verbose: bool = False
    force_push: bool = False
    branch: str = DEFAULT_BRANCH
    commit_message: str = COMMIT_MESSAGE
    backup: BackupRecord = EMPTY_BACKUP

    @classmethod
    def from_config(
        cls,
        plugin: Plugin,
        config: RuntimeConfig,
        git: VersionControl,
        wp: PluginUpdater,
        backups: BackupManager,
    ) -> "RunContext":
        return cls(
            plugin=plugin,
            git=git,
            wp=wp,
            backups=backups,
            backup_root=config.backup_root,
            dry_run=config.dry_run,
            verbose=config.verbose,
            force_push=config.git.force_push,
            branch=config.git.branch,
        )


class Pipeline:
    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        # fails early with InvalidPackage for plugins WP-CLI cannot address
        self.short_name = ctx.plugin.resolve_short_name()
        if ctx.dry_run:
            self._progress("Creating dry run pipeline")

    @property
    def plugin(self) -> Plugin:
        return self.ctx.plugin

    def _progress(self, msg: str) -> None:
        line = f"[{self.plugin.label}] {msg}"
        log(line)
        if self.ctx.verbose:
            print(line)

    # ── Entry point ─────────────────────────────────────────────────────────
    def run(self) -> PipelineResult:
        self._progress("Starting upgrade run")
        try:
            result = self._run()
        except WpprError as err:
            logging.error("[%s] %s: %s", self.plugin.label, err.kind, err.message)
            self._progress(f"Upgrade run failed: {err.message}")
            return PipelineResult(False, Outcome.FAILED, f"{err.kind}: {err.message}", err)
        self._progress(f"Upgrade run finished: {result.note}")
        return result

    def _run(self) -> PipelineResult:
        previous_version = self.plugin.installed_version

        self._initialize_repository()
        self._ensure_manifest()
        self._run_pre_cmds()
        self._create_backup()

        update = self._update_plugin()
        if update.status is UpdateStatus.FAILED:
            self._rollback(UpdateError(f"Plugin update failed: {update.detail}"))
        if update.status is UpdateStatus.ALREADY_CURRENT:
            self._progress("Plugin already up to date, proceeding")
            return PipelineResult(True, Outcome.ALREADY_CURRENT, "already up to date")

        # the update replaced the plugin files, .git and composer.json included
        self._restore_metadata()

        if not self._has_changes() and not self.ctx.dry_run:
            return PipelineResult(True, Outcome.NO_CHANGES, "no changes after update")

        updated = self.plugin.reread_version()
        new_version = updated.installed_version
        if not self.ctx.dry_run:
            if new_version is None:
                self._rollback(
                    VersionInconsistency("Could not read plugin version after update")
                )
            if new_version == previous_version:
                self._rollback(
                    VersionInconsistency(
                        f"Files changed but version is still {previous_version}"
                    )
                )

        self._publish(new_version or previous_version)
        self.ctx.plugin = updated
        if self.ctx.dry_run:
            return PipelineResult(
                True, Outcome.DRY_RUN, f"dry run: would publish {new_version or previous_version}"
            )
        return PipelineResult(
            True, Outcome.PUBLISHED, f"{previous_version} -> {new_version}"
        )

    # ── Steps ───────────────────────────────────────────────────────────────
    def _initialize_repository(self) -> None:
        self._progress("Initializing git repo if one does not exist")
        if self.ctx.dry_run:
            return
        git = self.ctx.git

        if not git.is_initialized():
            result = git.initialize()
            if not result.ok:
                raise InitError(f"Could not initialize new git repository: {result.detail}")
            result = git.configure_identity()
            if not result.ok:
                raise InitError(f"Could not set git identity: {result.detail}")

        if not git.has_remote():
            result = git.add_remote(self.plugin.remote_repository)
            if not result.ok:
                raise InitError(f"Could not add remote repository: {result.detail}")

        ok, changed = git.has_uncommitted_changes()
        if not ok:
            raise InitError("Could not read repository status")
        if changed:
            result = git.commit_all(self.ctx.commit_message)
            if not result.ok:
                raise InitError(f"Could not commit initial contents: {result.detail}")

    def _ensure_manifest(self) -> None:
        self._progress("Creating composer.json if it does not exist")
        if self.ctx.dry_run:
            return
        if not ensure_manifest(self.plugin):
            raise InitError(f"Could not write {self.plugin.composer_path}")

    def _run_pre_cmds(self) -> None:
        if not self.plugin.pre_cmds:
            return
        self._progress("Running plugin pre-commands before upgrade")
        for cmd in self.plugin.pre_cmds:
            if self.ctx.dry_run:
                self._progress(f"Would run pre-command `{cmd}`")
                continue
            result = run_tool(cmd, cwd=self.plugin.plugin_dir, shell=True)
            if not result.ok:
                raise PreCommandError(f"Pre-command `{cmd}` failed: {result.detail}")

    def _create_backup(self) -> None:
        self._progress("Creating history data and config backup")
        if self.ctx.dry_run:
            return
        if self.ctx.verbose:
            self._progress(f"Working with backup directory `{self.ctx.backup_root}`")
        self.ctx.backup = self.ctx.backups.create_backup(self.plugin, self.ctx.backup_root)

    def _update_plugin(self) -> UpdateResult:
        self._progress("Running WordPress update procedure")
        if self.ctx.dry_run:
            return UpdateResult(UpdateStatus.UPDATED, "dry run")
        return self.ctx.wp.update(self.plugin)

    def _restore_metadata(self) -> None:
        self._progress("Restoring history data and config")
        if self.ctx.dry_run:
            return
        self.ctx.backups.restore_backup(self.plugin, self.ctx.backup)

    def _has_changes(self) -> bool:
        if self.ctx.dry_run:
            self._progress("Would check for uncommitted changes")
            return True
        ok, changed = self.ctx.git.has_uncommitted_changes()
        if not ok:
            self._rollback(PublishError("Could not read repository status after update"))
        return changed

    def _publish(self, version: str) -> None:
        git = self.ctx.git
        if self.ctx.dry_run:
            self._progress(
                f"Would commit, tag `{version}` and push to `{self.ctx.branch}`"
                + (" with --force" if self.ctx.force_push else "")
            )
            return

        self._progress(f"Committing and tagging version {version}")
        result = git.commit_all(self.ctx.commit_message)
        if not result.ok:
            self._rollback(PublishError(f"Could not commit changes: {result.detail}"))
        result = git.tag(version)
        if not result.ok:
            self._rollback(PublishError(f"Could not add git tag: {result.detail}"))

        self._progress(f"Pushing to remote branch {self.ctx.branch}")
        result = git.push(self.ctx.branch, include_tags=True, force=self.ctx.force_push)
        if not result.ok:
            self._rollback(
                PublishError(f"Could not push to remote repository: {result.detail}")
            )

    def _rollback(self, trigger: WpprError) -> NoReturn:
        self._progress(f"Rolling back after {trigger.kind}")
        if self.ctx.dry_run:
            raise trigger
        try:
            self.ctx.backups.restore_backup(self.plugin, self.ctx.backup)
        except BackupError as err:
            raise RollbackError(err.message, trigger) from err
        result = self.ctx.git.hard_reset()
        if not result.ok:
            raise RollbackError(
                f"Could not reset plugin contents to previous state: {result.detail}",
                trigger,
            )
        raise trigger
