"""In-memory stand-ins for the git and WP-CLI clients.

Both record every call in a shared list so tests can assert on ordering
across clients and the backup manager.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable

from wppr.backup import BackupManager, BackupRecord
from wppr.utils import ToolResult
from wppr.wordpress.cli import UpdateResult, UpdateStatus
from wppr.wordpress.plugin import Plugin

OK = ToolResult(True, "", "", 0)


def failed(detail: str) -> ToolResult:
    return ToolResult(False, "", detail, 1)


class FakeGit:
    def __init__(self, calls: list, initialized: bool = True, dirty: bool = False,
                 has_remote: bool = True, fail: dict[str, str] | None = None):
        self.calls = calls
        self.initialized = initialized
        self.dirty = dirty
        self.remote = has_remote
        self.fail = fail or {}
        self.tags: list[str] = []

    def _result(self, name: str) -> ToolResult:
        if name in self.fail:
            return failed(self.fail[name])
        return OK

    def is_initialized(self) -> bool:
        self.calls.append(("is_initialized",))
        return self.initialized

    def initialize(self) -> ToolResult:
        self.calls.append(("initialize",))
        result = self._result("initialize")
        if result.ok:
            self.initialized = True
            self.dirty = True
        return result

    def configure_identity(self) -> ToolResult:
        self.calls.append(("configure_identity",))
        return self._result("configure_identity")

    def has_uncommitted_changes(self):
        self.calls.append(("has_uncommitted_changes",))
        if "status" in self.fail:
            return False, False
        return True, self.dirty

    def commit_all(self, message: str) -> ToolResult:
        self.calls.append(("commit_all", message))
        result = self._result("commit_all")
        if result.ok:
            self.dirty = False
        return result

    def has_remote(self) -> bool:
        self.calls.append(("has_remote",))
        return self.remote

    def add_remote(self, uri: str) -> ToolResult:
        self.calls.append(("add_remote", uri))
        result = self._result("add_remote")
        if result.ok:
            self.remote = True
        return result

    def push(self, branch: str, include_tags: bool = True, force: bool = False) -> ToolResult:
        self.calls.append(("push", branch, include_tags, force))
        return self._result("push")

    def tag(self, name: str) -> ToolResult:
        self.calls.append(("tag", name))
        result = self._result("tag")
        if result.ok:
            self.tags.append(name)
        return result

    def hard_reset(self) -> ToolResult:
        self.calls.append(("hard_reset",))
        return self._result("hard_reset")


class FakeWpCli:
    """Runs ``effect(plugin)`` as the "update" and returns ``result``."""

    def __init__(self, calls: list, result: UpdateResult,
                 effect: Callable[[Plugin], None] | None = None):
        self.calls = calls
        self.result = result
        self.effect = effect

    def update(self, plugin: Plugin) -> UpdateResult:
        self.calls.append(("update", plugin.resolve_short_name()))
        if self.effect is not None:
            self.effect(plugin)
        return self.result


class SpyBackupManager(BackupManager):
    def __init__(self, calls: list, fail_restore_after: int | None = None):
        self.calls = calls
        self.restores = 0
        self.fail_restore_after = fail_restore_after

    def create_backup(self, plugin: Plugin, backup_root: Path) -> BackupRecord:
        self.calls.append(("create_backup",))
        return super().create_backup(plugin, backup_root)

    def restore_backup(self, plugin: Plugin, record: BackupRecord) -> None:
        self.calls.append(("restore_backup",))
        self.restores += 1
        if self.fail_restore_after is not None and self.restores > self.fail_restore_after:
            # drop the staged copy so the real restore fails
            shutil.rmtree(record.git_dir, ignore_errors=True)
        super().restore_backup(plugin, record)


def updated(detail: str = "") -> UpdateResult:
    return UpdateResult(UpdateStatus.UPDATED, detail)


def already_current() -> UpdateResult:
    return UpdateResult(UpdateStatus.ALREADY_CURRENT, "already updated")


def update_failed(detail: str) -> UpdateResult:
    return UpdateResult(UpdateStatus.FAILED, detail)
