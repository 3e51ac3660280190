"""Backup and restore of a plugin's .git directory and composer.json.

Backups live in <backup_root>/<short_name>/ and are left in place after a
run so an operator can recover by hand if a run dies mid-way.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from config import GIT_DIR_NAME, MANIFEST_FILE
from wppr.errors import BackupFailed, NoBackup, RestoreFailed
from wppr.utils import log
from wppr.wordpress.composer import ensure_manifest
from wppr.wordpress.plugin import Plugin


@dataclass(frozen=True)
class BackupRecord:
    has_backup: bool = False
    path: Path | None = None
    has_manifest: bool = False

    @property
    def git_dir(self) -> Path | None:
        if self.path is None:
            return None
        return self.path / GIT_DIR_NAME

    @property
    def manifest_path(self) -> Path | None:
        if self.path is None:
            return None
        return self.path / MANIFEST_FILE


EMPTY_BACKUP = BackupRecord()


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class BackupManager:
    """Copies plugin metadata to and from the per-plugin staging area."""

    def create_backup(self, plugin: Plugin, backup_root: Path) -> BackupRecord:
        name = plugin.resolve_short_name()
        source_git = plugin.git_dir
        if not source_git.is_dir():
            raise BackupFailed(
                f"Cannot back up `{plugin.label}`: {source_git} does not exist"
            )

        dest = Path(backup_root) / name
        dest_git = dest / GIT_DIR_NAME
        log(f"Backing up {source_git} to {dest_git}")
        try:
            # overwrite whatever an earlier run left behind
            if dest.exists():
                _remove_tree(dest)
            dest.mkdir(parents=True)
            shutil.copytree(source_git, dest_git, symlinks=True)
            has_manifest = plugin.composer_path.is_file()
            if has_manifest:
                shutil.copy2(plugin.composer_path, dest / MANIFEST_FILE)
        except OSError as err:
            raise BackupFailed(
                f"Creating backup failed for plugin `{plugin.label}`: {err}"
            ) from err

        # copytree returning is not proof enough
        if not dest_git.is_dir():
            raise BackupFailed(
                f"Failed to backup plugin .git directory for `{plugin.label}`"
            )
        log(f"PASS: Backup created for {plugin.label} in {dest}")
        return BackupRecord(has_backup=True, path=dest, has_manifest=has_manifest)

    def restore_backup(self, plugin: Plugin, record: BackupRecord) -> None:
        if not record.has_backup or record.path is None:
            raise NoBackup(
                f"Cannot restore backup for `{plugin.label}`, no backup has been created yet"
            )

        if not ensure_manifest(plugin):
            raise RestoreFailed(f"Could not recreate composer.json for `{plugin.label}`")

        log(f"Restoring {record.git_dir} to {plugin.git_dir}")
        try:
            # an update may already have removed .git
            _remove_tree(plugin.git_dir)
            shutil.copytree(record.git_dir, plugin.git_dir, symlinks=True)
            if record.has_manifest:
                shutil.copy2(record.manifest_path, plugin.composer_path)
        except OSError as err:
            raise RestoreFailed(
                f"Restoring backup failed for plugin `{plugin.label}`: {err}"
            ) from err
        log(f"PASS: Backup restored for {plugin.label}")
        logging.debug("Restore source left in place: %s", record.path)
