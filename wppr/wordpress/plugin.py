"""Managed plugin descriptor and version parsing."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

from config import GIT_DIR_NAME, MANIFEST_FILE
from wppr.errors import InvalidPackage
from wppr.settings import PluginConfig

# the number must end at whitespace, so 1.2.3.4 or 1.2.3-beta do not match
VERSION_RE = re.compile(r"Version:\s+(\d+\.\d+\.\d+)(?=\s|$)")


def read_plugin_version(index_path: Path) -> str | None:
    """Return the `Version: X.Y.Z` token of a plugin header, or None."""
    try:
        contents = index_path.read_text(encoding="utf-8", errors="replace")
    except OSError as err:
        logging.warning("Could not read plugin file %s: %s", index_path, err)
        return None
    match = VERSION_RE.search(contents)
    if match is None:
        logging.warning("No version header found in %s", index_path)
        return None
    return match.group(1)


def _display_name(index_path: Path) -> str | None:
    # WordPress convention: "<plugin-dir>/<main-file>.php"
    parent = index_path.parent.name
    if not parent or not index_path.name:
        return None
    return f"{parent}/{index_path.name}"


@dataclass(frozen=True)
class Plugin:
    index_path: Path
    package_name: str
    remote_repository: str
    installed_version: str | None = None
    display_name: str | None = None
    pre_cmds: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, entry: PluginConfig, base_directory: Path) -> "Plugin":
        """Build a descriptor from a config entry. Never raises."""
        index_path = Path(entry.index_path)
        if not index_path.is_absolute():
            index_path = Path(base_directory) / index_path
        # collapse "sub/../" so the display name is the real plugin dir
        index_path = Path(os.path.normpath(index_path))
        return cls(
            index_path=index_path,
            package_name=entry.package_name,
            remote_repository=entry.remote_repository,
            installed_version=read_plugin_version(index_path),
            display_name=_display_name(index_path),
            pre_cmds=tuple(entry.pre_cmds),
        )

    def is_valid(self) -> bool:
        return self.installed_version is not None

    def resolve_short_name(self) -> str:
        if not self.display_name:
            raise InvalidPackage(
                f"Cannot resolve plugin name for {self.index_path}",
                remediation="index_path must point to <plugin-dir>/<file>.php",
            )
        short_name = self.display_name.split("/", 1)[0]
        # used as a directory name under the backup root
        if short_name in ("", ".", "..") or "\\" in short_name:
            raise InvalidPackage(
                f"Plugin name `{short_name}` of {self.index_path} is not a directory name",
                remediation="index_path must point to <plugin-dir>/<file>.php",
            )
        return short_name

    @property
    def label(self) -> str:
        return self.display_name or str(self.index_path)

    @property
    def plugin_dir(self) -> Path:
        return self.index_path.parent

    @property
    def git_dir(self) -> Path:
        return self.plugin_dir / GIT_DIR_NAME

    @property
    def composer_path(self) -> Path:
        return self.plugin_dir / MANIFEST_FILE

    def reread_version(self) -> "Plugin":
        """Return a copy carrying the version currently on disk."""
        return replace(self, installed_version=read_plugin_version(self.index_path))
