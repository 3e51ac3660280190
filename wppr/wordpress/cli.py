# cli.py
# Invariants:
# - All WP-CLI access goes through WpCli; callers never build flags.
# - WP-CLI runs inside the plugin directory and locates the WordPress install
#   by walking up from there.
# - update() never raises: non-zero exit, spawn failure and timeout are FAILED.
# - The UPDATED/ALREADY_CURRENT split is a hint only; the pipeline confirms it
#   by re-reading the plugin version.

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple, Protocol

from config import COMMAND_TIMEOUT
from wppr.errors import InvalidPackage
from wppr.utils import _drop_noise_lines, _strip_ansi, log, run_tool
from wppr.wordpress.plugin import Plugin

ALREADY_UPDATED_MARKER = "already updated"


class UpdateStatus(Enum):
    UPDATED = "updated"
    ALREADY_CURRENT = "already_current"
    FAILED = "failed"


class UpdateResult(NamedTuple):
    status: UpdateStatus
    detail: str = ""


class PluginUpdater(Protocol):
    def update(self, plugin: Plugin) -> UpdateResult: ...


def _wp_env() -> dict[str, str]:
    env = os.environ.copy()
    env.setdefault("WP_CLI_DISABLE_AUTO_CHECK_UPDATE", "1")
    # hush PHP startup/display errors so output stays parseable
    env.setdefault("WP_CLI_PHP_ARGS", "-d display_errors=0 -d display_startup_errors=0")
    return env


def _update_rows(text: str) -> list[dict[str, Any]]:
    """Return the JSON summary rows printed by `plugin update --format=json`."""
    for line in _drop_noise_lines(_strip_ansi(text)):
        if not line.startswith("["):
            continue
        try:
            rows = json.loads(line)
        except ValueError:
            continue
        if isinstance(rows, list):
            return [r for r in rows if isinstance(r, dict)]
    return []


def classify_update_output(stdout: str, stderr: str) -> UpdateResult:
    """Infer UPDATED vs ALREADY_CURRENT from a successful update run."""
    rows = _update_rows(stdout)
    for row in rows:
        status = str(row.get("status", "")).strip().lower()
        if status == "updated":
            detail = f"{row.get('old_version', '?')} -> {row.get('new_version', '?')}"
            return UpdateResult(UpdateStatus.UPDATED, detail)
    combined = f"{stdout}\n{stderr}".lower()
    if ALREADY_UPDATED_MARKER in combined:
        return UpdateResult(UpdateStatus.ALREADY_CURRENT, "already updated")
    if rows:
        # rows present but none marked Updated, e.g. "Error" per plugin
        statuses = ", ".join(str(r.get("status", "?")) for r in rows)
        return UpdateResult(UpdateStatus.FAILED, f"update reported: {statuses}")
    return UpdateResult(UpdateStatus.UPDATED, "")


class WpCli:
    """WP-CLI wrapper used to update single plugins."""

    def __init__(self, binary: str, working_directory: Path, timeout: int = COMMAND_TIMEOUT):
        self.binary = binary
        self.working_directory = Path(working_directory)
        self.timeout = timeout

    def _wp(self, *args: str):
        return run_tool(
            [self.binary, *args, "--no-color"],
            cwd=self.working_directory,
            timeout=self.timeout,
            env=_wp_env(),
        )

    def update(self, plugin: Plugin) -> UpdateResult:
        try:
            name = plugin.resolve_short_name()
        except InvalidPackage as err:
            return UpdateResult(UpdateStatus.FAILED, err.message)
        result = self._wp("plugin", "update", name, "--format=json")
        if not result.ok:
            return UpdateResult(UpdateStatus.FAILED, result.detail)
        outcome = classify_update_output(result.stdout, result.stderr)
        if outcome.status is UpdateStatus.FAILED:
            logging.error("wp plugin update %s: %s", name, outcome.detail)
        else:
            log(f"wp plugin update {name}: {outcome.status.value} {outcome.detail}".rstrip())
        return outcome
