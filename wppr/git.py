# git.py
# Invariants:
# - All git access for a plugin goes through GitClient; callers never build argv.
# - Every call returns a ToolResult; spawn failures and timeouts are failed
#   results, not exceptions.
# - Commands run with the plugin directory as cwd; the remote is always "wppr".

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, Tuple

from config import COMMAND_TIMEOUT, GIT_REMOTE_NAME
from wppr.settings import GitConfig
from wppr.utils import ToolResult, run_tool


class VersionControl(Protocol):
    def is_initialized(self) -> bool: ...

    def initialize(self) -> ToolResult: ...

    def configure_identity(self) -> ToolResult: ...

    def has_uncommitted_changes(self) -> Tuple[bool, bool]: ...

    def commit_all(self, message: str) -> ToolResult: ...

    def has_remote(self) -> bool: ...

    def add_remote(self, uri: str) -> ToolResult: ...

    def push(self, branch: str, include_tags: bool, force: bool) -> ToolResult: ...

    def tag(self, name: str) -> ToolResult: ...

    def hard_reset(self) -> ToolResult: ...


class GitClient:
    """Runs git inside one plugin's working tree."""

    def __init__(
        self,
        binary: str,
        identity: GitConfig,
        working_directory: Path,
        timeout: int = COMMAND_TIMEOUT,
    ):
        self.binary = binary
        self.identity = identity
        self.working_directory = Path(working_directory)
        self.timeout = timeout

    def _git(self, *args: str) -> ToolResult:
        env = os.environ.copy()
        # never block on credential or editor prompts
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_EDITOR", "true")
        return run_tool(
            [self.binary, *args],
            cwd=self.working_directory,
            timeout=self.timeout,
            env=env,
        )

    def is_initialized(self) -> bool:
        # a repository of an enclosing directory (e.g. the whole site) does not count
        result = self._git("rev-parse", "--show-toplevel")
        if not result.ok:
            return False
        toplevel = Path(result.stdout.strip()).resolve()
        return toplevel == self.working_directory.resolve()

    def initialize(self) -> ToolResult:
        return self._git("init", f"--initial-branch={self.identity.branch}", ".")

    def configure_identity(self) -> ToolResult:
        result = self._git("config", "user.name", self.identity.user_name)
        if not result.ok:
            return result
        return self._git("config", "user.email", self.identity.user_email)

    def has_uncommitted_changes(self) -> Tuple[bool, bool]:
        """Return (ok, changed); untracked files count as changes."""
        result = self._git("status", "--porcelain")
        if not result.ok:
            return False, False
        return True, bool(result.stdout.strip())

    def commit_all(self, message: str) -> ToolResult:
        added = self._git("add", "--all")
        if not added.ok:
            return added
        return self._git("commit", "-m", message)

    def has_remote(self) -> bool:
        return self._git("remote", "get-url", GIT_REMOTE_NAME).ok

    def add_remote(self, uri: str) -> ToolResult:
        return self._git("remote", "add", GIT_REMOTE_NAME, uri)

    def push(self, branch: str, include_tags: bool = True, force: bool = False) -> ToolResult:
        args = ["push", GIT_REMOTE_NAME, branch]
        if include_tags:
            args.append("--follow-tags")
        if force:
            args.append("--force")
        return self._git(*args)

    def tag(self, name: str) -> ToolResult:
        # annotated, so that push --follow-tags carries it
        return self._git("tag", "-a", name, "-m", f"Version {name}")

    def hard_reset(self) -> ToolResult:
        return self._git("reset", "--hard")
