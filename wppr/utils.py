"""Utility helpers shared by the git and WP-CLI wrappers.

- init_logging: per-run log file under .wppr/log, quiet console.
- status_pass/status_fail: one-line PASS/FAIL results tagged with the run id.
- log: progress that only belongs in the log file.
- require: log-and-return helper for boolean checks.
- run_tool: subprocess wrapper with timeout that always returns a ToolResult.
- probe_binary: `<bin> --version` check used at startup.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import time
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import NamedTuple, Sequence

from config import APP_NAME, COMMAND_TIMEOUT, LOG_DIR_NAME, PROBE_TIMEOUT

RID_ENV = "WPPR_RID"

_RUN_ID = ""


class ToolResult(NamedTuple):
    """Outcome of one external command. Never raised, always returned."""

    ok: bool
    stdout: str
    stderr: str
    code: int

    @property
    def detail(self) -> str:
        text = "\n".join(_drop_noise_lines(_strip_ansi(self.stderr or "")))
        if not text:
            text = "\n".join(_drop_noise_lines(_strip_ansi(self.stdout or "")))
        if not text:
            text = f"exit={self.code}"
        return text


def _new_run_id() -> str:
    return uuid.uuid4().hex[:8]


LOG_FORMAT = "%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024


def _log_file_for(log_dir: Path | None, rid: str) -> Path:
    directory = log_dir if log_dir is not None else Path.cwd() / LOG_DIR_NAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        # unwritable state dir; keep the log beside the invocation
        return Path.cwd().absolute() / f"{APP_NAME}-{rid}.log"
    return directory / f"{APP_NAME}-{rid}.log"


def init_logging(run_id: str | None = None, log_dir: Path | None = None) -> str:
    """Set up the root logger for one wppr invocation.

    The log file <log_dir>/wppr-<rid>.log gets everything from DEBUG up; the
    console only sees CRITICAL records since PASS/FAIL lines are printed
    directly. Safe to call more than once: existing handlers are reused.
    Returns the run id, which is also exported as WPPR_RID.
    """
    global _RUN_ID
    if not _RUN_ID:
        _RUN_ID = run_id or os.environ.get(RID_ENV) or _new_run_id()
    rid = _RUN_ID

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    logfile = _log_file_for(log_dir, rid)

    known = {getattr(h, "baseFilename", None) for h in root.handlers}
    if str(logfile) not in known:
        file_handler = RotatingFileHandler(logfile, maxBytes=LOG_MAX_BYTES, backupCount=3)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, "%Y-%m-%dT%H:%M:%S"))
        root.addHandler(file_handler)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler()
        console.setLevel(logging.CRITICAL)
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(console)

    logging.debug("%s logging ready: run_id=%s file=%s", APP_NAME, rid, logfile)
    os.environ[RID_ENV] = rid
    return rid


def _rid() -> str:
    return _RUN_ID or os.environ.get(RID_ENV, "--------")


def status_pass(msg: str) -> None:
    print(f"PASS: {msg} [{_rid()}]")


def status_fail(msg: str) -> None:
    print(f"FAIL: {msg} [{_rid()}]", flush=True)


def log(msg: str) -> None:
    # progress detail, file only
    logging.debug(msg)


def require(condition: bool, message: str, level: str = "info") -> bool:
    if condition:
        return True

    if level == "error":
        logging.error(f"SKIP: {message}")
    elif level == "warning":
        logging.warning(f"SKIP: {message}")
    else:
        log(f"SKIP: {message}")

    return False


# ── Output scrubbing ────────────────────────────────────────────────────────────
ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
NOISE_PREFIXES = (
    "PHP Warning:", "PHP Notice:", "PHP Deprecated:",
    "Warning:", "Notice:", "Deprecated:", "hint:",
)


def _strip_ansi(s: str) -> str:
    return ANSI_RE.sub("", s)


def _drop_noise_lines(text: str) -> list[str]:
    out: list[str] = []
    for ln in text.splitlines():
        ln = ln.strip()
        if not ln:
            continue
        if any(ln.startswith(p) for p in NOISE_PREFIXES):
            continue
        out.append(ln)
    return out


def _display_command(args: str | Sequence[str]) -> str:
    """Command as shown in the log; the binary by basename only."""
    if isinstance(args, str):
        return args
    if not args:
        return ""
    return shlex.join([os.path.basename(args[0]), *args[1:]])


# ── Process execution ───────────────────────────────────────────────────────────
def run_tool(
    args: str | Sequence[str],
    cwd: Path | None = None,
    timeout: int = COMMAND_TIMEOUT,
    env: dict[str, str] | None = None,
    shell: bool = False,
) -> ToolResult:
    """Run an external command and capture its output.

    ``args`` is an argv list, or a command line when ``shell`` is set.
    Spawn failures and timeouts become failed results (code 127/124) so that
    callers branch on ``ok`` instead of handling exceptions.
    """
    argv: str | list[str] = str(args) if shell else [str(a) for a in args]
    if not argv:
        logging.error("run_tool called with an empty command")
        return ToolResult(False, "", "Invalid command", 1)
    shown = _display_command(argv)

    t0 = time.monotonic()
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            timeout=timeout,
            env=env,
            shell=shell,
            encoding="utf-8",
            errors="replace",
        )
    except subprocess.TimeoutExpired:
        dt = time.monotonic() - t0
        logging.error("%s timeout after %.1fs", shown, dt)
        return ToolResult(False, "", f"timeout after {dt:.1f}s", 124)
    except OSError as err:
        logging.error("%s could not be started: %s", shown, err)
        return ToolResult(False, "", f"could not start: {err}", 127)

    dt = time.monotonic() - t0
    result = ToolResult(
        proc.returncode == 0, proc.stdout or "", proc.stderr or "", proc.returncode
    )
    if result.ok:
        log(f"PASS: {shown} ({dt:.1f}s)")
    else:
        logging.error("%s exit=%s\nSTDERR: %s", shown, proc.returncode, result.detail)
    return result


def probe_binary(binary: str) -> bool:
    """Return True if ``binary --version`` runs and exits 0."""
    result = run_tool([binary, "--version"], timeout=PROBE_TIMEOUT)
    return result.ok
