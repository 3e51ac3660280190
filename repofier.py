#!/usr/bin/env python3
"""WordPress Plugin Repofier.

Takes Composer unfriendly WordPress plugins and generates tagged releases
into a Git repository from them.

Inputs: an absolute path to a TOML configuration file and a command.
Side effects (run): initializes git repositories inside plugin directories,
runs `wp plugin update`, commits, tags and pushes to each plugin's remote,
and keeps .git backups under <config dir>/.wppr/backups.
Exit code is 1 only when the configuration or setup is unusable; plugin
failures are reported in the results table.
"""

from __future__ import annotations

import argparse
import sys

from config import APP_NAME
from wppr.commands import list_plugins, run_plugins
from wppr.errors import BackupRootError, ConfigError
from wppr.settings import load_config
from wppr.utils import init_logging, log, status_fail, status_pass

# ─── CONFIG ──────────────────────────────────────────────────────────────
VERSION = "0.1.0"
CMD_LIST = "list"
CMD_RUN = "run"


# ─── CLI ──────────────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "[WordPress Plugin Repofier] Takes Composer unfriendly WordPress "
            "plugins and generates tagged releases into a Git repository from them."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "--configuration",
        metavar="FILE",
        required=True,
        help="Absolute path to a TOML configuration file to use",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Make output more verbose, useful for debugging and so on",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run operations without actually making changes",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser(CMD_LIST, help="List plugins being managed by chosen configuration")
    sub.add_parser(
        CMD_RUN, help="Run the tool: updates, tags, and pushes changes for managed plugins"
    )
    return parser


def main(argv: list[str]) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.configuration, verbose=args.verbose, dry_run=args.dry_run)
    except ConfigError as err:
        status_fail(err.message)
        if err.remediation:
            status_fail(err.remediation)
        return 1

    init_logging(None, log_dir=config.log_dir)
    log(f"{APP_NAME} {VERSION} command={args.command} dry_run={config.dry_run}")
    if config.verbose:
        print(f"Configuration: {config}")

    if args.command == CMD_LIST:
        list_plugins(config)
        return 0

    try:
        rows = run_plugins(config)
    except BackupRootError as err:
        status_fail(err.message)
        return 1
    failed = sum(1 for r in rows if not r.ok)
    status_pass(f"run finished: {len(rows) - failed} ok, {failed} failed")
    return 0


def entry() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    entry()
