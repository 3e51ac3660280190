"""Shared configuration constants for wppr.

Centralizes defaults used when the TOML configuration leaves them out.
"""

import os

APP_NAME = "wppr"
STATE_DIR_NAME = ".wppr"
BACKUP_DIR_NAME = "backups"
LOG_DIR_NAME = "log"
GIT_REMOTE_NAME = "wppr"
DEFAULT_BRANCH = "master"
COMMIT_MESSAGE = "Automated commit by wppr"
MANIFEST_FILE = "composer.json"
MANIFEST_TYPE = "wordpress-plugin"
GIT_DIR_NAME = ".git"
COMMAND_TIMEOUT = int(os.environ.get("WPPR_TIMEOUT", "600"))  # seconds
PROBE_TIMEOUT = 30
