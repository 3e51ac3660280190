"""
Exception classes for wppr.

Every failure a plugin run can end in has its own class so the batch
results can name the cause. Only ConfigError and BackupRootError stop a
whole run; everything else is contained to one plugin.
"""

from __future__ import annotations


class WpprError(Exception):
    """Base exception for all wppr errors"""

    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigError(WpprError):
    """Raised when the configuration file or binaries are unusable"""

    pass


class InvalidPackage(WpprError):
    """Raised when a plugin's name or version cannot be determined"""

    pass


class InitError(WpprError):
    """Raised when the plugin repository or manifest cannot be prepared"""

    pass


class PreCommandError(WpprError):
    """Raised when a plugin-defined pre-command fails"""

    pass


class BackupError(WpprError):
    """Base class for backup and restore failures"""

    pass


class BackupFailed(BackupError):
    """Raised when a backup cannot be created or verified"""

    pass


class NoBackup(BackupError):
    """Raised when a restore is requested before any backup exists"""

    pass


class RestoreFailed(BackupError):
    """Raised when backed-up files cannot be copied back"""

    pass


class BackupRootError(BackupError):
    """Raised when the shared backup root cannot be created or read"""

    pass


class UpdateError(WpprError):
    """Raised when WP-CLI fails to update a plugin"""

    pass


class VersionInconsistency(WpprError):
    """Raised when plugin files changed but the declared version did not"""

    pass


class PublishError(WpprError):
    """Raised when committing, tagging or pushing fails"""

    pass


class RollbackError(WpprError):
    """Raised when a rollback fails; carries the error that triggered it"""

    def __init__(self, message: str, trigger: WpprError):
        self.trigger = trigger
        super().__init__(
            f"rollback failed: {message}; triggered by {trigger.kind}: {trigger.message}"
        )
