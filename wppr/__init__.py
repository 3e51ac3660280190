"""WordPress Plugin Repofier.

Submodules:
- settings: TOML configuration loading and validation
- git: git wrapper for plugin repositories
- backup: .git and composer.json backup/restore
- pipeline: per-plugin upgrade state machine
- batch: runs pipelines over all configured plugins
- commands: list/run commands and result tables
- wordpress: plugin descriptor, composer manifest, WP-CLI wrapper
"""

# Intentionally minimal; logic lives in submodules and repofier.py.
