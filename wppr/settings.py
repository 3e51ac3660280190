"""
Configuration loading.

Reads the TOML configuration file, validates it into one frozen
RuntimeConfig and probes the configured binaries. The resulting object is
passed explicitly to every component; nothing reads flags from globals.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import BACKUP_DIR_NAME, DEFAULT_BRANCH, LOG_DIR_NAME, STATE_DIR_NAME
from wppr.errors import ConfigError
from wppr.utils import log, probe_binary


class BinariesConfig(BaseModel):
    """Paths to the external tools."""

    model_config = ConfigDict(frozen=True)

    git: str
    wpcli: str


class GitConfig(BaseModel):
    """Commit identity and push behaviour for plugin repositories."""

    model_config = ConfigDict(frozen=True)

    user_name: str
    user_email: str
    force_push: bool = False
    branch: str = DEFAULT_BRANCH


class PluginConfig(BaseModel):
    """One managed plugin as written in the configuration file.

    Attributes:
        index_path: Plugin main file, relative to the configuration file.
        package_name: Composer package name, e.g. "acme/hello".
        remote_repository: Git URI the plugin is pushed to.
        pre_cmds: Shell commands run in the plugin directory before updating.
    """

    model_config = ConfigDict(frozen=True)

    index_path: str
    package_name: str
    remote_repository: str
    pre_cmds: tuple[str, ...] = Field(default_factory=tuple)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    binaries: BinariesConfig
    git: GitConfig
    plugins: tuple[PluginConfig, ...] = Field(default_factory=tuple)
    verbose: bool = False
    dry_run: bool = False
    cwd: Path

    @property
    def state_dir(self) -> Path:
        return self.cwd / STATE_DIR_NAME

    @property
    def backup_root(self) -> Path:
        return self.state_dir / BACKUP_DIR_NAME

    @property
    def log_dir(self) -> Path:
        return self.state_dir / LOG_DIR_NAME


def _read_toml(cfg_path: Path) -> dict:
    try:
        with cfg_path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"Invalid configuration: malformed TOML: {err}") from err
    except OSError as err:
        raise ConfigError(f"Invalid configuration: cannot read {cfg_path}: {err}") from err


def _format_validation_error(err: ValidationError) -> str:
    problems = []
    for item in err.errors():
        where = ".".join(str(p) for p in item.get("loc", ()))
        problems.append(f"{where}: {item.get('msg', 'invalid')}")
    return "; ".join(problems)


def build_config(data: dict, cwd: Path, verbose: bool = False, dry_run: bool = False) -> RuntimeConfig:
    """Flatten raw TOML data into a RuntimeConfig.

    The working directory always comes from the caller; CLI flags can only
    switch verbose/dry-run on, never off.
    """
    merged = dict(data)
    merged["cwd"] = cwd
    if verbose:
        merged["verbose"] = True
    if dry_run:
        merged["dry_run"] = True
    try:
        return RuntimeConfig.model_validate(merged)
    except ValidationError as err:
        raise ConfigError(
            f"Invalid configuration: {_format_validation_error(err)}"
        ) from err


def validate_binaries(config: RuntimeConfig) -> None:
    if not probe_binary(config.binaries.git):
        raise ConfigError(
            "Invalid configuration: Invalid git binary provided",
            remediation=f"check binaries.git ({config.binaries.git})",
        )
    if not probe_binary(config.binaries.wpcli):
        raise ConfigError(
            "Invalid configuration: Invalid wp cli binary provided",
            remediation=f"check binaries.wpcli ({config.binaries.wpcli})",
        )
    log("PASS: git and wp-cli binaries respond to --version")


def load_config(
    config_file: str, verbose: bool = False, dry_run: bool = False, probe: bool = True
) -> RuntimeConfig:
    cfg_path = Path(config_file)
    if not cfg_path.is_absolute():
        raise ConfigError("Configuration file must be given as an absolute path")
    if not cfg_path.is_file():
        raise ConfigError(
            "Invalid configuration, please validate the configuration file exists"
        )

    data = _read_toml(cfg_path)
    config = build_config(data, cfg_path.parent, verbose=verbose, dry_run=dry_run)
    logging.debug("Loaded configuration from %s: %s", cfg_path, config)
    if probe:
        validate_binaries(config)
    return config
