"""Shared fixtures: a throwaway WordPress plugins tree and configs for it."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from wppr.settings import PluginConfig, RuntimeConfig, build_config
from wppr.wordpress.plugin import Plugin

PLUGIN_HEADER = """<?php
/**
 * Plugin Name: {name}
 * Description: Test plugin for wppr.
 * Version: {version}
 * Author: wppr
 */
"""


def write_plugin(base: Path, slug: str, version: str | None = "1.0.0") -> Path:
    """Create plugins/<slug>/<slug>.php plus a minimal .git dir; return the index path."""
    plugin_dir = base / "plugins" / slug
    plugin_dir.mkdir(parents=True, exist_ok=True)
    index = plugin_dir / f"{slug}.php"
    if version is None:
        index.write_text("<?php\n/* Plugin Name: no version */\n", encoding="utf-8")
    else:
        index.write_text(PLUGIN_HEADER.format(name=slug, version=version), encoding="utf-8")
    (plugin_dir / "readme.txt").write_text(f"== {slug} ==\n", encoding="utf-8")
    git_dir = plugin_dir / ".git"
    (git_dir / "refs" / "heads").mkdir(parents=True, exist_ok=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/master\n", encoding="utf-8")
    (git_dir / "refs" / "heads" / "master").write_text("0" * 40 + "\n", encoding="utf-8")
    (git_dir / "config").write_bytes(b"[core]\n\tbare = false\n")
    return index


def set_version(plugin: Plugin, version: str) -> None:
    text = plugin.index_path.read_text(encoding="utf-8")
    old = plugin.installed_version
    plugin.index_path.write_text(text.replace(f"Version: {old}", f"Version: {version}"), encoding="utf-8")


def plugin_entry(slug: str, **extra) -> dict:
    entry = {
        "index_path": f"plugins/{slug}/{slug}.php",
        "package_name": f"acme/{slug}",
        "remote_repository": f"git@example.com:acme/{slug}.git",
    }
    entry.update(extra)
    return entry


def make_config(cwd: Path, plugins: list[dict], **overrides) -> RuntimeConfig:
    data = {
        "binaries": {"git": sys.executable, "wpcli": sys.executable},
        "git": {"user_name": "wppr", "user_email": "wppr@example.com", "force_push": False},
        "plugins": plugins,
    }
    data.update(overrides)
    return build_config(data, cwd)


@pytest.fixture
def site(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def hello(site: Path) -> Plugin:
    write_plugin(site, "hello", "1.0.0")
    return Plugin.from_config(PluginConfig(**plugin_entry("hello")), site)


@pytest.fixture
def calls() -> list:
    return []
