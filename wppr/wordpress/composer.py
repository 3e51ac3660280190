"""composer.json manifest for managed plugins.

The manifest only carries what Composer needs to resolve the package from
a VCS repository: its name and the installer type.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from config import MANIFEST_TYPE
from wppr.utils import log
from wppr.wordpress.plugin import Plugin


def manifest_contents(package_name: str) -> str:
    data: dict[str, Any] = {"name": package_name, "type": MANIFEST_TYPE}
    return json.dumps(data, indent=4) + "\n"


def ensure_manifest(plugin: Plugin) -> bool:
    """Write composer.json unless one already exists.

    Returns False only when the file was missing and could not be written.
    """
    path = plugin.composer_path
    if path.exists():
        return True
    try:
        path.write_text(manifest_contents(plugin.package_name), encoding="utf-8")
    except OSError as err:
        logging.error("Could not write %s: %s", path, err)
        return False
    log(f"PASS: Created {path}")
    return True
