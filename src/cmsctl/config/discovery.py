"""Locate the project's ``cmsctl.toml``.

``CMSCTL_CONFIG`` names the file outright; otherwise the nearest
``cmsctl.toml`` at or above the starting directory is used.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "cmsctl.toml"
CONFIG_ENV_VAR = "CMSCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file for a project rooted at or above *start*.

    A ``CMSCTL_CONFIG`` path that is not a file yields None rather than
    falling back to the directory search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
