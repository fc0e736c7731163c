"""Description lookup for a project folder.

Reads the ``description`` from the project's package.json, falling back to
``[project].description`` in pyproject.toml.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _clean(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = " ".join(value.split())
    return value or None


def _from_package_json(folder: Path) -> Optional[str]:
    manifest = folder / "package.json"
    if not manifest.is_file():
        return None
    data = json.loads(manifest.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return None
    return _clean(data.get("description"))


def _from_pyproject(folder: Path) -> Optional[str]:
    manifest = folder / "pyproject.toml"
    if not manifest.is_file():
        return None
    with manifest.open("rb") as f:
        data = tomllib.load(f)
    project = data.get("project")
    if not isinstance(project, dict):
        return None
    return _clean(project.get("description"))


def describe_path(path: str) -> Optional[str]:
    """Best-effort description for the folder at ``path``; None when unknown.

    Malformed manifests raise; callers that enrich many projects isolate
    failures per project.
    """
    if not path:
        return None
    folder = Path(path).expanduser()
    for reader in (_from_package_json, _from_pyproject):
        description = reader(folder)
        if description:
            return description
    return None


def describe_path_quietly(path: str) -> Optional[str]:
    """describe_path() for single interactive hints: failures log and return None."""
    try:
        return describe_path(path)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as e:
        logger.debug("Description lookup failed for %s: %s", path, e)
        return None
