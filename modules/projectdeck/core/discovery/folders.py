"""Folder scanner: finds project directories below the configured roots.

A directory counts as a project when it directly contains one of the marker
entries (``.git``, ``.svn``, ``.vscode`` by default). Marker directories and
ignored names are never descended into, and neither are found projects.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Sequence

from core.registry.errors import DiscoveryError
from core.registry.model import Project, Registry, normalize_path
from lib.fail_policy import is_fail_hard_enabled

logger = logging.getLogger(__name__)

ALWAYS_IGNORE = (".vscode", ".git", ".svn")


def _is_project(dir_path: Path, markers: Iterable[str]) -> bool:
    return any((dir_path / marker).exists() for marker in markers)


def _scan_root(root: Path, max_depth: int, ignore: set, markers: Sequence[str]) -> List[Path]:
    found: List[Path] = []

    def _on_error(err: OSError) -> None:
        if err.filename and Path(err.filename) == root:
            raise err
        logger.debug("Skipping unreadable directory %s: %s", err.filename, err)

    for dirpath, dirnames, _filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)
        if _is_project(current, markers):
            found.append(current)
            dirnames[:] = []
            continue
        if depth >= max_depth:
            dirnames[:] = []
            continue
        dirnames[:] = sorted(d for d in dirnames if d not in ignore)
    return found


def scan_folders(
    roots: Sequence[str],
    max_depth: int = 1,
    ignore_names: Iterable[str] = (),
    always_ignore_names: Iterable[str] = ALWAYS_IGNORE,
) -> Registry:
    """Scan ``roots`` for projects, returning them as root-level registry projects.

    Depth counts directory levels below each root (the root itself is depth 0).
    Missing roots are skipped. An unreadable root raises DiscoveryError when
    fail-hard is enabled, otherwise it is logged and skipped.
    """
    markers = tuple(always_ignore_names)
    ignore = set(ignore_names) | set(markers)
    registry = Registry()
    seen = set()

    for raw_root in roots:
        if not raw_root:
            continue
        root = Path(raw_root).expanduser().absolute()
        if not root.is_dir():
            logger.info("Refresh root does not exist, skipping: %s", root)
            continue
        try:
            found = _scan_root(root, max(0, int(max_depth)), ignore, markers)
        except OSError as e:
            if is_fail_hard_enabled():
                raise DiscoveryError(f"Failed to scan {root}: {e}", source="folders") from e
            logger.warning("Failed to scan %s: %s", root, e)
            continue

        for path in found:
            key = normalize_path(str(path))
            if key in seen:
                continue
            seen.add(key)
            registry.projects.append(Project(name=path.name, path=str(path)))

    logger.debug("Folder scan found %d project(s) under %d root(s)", len(registry.projects), len(roots))
    return registry
