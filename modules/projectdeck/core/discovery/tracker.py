"""Tracker reader: imports repositories bookmarked in the Tower git client.

Tower keeps its bookmarks in a property list: folder nodes carry
``children``; repository nodes carry a ``fileURL`` (older files use ``path``).
Folders become groups and repositories become projects.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import unquote, urlparse
from xml.parsers.expat import ExpatError

from core.registry.errors import DiscoveryError
from core.registry.model import Group, Project, Registry
from lib.fail_policy import is_fail_hard_enabled

logger = logging.getLogger(__name__)


def _node_name(node: dict) -> str:
    return str(node.get("name") or node.get("title") or "").strip()


def _node_path(node: dict) -> Optional[str]:
    url = node.get("fileURL") or node.get("url")
    if isinstance(url, str) and url:
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return unquote(parsed.path).rstrip("/") or "/"
        if not parsed.scheme:
            return url.rstrip("/") or "/"
        return None
    path = node.get("path")
    if isinstance(path, str) and path:
        return path.rstrip("/") or "/"
    return None


def _fill_group(group: Group, nodes: Iterable[Any]) -> None:
    for node in nodes:
        if not isinstance(node, dict):
            continue
        children = node.get("children")
        if isinstance(children, list):
            name = _node_name(node)
            if not name:
                _fill_group(group, children)
                continue
            child = next((g for g in group.groups if g.name == name), None)
            if child is None:
                child = Group(name=name)
                group.groups.append(child)
            _fill_group(child, children)
            continue
        path = _node_path(node)
        if not path:
            continue
        if any(p.path == path for p in group.projects):
            continue
        group.projects.append(Project(name=_node_name(node) or Path(path).name, path=path))


def parse_bookmarks(data: Any) -> Registry:
    """Convert a decoded bookmarks property list into a partial registry."""
    registry = Registry()
    if isinstance(data, dict):
        nodes = data.get("children")
        _fill_group(registry, nodes if isinstance(nodes, list) else [data])
    elif isinstance(data, list):
        _fill_group(registry, data)
    return registry


def _first_existing(paths: Iterable[str]) -> Optional[Path]:
    for raw in paths:
        if not raw:
            continue
        candidate = Path(raw).expanduser()
        if candidate.is_file():
            return candidate
    return None


def read_tracked(paths: Iterable[str]) -> Registry:
    """Read the first existing bookmarks file from ``paths``.

    No file means no tracked projects. An unreadable file raises
    DiscoveryError when fail-hard is enabled, otherwise it yields nothing.
    """
    bookmarks = _first_existing(paths)
    if bookmarks is None:
        logger.debug("No tracker bookmarks file found")
        return Registry()
    try:
        with bookmarks.open("rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ExpatError, ValueError) as e:
        if is_fail_hard_enabled():
            raise DiscoveryError(f"Failed to read tracker bookmarks {bookmarks}: {e}", source="tracker") from e
        logger.warning("Failed to read tracker bookmarks %s: %s", bookmarks, e)
        return Registry()
    registry = parse_bookmarks(data)
    logger.debug("Tracker bookmarks yielded %d project(s)", registry.project_count())
    return registry
