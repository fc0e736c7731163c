#!/usr/bin/env python3
"""ProjectDeck MCP Server: project registry tools via Model Context Protocol.

Exposes the project registry as MCP tools over stdio transport so an agent
can list, save and remove projects or refresh discovery on the user's behalf.

Usage:
    python3 mcp_server.py                          # stdio transport (default)
    PROJECTDECK_HOME=~/deck python3 mcp_server.py  # custom home directory

Environment variables:
    PROJECTDECK_HOME           Override home directory (default: ~/projectdeck/)
    PROJECTDECK_REGISTRY_PATH  Override registry file path
"""

import os
import sys
import logging

# MCP uses stdout for JSON-RPC; redirect stdout to stderr before any imports
# so stray prints and opener fallbacks cannot corrupt the stream.
_real_stdout = sys.stdout
sys.stdout = sys.stderr

os.environ["PROJECTDECK_QUIET"] = "1"

# Ensure module root is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from mcp.server.fastmcp import FastMCP

from core.registry.errors import RegistryError
from core.registry.model import iter_groups
from core.services import registry_service as service

logger = logging.getLogger(__name__)

mcp = FastMCP("projectdeck", instructions=(
    "ProjectDeck keeps a registry of the user's project folders, optionally "
    "organized in groups. Use projects_list to see what is saved, groups_list "
    "for the group tree, project_save and project_remove to edit single "
    "entries, projects_refresh to discover new projects on disk, and "
    "group_switch to change the active group."
))


def _entry_dict(entry) -> dict:
    return {
        "kind": entry.kind,
        "name": entry.name,
        "description": entry.description,
        "path": entry.path,
        "detail": entry.detail,
    }


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
def projects_list(group: str = "", all_groups: bool = False) -> dict:
    """List saved projects and top-level groups.

    Args:
        group: Only list the direct projects of this root-level group.
        all_groups: Ignore the active group and list everything at the root.

    Returns:
        Dict with entries (kind, name, description, path, detail),
        projects_count and groups_count.
    """
    active = group if group else ("" if all_groups else None)
    try:
        selection = service.list_selection(active_group=active)
    except RegistryError as e:
        return {"error": str(e)}
    return {
        "entries": [_entry_dict(e) for e in selection.entries],
        "projects_count": selection.projects_count,
        "groups_count": selection.groups_count,
    }


@mcp.tool()
def groups_list() -> dict:
    """List every group in the registry, nested groups included.

    Returns:
        Dict with groups (name, projects count) in depth-first order and
        the active group name.
    """
    try:
        registry = service.load_registry()
    except RegistryError as e:
        return {"error": str(e)}
    groups = [
        {"name": g.name, "projects": len(g.projects)}
        for g in iter_groups(registry)
        if g is not registry
    ]
    from config import get_config
    return {"groups": groups, "active_group": get_config().group}


@mcp.tool()
def project_save(path: str, name: str, description: str = "", group: str = "") -> dict:
    """Save a folder as a project, or update the project already saved there.

    Args:
        path: Absolute path of the project folder.
        name: Display name.
        description: Optional description; empty leaves an existing one alone.
        group: Optional root-level group (created when missing).

    Returns:
        Dict with the saved project.
    """
    if not path or not name:
        return {"error": "path and name are required"}
    try:
        project = service.save_project_entry(path, name, description or None, group or None)
    except RegistryError as e:
        return {"error": str(e)}
    return {"project": project.to_dict()}


@mcp.tool()
def project_remove(path: str) -> dict:
    """Remove the project saved at ``path``.

    Returns:
        Dict with removed (bool) and the removed project when found.
    """
    try:
        project = service.remove_project_entry(path)
    except RegistryError as e:
        return {"error": str(e)}
    if project is None:
        return {"removed": False}
    return {"removed": True, "project": project.to_dict()}


@mcp.tool()
def projects_refresh() -> dict:
    """Discover projects (tracker bookmarks, scan roots) and merge them in.

    Existing entries are never removed or overwritten; only missing fields
    are filled.

    Returns:
        Dict with added, filled, groups_added and enriched counts.
    """
    try:
        result = service.refresh_registry()
    except RegistryError as e:
        return {"error": str(e)}
    return {
        "added": result.added,
        "filled": result.filled,
        "groups_added": result.groups_added,
        "enriched": result.enriched,
        "summary": service.summarize_merge(result),
    }


@mcp.tool()
def group_switch(name: str = "") -> dict:
    """Set the active group; an empty name clears it."""
    try:
        active = service.switch_group(name)
    except RegistryError as e:
        return {"error": str(e)}
    return {"active_group": active}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    sys.stdout = _real_stdout  # Restore for MCP JSON-RPC protocol
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
