"""Core-owned registry service: the user-facing command flows.

Every flow reads the registry file, applies exactly one change (merge, add,
update, move or remove) and writes it back before returning. Interactive
flows talk to the user only through a ``UIPort``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from config import get_config, reload_config
from core.contracts.ui import UIPort
from core.discovery.descriptions import describe_path, describe_path_quietly
from core.discovery.folders import ALWAYS_IGNORE, scan_folders
from core.discovery.tracker import read_tracked
from core.registry.errors import NothingToMergeError, PersistenceError
from core.registry.merge import DiscoveryBatch, MergeResult, has_candidates, merge_registries
from core.registry.model import (
    Project,
    Registry,
    find_containing_group,
    find_project_by_path,
)
from core.registry.mutations import add_project, remove_project
from core.registry.selection import (
    Selection,
    SelectionEntry,
    build_selection,
    filter_by_group,
    placeholder_for,
)
from datastore.registrydb.store import read_registry, write_registry
from lib.config import get_config_path, get_registry_path
from lib.runtime_context import open_file, open_folder, send_notification

logger = logging.getLogger(__name__)

SAMPLE_REGISTRY = {
    "groups": [{
        "name": "Group",
        "projects": [{
            "name": "Nested Project",
            "description": "An awesome nested project",
            "path": "/path/to/nested/project",
        }],
    }],
    "projects": [{
        "name": "Project",
        "description": "An awesome project",
        "path": "/path/to/project",
    }],
}

NOTHING_FOUND_MESSAGE = 'No projects found, add some paths to the "refresh.roots" setting'


# ---------------------------------------------------------------------------
# Registry file
# ---------------------------------------------------------------------------

def load_registry(path: Optional[Path] = None) -> Registry:
    return read_registry(path or get_registry_path()) or Registry()


def save_registry(registry: Registry, path: Optional[Path] = None) -> Path:
    target = path or get_registry_path()
    write_registry(target, registry)
    return target


def init_registry(path: Optional[Path] = None) -> Path:
    """Overwrite the registry with a small example document."""
    target = save_registry(Registry.from_dict(SAMPLE_REGISTRY), path)
    logger.info("Initialized registry at %s", target)
    return target


def edit_registry() -> Path:
    """Open the registry file for hand editing, creating the example first if missing."""
    path = get_registry_path()
    if read_registry(path) is None:
        init_registry(path)
    open_file(str(path))
    return path


# ---------------------------------------------------------------------------
# Active group (session state kept in the config file)
# ---------------------------------------------------------------------------

def _update_config(mutator_fn: Callable[[Dict[str, Any]], None]) -> Path:
    """Apply a mutation to the loaded config file atomically and reload config.

    Raises PersistenceError when the file cannot be read, parsed or written.
    """
    config_path = get_config_path()
    data: Dict[str, Any] = {}
    try:
        if config_path.exists():
            data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Failed to read config {config_path}: {e}", path=config_path) from e
    if not isinstance(data, dict):
        raise PersistenceError(f"Config root must be a JSON object: {config_path}", path=config_path)
    mutator_fn(data)
    tmp_path = config_path.with_suffix(".tmp")
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(config_path)
    except OSError as e:
        raise PersistenceError(f"Failed to write config {config_path}: {e}", path=config_path) from e
    reload_config()
    return config_path


def switch_group(name: Optional[str]) -> str:
    """Set (or clear, with an empty name) the active group."""
    value = (name or "").strip()

    def _mutate(data: Dict[str, Any]) -> None:
        if value:
            data["group"] = value
        else:
            data.pop("group", None)

    _update_config(_mutate)
    logger.info("Active group: %s", value or "(none)")
    return value


# ---------------------------------------------------------------------------
# Non-interactive operations
# ---------------------------------------------------------------------------

def collect_batches() -> List[DiscoveryBatch]:
    """Run the discovery sources in precedence order: tracker, then folder scan."""
    cfg = get_config()
    batches: List[DiscoveryBatch] = []
    if cfg.discovery.tracker.enabled:
        batches.append(DiscoveryBatch("tracker", read_tracked(cfg.discovery.tracker.paths)))
    batches.append(DiscoveryBatch(
        "folders",
        scan_folders(
            cfg.refresh.roots,
            cfg.refresh.depth,
            cfg.refresh.ignore_folders,
            ALWAYS_IGNORE,
        ),
    ))
    return batches


def summarize_merge(result: MergeResult) -> str:
    return (
        f"Refreshed: {result.added} added, {result.filled} updated, "
        f"{result.groups_added} group(s) created, {result.enriched} described"
    )


def refresh_registry() -> MergeResult:
    """Merge freshly discovered projects into the registry file.

    Raises NothingToMergeError when discovery found nothing and no scan
    roots are configured.
    """
    cfg = get_config()
    batches = collect_batches()
    if not has_candidates(batches) and not cfg.refresh.roots:
        raise NothingToMergeError(NOTHING_FOUND_MESSAGE)

    path = get_registry_path()
    descriptions = cfg.discovery.descriptions
    result = merge_registries(
        read_registry(path),
        batches,
        describe=describe_path if descriptions.enabled else None,
        max_workers=descriptions.workers,
        timeout_seconds=descriptions.timeout_seconds,
    )
    write_registry(path, result.registry)
    return result


def save_project_entry(
    path: str,
    name: Optional[str],
    description: Optional[str] = None,
    group_name: Optional[str] = None,
) -> Project:
    registry = load_registry()
    project = add_project(registry, name, description, path, group_name or None)
    save_registry(registry)
    logger.info("Saved project %s (%s)", project.name, project.path)
    return project


def remove_project_entry(path: str) -> Optional[Project]:
    registry = load_registry()
    removed = remove_project(registry, path)
    if removed is None:
        return None
    save_registry(registry)
    logger.info("Removed project %s (%s)", removed.name, removed.path)
    return removed


def _view(active_group: Optional[str], only_groups: bool) -> Registry:
    registry = load_registry()
    if only_groups:
        return registry
    group = get_config().group if active_group is None else active_group
    return filter_by_group(registry, group)


def list_selection(active_group: Optional[str] = None, only_groups: bool = False) -> Selection:
    return build_selection(_view(active_group, only_groups), only_groups=only_groups)


# ---------------------------------------------------------------------------
# Interactive flows
# ---------------------------------------------------------------------------

def open_flow(ui: UIPort, new_window: bool = False, only_groups: bool = False) -> Optional[SelectionEntry]:
    """Pick a project to open, or a group to enter."""
    view = _view(None, only_groups)
    selection = build_selection(view, only_groups=only_groups)

    if not view.project_count() and (not only_groups or not selection.groups_count):
        action = ui.choose(
            "No projects defined, refresh them or edit the registry",
            ["Refresh", "Edit"],
            level="error",
        )
        if action == "Refresh":
            refresh_flow(ui)
        elif action == "Edit":
            edit_registry()
        return None

    selected = ui.pick(selection.entries, placeholder_for(selection))
    if selected is None:
        return None
    if selected.path:
        open_folder(selected.path, new_window=new_window)
    else:
        switch_group(selected.name)
    return selected


def switch_group_flow(ui: UIPort) -> Optional[SelectionEntry]:
    return open_flow(ui, only_groups=True)


def refresh_flow(ui: UIPort, open_after: bool = True) -> Optional[MergeResult]:
    try:
        result = refresh_registry()
    except NothingToMergeError as e:
        ui.message(str(e), level="error")
        return None
    send_notification(summarize_merge(result))
    if open_after:
        open_flow(ui)
    return result


def remove_flow(ui: UIPort, root_path: Optional[str]) -> Optional[Project]:
    if not root_path:
        ui.message("You have to open a project before removing it", level="error")
        return None

    registry = load_registry()
    project = find_project_by_path(registry, root_path)
    if project is None:
        ui.message("This project has not been saved, yet", level="error")
        return None

    option = ui.choose(f'Do you want to remove "{project.name}" from your projects?', ["Remove"])
    if option != "Remove":
        return None

    remove_project(registry, project.path)
    save_registry(registry)
    logger.info("Removed project %s (%s)", project.name, project.path)
    return project


def save_flow(
    ui: UIPort,
    root_path: Optional[str],
    description: Optional[str] = None,
    group: Optional[str] = None,
) -> Optional[Project]:
    """Prompt for name, description and group, then save the project at ``root_path``.

    ``description`` and ``group``, when given, replace the suggested answers.
    """
    if not root_path:
        ui.message("You have to open a project before saving it", level="error")
        return None

    cfg = get_config()
    registry = load_registry()
    same = find_project_by_path(registry, root_path)
    same_group = find_containing_group(registry, same) if same is not None else None

    name_hint = (same.name if same is not None and same.name else "") or os.path.basename(
        root_path.rstrip("/\\")
    )
    description_hint = (
        same.description if same is not None and same.description else describe_path_quietly(root_path)
    ) or ""
    group_hint = cfg.group or (
        same_group.name if same_group is not None and same_group is not registry else ""
    )
    if description is not None:
        description_hint = description
    if group is not None:
        group_hint = group

    name = ui.prompt("Project name", "Type a name for your project", name_hint)
    if name is None:
        return None
    if not name:
        ui.message("You must provide a name for the project.", level="warning")
        return None

    entered_description = ui.prompt(
        "Project description", "Type a description for your project (optional)", description_hint
    )
    if entered_description is None:
        return None

    group_name = ui.prompt("Group name", "Type the name of the group (optional)", group_hint)
    if group_name is None:
        return None

    project = add_project(registry, name, entered_description, root_path, group_name or None)
    save_registry(registry)
    logger.info("Saved project %s (%s)", project.name, project.path)
    return project


def current_project_path() -> str:
    """The folder the user is working in (the process's cwd)."""
    try:
        return os.getcwd()
    except OSError as e:
        print(f"[registry] Cannot resolve current directory: {e}", file=sys.stderr)
        return ""
