"""Selection-list builder: flattens the registry into pickable entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from core.registry.model import Group, Registry, find_group_by_name

PROJECT = "project"
GROUP = "group"


@dataclass
class SelectionEntry:
    kind: str  # PROJECT | GROUP
    name: str
    description: Optional[str] = None
    path: Optional[str] = None  # None for group entries
    detail: str = ""

    @property
    def is_group(self) -> bool:
        return self.kind == GROUP


@dataclass
class Selection:
    entries: List[SelectionEntry] = field(default_factory=list)
    projects_count: int = 0
    groups_count: int = 0

    def is_empty(self) -> bool:
        return not self.entries


def filter_by_group(registry: Registry, group_name: Optional[str]) -> Registry:
    """View of the registry holding only ``group_name``'s direct projects.

    Unknown or empty group names leave the registry as it is.
    """
    if not group_name:
        return registry
    group = find_group_by_name(registry, group_name)
    if group is None:
        return registry
    return Registry(projects=list(group.projects))


def _project_entries(group: Group) -> List[SelectionEntry]:
    return [
        SelectionEntry(
            kind=PROJECT,
            name=p.name or p.path,
            description=p.description,
            path=p.path,
            detail=p.path,
        )
        for p in group.projects
    ]


def _group_entries(group: Group) -> List[SelectionEntry]:
    entries = []
    for g in group.groups:
        count = g.project_count()
        entries.append(SelectionEntry(
            kind=GROUP,
            name=g.name,
            detail=f"{count} project{'s' if count != 1 else ''}",
        ))
    return entries


def build_selection(
    registry: Registry,
    active_group: Optional[str] = None,
    only_groups: bool = False,
) -> Selection:
    """Build the ordered pick list: group entries first, then projects, in registry order.

    - ``only_groups``: the root's groups only.
    - ``active_group`` set (and found): that group's direct projects only.
    - otherwise: the root's groups and root projects.
    """
    if only_groups:
        entries = _group_entries(registry)
    else:
        group = find_group_by_name(registry, active_group) if active_group else None
        if group is not None:
            entries = _project_entries(group)
        else:
            entries = _group_entries(registry) + _project_entries(registry)

    return Selection(
        entries=entries,
        projects_count=sum(1 for e in entries if e.kind == PROJECT),
        groups_count=sum(1 for e in entries if e.kind == GROUP),
    )


def placeholder_for(selection: Selection) -> str:
    if selection.projects_count:
        return "Select a project or a group..." if selection.groups_count else "Select a project..."
    return "Select a group..."
