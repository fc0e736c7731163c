"""Registry model: groups, projects and structural lookups.

The registry is a tree: an unnamed root group holding projects and named
groups, which may nest further. Project identity is the normalized path.
Ordering everywhere is insertion order.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

_PROJECT_KEYS = ("name", "description", "path")


def normalize_path(path: str) -> str:
    """Comparison key for a project path (case rules follow the host filesystem)."""
    if not path:
        return ""
    return os.path.normcase(os.path.normpath(str(path)))


@dataclass
class Project:
    name: str = ""
    path: str = ""
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)  # unknown persisted keys, round-tripped

    @property
    def key(self) -> str:
        return normalize_path(self.path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        description = data.get("description")
        return cls(
            name=str(data.get("name") or ""),
            path=str(data.get("path") or ""),
            description=str(description) if description not in (None, "") else None,
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _PROJECT_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.description:
            out["description"] = self.description
        out["path"] = self.path
        out.update(copy.deepcopy(self.extra))
        return out


@dataclass
class Group:
    name: str = ""
    projects: List[Project] = field(default_factory=list)
    groups: List["Group"] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        group = cls(name=str(data.get("name") or ""))
        _fill_from_dict(group, data)
        return group

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "projects": [p.to_dict() for p in self.projects]}
        if self.groups:
            out["groups"] = [g.to_dict() for g in self.groups]
        out.update(copy.deepcopy(self.extra))
        return out

    def is_empty(self) -> bool:
        return not self.projects and not self.groups

    def project_count(self) -> int:
        return sum(1 for _ in iter_projects(self))


@dataclass
class Registry(Group):
    """The root container; persisted and merged as a whole."""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Registry":
        registry = cls()
        if isinstance(data, dict):
            _fill_from_dict(registry, data)
        return registry

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(copy.deepcopy(self.extra))
        out["groups"] = [g.to_dict() for g in self.groups]
        out["projects"] = [p.to_dict() for p in self.projects]
        return out

    def copy(self) -> "Registry":
        return copy.deepcopy(self)


def _fill_from_dict(group: Group, data: Dict[str, Any]) -> None:
    projects = data.get("projects") or []
    groups = data.get("groups") or []
    group.projects = [Project.from_dict(p) for p in projects if isinstance(p, dict)]
    group.groups = [Group.from_dict(g) for g in groups if isinstance(g, dict)]
    skip = {"name", "projects", "groups"}
    group.extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in skip}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def iter_projects(group: Group) -> Iterator[Project]:
    """Depth-first: the group's own projects, then each child group in order."""
    yield from group.projects
    for child in group.groups:
        yield from iter_projects(child)


def iter_groups(group: Group) -> Iterator[Group]:
    """Depth-first over the group and every descendant."""
    yield group
    for child in group.groups:
        yield from iter_groups(child)


def find_project_by_path(registry: Group, path: str) -> Optional[Project]:
    """First project with a matching path, root first, then groups depth-first.

    Paths are only unique within a group, so a path present in two groups
    resolves to whichever comes first in this order.
    """
    key = normalize_path(path)
    if not key:
        return None
    for project in iter_projects(registry):
        if project.key == key:
            return project
    return None


def find_group_by_name(registry: Group, name: str) -> Optional[Group]:
    """Immediate child group of the root with this name (non-recursive)."""
    if not name:
        return None
    for group in registry.groups:
        if group.name == name:
            return group
    return None


def find_containing_group(registry: Group, project: Project) -> Optional[Group]:
    """Group (or the registry itself, for root) whose projects hold ``project``."""
    key = project.key
    for group in iter_groups(registry):
        if any(p.key == key for p in group.projects):
            return group
    return None
