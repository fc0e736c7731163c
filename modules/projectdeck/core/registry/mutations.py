"""Single-project edits used by the save/remove flows.

These are plain data transformations on a loaded registry; they never raise
for well-typed input. Misses come back as ``None`` and the caller decides
what to tell the user.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.registry.model import (
    Group,
    Project,
    Registry,
    find_containing_group,
    find_group_by_name,
    find_project_by_path,
)

logger = logging.getLogger(__name__)


def add_group(registry: Registry, name: str) -> Group:
    """Get-or-create a root-level group."""
    group = find_group_by_name(registry, name)
    if group is None:
        group = Group(name=name)
        registry.groups.append(group)
        logger.debug("Created group %r", name)
    return group


def move_project(project: Project, source: Group, destination: Group) -> None:
    """Remove ``project`` from ``source`` and append it, unchanged, to ``destination``."""
    key = project.key
    source.projects[:] = [p for p in source.projects if p.key != key]
    destination.projects.append(project)


def add_project(
    registry: Registry,
    name: Optional[str],
    description: Optional[str],
    path: str,
    group_name: Optional[str] = None,
) -> Project:
    """Save a project into ``group_name`` (root when empty).

    An existing project with the same path is updated in place: ``None``
    leaves a field alone, and an empty description clears it. If it lives in
    another group it is moved to the target group, unless the target already
    holds an entry for that path: then that entry is updated and the other
    copy is dropped.
    """
    target = add_group(registry, group_name) if group_name else registry
    project = find_project_by_path(registry, path)

    if project is None:
        project = Project(name=name or "", path=path, description=description or None)
        target.projects.append(project)
        return project

    current = find_containing_group(registry, project)
    if current is not None and current is not target:
        twin = next((p for p in target.projects if p.key == project.key), None)
        if twin is None:
            move_project(project, current, target)
            logger.debug("Moved %s from %r to %r", path, current.name, target.name)
        else:
            current.projects[:] = [p for p in current.projects if p is not project]
            logger.debug("Dropped duplicate %s from %r", path, current.name)
            project = twin

    if name is not None:
        project.name = name
    if description is not None:
        project.description = description or None
    project.path = path
    return project


def remove_project(registry: Registry, path: str) -> Optional[Project]:
    """Delete the project with ``path`` from its owning group; returns it, or None."""
    project = find_project_by_path(registry, path)
    if project is None:
        return None
    group = find_containing_group(registry, project)
    if group is None:
        return None
    group.projects.remove(project)
    return project
