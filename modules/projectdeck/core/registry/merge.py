"""Merge engine: folds discovered project batches into the registry.

Each discovery batch is diffed against the registry into typed operations
(``AddGroup``, ``AddProject``, ``FillProject``) which are then applied. Batches
are reduced in the order given, so earlier sources win ties on which group a
new project lands in. The merge is additive: nothing in the base registry is
ever removed, and non-empty user fields are never overwritten.
"""

from __future__ import annotations

import copy
import functools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core.registry.model import (
    Group,
    Project,
    Registry,
    find_project_by_path,
    iter_projects,
    normalize_path,
)
from lib.worker_pool import run_callables

logger = logging.getLogger(__name__)

GroupPath = Tuple[str, ...]
_FILLABLE = ("name", "description")


@dataclass
class DiscoveryBatch:
    """A partial registry produced by one discovery source."""
    source: str
    registry: Registry = field(default_factory=Registry)

    def is_empty(self) -> bool:
        return self.registry.is_empty()


@dataclass
class AddGroup:
    parent: GroupPath
    name: str


@dataclass
class AddProject:
    group: GroupPath
    project: Project


@dataclass
class FillProject:
    path: str
    fields: Dict[str, str]


MergeOp = Union[AddGroup, AddProject, FillProject]


@dataclass
class MergeResult:
    registry: Registry
    ops: List[MergeOp] = field(default_factory=list)
    enriched: int = 0

    @property
    def added(self) -> int:
        return sum(1 for op in self.ops if isinstance(op, AddProject))

    @property
    def filled(self) -> int:
        return sum(1 for op in self.ops if isinstance(op, FillProject))

    @property
    def groups_added(self) -> int:
        return sum(1 for op in self.ops if isinstance(op, AddGroup))


def has_candidates(batches: Iterable[DiscoveryBatch]) -> bool:
    return any(not batch.is_empty() for batch in batches)


def _gap_fields(existing: Dict[str, Optional[str]], incoming: Project) -> Dict[str, str]:
    """Fields the incoming record can fill because the existing one lacks them."""
    gaps: Dict[str, str] = {}
    for name in _FILLABLE:
        value = getattr(incoming, name)
        if value and not existing.get(name):
            gaps[name] = value
    return gaps


def _group_paths(group: Group, prefix: GroupPath = ()) -> Iterable[GroupPath]:
    for child in group.groups:
        path = prefix + (child.name,)
        yield path
        yield from _group_paths(child, path)


def diff_batch(base: Registry, batch: DiscoveryBatch) -> List[MergeOp]:
    """Compute the operations that merge ``batch`` into ``base`` (``base`` is untouched)."""
    known: Dict[str, Dict[str, Optional[str]]] = {}
    for project in iter_projects(base):
        known.setdefault(project.key, {"name": project.name, "description": project.description})
    groups = set(_group_paths(base))
    pending: Dict[str, Project] = {}
    ops: List[MergeOp] = []

    def visit(group: Group, path: GroupPath) -> None:
        for incoming in group.projects:
            key = normalize_path(incoming.path)
            if not key:
                logger.debug("[%s] skipping project without path: %r", batch.source, incoming.name)
                continue
            if key in known:
                gaps = _gap_fields(known[key], incoming)
                if not gaps:
                    continue
                known[key].update(gaps)
                if key in pending:
                    for name, value in gaps.items():
                        setattr(pending[key], name, value)
                else:
                    ops.append(FillProject(path=incoming.path, fields=gaps))
                continue
            added = copy.deepcopy(incoming)
            known[key] = {"name": added.name, "description": added.description}
            pending[key] = added
            ops.append(AddProject(group=path, project=added))

        for child in group.groups:
            child_path = path + (child.name,)
            if child_path not in groups:
                groups.add(child_path)
                ops.append(AddGroup(parent=path, name=child.name))
            visit(child, child_path)

    visit(batch.registry, ())
    return ops


def _resolve_group(registry: Registry, path: GroupPath) -> Group:
    """Walk (creating as needed) the group at ``path`` below the root."""
    current: Group = registry
    for name in path:
        child = next((g for g in current.groups if g.name == name), None)
        if child is None:
            child = Group(name=name)
            current.groups.append(child)
        current = child
    return current


def _fill(target: Project, fields: Dict[str, str]) -> None:
    for name, value in fields.items():
        if value and not getattr(target, name):
            setattr(target, name, value)


def apply_ops(registry: Registry, ops: Sequence[MergeOp]) -> Registry:
    """Apply merge operations to ``registry`` in place and return it."""
    for op in ops:
        if isinstance(op, AddGroup):
            _resolve_group(registry, op.parent + (op.name,))
        elif isinstance(op, AddProject):
            existing = find_project_by_path(registry, op.project.path)
            if existing is not None:
                _fill(existing, {n: getattr(op.project, n) for n in _FILLABLE if getattr(op.project, n)})
                continue
            _resolve_group(registry, op.group).projects.append(copy.deepcopy(op.project))
        elif isinstance(op, FillProject):
            existing = find_project_by_path(registry, op.path)
            if existing is not None:
                _fill(existing, op.fields)
    return registry


def enrich_descriptions(
    registry: Registry,
    describe: Callable[[str], Optional[str]],
    *,
    max_workers: int = 4,
    timeout_seconds: Optional[float] = None,
) -> int:
    """Fill missing descriptions via ``describe(path)``; returns how many were filled.

    Lookups are independent: a lookup that raises or times out leaves that
    project's description absent and does not affect the others.
    """
    missing: Dict[str, List[Project]] = {}
    for project in iter_projects(registry):
        if not project.description and project.key:
            missing.setdefault(project.key, []).append(project)
    if not missing:
        return 0

    keys = list(missing.keys())
    results = run_callables(
        [functools.partial(describe, missing[key][0].path) for key in keys],
        max_workers=max_workers,
        pool_name="describe",
        timeout_seconds=timeout_seconds,
        return_exceptions=True,
    )

    filled = 0
    for key, result in zip(keys, results):
        if isinstance(result, Exception):
            logger.debug("Description lookup failed for %s: %s", missing[key][0].path, result)
            continue
        if not result or not isinstance(result, str):
            continue
        for project in missing[key]:
            project.description = result
            filled += 1
    return filled


def merge_registries(
    base: Optional[Registry],
    batches: Sequence[DiscoveryBatch],
    *,
    describe: Optional[Callable[[str], Optional[str]]] = None,
    max_workers: int = 4,
    timeout_seconds: Optional[float] = None,
) -> MergeResult:
    """Merge discovery batches, in order, into a copy of ``base``."""
    applied: List[MergeOp] = []

    def reducer(registry: Registry, batch: DiscoveryBatch) -> Registry:
        ops = diff_batch(registry, batch)
        if ops:
            logger.debug("[%s] applying %d merge op(s)", batch.source, len(ops))
        applied.extend(ops)
        return apply_ops(registry, ops)

    start = base.copy() if base is not None else Registry()
    merged = functools.reduce(reducer, batches, start)

    enriched = 0
    if describe is not None:
        enriched = enrich_descriptions(
            merged,
            describe,
            max_workers=max_workers,
            timeout_seconds=timeout_seconds,
        )

    result = MergeResult(registry=merged, ops=applied, enriched=enriched)
    logger.info(
        "Merged %d batch(es): %d added, %d filled, %d group(s) created, %d described",
        len(batches),
        result.added,
        result.filled,
        result.groups_added,
        enriched,
    )
    return result
