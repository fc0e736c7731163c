"""Tests for core/registry/mutations.py: save, move and remove single projects."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.registry.model import Group, Project, Registry, iter_projects
from core.registry.mutations import add_group, add_project, move_project, remove_project


class TestAddProject:
    def test_creates_missing_group(self):
        registry = Registry()
        add_project(registry, "C", None, "/c", "Work")
        assert registry.to_dict() == {
            "groups": [{"name": "Work", "projects": [{"name": "C", "path": "/c"}]}],
            "projects": [],
        }

    def test_root_when_no_group(self):
        registry = Registry()
        project = add_project(registry, "A", "desc", "/a")
        assert registry.projects == [project]
        assert project.description == "desc"

    def test_update_in_place(self):
        registry = Registry.from_dict({"projects": [
            {"name": "A", "path": "/a", "description": "old"},
            {"name": "B", "path": "/b"},
        ]})
        project = add_project(registry, "Renamed", "new", "/a")
        assert registry.projects[0] is project
        assert [p.name for p in registry.projects] == ["Renamed", "B"]
        assert project.description == "new"

    def test_none_leaves_fields_alone(self):
        registry = Registry.from_dict({"projects": [{"name": "A", "path": "/a", "description": "keep"}]})
        add_project(registry, None, None, "/a")
        assert registry.projects[0].name == "A"
        assert registry.projects[0].description == "keep"

    def test_empty_description_clears(self):
        registry = Registry.from_dict({"projects": [{"name": "A", "path": "/a", "description": "gone"}]})
        add_project(registry, "A", "", "/a")
        assert registry.projects[0].description is None

    def test_moves_to_other_group(self):
        registry = Registry.from_dict({
            "projects": [{"name": "A", "path": "/a", "description": "d"}],
            "groups": [{"name": "Work", "projects": [{"name": "W", "path": "/w"}]}],
        })
        add_project(registry, "A", "d", "/a", "Work")
        assert registry.projects == []
        assert [p.path for p in registry.groups[0].projects] == ["/w", "/a"]

    def test_moves_back_to_root(self):
        registry = Registry.from_dict({"groups": [{"name": "Work", "projects": [{"name": "A", "path": "/a"}]}]})
        add_project(registry, "A", None, "/a")
        assert [p.path for p in registry.projects] == ["/a"]
        assert registry.groups[0].projects == []

    def test_move_onto_existing_entry_keeps_paths_unique(self):
        registry = Registry.from_dict({
            "projects": [{"name": "X", "path": "/p"}, {"name": "R", "path": "/r"}],
            "groups": [{"name": "Work", "projects": [
                {"name": "Y", "path": "/p", "description": "kept"},
                {"name": "W", "path": "/w"},
            ]}],
        })
        project = add_project(registry, "N", None, "/p", "Work")
        work = registry.groups[0]
        assert [p.path for p in work.projects] == ["/p", "/w"]
        assert project is work.projects[0]
        assert project.name == "N"
        assert project.description == "kept"
        assert [p.path for p in registry.projects] == ["/r"]

    def test_same_group_keeps_position(self):
        registry = Registry.from_dict({"groups": [{"name": "Work", "projects": [
            {"name": "A", "path": "/a"},
            {"name": "B", "path": "/b"},
        ]}]})
        add_project(registry, "A2", None, "/a", "Work")
        assert [p.name for p in registry.groups[0].projects] == ["A2", "B"]


class TestRemoveProject:
    def test_add_then_remove_restores(self):
        original = Registry.from_dict({
            "projects": [{"name": "A", "path": "/a"}],
            "groups": [{"name": "Work", "projects": [{"name": "W", "path": "/w"}]}],
        })
        registry = original.copy()
        add_project(registry, "N", None, "/n", "Work")
        removed = remove_project(registry, "/n")
        assert removed.name == "N"
        assert registry.to_dict() == original.to_dict()

    def test_remove_nested(self):
        registry = Registry.from_dict({"groups": [{"name": "G", "groups": [
            {"name": "Inner", "projects": [{"name": "D", "path": "/d"}]},
        ]}]})
        assert remove_project(registry, "/d").name == "D"
        assert list(iter_projects(registry)) == []

    def test_remove_missing_returns_none(self):
        registry = Registry.from_dict({"projects": [{"name": "A", "path": "/a"}]})
        assert remove_project(registry, "/zzz") is None
        assert len(registry.projects) == 1


class TestMoveAndGroups:
    def test_move_preserves_fields_and_count(self):
        project = Project(name="A", path="/a", description="d", extra={"color": "red"})
        source = Group(name="S", projects=[project, Project(name="B", path="/b")])
        destination = Group(name="D")
        move_project(project, source, destination)
        assert [p.path for p in source.projects] == ["/b"]
        moved = destination.projects[-1]
        assert (moved.name, moved.description, moved.extra) == ("A", "d", {"color": "red"})
        assert len(source.projects) + len(destination.projects) == 2

    def test_add_group_idempotent(self):
        registry = Registry()
        first = add_group(registry, "Work")
        second = add_group(registry, "Work")
        assert first is second
        assert len(registry.groups) == 1
