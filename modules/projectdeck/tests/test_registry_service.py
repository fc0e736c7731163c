"""Tests for core/services/registry_service.py: command flows against a scripted UI."""

import json
import os
import plistlib
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from config import get_config, reload_config
from core.registry.errors import DiscoveryError, NothingToMergeError, PersistenceError
from core.registry.model import Registry
from core.services import registry_service as service
from datastore.registrydb.store import read_registry, write_registry
from lib.config import get_registry_path
from lib.worker_pool import shutdown_worker_pools


class FakeUI:
    """Scripted UIPort: answers are consumed in call order, calls are recorded."""

    def __init__(self, picks=(), prompts=(), choices=()):
        self.picks = list(picks)
        self.prompts = list(prompts)
        self.choices = list(choices)
        self.calls = []
        self.messages = []

    def pick(self, entries, placeholder):
        self.calls.append(("pick", [e.name for e in entries], placeholder))
        answer = self.picks.pop(0) if self.picks else None
        if answer is None:
            return None
        return next(e for e in entries if e.name == answer)

    def prompt(self, label, placeholder="", value=""):
        self.calls.append(("prompt", label, value))
        return self.prompts.pop(0) if self.prompts else None

    def choose(self, message, options, level="info"):
        self.calls.append(("choose", message, list(options), level))
        return self.choices.pop(0) if self.choices else None

    def message(self, text, level="info"):
        self.messages.append((level, text))


@pytest.fixture(autouse=True)
def _shutdown_pools():
    yield
    shutdown_worker_pools(wait=True)


@pytest.fixture
def deck(write_config):
    """Configured home with an empty registry path under it."""
    write_config()
    return get_registry_path()


def _seed(path, data):
    write_registry(path, Registry.from_dict(data))


def _load(path):
    return json.loads(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Registry file commands
# ---------------------------------------------------------------------------

class TestInitAndEdit:
    def test_init_writes_example(self, deck):
        service.init_registry()
        data = _load(deck)
        assert data["projects"][0]["name"] == "Project"
        assert data["groups"][0]["projects"][0]["path"] == "/path/to/nested/project"

    def test_edit_creates_then_opens(self, deck, test_adapter):
        service.edit_registry()
        assert deck.exists()
        assert test_adapter.edited == [str(deck)]

    def test_edit_keeps_existing(self, deck, test_adapter):
        _seed(deck, {"projects": [{"name": "Mine", "path": "/m"}]})
        service.edit_registry()
        assert _load(deck)["projects"] == [{"name": "Mine", "path": "/m"}]

    def test_load_missing_is_empty(self, deck):
        assert service.load_registry().is_empty()


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------

class TestRefresh:
    def test_nothing_to_merge(self, deck):
        with pytest.raises(NothingToMergeError):
            service.refresh_registry()
        assert not deck.exists()

    def test_roots_without_hits_still_writes(self, write_config, tmp_path):
        (tmp_path / "src").mkdir()
        write_config({"refresh": {"roots": [str(tmp_path / "src")]}})
        result = service.refresh_registry()
        assert result.added == 0
        assert get_registry_path().exists()

    def test_scan_merge_and_describe(self, write_config, tmp_path):
        src = tmp_path / "src"
        (src / "app" / ".git").mkdir(parents=True)
        (src / "app" / "package.json").write_text(json.dumps({"description": "The app"}), encoding="utf-8")
        (src / "tool" / ".git").mkdir(parents=True)
        write_config({"refresh": {"roots": [str(src)]}})
        path = get_registry_path()
        _seed(path, {"groups": [{"name": "Work", "projects": [{"name": "My Tool", "path": str(src / "tool")}]}]})

        result = service.refresh_registry()

        data = _load(path)
        assert data["groups"][0]["projects"] == [{"name": "My Tool", "path": str(src / "tool")}]
        assert data["projects"] == [{"name": "app", "description": "The app", "path": str(src / "app")}]
        assert result.added == 1
        assert result.enriched == 1

    def test_descriptions_disabled(self, write_config, tmp_path):
        (tmp_path / "app" / ".git").mkdir(parents=True)
        (tmp_path / "app" / "package.json").write_text(json.dumps({"description": "x"}), encoding="utf-8")
        write_config({
            "refresh": {"roots": [str(tmp_path)]},
            "discovery": {"descriptions": {"enabled": False}},
        })
        service.refresh_registry()
        assert "description" not in _load(get_registry_path())["projects"][0]

    def test_tracker_before_folders(self, write_config, tmp_path):
        repo = tmp_path / "repos" / "api"
        (repo / ".git").mkdir(parents=True)
        bookmarks = tmp_path / "bookmarks.plist"
        with bookmarks.open("wb") as f:
            plistlib.dump({"children": [{"name": "Work", "children": [
                {"name": "API", "fileURL": repo.as_uri()},
            ]}]}, f)
        write_config({
            "refresh": {"roots": [str(tmp_path / "repos")]},
            "discovery": {"tracker": {"paths": [str(bookmarks)]}},
        })
        service.refresh_registry()
        data = _load(get_registry_path())
        assert data["projects"] == []
        assert data["groups"][0]["projects"][0]["name"] == "API"

    def test_tracker_failure_fail_hard(self, write_config, tmp_path):
        bookmarks = tmp_path / "bookmarks.plist"
        bookmarks.write_bytes(b"garbage")
        write_config({"discovery": {"tracker": {"paths": [str(bookmarks)]}}})
        with pytest.raises(DiscoveryError):
            service.refresh_registry()

    def test_refresh_flow_reports_and_opens(self, write_config, tmp_path, test_adapter):
        (tmp_path / "app" / ".git").mkdir(parents=True)
        write_config({"refresh": {"roots": [str(tmp_path)]}})
        ui = FakeUI(picks=["app"])
        result = service.refresh_flow(ui)
        assert result.added == 1
        assert test_adapter.notifications[-1].startswith("Refreshed: 1 added")
        assert test_adapter.opened == [(str(tmp_path / "app"), False)]

    def test_refresh_flow_nothing_found(self, deck):
        ui = FakeUI()
        assert service.refresh_flow(ui) is None
        assert ui.messages == [("error", service.NOTHING_FOUND_MESSAGE)]


# ---------------------------------------------------------------------------
# Open / switch group
# ---------------------------------------------------------------------------

class TestOpenFlow:
    def test_empty_offers_refresh_or_edit(self, deck, test_adapter):
        ui = FakeUI(choices=["Edit"])
        assert service.open_flow(ui) is None
        assert ui.calls[0][2] == ["Refresh", "Edit"]
        assert ui.calls[0][3] == "error"
        assert test_adapter.edited == [str(deck)]

    def test_dismissed_empty_prompt_does_nothing(self, deck, test_adapter):
        assert service.open_flow(FakeUI()) is None
        assert test_adapter.edited == []

    def test_opens_selected_project(self, deck, test_adapter):
        _seed(deck, {"projects": [{"name": "A", "path": "/a"}], "groups": [{"name": "G"}]})
        ui = FakeUI(picks=["A"])
        entry = service.open_flow(ui, new_window=True)
        assert entry.path == "/a"
        assert ui.calls[0] == ("pick", ["G", "A"], "Select a project or a group...")
        assert test_adapter.opened == [("/a", True)]

    def test_picking_group_switches(self, deck, test_adapter):
        _seed(deck, {"groups": [{"name": "Work", "projects": [{"name": "W", "path": "/w"}]}]})
        service.open_flow(FakeUI(picks=["Work"]))
        assert get_config().group == "Work"
        ui = FakeUI(picks=[None])
        service.open_flow(ui)
        assert ui.calls[0] == ("pick", ["W"], "Select a project...")

    def test_cancel_pick(self, deck, test_adapter):
        _seed(deck, {"projects": [{"name": "A", "path": "/a"}]})
        assert service.open_flow(FakeUI()) is None
        assert test_adapter.opened == []

    def test_switch_group_flow_lists_groups_only(self, deck):
        _seed(deck, {"projects": [{"name": "A", "path": "/a"}], "groups": [{"name": "G"}]})
        ui = FakeUI(picks=["G"])
        service.switch_group_flow(ui)
        assert ui.calls[0] == ("pick", ["G"], "Select a group...")
        assert get_config().group == "G"

    def test_switch_group_persists_and_clears(self, deck, test_adapter):
        service.switch_group("Work")
        config_path = test_adapter.config_dir() / "projectdeck.json"
        assert _load(config_path)["group"] == "Work"
        service.switch_group("")
        assert "group" not in _load(config_path)
        assert get_config().group == ""

    def test_switch_group_writes_to_loaded_config(self, test_adapter, monkeypatch, tmp_path):
        user_home = tmp_path / "user"
        user_config = user_home / ".projectdeck" / "config.json"
        user_config.parent.mkdir(parents=True)
        user_config.write_text(json.dumps({"refresh": {"roots": ["/srv/code"]}}), encoding="utf-8")
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: user_home))
        monkeypatch.chdir(tmp_path)
        reload_config()

        service.switch_group("Work")

        assert not (test_adapter.config_dir() / "projectdeck.json").exists()
        assert _load(user_config) == {"refresh": {"roots": ["/srv/code"]}, "group": "Work"}
        assert get_config().refresh.roots == ["/srv/code"]
        assert get_config().group == "Work"

    @pytest.mark.parametrize("content", ["{not json", "[]"])
    def test_switch_group_malformed_config(self, deck, test_adapter, content):
        config_path = test_adapter.config_dir() / "projectdeck.json"
        config_path.write_text(content, encoding="utf-8")
        with pytest.raises(PersistenceError) as exc:
            service.switch_group("Work")
        assert exc.value.path == config_path
        assert config_path.read_text(encoding="utf-8") == content


# ---------------------------------------------------------------------------
# Save / remove
# ---------------------------------------------------------------------------

class TestSaveFlow:
    def test_requires_path(self, deck):
        ui = FakeUI()
        assert service.save_flow(ui, "") is None
        assert ui.messages[0][0] == "error"

    def test_new_project_hints(self, deck, tmp_path):
        folder = tmp_path / "my-app"
        folder.mkdir()
        (folder / "package.json").write_text(json.dumps({"description": "Hinted"}), encoding="utf-8")
        ui = FakeUI(prompts=["My App", "Hinted", "Work"])
        project = service.save_flow(ui, str(folder))
        assert [c[2] for c in ui.calls] == ["my-app", "Hinted", ""]
        assert project.name == "My App"
        data = _load(deck)
        assert data["groups"][0]["name"] == "Work"
        assert data["groups"][0]["projects"][0]["description"] == "Hinted"

    def test_existing_project_hints(self, deck):
        _seed(deck, {"groups": [{"name": "Work", "projects": [
            {"name": "Saved", "path": "/s", "description": "old"},
        ]}]})
        ui = FakeUI(prompts=["Saved", "", ""])
        service.save_flow(ui, "/s")
        assert [c[2] for c in ui.calls] == ["Saved", "old", "Work"]
        data = _load(deck)
        assert data["projects"] == [{"name": "Saved", "path": "/s"}]
        assert data["groups"][0]["projects"] == []

    def test_active_group_is_group_hint(self, deck):
        service.switch_group("Focus")
        ui = FakeUI(prompts=["X", "", "Focus"])
        service.save_flow(ui, "/x")
        assert ui.calls[2][2] == "Focus"

    def test_given_description_and_group_become_hints(self, deck):
        ui = FakeUI(prompts=["X", "From flag", "Flagged"])
        project = service.save_flow(ui, "/x", description="From flag", group="Flagged")
        assert [c[2] for c in ui.calls] == ["x", "From flag", "Flagged"]
        assert project.description == "From flag"
        assert _load(deck)["groups"][0]["name"] == "Flagged"

    def test_empty_name_warns(self, deck):
        ui = FakeUI(prompts=[""])
        assert service.save_flow(ui, "/x") is None
        assert ui.messages == [("warning", "You must provide a name for the project.")]
        assert not deck.exists()

    @pytest.mark.parametrize("answers", [[None], ["Name", None], ["Name", "", None]])
    def test_cancel_at_any_prompt(self, deck, answers):
        assert service.save_flow(FakeUI(prompts=answers), "/x") is None
        assert not deck.exists()

    def test_save_entry_non_interactive(self, deck):
        service.save_project_entry("/c", "C", None, "Work")
        assert _load(deck) == {
            "groups": [{"name": "Work", "projects": [{"name": "C", "path": "/c"}]}],
            "projects": [],
        }


class TestRemoveFlow:
    def test_requires_path(self, deck):
        ui = FakeUI()
        assert service.remove_flow(ui, None) is None
        assert ui.messages == [("error", "You have to open a project before removing it")]

    def test_unsaved(self, deck):
        ui = FakeUI()
        assert service.remove_flow(ui, "/nope") is None
        assert ui.messages == [("error", "This project has not been saved, yet")]

    def test_confirmed(self, deck):
        _seed(deck, {"projects": [{"name": "A", "path": "/a"}, {"name": "B", "path": "/b"}]})
        ui = FakeUI(choices=["Remove"])
        assert service.remove_flow(ui, "/a").name == "A"
        assert ui.calls[0][1] == 'Do you want to remove "A" from your projects?'
        assert [p["name"] for p in _load(deck)["projects"]] == ["B"]

    def test_dismissed(self, deck):
        _seed(deck, {"projects": [{"name": "A", "path": "/a"}]})
        assert service.remove_flow(FakeUI(), "/a") is None
        assert len(_load(deck)["projects"]) == 1

    def test_remove_entry(self, deck):
        _seed(deck, {"groups": [{"name": "G", "projects": [{"name": "A", "path": "/a"}]}]})
        assert service.remove_project_entry("/a").name == "A"
        assert service.remove_project_entry("/a") is None
        assert read_registry(deck).project_count() == 0
