"""Shared fixtures for all test modules."""
import json
import os
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Seed an isolated home before collection so import-time path resolution
# never touches the user's real registry.
_DEFAULT_TEST_HOME = Path(tempfile.mkdtemp(prefix="projectdeck-test-home-"))
os.environ.setdefault("PROJECTDECK_HOME", str(_DEFAULT_TEST_HOME))
os.environ["PROJECTDECK_QUIET"] = "1"
os.environ["PROJECTDECK_DISABLE_NOTIFICATIONS"] = "1"

from lib.adapter import reset_adapter


@pytest.fixture(autouse=True)
def _ensure_adapter_clean(monkeypatch):
    """Reset adapter singleton (and cached config) around every test."""
    monkeypatch.delenv("PROJECTDECK_REGISTRY_PATH", raising=False)
    reset_adapter()
    yield
    reset_adapter()


@pytest.fixture
def test_adapter(tmp_path):
    """Provide a TestAdapter rooted at tmp_path that records opens and notifications.

    Usage::

        def test_something(test_adapter):
            # ... code under test ...
            assert test_adapter.opened == [("/a", False)]
    """
    from lib.adapter import TestAdapter, set_adapter
    adapter = TestAdapter(tmp_path)
    set_adapter(adapter)
    return adapter


@pytest.fixture
def write_config(test_adapter):
    """Write config/projectdeck.json under the test home and reload config.

    Tracker discovery points at a missing file unless the test overrides it.
    """
    def _write(data=None):
        payload = {"discovery": {"tracker": {"paths": [str(test_adapter.deck_home() / "no-bookmarks.plist")]}}}
        for key, value in (data or {}).items():
            if key == "discovery" and isinstance(value, dict):
                payload["discovery"].update(value)
            else:
                payload[key] = value
        path = test_adapter.config_dir() / "projectdeck.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        from config import reload_config
        return reload_config()
    return _write
