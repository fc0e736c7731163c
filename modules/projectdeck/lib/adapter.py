"""Platform adapter layer: decouples ProjectDeck core from the host.

Provides an abstract interface that ProjectDeck modules call for:
- Path resolution (home dir, config dir)
- Notifications (send messages to the user)
- Opening folders and files in the user's editor

One concrete adapter ships out of the box:
- StandaloneAdapter: works anywhere (~/projectdeck/)

Tests use set_adapter() / reset_adapter() for isolation.
"""

import abc
import os
import shlex
import subprocess
import sys
import threading
from pathlib import Path
from typing import List, Optional, Tuple


class DeckAdapter(abc.ABC):
    """Abstract interface for platform-specific behavior."""

    # ---- Paths ----

    @abc.abstractmethod
    def deck_home(self) -> Path:
        """Root directory for all ProjectDeck data (config, registry)."""
        ...

    def config_dir(self) -> Path:
        return self.deck_home() / "config"

    # ---- Notifications ----

    @abc.abstractmethod
    def notify(self, message: str, dry_run: bool = False) -> bool:
        """Send a notification message to the user. Returns True on success."""
        ...

    # ---- Editor ----

    @abc.abstractmethod
    def open_folder(self, path: str, new_window: bool = False) -> bool:
        """Open a project folder in the configured editor."""
        ...

    @abc.abstractmethod
    def open_file(self, path: str) -> bool:
        """Open a single file (the registry) for editing."""
        ...


class StandaloneAdapter(DeckAdapter):
    """Default adapter for standalone installations.

    - Home dir: PROJECTDECK_HOME env or ~/projectdeck/
    - Notifications: stderr
    - Folders: opener.command from config (default ``code``)
    - Files: $VISUAL / $EDITOR, falling back to the opener command
    """

    def __init__(self, home: Optional[Path] = None):
        self._home = home

    def deck_home(self) -> Path:
        if self._home is not None:
            return self._home
        env = os.environ.get("PROJECTDECK_HOME", "").strip()
        return Path(env) if env else Path.home() / "projectdeck"

    def notify(self, message: str, dry_run: bool = False) -> bool:
        if os.environ.get("PROJECTDECK_DISABLE_NOTIFICATIONS"):
            return True
        if dry_run:
            print(f"[notify] (dry-run) {message}", file=sys.stderr)
            return True
        print(f"[projectdeck] {message}", file=sys.stderr)
        return True

    def _opener(self) -> Tuple[List[str], str, str]:
        from config import get_config
        opener = get_config().opener
        return shlex.split(opener.command), opener.new_window_flag, opener.reuse_window_flag

    def open_folder(self, path: str, new_window: bool = False) -> bool:
        command, new_flag, reuse_flag = self._opener()
        if not command:
            print(path)
            return True
        flag = new_flag if new_window else reuse_flag
        argv = command + ([flag] if flag else []) + [path]
        return _spawn(argv)

    def open_file(self, path: str) -> bool:
        editor = os.environ.get("VISUAL", "").strip() or os.environ.get("EDITOR", "").strip()
        if editor:
            return _spawn(shlex.split(editor) + [path], wait=True)
        command, _new_flag, _reuse_flag = self._opener()
        if not command:
            print(path)
            return True
        return _spawn(command + [path])


def _spawn(argv: List[str], wait: bool = False) -> bool:
    try:
        if wait:
            return subprocess.run(argv, check=False).returncode == 0
        subprocess.Popen(argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        return True
    except OSError as e:
        print(f"[adapter] Failed to run {argv[0]}: {e}", file=sys.stderr)
        return False


# ---------------------------------------------------------------------------
# Test adapter
# ---------------------------------------------------------------------------

class TestAdapter(StandaloneAdapter):
    """Test adapter that records opens and notifications instead of spawning.

    Usage in tests::

        adapter = TestAdapter(tmp_path)
        set_adapter(adapter)
        # ... code under test calls get_adapter().open_folder(...) ...
        assert adapter.opened == [("/a", False)]
    """

    __test__ = False  # Not a pytest test class

    def __init__(self, home: Path):
        super().__init__(home=home)
        self.opened: List[Tuple[str, bool]] = []
        self.edited: List[str] = []
        self.notifications: List[str] = []

    def notify(self, message: str, dry_run: bool = False) -> bool:
        self.notifications.append(message)
        return True

    def open_folder(self, path: str, new_window: bool = False) -> bool:
        self.opened.append((path, new_window))
        return True

    def open_file(self, path: str) -> bool:
        self.edited.append(path)
        return True


# ---------------------------------------------------------------------------
# Singleton management
# ---------------------------------------------------------------------------

_adapter: Optional[DeckAdapter] = None
_adapter_lock = threading.Lock()


def get_adapter() -> DeckAdapter:
    """Get the current adapter (resolved on first call)."""
    global _adapter
    if _adapter is not None:
        return _adapter
    with _adapter_lock:
        if _adapter is None:
            _adapter = StandaloneAdapter()
        return _adapter


def set_adapter(adapter: DeckAdapter) -> None:
    """Override the adapter (for tests)."""
    global _adapter
    with _adapter_lock:
        _adapter = adapter


def reset_adapter() -> None:
    """Reset adapter resolution state (for tests).

    Also clears the cached config so it re-resolves against the next adapter.
    """
    global _adapter
    with _adapter_lock:
        _adapter = None
    try:
        import config
        config._config = None
    except ImportError:
        pass
