"""
Configuration loader for ProjectDeck

Loads settings from <deck_home>/config/projectdeck.json
Falls back to sensible defaults if config is missing.
"""

import json
import logging
import os
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from lib.runtime_context import get_home_dir

logger = logging.getLogger(__name__)


def _coerce_positive_int(raw: Any, default: int) -> int:
    """Return a positive int; fallback to default for invalid values."""
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        return default


def _coerce_nonnegative_int(raw: Any, default: int) -> int:
    """Return a non-negative int; fallback to default for invalid values."""
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return default


def _coerce_positive_float(raw: Any, default: float) -> float:
    """Return a positive float; fallback to default for invalid values."""
    try:
        value = float(raw)
        return value if value > 0 else default
    except (TypeError, ValueError):
        return default


def _default_tracker_paths() -> List[str]:
    support = "~/Library/Application Support"
    return [
        f"{support}/com.fournova.Tower3/bookmarks-v2.plist",
        f"{support}/com.fournova.Tower2/bookmarks-v2.plist",
    ]


def _home_root() -> Path:
    """Get home root from runtime context."""
    return get_home_dir()


def _config_paths() -> list:
    """Config file search paths (in priority order)."""
    root = _home_root()
    return [
        root / "config" / "projectdeck.json",
        Path.home() / ".projectdeck" / "config.json",
        Path("./projectdeck.json"),
    ]


def find_config_file() -> Optional[Path]:
    """First existing config file in search order, or None."""
    for config_path in _config_paths():
        if config_path.exists():
            return config_path
    return None


@dataclass
class RegistryConfig:
    path: str = "projects.json"  # relative to deck home unless absolute


@dataclass
class RefreshConfig:
    roots: List[str] = field(default_factory=list)
    depth: int = 1  # levels below each root to search (root itself is 0)
    ignore_folders: List[str] = field(default_factory=lambda: ["node_modules"])


@dataclass
class TrackerConfig:
    enabled: bool = True
    paths: List[str] = field(default_factory=_default_tracker_paths)  # first existing wins


@dataclass
class DescriptionsConfig:
    enabled: bool = True
    workers: int = 4
    timeout_seconds: float = 30.0


@dataclass
class DiscoveryConfig:
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    descriptions: DescriptionsConfig = field(default_factory=DescriptionsConfig)
    fail_hard: bool = True  # If true, unreadable discovery sources raise instead of being skipped


@dataclass
class OpenerConfig:
    command: str = "code"  # empty = print the path instead of launching
    new_window_flag: str = "--new-window"
    reuse_window_flag: str = "--reuse-window"


@dataclass
class LoggingConfig:
    level: str = "info"


@dataclass
class DeckConfig:
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    opener: OpenerConfig = field(default_factory=OpenerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    group: str = ""  # active group; empty = show everything


# Global config instance (lazy loaded)
_config: Optional[DeckConfig] = None
_config_lock = threading.RLock()
_warned_unknown_config_keys: set = set()

_KNOWN_TOP_LEVEL_CONFIG_KEYS = {
    "registry",
    "refresh",
    "discovery",
    "opener",
    "logging",
    "group",
}

_KNOWN_REFRESH_KEYS = {"roots", "depth", "ignore_folders"}
_KNOWN_DISCOVERY_KEYS = {"tracker", "descriptions", "fail_hard"}
_KNOWN_OPENER_KEYS = {"command", "new_window_flag", "reuse_window_flag"}


def _warn_unknown_keys(section: str, data: Any, known_keys: set) -> None:
    if not isinstance(data, dict):
        return
    for key in data.keys():
        token = f"{section}.{key}" if section else str(key)
        if key in known_keys:
            continue
        if token in _warned_unknown_config_keys:
            continue
        _warned_unknown_config_keys.add(token)
        if not os.environ.get("PROJECTDECK_QUIET"):
            print(f"[config] Unknown config key ignored: {token}", file=sys.stderr)


def _camel_to_snake(camel_str: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(camel_str):
        if char.isupper() and i > 0:
            result.append('_')
        result.append(char.lower())
    return ''.join(result)


def _load_nested(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert camelCase keys to snake_case recursively."""
    result = {}
    for key, value in data.items():
        snake_key = _camel_to_snake(key)
        if isinstance(value, dict):
            result[snake_key] = _load_nested(value)
        else:
            result[snake_key] = value
    return result


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    if isinstance(value, dict):
        return value
    logger.warning("Invalid type for %s (expected object, got %s); using defaults", key, type(value).__name__)
    return {}


def _coerce_str_list(value: Any, *, field_name: str, default: Optional[List[str]] = None) -> List[str]:
    """Normalize list-of-string config fields from raw JSON."""
    fallback = list(default or [])
    if value is None:
        return fallback
    if isinstance(value, str):
        return [value] if value.strip() else fallback
    if isinstance(value, list):
        return [str(v) for v in value if str(v).strip()]
    logger.warning(
        "Invalid type for %s (expected list, got %s); using default",
        field_name,
        type(value).__name__,
    )
    return fallback


def load_config() -> DeckConfig:
    """Load configuration from file or use defaults."""
    global _config

    with _config_lock:
        if _config is not None:
            return _config
        _config = _load_config_inner()
        return _config


def _read_raw_config() -> Dict[str, Any]:
    for config_path in _config_paths():
        if not config_path.exists():
            continue
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[config] Failed to parse {config_path}: {e}", file=sys.stderr)
            continue
        except OSError as e:
            print(f"[config] Failed to read {config_path}: {e}", file=sys.stderr)
            continue
        if not isinstance(raw, dict):
            print(f"[config] Ignoring {config_path}: top level must be an object", file=sys.stderr)
            continue
        if not os.environ.get("PROJECTDECK_QUIET"):
            print(f"[config] Loaded from {config_path}", file=sys.stderr)
        return raw

    if not os.environ.get("PROJECTDECK_QUIET"):
        print("[config] Using defaults (no config file found)", file=sys.stderr)
    return {}


def _load_config_inner() -> DeckConfig:
    config_data = _load_nested(_read_raw_config())
    _warn_unknown_keys("", config_data, _KNOWN_TOP_LEVEL_CONFIG_KEYS)

    registry_data = _section(config_data, 'registry')
    registry = RegistryConfig(
        path=str(registry_data.get('path') or RegistryConfig.path),
    )

    refresh_data = _section(config_data, 'refresh')
    _warn_unknown_keys("refresh", refresh_data, _KNOWN_REFRESH_KEYS)
    refresh = RefreshConfig(
        roots=_coerce_str_list(refresh_data.get('roots'), field_name="refresh.roots"),
        depth=_coerce_nonnegative_int(refresh_data.get('depth', 1), 1),
        ignore_folders=_coerce_str_list(
            refresh_data.get('ignore_folders'),
            field_name="refresh.ignoreFolders",
            default=["node_modules"],
        ),
    )

    discovery_data = _section(config_data, 'discovery')
    _warn_unknown_keys("discovery", discovery_data, _KNOWN_DISCOVERY_KEYS)
    tracker_data = _section(discovery_data, 'tracker')
    descriptions_data = _section(discovery_data, 'descriptions')
    discovery = DiscoveryConfig(
        tracker=TrackerConfig(
            enabled=bool(tracker_data.get('enabled', True)),
            paths=_coerce_str_list(
                tracker_data.get('paths'),
                field_name="discovery.tracker.paths",
                default=_default_tracker_paths(),
            ),
        ),
        descriptions=DescriptionsConfig(
            enabled=bool(descriptions_data.get('enabled', True)),
            workers=_coerce_positive_int(descriptions_data.get('workers', 4), 4),
            timeout_seconds=_coerce_positive_float(descriptions_data.get('timeout_seconds', 30.0), 30.0),
        ),
        fail_hard=bool(discovery_data.get('fail_hard', True)),
    )

    opener_data = _section(config_data, 'opener')
    _warn_unknown_keys("opener", opener_data, _KNOWN_OPENER_KEYS)
    opener = OpenerConfig(
        command=str(opener_data.get('command', OpenerConfig.command) or ''),
        new_window_flag=str(opener_data.get('new_window_flag', OpenerConfig.new_window_flag) or ''),
        reuse_window_flag=str(opener_data.get('reuse_window_flag', OpenerConfig.reuse_window_flag) or ''),
    )

    logging_data = _section(config_data, 'logging')
    logging_cfg = LoggingConfig(
        level=str(logging_data.get('level', 'info') or 'info').lower(),
    )

    group = config_data.get('group') or ''
    if not isinstance(group, str):
        logger.warning("Invalid type for group (expected string, got %s); ignoring", type(group).__name__)
        group = ''

    return DeckConfig(
        registry=registry,
        refresh=refresh,
        discovery=discovery,
        opener=opener,
        logging=logging_cfg,
        group=group.strip(),
    )


def get_config() -> DeckConfig:
    """Get the loaded config (loads on first call)."""
    return load_config()


def reload_config() -> DeckConfig:
    """Force reload configuration from file."""
    global _config

    with _config_lock:
        _config = None
        _warned_unknown_config_keys.clear()
        return load_config()


if __name__ == "__main__":
    config = load_config()
    print(f"\nRegistry path: {config.registry.path}")
    print(f"Refresh roots: {config.refresh.roots}")
    print(f"Refresh depth: {config.refresh.depth}")
    print(f"Active group: {config.group or '(none)'}")
