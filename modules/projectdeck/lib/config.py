"""Shared path constants: single source of truth.

Registry and config locations are centralized here. Consumers import from
lib.config instead of resolving their own paths.

Environment variable overrides (for testing):
  PROJECTDECK_REGISTRY_PATH: Overrides config registry.path
"""

import os
from pathlib import Path


def _home_root() -> Path:
    """Get home root from runtime context (lazy to avoid circular import at module load)."""
    from lib.runtime_context import get_home_dir
    return get_home_dir()


def _get_cfg():
    """Lazy import to avoid circular dependency with config.py."""
    from config import get_config
    return get_config()


def _resolve(raw: str) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else _home_root() / p


def get_registry_path() -> Path:
    """Get the registry file path.

    Respects PROJECTDECK_REGISTRY_PATH env var for testing, then falls back to config.
    """
    env_path = os.environ.get("PROJECTDECK_REGISTRY_PATH")
    if env_path:
        return Path(env_path)
    return _resolve(_get_cfg().registry.path)


def get_config_path() -> Path:
    """Get the config file that writes go to.

    This is the file settings are loaded from, so a write never shadows a
    lower-priority config. With no config file yet it is
    <deck_home>/config/projectdeck.json.
    """
    from config import find_config_file
    from lib.runtime_context import get_config_dir
    return find_config_file() or get_config_dir() / "projectdeck.json"
