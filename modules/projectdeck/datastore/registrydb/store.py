"""Registry file store: whole-document JSON read/write.

Usage:
    registry = read_registry(path) or Registry()
    ...
    write_registry(path, registry)   # temp file then rename
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from core.registry.errors import PersistenceError
from core.registry.model import Registry

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_registry(path: PathLike) -> Optional[Registry]:
    """Load the registry at ``path``; None when the file does not exist.

    Raises PersistenceError when the file exists but cannot be read or parsed.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to read registry {path}: {e}", path=path) from e
    if not text.strip():
        return Registry()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Failed to parse registry {path}: {e}", path=path) from e
    if not isinstance(data, dict):
        raise PersistenceError(
            f"Registry {path} must hold a JSON object, got {type(data).__name__}",
            path=path,
        )
    return Registry.from_dict(data)


def write_registry(path: PathLike, registry: Registry) -> None:
    """Atomically overwrite ``path`` with ``registry``.

    Raises PersistenceError on failure; the previous file is left intact.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(registry.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        try:
            tmp_path.unlink()
        except OSError:
            pass
        raise PersistenceError(f"Failed to write registry {path}: {e}", path=path) from e
    logger.debug("Wrote registry to %s", path)
