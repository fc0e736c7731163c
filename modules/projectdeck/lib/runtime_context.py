"""Runtime context port for path and editor access.

This isolates direct adapter access behind a single module so the service
and discovery code does not import adapter internals directly.
"""

from __future__ import annotations

from pathlib import Path

from lib.adapter import get_adapter


def get_home_dir() -> Path:
    return get_adapter().deck_home()


def get_config_dir() -> Path:
    return get_adapter().config_dir()


def open_folder(path: str, new_window: bool = False) -> bool:
    return get_adapter().open_folder(path, new_window=new_window)


def open_file(path: str) -> bool:
    return get_adapter().open_file(path)


def send_notification(message: str, *, dry_run: bool = False) -> bool:
    return get_adapter().notify(message, dry_run=dry_run)
