"""Fail-hard policy for discovery sources."""

from __future__ import annotations


def is_fail_hard_enabled() -> bool:
    """True when an unreadable discovery source must raise instead of being skipped.

    Reads discovery.failHard; defaults to True if config is unavailable.
    """
    try:
        from config import get_config
        return bool(get_config().discovery.fail_hard)
    except Exception:
        return True
