"""Shared library for projectdeck."""

from .config import get_config_path, get_registry_path
from .worker_pool import run_callables, shutdown_worker_pools

__all__ = [
    # Config
    "get_config_path",
    "get_registry_path",
    # Worker pool
    "run_callables",
    "shutdown_worker_pools",
]
