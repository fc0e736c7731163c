"""Core UI contract used by the interactive registry flows.

``None`` always means the user cancelled or dismissed; an empty string from
``prompt`` is a real (empty) answer.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from core.registry.selection import SelectionEntry


class UIPort(Protocol):
    def pick(self, entries: Sequence[SelectionEntry], placeholder: str) -> Optional[SelectionEntry]: ...

    def prompt(self, label: str, placeholder: str = "", value: str = "") -> Optional[str]: ...

    def choose(self, message: str, options: Sequence[str], level: str = "info") -> Optional[str]: ...

    def message(self, text: str, level: str = "info") -> None: ...
