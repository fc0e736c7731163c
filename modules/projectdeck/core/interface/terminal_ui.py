"""Line-based terminal implementation of the UI contract.

Prompts go to stderr so stdout stays clean for ``list --json`` and opener
fallbacks. End-of-input and Ctrl-C both count as cancel.
"""

from __future__ import annotations

import sys
from typing import Callable, List, Optional, Sequence, TextIO

from core.registry.selection import SelectionEntry

_LEVEL_PREFIX = {"info": "", "warning": "Warning: ", "error": "Error: "}


def _format_entry(index: int, entry: SelectionEntry) -> str:
    marker = "[group] " if entry.is_group else ""
    line = f"{index:3d}) {marker}{entry.name}"
    if entry.description:
        line += f" - {entry.description}"
    if entry.detail:
        line += f"  ({entry.detail})"
    return line


class TerminalUI:
    """UIPort over plain stdin/stderr."""

    def __init__(self, input_fn: Callable[[str], str] = input, out: Optional[TextIO] = None):
        self._input = input_fn
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out or sys.stderr

    def _ask(self, text: str) -> Optional[str]:
        self.out.write(text)
        self.out.flush()
        try:
            return self._input("")
        except (EOFError, KeyboardInterrupt):
            self.out.write("\n")
            return None

    def _match(self, entries: Sequence[SelectionEntry], answer: str) -> List[SelectionEntry]:
        if answer.isdigit():
            index = int(answer)
            return [entries[index - 1]] if 1 <= index <= len(entries) else []
        needle = answer.lower()
        exact = [e for e in entries if e.name.lower() == needle]
        if exact:
            return exact[:1]
        return [
            e for e in entries
            if needle in e.name.lower() or needle in (e.description or "").lower()
        ]

    def pick(self, entries: Sequence[SelectionEntry], placeholder: str) -> Optional[SelectionEntry]:
        candidates = list(entries)
        while True:
            for i, entry in enumerate(candidates, 1):
                print(_format_entry(i, entry), file=self.out)
            answer = self._ask(f"{placeholder} (number or text, empty to cancel): ")
            if answer is None or not answer.strip():
                return None
            matches = self._match(candidates, answer.strip())
            if len(matches) == 1:
                return matches[0]
            if not matches:
                print(f"No match for {answer.strip()!r}", file=self.out)
                continue
            candidates = matches

    def prompt(self, label: str, placeholder: str = "", value: str = "") -> Optional[str]:
        hint = f" [{value}]" if value else ""
        if placeholder:
            print(placeholder, file=self.out)
        answer = self._ask(f"{label}{hint}: ")
        if answer is None:
            return None
        answer = answer.strip()
        if answer == "-":
            return ""
        return answer or value

    def choose(self, message: str, options: Sequence[str], level: str = "info") -> Optional[str]:
        print(f"{_LEVEL_PREFIX.get(level, '')}{message}", file=self.out)
        if not options:
            return None
        listing = ", ".join(f"{i}) {opt}" for i, opt in enumerate(options, 1))
        answer = self._ask(f"{listing}, empty to dismiss: ")
        if answer is None or not answer.strip():
            return None
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        for opt in options:
            if opt.lower() == answer.lower():
                return opt
        return None

    def message(self, text: str, level: str = "info") -> None:
        print(f"{_LEVEL_PREFIX.get(level, '')}{text}", file=self.out)
