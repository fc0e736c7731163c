#!/usr/bin/env python3
"""Config helper for ProjectDeck: show, get, set and edit config/projectdeck.json."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

_MISSING = object()

# (dotted key, label, kind, default) in menu order
SETTINGS = [
    ("refresh.roots", "Refresh roots", "list", []),
    ("refresh.depth", "Refresh depth", "int", 1),
    ("refresh.ignoreFolders", "Ignored folder names", "list", ["node_modules"]),
    ("discovery.tracker.enabled", "Tracker import", "bool", True),
    ("discovery.descriptions.enabled", "Description lookup", "bool", True),
    ("discovery.descriptions.workers", "Description workers", "int", 4),
    ("discovery.failHard", "Fail hard on discovery errors", "bool", True),
    ("opener.command", "Opener command", "str", "code"),
    ("logging.level", "Log level", "str", "info"),
    ("group", "Active group", "str", ""),
]

_TRUE = {"1", "true", "yes", "on"}


def config_file() -> Path:
    from lib.config import get_config_path
    return get_config_path()


def read_file(path: Path) -> dict[str, Any]:
    """Raw config document; an absent file reads as empty."""
    if not path.is_file():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a JSON object: {path}")
    return data


def write_file(path: Path, data: dict[str, Any]) -> None:
    """Write atomically, then make the running process see the new values."""
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(path.name + ".tmp")
    staging.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    staging.replace(path)
    from config import reload_config
    reload_config()


def lookup(data: dict[str, Any], key: str, default: Any = None) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict):
            return default
        node = node.get(part, _MISSING)
        if node is _MISSING:
            return default
    return node


def assign(data: dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    node = data
    for part in parents:
        child = node.setdefault(part, {})
        if not isinstance(child, dict):
            raise ValueError(f"{key}: '{part}' holds a {type(child).__name__}, not an object")
        node = child
    node[leaf] = value


def discard(data: dict[str, Any], key: str) -> bool:
    *parents, leaf = key.split(".")
    parent = lookup(data, ".".join(parents)) if parents else data
    if not isinstance(parent, dict) or leaf not in parent:
        return False
    del parent[leaf]
    return True


def parse_literal(raw: str) -> Any:
    """JSON scalars/containers when the text parses as JSON, else the plain string."""
    text = raw.strip()
    if text.lower() in {"true", "false", "null"}:
        text = text.lower()
    try:
        return json.loads(text)
    except ValueError:
        return text


def _coerce(kind: str, raw: str) -> Any:
    if kind == "bool":
        return raw.lower() in _TRUE
    if kind == "int":
        return int(raw)
    if kind == "list":
        if raw == "-":
            return []
        return [part.strip() for part in raw.split(",") if part.strip()]
    return "" if raw == "-" else raw


def _display(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "(none)"
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value) if value != "" else "(none)"


def print_summary(path: Path, data: dict[str, Any]) -> None:
    print("ProjectDeck Configuration")
    print(path)
    print()
    width = max(len(label) for _key, label, _kind, _default in SETTINGS)
    for key, label, _kind, default in SETTINGS:
        print(f"{label:<{width}}  {_display(lookup(data, key, default))}")


def interactive_edit(path: Path, data: dict[str, Any]) -> bool:
    """Menu editor over SETTINGS; changes are staged until saved."""
    staged = json.loads(json.dumps(data))
    save_choice = str(len(SETTINGS) + 1)

    while True:
        print("\nProjectDeck Config Editor")
        for number, (key, label, _kind, default) in enumerate(SETTINGS, start=1):
            print(f"{number:>2}. {label} [{_display(lookup(staged, key, default))}]")
        print(f"{save_choice:>2}. Save and exit")
        print(" 0. Exit without saving")
        choice = input("Select: ").strip()

        if choice == "0":
            print("No changes saved")
            return False
        if choice == save_choice:
            write_file(path, staged)
            print(f"Saved: {path}")
            return True
        if not choice.isdigit() or not 1 <= int(choice) <= len(SETTINGS):
            print("Invalid choice")
            continue

        key, label, kind, default = SETTINGS[int(choice) - 1]
        current = lookup(staged, key, default)
        if kind == "bool":
            assign(staged, key, not bool(current))
            continue
        hint = " (comma separated, '-' to clear)" if kind == "list" else ""
        raw = input(f"{key} [{_display(current)}]{hint}: ").strip()
        if not raw:
            continue
        try:
            assign(staged, key, _coerce(kind, raw))
        except ValueError as err:
            print(f"Invalid value for {key}: {err}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="ProjectDeck config helper")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("show", help="Show summary")
    sub.add_parser("path", help="Print config path")
    sub.add_parser("edit", help="Interactive config editor")

    get_p = sub.add_parser("get", help="Print one dotted key as JSON")
    get_p.add_argument("key", help="Dotted path (e.g. refresh.roots)")

    set_p = sub.add_parser("set", help="Set a dotted key path")
    set_p.add_argument("key", help="Dotted path (e.g. refresh.roots)")
    set_p.add_argument("value", help="JSON value, or a plain string")

    unset_p = sub.add_parser("unset", help="Remove a dotted key (back to default)")
    unset_p.add_argument("key", help="Dotted path")

    args = parser.parse_args(argv)
    cmd = args.cmd or "show"
    path = config_file()

    if cmd == "path":
        print(path)
        return 0

    try:
        data = read_file(path)
    except (OSError, ValueError) as err:
        print(f"Error: {err}")
        return 1

    if cmd == "show":
        print_summary(path, data)
    elif cmd == "edit":
        interactive_edit(path, data)
    elif cmd == "get":
        value = lookup(data, args.key, _MISSING)
        if value is _MISSING:
            print(f"Not set: {args.key}")
            return 1
        print(json.dumps(value))
    elif cmd in ("set", "unset"):
        try:
            if cmd == "set":
                assign(data, args.key, parse_literal(args.value))
            elif not discard(data, args.key):
                print(f"Not set: {args.key}")
                return 1
            write_file(path, data)
        except (OSError, ValueError) as err:
            print(f"Failed to {cmd} {args.key}: {err}")
            return 1
        print(f"{cmd.capitalize()} {args.key} in {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
