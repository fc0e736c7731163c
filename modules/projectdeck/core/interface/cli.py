#!/usr/bin/env python3
"""ProjectDeck command line.

Usage:
    projectdeck open [--new-window]
    projectdeck refresh [--no-open]
    projectdeck save [--path PATH] [--name NAME --description TEXT --group GROUP]
    projectdeck remove [--path PATH] [--yes]
    projectdeck switch-group [NAME | --clear]
    projectdeck list [--groups] [--all] [--json]
    projectdeck init | edit
"""

import argparse
import json
import logging
import sys

from config import get_config
from core.interface.terminal_ui import TerminalUI
from core.registry.errors import RegistryError
from core.services import registry_service as service

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    level_name = "debug" if verbose else get_config().logging.level
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def _entry_dict(entry) -> dict:
    out = {"kind": entry.kind, "name": entry.name}
    if entry.description:
        out["description"] = entry.description
    if entry.path:
        out["path"] = entry.path
    if entry.detail:
        out["detail"] = entry.detail
    return out


def _run(args, ui) -> int:
    if args.command == "init":
        path = service.init_registry()
        print(f"Initialized: {path}")

    elif args.command == "edit":
        service.edit_registry()

    elif args.command == "list":
        selection = service.list_selection(
            active_group="" if args.all else None,
            only_groups=args.groups,
        )
        if args.json:
            print(json.dumps({
                "entries": [_entry_dict(e) for e in selection.entries],
                "projects_count": selection.projects_count,
                "groups_count": selection.groups_count,
            }, indent=2))
        elif selection.is_empty():
            print("No projects defined.")
        else:
            for entry in selection.entries:
                if entry.is_group:
                    print(f"[{entry.name}] {entry.detail}")
                else:
                    desc = f" - {entry.description}" if entry.description else ""
                    print(f"  {entry.name}{desc}  {entry.path}")

    elif args.command == "open":
        service.open_flow(ui, new_window=args.new_window)

    elif args.command == "refresh":
        result = service.refresh_flow(ui, open_after=not args.no_open)
        if result is None:
            return 1

    elif args.command == "save":
        root_path = args.path or service.current_project_path()
        if args.name is not None:
            project = service.save_project_entry(root_path, args.name, args.description, args.group)
        else:
            project = service.save_flow(ui, root_path, description=args.description, group=args.group)
        if project is None:
            return 1
        print(f"Saved: {project.name} ({project.path})")

    elif args.command == "remove":
        root_path = args.path or service.current_project_path()
        if args.yes:
            project = service.remove_project_entry(root_path)
            if project is None:
                print(f"Not saved: {root_path}", file=sys.stderr)
        else:
            project = service.remove_flow(ui, root_path)
        if project is None:
            return 1
        print(f"Removed: {project.name} ({project.path})")

    elif args.command == "switch-group":
        if args.clear or args.name is not None:
            active = service.switch_group("" if args.clear else args.name)
            print(f"Active group: {active or '(none)'}")
        else:
            service.switch_group_flow(ui)

    return 0


def main(argv=None, ui=None):
    parser = argparse.ArgumentParser(description="Open, save and organize your projects")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("init", help="Write an example registry file")
    subparsers.add_parser("edit", help="Open the registry file in your editor")

    list_p = subparsers.add_parser("list", help="List projects and groups")
    list_p.add_argument("--groups", action="store_true", help="Only list groups")
    list_p.add_argument("--all", action="store_true", help="Ignore the active group")
    list_p.add_argument("--json", action="store_true", help="JSON output")

    open_p = subparsers.add_parser("open", help="Pick a project to open")
    open_p.add_argument("--new-window", action="store_true", help="Open in a new window")

    refresh_p = subparsers.add_parser("refresh", help="Discover projects and merge them in")
    refresh_p.add_argument("--no-open", action="store_true", help="Do not show the picker afterwards")

    save_p = subparsers.add_parser("save", help="Save the current folder as a project")
    save_p.add_argument("--path", help="Project folder (default: current directory)")
    save_p.add_argument("--name", help="Project name (skips the prompts)")
    save_p.add_argument("--description", help="Project description (prompt suggestion without --name)")
    save_p.add_argument("--group", help="Group name (prompt suggestion without --name)")

    remove_p = subparsers.add_parser("remove", help="Remove the current folder from the registry")
    remove_p.add_argument("--path", help="Project folder (default: current directory)")
    remove_p.add_argument("--yes", action="store_true", help="Skip confirmation")

    switch_p = subparsers.add_parser("switch-group", help="Pick the active group")
    switch_p.add_argument("name", nargs="?", help="Group name (skips the picker)")
    switch_p.add_argument("--clear", action="store_true", help="Clear the active group")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    _configure_logging(args.verbose)

    try:
        code = _run(args, ui or TerminalUI())
    except RegistryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
