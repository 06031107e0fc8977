"""Command-line entry point for managing skills, agents and plugins."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Callable, Sequence

from agentarmy.analysis import analyze, detect_drift, remove_drift_entries
from agentarmy.bootstrap import ConsolePrompter, main_bootstrap
from agentarmy.manifest import write_manifest
from agentarmy.plugindoc import write_plugins_and_skills
from agentarmy.pluginsync import DefaultRunner, SyncError, run as run_sync

DOC_NAME = "PLUGINS_AND_SKILLS.md"

Handler = Callable[[argparse.Namespace], int]


def find_root(cwd: str | os.PathLike | None = None) -> str:
    """Return the spec root: ``cwd`` or one of its two parents holding ``spec/skills``.

    Falls back to ``cwd`` when none of them does.
    """
    cwd = os.fspath(cwd) if cwd is not None else os.getcwd()
    parent = os.path.dirname(cwd)
    for candidate in (cwd, parent, os.path.dirname(parent)):
        if os.path.isdir(os.path.join(candidate, "spec", "skills")):
            return candidate
    return cwd


def _cmd_manifest(args: argparse.Namespace) -> int:
    write_manifest(find_root())
    print("manifest.json regenerated.")
    return 0


def _cmd_bootstrap(args: argparse.Namespace) -> int:
    prompter = ConsolePrompter(sys.stdin, sys.stdout)
    main_bootstrap(find_root(), prompter, sys.stdout)
    return 0


def _cmd_update_plugins_skills(args: argparse.Namespace) -> int:
    out = os.path.join(find_root(), DOC_NAME)
    write_plugins_and_skills(out)
    print(f"\n\u2713 Generated {out}")
    return 0


def _cmd_sync(args: argparse.Namespace) -> int:
    doc_path = os.path.join(find_root(), DOC_NAME)
    run_sync(doc_path, sys.stdout, DefaultRunner())
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    print(analyze(), end="")
    if not args.fix:
        return 0

    drift = detect_drift()
    if not drift:
        return 0

    print()
    print("  The following stale entries will be removed from .skill-lock.json:")
    for entry in drift:
        print(f"    - {entry.name} (source: {entry.source})")
    print("\nProceed? [y/N] ", end="", flush=True)

    answer = sys.stdin.readline().strip().lower()
    if answer not in ("y", "yes"):
        print("Aborted.")
        return 0

    remove_drift_entries(drift)
    print(f"\u2713 Removed {len(drift)} stale entries from .skill-lock.json.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="army",
        description="Manage dependencies across rules, skills, and agents",
    )
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    commands: list[tuple[str, str, Handler]] = [
        ("manifest", "Regenerate manifest.json", _cmd_manifest),
        ("bootstrap", "Generate model-specific skills and agents", _cmd_bootstrap),
        (
            "update-plugins-skills",
            f"Regenerate {DOC_NAME} from system state",
            _cmd_update_plugins_skills,
        ),
        ("sync", f"Install all plugins and skills listed in {DOC_NAME}", _cmd_sync),
        ("analyze", "Analyze installed plugins and skills, report duplicates", _cmd_analyze),
    ]
    for name, help_text, handler in commands:
        command = sub.add_parser(name, help=help_text, description=help_text)
        command.set_defaults(func=handler)
        if name == "analyze":
            command.add_argument(
                "--fix",
                action="store_true",
                help="Remove stale skill entries from lock file",
            )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler: Handler | None = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 0
    try:
        return handler(args)
    except SyncError as exc:
        print(f"Error: {exc}", file=sys.stderr)
    except EOFError as exc:
        print(f"Error: {exc}", file=sys.stderr)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())