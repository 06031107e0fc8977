"""Interactive generation of target-specific skills and agents."""

from __future__ import annotations

import functools
import os
import re
import shutil
import sys
from typing import IO, Callable, Iterable, Protocol, Sequence

from agentarmy.enrich import Target, build_resolved_deps, flatten_name
from agentarmy.loader import load_agents, load_plugins, load_skills
from agentarmy.model import Agent, Skill
from agentarmy.templates import generate_agents_md, generate_claude_md, generate_settings
from agentarmy.transform import (
    agent_to_claude,
    agent_to_cursor,
    skill_to_claude,
    skill_to_cursor,
    write_output,
)

TARGETS = (Target.CLAUDE, Target.CURSOR)

_INT_RE = re.compile(r"[+-]?[0-9]+")

Say = Callable[..., None]


class Prompter(Protocol):
    """Something that asks the user a question and returns the answer."""

    def prompt(self, message: str) -> str:
        """Show ``message`` and return the reply; raise EOFError when input ends."""
        ...


class ConsolePrompter(Prompter):
    """Prompts on a text output stream and reads replies line by line."""

    def __init__(self, stdin: IO[str] | None = None, stdout: IO[str] | None = None) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout

    def prompt(self, message: str) -> str:
        self._stdout.write(message)
        self._stdout.flush()
        line = self._stdin.readline()
        if not line:
            raise EOFError("input closed")
        return line.rstrip("\r\n")


def target_dir_suffix(target: str) -> str:
    """Return the dot-prefixed directory name for ``target``."""
    return ".cursor" if target == Target.CURSOR else ".claude"


def target_global_dir(target: str) -> str:
    """Return the global, home-relative config directory for ``target``."""
    return os.path.join(os.path.expanduser("~"), target_dir_suffix(target))


def _is_yes(answer: str) -> bool:
    return answer.lower().strip() == "y"


def _parse_index(raw: str, upper: int) -> int | None:
    raw = raw.strip()
    if not _INT_RE.fullmatch(raw):
        return None
    number = int(raw)
    return number if 1 <= number <= upper else None


def _select_target(prompter: Prompter, say: Say) -> Target:
    say("Step 1 — Target AI model/tool:")
    for number, target in enumerate(TARGETS, 1):
        say(f"  {number}) {target.value}")
    say()

    while True:
        index = _parse_index(prompter.prompt("Select target: "), len(TARGETS))
        if index is not None:
            return TARGETS[index - 1]
        say(f"Invalid choice. Enter 1-{len(TARGETS)}.")


def _select_destination(prompter: Prompter, say: Say, target: Target) -> str:
    cwd = os.getcwd()
    local = os.path.join(cwd, target_dir_suffix(target))
    global_home = target_global_dir(target)

    say("\nStep 2 — Output destination:")
    say(f"  1) Local project ({local})  (*)")
    say(f"  2) Global ({global_home})")
    say("  3) Custom directory")
    say()

    while True:
        raw = prompter.prompt("Select destination [1]: ").strip()
        if raw in ("", "1"):
            return local
        if raw == "2":
            return global_home
        if raw == "3":
            custom = prompter.prompt("Enter path (absolute or relative): ").strip()
            if not custom:
                say("Path cannot be empty.")
                continue
            if not os.path.isabs(custom):
                custom = os.path.normpath(os.path.join(cwd, custom))
            return custom
        say("Invalid choice. Enter 1, 2, or 3.")


def _pick_by_number(raw: str, choices: Sequence[str], say: Say) -> list[str] | None:
    """Map comma-separated 1-based numbers to choices; None if any is invalid."""
    picked = []
    for part in raw.split(","):
        index = _parse_index(part, len(choices))
        if index is None:
            say(f"Invalid number: {part.strip()}")
            return None
        picked.append(choices[index - 1])
    return picked


def _select_entities(prompter: Prompter, say: Say, entity_type: str, names: Sequence[str]) -> list[str]:
    if not names:
        return []

    say(f"\nAvailable {entity_type} ({len(names)}):")
    for number, name in enumerate(names, 1):
        say(f"  {number}) {name}")
    say()

    message = f"Select {entity_type} (comma-separated, Enter for all, 'none' to skip): "
    while True:
        raw = prompter.prompt(message).strip()
        if raw == "":
            return list(names)
        if raw.lower() == "none":
            return []
        picked = _pick_by_number(raw, names, say)
        if picked:
            return picked


def _select_additional_entities(
    prompter: Prompter,
    say: Say,
    entity_type: str,
    auto_names: Sequence[str],
    all_names: Sequence[str],
) -> list[str]:
    auto_set = set(auto_names)
    remaining = [name for name in all_names if name not in auto_set]

    if not auto_names and not remaining:
        return []

    if auto_names and not remaining:
        say(f"\n  Auto-included {entity_type}: {', '.join(auto_names)}")
        say(f"  All available {entity_type} are already included.")
        return list(auto_names)

    if auto_names:
        say(f"\n  Auto-included {entity_type}: {', '.join(auto_names)}")
    else:
        say(f"\n  No auto-included {entity_type}.")

    say(f"\n  Additional {entity_type} available:")
    for number, name in enumerate(remaining, 1):
        say(f"    {number}) {name}")
    say()

    verb = "Add extra" if auto_names else "Select"
    message = f"{verb} {entity_type}? (comma-separated, Enter for none, 'all' for all): "

    while True:
        raw = prompter.prompt(message).strip()
        if raw == "":
            return list(auto_names)
        if raw.lower() == "all":
            return [*auto_names, *remaining]
        picked = _pick_by_number(raw, remaining, say)
        if picked is not None:
            return [*auto_names, *picked]


def _auto_skill_names(agents: Iterable[Agent], known: set[str]) -> list[str]:
    names: list[str] = []
    for agent in agents:
        for name in agent.uses_skills:
            if name in known and name not in names:
                names.append(name)
    return names


def _remove_path(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


def generate_all(
    root: str | os.PathLike,
    dest: str | os.PathLike,
    skills: Iterable[Skill],
    agents: Iterable[Agent],
    all_skills: Iterable[Skill],
    all_agents: Iterable[Agent],
    target: str,
) -> int:
    """Write the selected skills and agents into ``dest``; return the file count.

    Existing ``skills`` and ``agents`` output directories are removed first.
    """
    dest = os.fspath(dest)
    for subdir in ("skills", "agents"):
        _remove_path(os.path.join(dest, subdir))

    skill_map = {skill.name: skill for skill in all_skills}
    agent_map = {agent.name: agent for agent in all_agents}
    cursor = target == Target.CURSOR

    written = 0
    for skill in skills:
        content = skill_to_cursor(root, skill) if cursor else skill_to_claude(root, skill)
        write_output(dest, os.path.join("skills", flatten_name(skill.name), "SKILL.md"), content)
        written += 1

    for agent in agents:
        deps = build_resolved_deps(agent, skill_map, agent_map)
        content = agent_to_cursor(root, agent, deps) if cursor else agent_to_claude(root, agent, deps)
        write_output(dest, os.path.join("agents", flatten_name(agent.name) + ".md"), content)
        written += 1

    return written


def _confirm_overwrite(prompter: Prompter, say: Say, path: str, filename: str) -> bool:
    if not os.path.exists(path):
        return True
    if _is_yes(prompter.prompt(f"{filename} exists. Overwrite? [y/N] ")):
        return True
    say(f"Skipped {filename} generation.")
    return False


def main_bootstrap(root: str | os.PathLike, prompter: Prompter, out: IO[str] | None = None) -> None:
    """Run the interactive bootstrap flow."""
    root = os.fspath(root)
    say: Say = functools.partial(print, file=out if out is not None else sys.stdout)

    say("=== Bootstrap ===")
    say()

    target = _select_target(prompter, say)
    dest = _select_destination(prompter, say, target)

    skills = load_skills(root)
    agents = load_agents(root)
    all_skill_names = [skill.name for skill in skills]

    selected_agents = set(_select_entities(prompter, say, "agents", [agent.name for agent in agents]))
    agent_objs = [agent for agent in agents if agent.name in selected_agents]

    auto_names = _auto_skill_names(agent_objs, set(all_skill_names))
    final_skills = set(_select_additional_entities(prompter, say, "skills", auto_names, all_skill_names))
    skill_objs = [skill for skill in skills if skill.name in final_skills]

    total = len(skill_objs) + len(agent_objs)
    if total == 0:
        say("\nNo entities selected. Nothing to generate.")
        return

    say("\n--- Preview ---")
    say(f"  Target:      {target.value}")
    say(f"  Destination: {dest}")
    say(f"  Skills:      {len(skill_objs)} files")
    say(f"  Agents:      {len(agent_objs)} files")
    say(f"  Total:       {total} files")
    say()

    if not _is_yes(prompter.prompt("Proceed? [y/N] ")):
        say("Aborted. No files written.")
        return

    written = generate_all(root, dest, skill_objs, agent_objs, skills, agents, target)
    say(f"\nDone. {written} files written to {dest}")

    if target == Target.CLAUDE:
        if not _is_yes(prompter.prompt("Generate CLAUDE.md? [y/N] ")):
            return
        if not _confirm_overwrite(prompter, say, os.path.join(dest, "CLAUDE.md"), "CLAUDE.md"):
            return
        try:
            plugins = load_plugins(root)
        except OSError:
            plugins = []
        generate_claude_md(dest, os.path.join(root, "spec", "claude", "CLAUDE.md"))
        say("CLAUDE.md generated.")
        generate_settings(dest, os.path.join(root, "spec", "claude", "settings.json"), plugins)
        say("settings.json generated.")
    elif target == Target.CURSOR:
        if not _is_yes(prompter.prompt("Generate AGENTS.md? [y/N] ")):
            return
        if not _confirm_overwrite(prompter, say, os.path.join(dest, "AGENTS.md"), "AGENTS.md"):
            return
        generate_agents_md(dest, os.path.join(root, "spec", "cursor", "AGENTS.md"))
        say("AGENTS.md generated.")