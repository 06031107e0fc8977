"""Install the plugins and skills listed in the generated document."""

from __future__ import annotations

import json
import os
import re
import shutil
import subprocess
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import IO, Any, Protocol, Sequence

_PLUGIN_CMD_RE = re.compile(r"/plugin install ([^\s|`]+)")
_SKILL_CMD_RE = re.compile(r"`(npx skills add [^`]+)`")
_REDUNDANT_SKILL_RE = re.compile(r"`npx skills remove ([^`]+)`")

_PLUGIN_PROVIDED_MARKER = "### Plugin-Provided Skills"
_REDUNDANT_MARKER = "> **Redundant standalone skills:**"

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class CommandRunner(Protocol):
    """Runs an external command; raises if it fails."""

    def run(self, name: str, args: Sequence[str]) -> None:
        """Run ``name`` with ``args``."""
        ...


class DefaultRunner(CommandRunner):
    """Runs real commands, sharing this process's output streams."""

    def run(self, name: str, args: Sequence[str]) -> None:
        # No stdin, so interactive prompts cannot consume our input.
        subprocess.run([name, *args], stdin=subprocess.DEVNULL, check=True)


class SyncError(Exception):
    """Raised when one or more install or cleanup commands failed."""

    def __init__(self, failures: Sequence[str]) -> None:
        super().__init__(f"{len(failures)} commands failed")
        self.failures = list(failures)


def _header(title: str, count: int) -> str:
    return f"=== {title} ({count}) ==="


def _arrow(text: str) -> str:
    return f"  \u2192 {text}"


def _dump_json(value: Any) -> str:
    text = json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text


def _try_run(runner: CommandRunner, name: str, args: Sequence[str]) -> bool:
    try:
        runner.run(name, args)
    except Exception:
        return False
    return True


def _redundant_section(content: str) -> str:
    start = content.find(_REDUNDANT_MARKER)
    if start < 0:
        return ""
    rest = content[start:]
    end = rest.find("\n\n")
    return rest if end < 0 else rest[:end]


def run(
    doc_path: str | os.PathLike,
    out: IO[str] | None = None,
    runner: CommandRunner | None = None,
) -> None:
    """Install everything listed in the document and remove redundant skills.

    Raises OSError if the document cannot be read and SyncError if any command failed.
    """
    out = out if out is not None else sys.stdout
    runner = runner if runner is not None else DefaultRunner()

    def say(text: str = "") -> None:
        print(text, file=out)

    with open(os.fspath(doc_path), encoding="utf-8") as handle:
        content = handle.read()

    failures: list[str] = []

    plugin_refs = _PLUGIN_CMD_RE.findall(content)
    say(_header("Installing Plugins", len(plugin_refs)))
    plugin_jobs = []
    for ref in plugin_refs:
        args = ["plugin", "install", ref]
        cmd_str = "claude " + " ".join(args)
        say(_arrow(cmd_str))
        plugin_jobs.append((cmd_str, args))

    if plugin_jobs:
        with ThreadPoolExecutor(max_workers=len(plugin_jobs)) as pool:
            futures = [(cmd_str, pool.submit(_try_run, runner, "claude", args)) for cmd_str, args in plugin_jobs]
            for cmd_str, future in futures:
                if not future.result():
                    say("  \u2717 Failed: " + cmd_str)
                    failures.append(cmd_str)

    marker = content.find(_PLUGIN_PROVIDED_MARKER)
    skill_content = content if marker < 0 else content[:marker]
    skill_commands = [match.split() for match in _SKILL_CMD_RE.findall(skill_content) if "<" not in match]

    say(_header("Installing Skills", len(skill_commands)))
    for parts in skill_commands:
        parts = [*parts, "-y"]
        cmd_str = " ".join(parts)
        say(_arrow(cmd_str))
        if not _try_run(runner, parts[0], parts[1:]):
            say("  \u2717 Failed: " + cmd_str)
            failures.append(cmd_str)

    section = _redundant_section(content)
    if section:
        names = _REDUNDANT_SKILL_RE.findall(section)
        say(_header("Cleaning Up Redundant Skills", len(names)))
        for name in names:
            try:
                remove_skill_direct(name)
            except (OSError, ValueError) as exc:
                say(f"  \u2717 Failed to remove {name}: {exc}")
                failures.append("remove " + name)
            else:
                say("  \u2713 Removed standalone skill: " + name)

    if failures:
        say("\n\u2717 Some commands failed. Check output above.")
        raise SyncError(failures)

    say("\n\u2713 All plugins and skills installed.")


def remove_skill_direct(skill_name: str) -> None:
    """Delete a standalone skill's directory and its lock file entry.

    A missing directory or lock file is not an error; a malformed lock file raises ValueError.
    """
    home = os.path.expanduser("~")
    shutil.rmtree(os.path.join(home, ".agents", "skills", skill_name), ignore_errors=False) if os.path.isdir(
        os.path.join(home, ".agents", "skills", skill_name)
    ) else None

    lock_path = os.path.join(home, ".agents", ".skill-lock.json")
    try:
        with open(lock_path, encoding="utf-8") as handle:
            raw = handle.read()
    except OSError:
        return

    lock = json.loads(raw)
    skills = lock.get("skills") if isinstance(lock, dict) else None
    if not isinstance(skills, dict) or skill_name not in skills:
        return
    del skills[skill_name]

    with open(lock_path, "w", encoding="utf-8", newline="") as handle:
        handle.write(_dump_json(lock) + "\n")