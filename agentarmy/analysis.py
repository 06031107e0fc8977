"""Health report for installed plugins and skills: duplicates, drift and orphans."""

from __future__ import annotations

import json
import os
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable

from agentarmy.plugindoc import (
    build_plugin_repo_map,
    build_plugin_skill_names,
    extract_description,
    is_semantic_version,
    load_installed_plugins,
    load_plugin_meta,
    load_skill_lock,
    short_description,
)

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


@dataclass(frozen=True)
class DriftEntry:
    """A skill in the lock file whose SKILL.md no longer exists on disk."""

    name: str
    source: str = ""


@dataclass(frozen=True)
class OrphanEntry:
    """A skill directory on disk that has no entry in the lock file."""

    name: str


def _home() -> str:
    return os.path.expanduser("~")


def _lock_path(home: str) -> str:
    return os.path.join(home, ".agents", ".skill-lock.json")


def _dump_json(value: Any) -> str:
    text = json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text


def _dir_entries(path: str) -> list[tuple[str, bool]]:
    try:
        with os.scandir(path) as it:
            entries = [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in it]
    except OSError:
        return []
    return sorted(entries)


def detect_drift() -> list[DriftEntry]:
    """Return lock file skills whose SKILL.md is missing, sorted by name."""
    home = _home()
    lock = load_skill_lock(home)
    return [
        DriftEntry(name=name, source=lock[name].source)
        for name in sorted(lock)
        if not os.path.exists(os.path.join(home, ".agents", "skills", name, "SKILL.md"))
    ]


def detect_orphans() -> list[OrphanEntry]:
    """Return skill directories with no lock entry, excluding plugin-provided names."""
    home = _home()
    skills_dir = os.path.join(home, ".agents", "skills")
    try:
        with os.scandir(skills_dir) as it:
            names = sorted(entry.name for entry in it if entry.is_dir(follow_symlinks=False))
    except FileNotFoundError:
        return []

    lock = load_skill_lock(home)
    plugin_skills = build_plugin_skill_names(load_installed_plugins(home))
    return [OrphanEntry(name) for name in names if name not in lock and name not in plugin_skills]


def remove_drift_entries(entries: Iterable[DriftEntry]) -> None:
    """Remove the given skills from the lock file.

    Raises OSError if the lock file cannot be read and ValueError if it is not JSON.
    """
    lock_path = _lock_path(_home())
    with open(lock_path, encoding="utf-8") as handle:
        lock = json.load(handle)

    skills = lock.get("skills") if isinstance(lock, dict) else None
    if not isinstance(skills, dict):
        return
    for entry in entries:
        skills.pop(entry.name, None)

    with open(lock_path, "w", encoding="utf-8", newline="") as handle:
        handle.write(_dump_json(lock) + "\n")


# --- Report formatting ---


def _header(title: str, count: int) -> str:
    return f"=== {title} ({count}) ===\n"


def _section(name: str) -> str:
    return f"  {name}"


def _item(name: str) -> str:
    return f"    - {name}"


def _success(text: str) -> str:
    return f"\u2713 {text}"


def _warn(text: str) -> str:
    return f"\u26a0 {text}"


def _err(text: str) -> str:
    return f"\u2717 {text}"


def _plugin_name(key: str, install_path: str) -> str:
    return load_plugin_meta(install_path).name or key.split("@", 1)[0]


def analyze() -> str:
    """Build a terminal report of plugins, skills, duplicates, drift and orphans."""
    home = _home()
    plugins = load_installed_plugins(home)
    skill_lock = load_skill_lock(home)
    plugin_repo_map = build_plugin_repo_map(plugins)
    plugin_skill_names = build_plugin_skill_names(plugins)

    out: list[str] = []

    plugin_keys = sorted(plugins)
    out.append(_header("Installed Plugins", len(plugin_keys)))
    for number, key in enumerate(plugin_keys, 1):
        instances = plugins[key]
        if not instances:
            continue
        meta = load_plugin_meta(instances[0].install_path)
        name = meta.name or key.split("@", 1)[0]
        ver = meta.version or instances[0].version
        ver_display = f" (v{ver})" if is_semantic_version(ver) else ""
        out.append(f"  {number}. {name}{ver_display}\n")
    out.append("\n")

    by_plugin: dict[str, list[tuple[str, str]]] = defaultdict(list)
    for key in plugin_keys:
        instances = plugins[key]
        if not instances:
            continue
        install_path = instances[0].install_path
        pname = _plugin_name(key, install_path)

        skills_dir = os.path.join(install_path, "skills")
        for name, is_dir in _dir_entries(skills_dir):
            if is_dir:
                desc = short_description(extract_description(os.path.join(skills_dir, name, "SKILL.md")))
                by_plugin[pname].append((name, desc))

        cmds_dir = os.path.join(install_path, "commands")
        for name, is_dir in _dir_entries(cmds_dir):
            if is_dir or not name.endswith(".md"):
                continue
            desc = extract_description(os.path.join(cmds_dir, name))
            if "deprecated" in desc.lower():
                continue
            by_plugin[pname].append((name[: -len(".md")], short_description(desc)))

    out.append(_header("Plugin-Provided Skills", sum(len(skills) for skills in by_plugin.values())))
    for pname in sorted(by_plugin):
        out.append(_section(pname) + "\n")
        out.extend(_item(name) + "\n" for name, _desc in by_plugin[pname])
    out.append("\n")

    by_source: dict[str, list[str]] = defaultdict(list)
    for skill_name in sorted(skill_lock):
        entry = skill_lock[skill_name]
        if entry.source in plugin_repo_map:
            continue
        by_source[entry.source].append(skill_name)

    out.append(_header("Standalone Skills", sum(len(skills) for skills in by_source.values())))
    sources = sorted(by_source)
    for source in sources:
        out.append(_section(source) + "\n")
        out.extend(_item(name) + "\n" for name in by_source[source])
    out.append("\n")

    duplicates = sorted(
        (
            (name, plugin_skill_names[name])
            for source in sources
            for name in by_source[source]
            if name in plugin_skill_names
        ),
        key=lambda dup: dup[0],
    )
    out.append(_header("Duplicates", len(duplicates)))
    if not duplicates:
        out.append("  " + _success("No duplicates found.") + "\n")
    for skill_name, pname in duplicates:
        out.append("  " + _warn(f'"{skill_name}" installed standalone AND provided by plugin "{pname}"') + "\n")
        out.append(f"    \u2192 Remove standalone: npx skills remove {skill_name}\n")
    out.append("\n")

    try:
        drift = detect_drift()
    except OSError:
        drift = []
    out.append(_header("Skill Lock Drift", len(drift)))
    if not drift:
        out.append("  " + _success("No drift detected.") + "\n")
    for entry in drift:
        out.append(
            "  " + _err(f'"{entry.name}" in lock file but missing from filesystem (source: {entry.source})') + "\n"
        )
    out.append("\n")

    try:
        orphans = detect_orphans()
    except OSError:
        orphans = []
    out.append(_header("Orphaned Skills (on disk, not in lock)", len(orphans)))
    if not orphans:
        out.append("  " + _success("No orphaned skills found.") + "\n")
    for orphan in orphans:
        out.append("  " + _warn(f'"{orphan.name}" exists on disk but missing from .skill-lock.json') + "\n")

    return "".join(out)