"""Load skills, agents and plugins from a spec directory tree."""

from __future__ import annotations

import json
import os
from typing import Any

from agentarmy.frontmatter import Frontmatter, extract_h1, parse_frontmatter
from agentarmy.model import Agent, Plugin, Skill, Workflow


def _raise(error: OSError) -> None:
    raise error


def find_md_files(directory: str | os.PathLike) -> list[str]:
    """Return all ``.md`` files under ``directory``, sorted by path."""
    files = []
    for dirpath, _dirnames, filenames in os.walk(os.fspath(directory), onerror=_raise):
        files.extend(os.path.join(dirpath, name) for name in filenames if name.endswith(".md"))
    return sorted(files)


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def _list(fm: Frontmatter, key: str) -> list[str]:
    return fm.list_val(key) or []


def _strip_md(rel: str) -> str:
    return rel[: -len(".md")] if rel.endswith(".md") else rel


def load_skills(root: str | os.PathLike) -> list[Skill]:
    """Load all skills from ``root/spec/skills``."""
    skills_dir = os.path.join(os.fspath(root), "spec", "skills")
    if not os.path.isdir(skills_dir):
        return []

    skills = []
    for path in find_md_files(skills_dir):
        content = _read_text(path)
        fm = parse_frontmatter(content)
        rel = os.path.relpath(path, skills_dir)
        skills.append(
            Skill(
                name=fm.string_val("name", _strip_md(rel)),
                description=extract_h1(content),
                summary=fm.string_val("description", ""),
                scope=fm.string_val("scope", "universal"),
                languages=_list(fm, "languages"),
                uses_skills=_list(fm, "uses_skills"),
                path=os.path.join("spec", "skills", rel),
            )
        )
    return skills


def load_agents(root: str | os.PathLike) -> list[Agent]:
    """Load all agents from ``root/spec/agents``."""
    agents_dir = os.path.join(os.fspath(root), "spec", "agents")
    if not os.path.isdir(agents_dir):
        return []

    agents = []
    for path in find_md_files(agents_dir):
        content = _read_text(path)
        fm = parse_frontmatter(content)
        rel = os.path.relpath(path, agents_dir)
        agents.append(
            Agent(
                name=fm.string_val("name", _strip_md(rel)),
                description=fm.string_val("description", ""),
                role=fm.string_val("role", ""),
                domain=fm.string_val("domain", ""),
                scope=fm.string_val("scope", "universal"),
                access=fm.string_val("access", "read-write"),
                languages=_list(fm, "languages"),
                uses_skills=_list(fm, "uses_skills"),
                uses_plugins=_list(fm, "uses_plugins"),
                delegates_to=_list(fm, "delegates_to"),
                path=os.path.join("spec", "agents", rel),
            )
        )
    return agents


def _settings_path(root: str | os.PathLike) -> str:
    return os.path.join(os.fspath(root), "spec", "claude", "settings.json")


def _read_settings(root: str | os.PathLike) -> Any:
    """Return the parsed settings template, or None if absent or invalid."""
    try:
        data = _read_text(_settings_path(root))
    except FileNotFoundError:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return None


def _str_field(obj: dict, key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _parse_plugins(config: Any) -> list[Plugin]:
    if not isinstance(config, dict):
        raise TypeError("settings must be an object")
    raw_plugins = config.get("external_plugins") or []
    if not isinstance(raw_plugins, list):
        raise TypeError("external_plugins must be a list")

    plugins = []
    for raw in raw_plugins:
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise TypeError("plugin entries must be objects")
        name = _str_field(raw, "name")
        raw_workflows = raw.get("workflows") or []
        if not isinstance(raw_workflows, list):
            raise TypeError("workflows must be a list")
        workflows = []
        for wf in raw_workflows:
            if wf is None:
                continue
            if not isinstance(wf, dict):
                raise TypeError("workflow entries must be objects")
            wf_name = _str_field(wf, "name")
            if wf_name:
                workflows.append(Workflow(name=wf_name, description=_str_field(wf, "description")))
        if name:
            plugins.append(
                Plugin(
                    name=name,
                    description=_str_field(raw, "description"),
                    marketplace=_str_field(raw, "marketplace"),
                    workflows=workflows,
                )
            )
    return plugins


def load_plugins(root: str | os.PathLike) -> list[Plugin]:
    """Load ``external_plugins`` from ``root/spec/claude/settings.json``.

    A missing or malformed file yields an empty list.
    """
    config = _read_settings(root)
    if config is None:
        return []
    try:
        return _parse_plugins(config)
    except TypeError:
        return []


def load_plugins_config(root: str | os.PathLike) -> dict[str, Any] | None:
    """Return the ``external_plugins``/``external_skills`` subset of the settings.

    Returns None when the file is missing, malformed, or holds neither key.
    """
    config = _read_settings(root)
    if not isinstance(config, dict):
        return None
    subset = {key: config[key] for key in ("external_plugins", "external_skills") if key in config}
    return subset or None