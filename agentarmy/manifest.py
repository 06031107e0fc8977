"""Build and write the dependency manifest (manifest.json)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Iterable

from agentarmy.graph import resolve_transitive
from agentarmy.loader import load_agents, load_plugins_config, load_skills
from agentarmy.model import Agent, Skill

_RAW_SECTION_KEYS = ("external_plugins", "external_skills")
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


@dataclass
class Entry:
    """A manifest entry whose fields keep their insertion order."""

    values: dict[str, Any] = field(default_factory=dict)

    @property
    def keys(self) -> list[str]:
        """Field names in insertion order."""
        return list(self.values)

    def add(self, key: str, value: str) -> None:
        """Add a string field."""
        self.values[key] = value

    def add_list(self, key: str, values: Iterable[str] | None) -> None:
        """Add a string list field; None becomes an empty list."""
        self.values[key] = list(values or [])


@dataclass
class Manifest:
    """Ordered manifest sections, plus pass-through JSON sections."""

    keys: list[str] = field(default_factory=list)
    sections: dict[str, list[Entry]] = field(default_factory=dict)
    raw_sections: dict[str, Any] = field(default_factory=dict)


def _json_scalar(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False)
    if isinstance(value, str):
        for char, escaped in _HTML_ESCAPES:
            text = text.replace(char, escaped)
    return text


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        if not value:
            return "[]"
        return "[" + ", ".join(json.dumps(item, ensure_ascii=False) for item in value) + "]"
    return _json_scalar(value)


def format_entry(entry: Entry) -> str:
    """Render an entry as a single-line JSON object."""
    pairs = [f"{json.dumps(key, ensure_ascii=False)}: {_format_value(value)}" for key, value in entry.values.items()]
    return "{ " + ", ".join(pairs) + " }"


def _indent_raw(raw: Any) -> str:
    return json.dumps(raw, indent=2, ensure_ascii=False).replace("\n", "\n  ")


def format_manifest_json(manifest: Manifest) -> str:
    """Render the manifest as JSON with one entry per line."""
    lines = ["{"]
    last = len(manifest.keys) - 1
    for index, section in enumerate(manifest.keys):
        suffix = "" if index == last else ","
        quoted = json.dumps(section, ensure_ascii=False)

        if section in manifest.raw_sections:
            lines.append(f"  {quoted}: {_indent_raw(manifest.raw_sections[section])}{suffix}")
            continue

        entries = manifest.sections.get(section, [])
        lines.append(f"  {quoted}: [")
        for position, entry in enumerate(entries):
            comma = "," if position < len(entries) - 1 else ""
            lines.append("    " + format_entry(entry) + comma)
        lines.append("  ]" + suffix)

    lines.append("}")
    return "\n".join(lines) + "\n"


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/")


def _resolve(seeds: list[str], lookup: dict[str, list[str]]) -> list[str]:
    if not seeds:
        return []
    return resolve_transitive(seeds, lambda name: lookup.get(name, []))


def _skill_entry(skill: Skill, skill_lookup: dict[str, list[str]]) -> Entry:
    entry = Entry()
    entry.add("name", skill.name)
    entry.add("scope", skill.scope)
    if skill.scope == "language-specific" and skill.languages:
        entry.add_list("languages", skill.languages)
    entry.add_list("uses_skills", _resolve(skill.uses_skills, skill_lookup))
    entry.add("path", _to_slash(skill.path))
    return entry


def _agent_entry(agent: Agent, agent_lookup: dict[str, list[str]]) -> Entry:
    entry = Entry()
    entry.add("name", agent.name)
    entry.add("role", agent.role)
    entry.add("scope", agent.scope)
    entry.add("access", agent.access)
    if agent.languages:
        entry.add_list("languages", agent.languages)
    entry.add_list("uses_skills", agent.uses_skills)
    entry.add_list("uses_plugins", agent.uses_plugins)
    entry.add_list("delegates_to", _resolve(agent.delegates_to, agent_lookup))
    entry.add("path", _to_slash(agent.path))
    return entry


def generate_manifest(root: str | os.PathLike) -> Manifest:
    """Load all entities, resolve transitive dependencies and build the manifest."""
    skills = load_skills(root)
    agents = load_agents(root)

    skill_lookup = {skill.name: skill.uses_skills for skill in skills}
    agent_lookup = {agent.name: agent.delegates_to for agent in agents}

    manifest = Manifest(
        keys=["skills", "agents"],
        sections={
            "skills": [_skill_entry(skill, skill_lookup) for skill in skills],
            "agents": [_agent_entry(agent, agent_lookup) for agent in agents],
        },
    )

    plugins_config = load_plugins_config(root)
    if plugins_config is not None:
        for key in _RAW_SECTION_KEYS:
            if key in plugins_config:
                manifest.keys.append(key)
                manifest.raw_sections[key] = plugins_config[key]

    return manifest


def write_manifest(root: str | os.PathLike) -> None:
    """Generate the manifest and write it to ``root/manifest.json``."""
    output = format_manifest_json(generate_manifest(root))
    path = os.path.join(os.fspath(root), "manifest.json")
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(output)