"""Data types shared across the spec loader, resolver and generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class Skill:
    """A skill loaded from a spec markdown file's frontmatter."""

    name: str
    description: str = ""  # H1 heading (title)
    summary: str = ""  # frontmatter description (brief summary)
    scope: str = ""
    languages: list[str] = field(default_factory=list)
    uses_skills: list[str] = field(default_factory=list)
    path: str = ""


@dataclass
class Workflow:
    """A named workflow provided by a plugin."""

    name: str
    description: str = ""


@dataclass
class Plugin:
    """An external plugin declared in the settings template."""

    name: str
    description: str = ""
    marketplace: str = ""
    workflows: list[Workflow] = field(default_factory=list)


@dataclass
class Agent:
    """An agent loaded from a spec markdown file's frontmatter."""

    name: str
    description: str = ""
    role: str = ""
    domain: str = ""  # optional display grouping, e.g. "Go" or "Infrastructure"
    scope: str = ""
    access: str = ""
    languages: list[str] = field(default_factory=list)
    uses_skills: list[str] = field(default_factory=list)
    uses_plugins: list[str] = field(default_factory=list)
    delegates_to: list[str] = field(default_factory=list)
    path: str = ""


@dataclass
class ResolvedDeps:
    """Fully resolved dependency information for an agent."""

    skills: list[Skill] = field(default_factory=list)
    plugins: list[str] = field(default_factory=list)
    delegates_to: list[Agent] = field(default_factory=list)


@dataclass
class ValidationIssue:
    """A dependency reference that could not be resolved."""

    file_label: str
    field: str
    ref: str
    severity: str  # "error" or "warning"


@dataclass
class Fix:
    """A proposed change to a frontmatter field."""

    label: str
    field: str
    file_path: str
    before: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Redundancy:
    """Records that ``target`` is transitively covered by ``covered_by``."""

    target: str
    covered_by: str


def plugin_names(plugins: Iterable[Plugin]) -> list[str]:
    """Return the names of the given plugins, in order."""
    return [plugin.name for plugin in plugins]