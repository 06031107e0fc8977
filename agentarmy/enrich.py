"""Resolve agent dependencies and enrich agent bodies for an output target."""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping

from agentarmy.model import Agent, ResolvedDeps, Skill


class Target(str, Enum):
    """Output tools that bootstrap can generate for."""

    CLAUDE = "Claude Code"
    CURSOR = "Cursor"


def flatten_name(name: str) -> str:
    """Turn a nested name such as ``go/coder`` into ``go-coder``."""
    return name.replace("/", "-")


def skill_description(skill: Skill) -> str:
    """Return a brief description, preferring the summary over the title."""
    return skill.summary or skill.description


def build_resolved_deps(
    agent: Agent,
    skill_map: Mapping[str, Skill] | None,
    agent_map: Mapping[str, Agent] | None,
) -> ResolvedDeps:
    """Resolve an agent's skill and delegate names into model objects.

    Unknown names are dropped; plugins pass through unchanged.
    """
    skill_map = skill_map or {}
    agent_map = agent_map or {}
    return ResolvedDeps(
        skills=[skill_map[name] for name in agent.uses_skills if name in skill_map],
        plugins=list(agent.uses_plugins),
        delegates_to=[agent_map[name] for name in agent.delegates_to if name in agent_map],
    )


def enrich_agent_body(body: str, deps: ResolvedDeps, target: str) -> str:
    """Inject a resources section and rewrite references for the target."""
    body = inject_section(body, build_resources_section(deps, target))
    return rewrite_body_refs(body, target)


def build_resources_section(deps: ResolvedDeps, target: str) -> str:
    """Build the ``## Resources Available`` markdown section."""
    parts = ["## Resources Available\n"]

    if deps.skills:
        parts.append("\n")
        if target == Target.CLAUDE:
            parts.append("### Skills (Invoke via Skill Tool)\n")
            parts.append("Use the Skill tool to invoke these when the task matches:\n")
            parts.extend(
                f"- `{flatten_name(skill.name)}` -- {skill_description(skill)}\n" for skill in deps.skills
            )
        elif target == Target.CURSOR:
            parts.append("### Workflow References\n")
            parts.append("Read and follow these workflow files when the task matches:\n")
            parts.extend(
                f"- `skills/{flatten_name(skill.name)}/SKILL.md` -- {skill_description(skill)}\n"
                for skill in deps.skills
            )

    if target == Target.CLAUDE and deps.plugins:
        parts.append("\n### Plugins\n")
        parts.extend(f"- `{plugin}`\n" for plugin in deps.plugins)

    if target == Target.CLAUDE and deps.delegates_to:
        parts.append("\n### Delegate Agents (Invoke via Task Tool)\n")
        parts.append("Use the Task tool with these agent files when delegation is needed:\n")
        parts.extend(f"- `{flatten_name(agent.name)}` -- {agent.description}\n" for agent in deps.delegates_to)

    return "".join(parts)


def inject_section(body: str, section: str) -> str:
    """Insert ``section`` before ``## Workflow`` or ``## Constraints``, else append it."""
    for marker in ("## Workflow", "## Constraints"):
        index = body.find(marker)
        if index > 0:
            return body[:index] + section + "\n" + body[index:]
    return body + "\n" + section


_INVOKE_SKILL_FOR_RE = re.compile(r"invoke the `([^`]+)` skill (for [^.\n]+)", re.IGNORECASE)
_INVOKE_SKILL_RE = re.compile(r"invoke the `([^`]+)` skill", re.IGNORECASE)
_LOADED_VIA_SKILL_RE = re.compile(r"loaded via the `([^`]+)` skill", re.IGNORECASE)
_LOADED_VIA_SKILLS_RE = re.compile(r"loaded via skills", re.IGNORECASE)
_LOADED_VIA_RULE_RE = re.compile(r"loaded via the `([^`]+)` rule", re.IGNORECASE)
_DELEGATE_TO_RE = re.compile(r"delegate to `([^`]+)`", re.IGNORECASE)
_VIA_SKILL_TOOL_RE = re.compile(r" via the Skill tool", re.IGNORECASE)
_VIA_SKILL_TOOL_BACKTICK_RE = re.compile(r" via the `Skill` tool", re.IGNORECASE)

_CURSOR_REWRITES = (
    (_INVOKE_SKILL_FOR_RE, r"read and follow the workflow in `skills/\g<1>/SKILL.md` \g<2>"),
    (_INVOKE_SKILL_RE, r"read and follow the workflow in `skills/\g<1>/SKILL.md`"),
    (_LOADED_VIA_SKILL_RE, r"defined in `skills/\g<1>/SKILL.md`"),
    (_LOADED_VIA_SKILLS_RE, "defined in the workflow files listed under Resources Available"),
    (_LOADED_VIA_RULE_RE, r"defined in the `\g<1>` rule"),
    (_DELEGATE_TO_RE, r"read the review checklist in `agents/\g<1>.md`"),
    (_VIA_SKILL_TOOL_RE, ""),
    (_VIA_SKILL_TOOL_BACKTICK_RE, ""),
)


def rewrite_body_refs(body: str, target: str) -> str:
    """Rewrite instructional references in the body to suit the target."""
    if target == Target.CURSOR:
        for pattern, replacement in _CURSOR_REWRITES:
            body = pattern.sub(replacement, body)
    return body