"""Turn spec skills and agents into target-specific markdown files."""

from __future__ import annotations

import json
import os

from agentarmy.enrich import Target, enrich_agent_body, flatten_name, skill_description
from agentarmy.model import Agent, ResolvedDeps, Skill

CLAUDE_TOOLS_RW = "Read, Write, Edit, Bash, Glob, Grep"
CLAUDE_TOOLS_RO = "Read, Glob, Grep, Bash"


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()


def _description_line(description: str) -> str:
    if ":" in description:
        return "description: " + json.dumps(description, ensure_ascii=False)
    return "description: " + description


def _with_frontmatter(fields: list[str], body: str) -> str:
    return "\n".join(["---", *fields, "---"]) + "\n\n" + body


def _cursorize(body: str) -> str:
    return body.replace("`Edit`", "`StrReplace`").replace("`Bash`", "`Shell`").replace("~/.claude/", "~/.cursor/")


def agent_to_claude(root: str | os.PathLike, agent: Agent, deps: ResolvedDeps) -> str:
    """Render an agent as a Claude Code agent file."""
    body = extract_body(os.path.join(os.fspath(root), agent.path))
    body = enrich_agent_body(body, deps, Target.CLAUDE)
    tools = CLAUDE_TOOLS_RO if agent.access == "read-only" else CLAUDE_TOOLS_RW
    fields = [
        f"name: {flatten_name(agent.name)}",
        _description_line(agent.description),
        f"tools: {tools}",
        "model: inherit",
    ]
    return _with_frontmatter(fields, body)


def agent_to_cursor(root: str | os.PathLike, agent: Agent, deps: ResolvedDeps) -> str:
    """Render an agent as a Cursor agent file."""
    body = extract_body(os.path.join(os.fspath(root), agent.path))
    body = enrich_agent_body(body, deps, Target.CURSOR)
    fields = [f"name: {flatten_name(agent.name)}", _description_line(agent.description), "model: inherit"]
    if agent.access == "read-only":
        fields.append("readonly: true")
    return _with_frontmatter(fields, _cursorize(body))


def skill_to_claude(root: str | os.PathLike, skill: Skill) -> str:
    """Render a skill for Claude Code: the body without frontmatter."""
    return extract_body(os.path.join(os.fspath(root), skill.path))


def skill_to_cursor(root: str | os.PathLike, skill: Skill) -> str:
    """Render a skill for Cursor, with native frontmatter and tool names."""
    body = _cursorize(extract_body(os.path.join(os.fspath(root), skill.path)))
    fields = [f"name: {flatten_name(skill.name)}", _description_line(skill_description(skill))]
    return _with_frontmatter(fields, body)


def extract_body(file_path: str | os.PathLike) -> str:
    """Return the file content after its frontmatter, without leading blank lines.

    A file without a complete frontmatter block is returned unchanged.
    """
    content = _read_text(os.fspath(file_path))
    parts = content.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])

    dash_count = 0
    for index, line in enumerate(lines):
        if line.rstrip("\n\r ") == "---":
            dash_count += 1
            if dash_count == 2:
                return "".join(lines[index + 1 :]).lstrip("\n")
    return content


def read_file_content(root: str | os.PathLike, rel_path: str) -> str:
    """Read a file given relative to ``root``."""
    return _read_text(os.path.join(os.fspath(root), rel_path))


def write_output(dest: str | os.PathLike, rel_path: str, content: str) -> None:
    """Write ``content`` to ``dest/rel_path`` atomically, creating directories."""
    target = os.path.join(os.fspath(dest), rel_path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    tmp = target + ".tmp"
    with open(tmp, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    os.replace(tmp, target)


def resolve_collision(dest: str | os.PathLike, rel_path: str) -> str:
    """Return ``rel_path``, or a ``stem_N`` variant if the path is already taken."""
    dest = os.fspath(dest)
    if not os.path.exists(os.path.join(dest, rel_path)):
        return rel_path

    directory = os.path.dirname(rel_path)
    stem, ext = os.path.splitext(os.path.basename(rel_path))
    for number in range(2, 100):
        candidate = os.path.join(directory, f"{stem}_{number}{ext}")
        if not os.path.exists(os.path.join(dest, candidate)):
            return candidate
    return rel_path