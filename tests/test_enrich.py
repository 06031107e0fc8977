import pytest

from agentarmy.enrich import (
    Target,
    build_resolved_deps,
    build_resources_section,
    enrich_agent_body,
    flatten_name,
    inject_section,
    rewrite_body_refs,
    skill_description,
)
from agentarmy.model import Agent, ResolvedDeps, Skill


def test_build_resolved_deps():
    skill_map = {
        "error-handling": Skill(name="error-handling", summary="Error taxonomy"),
        "go/coder": Skill(name="go/coder", summary="Go workflow"),
    }
    agent_map = {"type-design-analyzer": Agent(name="type-design-analyzer", description="Type analyzer")}
    agent = Agent(
        name="go/coder",
        uses_skills=["go/coder", "error-handling"],
        uses_plugins=["code-simplifier"],
        delegates_to=["type-design-analyzer"],
    )

    deps = build_resolved_deps(agent, skill_map, agent_map)

    assert [skill.name for skill in deps.skills] == ["go/coder", "error-handling"]
    assert deps.plugins == ["code-simplifier"]
    assert [a.name for a in deps.delegates_to] == ["type-design-analyzer"]


def test_build_resolved_deps_missing_refs():
    agent = Agent(name="test", uses_skills=["nonexistent-skill"], delegates_to=["nonexistent-agent"])
    deps = build_resolved_deps(agent, None, None)
    assert deps.skills == []
    assert deps.delegates_to == []


def _full_deps():
    return ResolvedDeps(
        skills=[Skill(name="error-handling", summary="Error taxonomy")],
        plugins=["code-simplifier"],
        delegates_to=[Agent(name="type-design-analyzer", description="Type analysis")],
    )


def test_enrich_agent_body_claude():
    body = "# Agent\n\n## Role\nDoes things.\n\n## Workflow\n1. Step one\n"
    result = enrich_agent_body(body, _full_deps(), Target.CLAUDE)

    assert "## Resources Available" in result
    assert "### Skills (Invoke via Skill Tool)" in result
    assert "`error-handling` -- Error taxonomy" in result
    assert "### Plugins" in result
    assert "`code-simplifier`" in result
    assert "### Delegate Agents" in result
    assert "`type-design-analyzer`" in result
    assert result.index("## Resources Available") < result.index("## Workflow")


def test_enrich_agent_body_cursor():
    body = "# Agent\n\n## Workflow\n1. Step one\n"
    result = enrich_agent_body(body, _full_deps(), Target.CURSOR)

    assert "### Workflow References" in result
    assert "skills/error-handling/SKILL.md" in result
    assert "### Plugins" not in result
    assert "### Delegate Agents" not in result


def test_enrich_agent_body_empty_deps():
    body = "# Agent\n\n## Workflow\n1. Step one\n"
    result = enrich_agent_body(body, ResolvedDeps(), Target.CLAUDE)
    assert "## Resources Available" in result
    assert "### Skills" not in result


def test_build_resources_section_claude_exact():
    deps = ResolvedDeps(skills=[Skill(name="go/coder", summary="Go workflow")])
    assert build_resources_section(deps, Target.CLAUDE) == (
        "## Resources Available\n\n"
        "### Skills (Invoke via Skill Tool)\n"
        "Use the Skill tool to invoke these when the task matches:\n"
        "- `go-coder` -- Go workflow\n"
    )


def test_build_resources_section_falls_back_to_title():
    deps = ResolvedDeps(skills=[Skill(name="x", description="Title X")])
    assert "- `skills/x/SKILL.md` -- Title X\n" in build_resources_section(deps, Target.CURSOR)


def test_rewrite_body_refs_claude_unchanged():
    body = "invoke the `error-handling` skill for error patterns"
    assert rewrite_body_refs(body, Target.CLAUDE) == body


@pytest.mark.parametrize(
    "text, want",
    [
        (
            "invoke the `error-handling` skill for error patterns",
            "read and follow the workflow in `skills/error-handling/SKILL.md` for error patterns",
        ),
        (
            "invoke the `api-designer` skill",
            "read and follow the workflow in `skills/api-designer/SKILL.md`",
        ),
        (
            "Delegate to `type-design-analyzer` when reviewing types",
            "read the review checklist in `agents/type-design-analyzer.md` when reviewing types",
        ),
        (
            "Go coding patterns are loaded via the `go/coder` skill. Key emphasis:",
            "Go coding patterns are defined in `skills/go/coder/SKILL.md`. Key emphasis:",
        ),
        (
            "Patterns are loaded via skills. Concurrency patterns included.",
            "Patterns are defined in the workflow files listed under Resources Available. "
            "Concurrency patterns included.",
        ),
        (
            "Patterns are loaded via the `ai-assisted-development` rule.",
            "Patterns are defined in the `ai-assisted-development` rule.",
        ),
    ],
)
def test_rewrite_body_refs_cursor(text, want):
    assert rewrite_body_refs(text, Target.CURSOR) == want


def test_rewrite_body_refs_cursor_strips_skill_tool():
    assert rewrite_body_refs("Run it via the Skill tool.", Target.CURSOR) == "Run it."


@pytest.mark.parametrize(
    "body, marker",
    [
        ("# Title\n\n## Role\nStuff\n\n## Workflow\n1. Step\n", "## Workflow"),
        ("# Title\n\n## Constraints\n- Rule\n", "## Constraints"),
        ("# Title\n\nJust content.\n", ""),
    ],
)
def test_inject_section(body, marker):
    section = "## Resources\nContent\n"
    result = inject_section(body, section)
    assert section in result
    if marker:
        assert result.index(section) < result.index(marker)
    else:
        assert result == body + "\n" + section


def test_inject_section_marker_at_start_appends():
    assert inject_section("## Workflow\nx", "S") == "## Workflow\nx\nS"


def test_flatten_name_and_skill_description():
    assert flatten_name("go/patterns") == "go-patterns"
    assert skill_description(Skill(name="s", description="Title", summary="Brief")) == "Brief"
    assert skill_description(Skill(name="s", description="Title")) == "Title"


def test_target_values():
    assert Target.CLAUDE == "Claude Code"
    assert Target("Cursor") is Target.CURSOR