from agentarmy.model import (
    Agent,
    Fix,
    Plugin,
    Redundancy,
    ResolvedDeps,
    Skill,
    ValidationIssue,
    Workflow,
    plugin_names,
)


def test_plugin_names_preserves_order():
    plugins = [
        Plugin(name="context7", marketplace="claude-plugins-official"),
        Plugin(name="superpowers"),
    ]
    assert plugin_names(plugins) == ["context7", "superpowers"]


def test_plugin_names_empty():
    assert plugin_names([]) == []


def test_skill_list_defaults_are_independent():
    first = Skill(name="a")
    second = Skill(name="b")
    first.uses_skills.append("x")
    assert second.uses_skills == []
    assert first.languages == []


def test_agent_defaults_empty():
    agent = Agent(name="go-coder")
    assert agent.domain == ""
    assert agent.delegates_to == []
    assert agent.uses_plugins == []


def test_resolved_deps_defaults_empty():
    deps = ResolvedDeps()
    assert deps.skills == [] and deps.plugins == [] and deps.delegates_to == []


def test_plugin_with_workflows():
    plugin = Plugin(
        name="superpowers",
        workflows=[Workflow(name="brainstorming", description="Before creative work.")],
    )
    assert [w.name for w in plugin.workflows] == ["brainstorming"]


def test_redundancy_equality_and_hash():
    a = Redundancy(target="B", covered_by="A")
    b = Redundancy(target="B", covered_by="A")
    assert a == b
    assert len({a, b}) == 1


def test_fix_and_validation_issue_fields():
    fix = Fix(label="skill x", field="uses_skills", file_path="p.md", before=["a", "b"], after=["a"])
    assert fix.reasons == []
    assert fix.after == ["a"]
    issue = ValidationIssue(file_label="agent y", field="uses_skills", ref="missing", severity="error")
    assert issue.severity == "error"