import io
import json
import threading

import pytest

from agentarmy.pluginsync import SyncError, remove_skill_direct, run


class MockRunner:
    def __init__(self, fail_on=()):
        self._lock = threading.Lock()
        self.commands = []
        self.fail_on = set(fail_on)

    def run(self, name, args):
        cmd = name + " " + " ".join(args)
        with self._lock:
            self.commands.append(cmd)
        if cmd in self.fail_on:
            raise RuntimeError(f"mock failure: {cmd}")


SAMPLE_DOC = """# Plugins

| # | Name | Install |
|---|------|---------|
| 1 | **foo** | `/plugin install foo@marketplace` |
| 2 | **bar** | `/plugin install bar@marketplace` |

## Skills (2)

Install skills globally with `npx skills add <repo> -g -s <skill-name>`.

### From [owner/repo](https://github.com/owner/repo) (1 skill)

| Skill | Description | Install |
|-------|-------------|---------|
| `my-skill` | desc | `npx skills add owner/repo -g -s my-skill` |

### Plugin-Provided Skills

| Skill | Description | Plugin Source |
|-------|-------------|---------------|
| `plugin:skill` | desc | `npx skills add plugin/repo -g -s plugin-skill` |
"""

SAMPLE_DOC_WITH_REDUNDANT = SAMPLE_DOC + """
> **Redundant standalone skills:** These are already provided by plugins and can be removed:
> - `frontend-design` (provided by **frontend-design** plugin) \u2014 `npx skills remove frontend-design`
> - `skill-creator` (provided by **skill-creator** plugin) \u2014 `npx skills remove skill-creator`
"""


def _redundant_only_doc(skill_name):
    return (
        "> **Redundant standalone skills:** These are already provided by plugins and can be removed:\n"
        f"> - `npx skills remove {skill_name}`\n"
    )


@pytest.fixture
def home(tmp_path, monkeypatch):
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    return home_dir


def _doc(tmp_path, text):
    path = tmp_path / "PLUGINS_AND_SKILLS.md"
    path.write_text(text, encoding="utf-8")
    return path


def test_run_installs_plugins_and_skills(tmp_path, home):
    runner = MockRunner()
    out = io.StringIO()
    run(_doc(tmp_path, SAMPLE_DOC), out, runner)

    assert sorted(runner.commands) == sorted(
        [
            "claude plugin install foo@marketplace",
            "claude plugin install bar@marketplace",
            "npx skills add owner/repo -g -s my-skill -y",
        ]
    )
    assert "Installing Plugins (2)" in out.getvalue()
    assert "Installing Skills (1)" in out.getvalue()


def test_run_with_cleanup(tmp_path, home):
    skills_dir = home / ".agents" / "skills"
    (skills_dir / "frontend-design").mkdir(parents=True)
    (skills_dir / "skill-creator").mkdir()
    lock_path = home / ".agents" / ".skill-lock.json"
    lock_path.write_text(
        '{"version":3,"skills":{"frontend-design":{"source":"anthropics/skills"},'
        '"skill-creator":{"source":"anthropics/skills"},"other-skill":{"source":"someone/repo"}}}'
    )

    runner = MockRunner()
    out = io.StringIO()
    run(_doc(tmp_path, SAMPLE_DOC_WITH_REDUNDANT), out, runner)

    assert len(runner.commands) == 3
    output = out.getvalue()
    assert "Cleaning Up Redundant Skills (2)" in output
    assert "Removed standalone skill: frontend-design" in output
    assert "Removed standalone skill: skill-creator" in output
    assert not (skills_dir / "frontend-design").exists()
    assert not (skills_dir / "skill-creator").exists()

    lock = json.loads(lock_path.read_text())
    assert set(lock["skills"]) == {"other-skill"}
    assert lock["version"] == 3


def test_run_with_failures(tmp_path, home):
    runner = MockRunner(fail_on={"claude plugin install foo@marketplace"})
    out = io.StringIO()
    with pytest.raises(SyncError) as excinfo:
        run(_doc(tmp_path, SAMPLE_DOC), out, runner)

    assert excinfo.value.failures == ["claude plugin install foo@marketplace"]
    assert str(excinfo.value) == "1 commands failed"
    assert "Failed" in out.getvalue()


def test_run_missing_doc_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        run(tmp_path / "missing.md", io.StringIO(), MockRunner())


def test_run_cleanup_without_lock_file(tmp_path, home):
    skill_dir = home / ".agents" / "skills" / "lonely"
    skill_dir.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text("x")

    runner = MockRunner()
    out = io.StringIO()
    run(_doc(tmp_path, _redundant_only_doc("lonely")), out, runner)

    output = out.getvalue()
    assert runner.commands == []
    assert "Cleaning Up Redundant Skills (1)" in output
    assert "Removed standalone skill: lonely" in output
    assert not skill_dir.exists()


def test_remove_skill_direct_bad_lock_raises(home):
    agents = home / ".agents"
    agents.mkdir()
    (agents / ".skill-lock.json").write_text("{broken")
    with pytest.raises(ValueError):
        remove_skill_direct("anything")


def test_run_cleanup_leaves_unrelated_lock(tmp_path, home):
    agents = home / ".agents"
    agents.mkdir()
    lock_path = agents / ".skill-lock.json"
    lock_path.write_text('{"skills": {"keep": {"source": "a/b"}}}')

    out = io.StringIO()
    run(_doc(tmp_path, _redundant_only_doc("absent")), out, MockRunner())

    assert "Removed standalone skill: absent" in out.getvalue()
    assert json.loads(lock_path.read_text()) == {"skills": {"keep": {"source": "a/b"}}}