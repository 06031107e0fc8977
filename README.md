# agentarmy

`agentarmy` manages a library of agent and skill specifications written as
Markdown files with YAML-style frontmatter. It resolves dependencies between
them, writes a manifest, generates tool-specific output for Claude Code or
Cursor, and keeps an inventory of the plugins and skills installed in your
home directory.

## Installation

```
pip install .
```

This installs the `army` command. The package has no third-party
dependencies.

## Project layout

`army` looks for a spec root: the current directory, its parent or its
grandparent, whichever first contains `spec/skills/`; otherwise the current
directory is used. Inside the root:

```
spec/skills/**/*.md        skill specs
spec/agents/**/*.md        agent specs
spec/claude/settings.json  settings template, with external_plugins and external_skills
spec/claude/CLAUDE.md      orchestrator template ({{BASE}} is replaced)
spec/cursor/AGENTS.md      orchestrator template for Cursor ({{BASE}} is replaced)
```

A spec file starts with frontmatter:

```
---
name: go/coder
description: Writes Go code
role: coder
access: read-write
uses_skills: [error-handling, api-designer]
uses_plugins: [context7]
delegates_to: []
---

# Go Coder
...
```

Lists may be written inline (`[a, b]`) or as indented `- item` lines. A
missing `name` falls back to the file's path relative to the spec directory,
without `.md`.

## Commands

```
army manifest               write manifest.json with transitive dependencies
army bootstrap              interactively generate skills and agents for a target tool
army update-plugins-skills  write PLUGINS_AND_SKILLS.md from installed state
army sync                   install everything listed in PLUGINS_AND_SKILLS.md
army analyze                report installed plugins, skills, duplicates, drift and orphans
army analyze --fix          also offer to remove stale entries from the skill lock file
```

Commands exit with status 1 and print an error on failure.

### manifest

Writes `manifest.json` in the spec root: one line per skill and per agent.
A skill's `uses_skills` and an agent's `delegates_to` are expanded to their
transitive closure in breadth-first order. The `external_plugins` and
`external_skills` sections of `spec/claude/settings.json` are copied in when
present.

### bootstrap

Asks for a target (Claude Code or Cursor), an output directory (`.claude` or
`.cursor` in the current directory, the same under your home directory, or a
custom path), which agents to include and which extra skills to add. Skills
used by the selected agents are included automatically. After a preview and
confirmation, the `skills/` and `agents/` directories under the destination
are replaced.

Each agent body gains a "Resources Available" section, placed before
`## Workflow` or `## Constraints` if present. For Claude Code it lists skills,
plugins and delegate agents; for Cursor it lists skill files as workflow
references, and references in the body are rewritten to point at those files.
Cursor output also renames `Edit` and `Bash` tool mentions to `StrReplace` and
`Shell`.

Afterwards it offers to write `CLAUDE.md` and `settings.json` (with
`enabledPlugins` built from `external_plugins` entries that name a
marketplace) or `AGENTS.md`, asking before overwriting an existing file.

### update-plugins-skills and sync

`update-plugins-skills` reads `~/.claude/plugins/installed_plugins.json`,
`~/.claude/plugins/known_marketplaces.json`, each plugin's metadata, and
`~/.agents/.skill-lock.json`, and writes a Markdown document with tables of
plugins, skills, plugin agents, marketplaces and MCP servers. Standalone skills
that a plugin already provides are listed as redundant.

`sync` reads that document, runs `claude plugin install ...` for every plugin
(in parallel), `npx skills add ... -y` for every standalone skill, and then
deletes each redundant skill's directory under `~/.agents/skills/` and its
lock file entry.

## Library use

```python
from agentarmy.loader import load_skills
from agentarmy.graph import resolve_transitive
from agentarmy.manifest import write_manifest

skills = load_skills(".")
lookup = {s.name: s.uses_skills for s in skills}
print(resolve_transitive(["api-designer"], lambda n: lookup.get(n, [])))
write_manifest(".")
```

Other useful pieces: `agentarmy.frontmatter.parse_frontmatter` and
`write_field`, `agentarmy.graph.find_redundant`,
`agentarmy.bootstrap.generate_all`, and `agentarmy.pluginsync.run`, which
takes any object with a `run(name, args)` method as the command runner.

## What it does not do

There is no command that validates dependency references between specs or
removes redundant entries from their frontmatter; `find_redundant` and
`write_field` are available for building one.

## Running the tests

```
pip install .[test]
pytest
```