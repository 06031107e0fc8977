"""Report installed plugins and skills as a markdown document."""

from __future__ import annotations

import datetime
import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from agentarmy.frontmatter import parse_frontmatter

InstalledPlugins = Mapping[str, "list[PluginInstance]"]
SkillLock = Mapping[str, "SkillLockEntry"]


@dataclass(frozen=True)
class PluginInstance:
    """One installed copy of a plugin."""

    install_path: str = ""
    version: str = ""


@dataclass(frozen=True)
class PluginMeta:
    """Metadata read from a plugin's ``.claude-plugin/plugin.json``."""

    name: str = ""
    description: str = ""
    repository: str = ""
    version: str = ""


@dataclass(frozen=True)
class SkillLockEntry:
    """A standalone skill recorded in the skill lock file."""

    source: str = ""
    source_url: str = ""


@dataclass(frozen=True)
class _McpServer:
    url: str = ""
    command: str = ""
    args: tuple[str, ...] = ()


@dataclass
class _SkillGroup:
    source: str
    source_url: str
    skills: list[tuple[str, str]] = field(default_factory=list)


# --- Loading (missing or malformed files yield empty values) ---


def _read_json(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError):
        return None


def _str(obj: Mapping[str, Any], key: str) -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else ""


def _home() -> str:
    return os.path.expanduser("~")


def load_installed_plugins(home: str | os.PathLike) -> dict[str, list[PluginInstance]]:
    """Read ``~/.claude/plugins/installed_plugins.json`` as key -> instances."""
    data = _read_json(os.path.join(os.fspath(home), ".claude", "plugins", "installed_plugins.json"))
    raw = data.get("plugins") if isinstance(data, dict) else None
    if not isinstance(raw, dict):
        return {}
    result: dict[str, list[PluginInstance]] = {}
    for key, items in raw.items():
        instances = []
        for item in items if isinstance(items, list) else []:
            if isinstance(item, dict):
                instances.append(PluginInstance(_str(item, "installPath"), _str(item, "version")))
        result[key] = instances
    return result


def load_plugin_meta(install_path: str | os.PathLike) -> PluginMeta:
    """Read a plugin's metadata; empty fields when it is missing."""
    data = _read_json(os.path.join(os.fspath(install_path), ".claude-plugin", "plugin.json"))
    if not isinstance(data, dict):
        return PluginMeta()
    return PluginMeta(
        name=_str(data, "name"),
        description=_str(data, "description"),
        repository=_str(data, "repository"),
        version=_str(data, "version"),
    )


def load_skill_lock(home: str | os.PathLike) -> dict[str, SkillLockEntry]:
    """Read ``~/.agents/.skill-lock.json`` as skill name -> entry."""
    data = _read_json(os.path.join(os.fspath(home), ".agents", ".skill-lock.json"))
    raw = data.get("skills") if isinstance(data, dict) else None
    if not isinstance(raw, dict):
        return {}
    return {
        name: SkillLockEntry(_str(entry, "source"), _str(entry, "sourceUrl"))
        if isinstance(entry, dict)
        else SkillLockEntry()
        for name, entry in raw.items()
    }


def load_marketplaces(home: str | os.PathLike) -> dict[str, str]:
    """Read known marketplaces as name -> source repository (may be empty)."""
    data = _read_json(os.path.join(os.fspath(home), ".claude", "plugins", "known_marketplaces.json"))
    if not isinstance(data, dict):
        return {}
    result = {}
    for name, entry in data.items():
        source = entry.get("source") if isinstance(entry, dict) else None
        result[name] = _str(source, "repo") if isinstance(source, dict) else ""
    return result


def _load_mcp_servers(install_path: str) -> dict[str, _McpServer]:
    data = _read_json(os.path.join(install_path, ".mcp.json"))
    if not isinstance(data, dict):
        return {}
    result = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            result[name] = _McpServer()
            continue
        args = entry.get("args")
        args = tuple(a for a in args if isinstance(a, str)) if isinstance(args, list) else ()
        result[name] = _McpServer(_str(entry, "url"), _str(entry, "command"), args)
    return result


# --- Helpers ---

_GITHUB_SLUG_RE = re.compile(r"github\.com/([^/]+/[^/.\s]+)")
_XML_TAG_RE = re.compile(r"<[^>]*>")


def github_slug(url: str) -> str:
    """Return ``owner/repo`` from a GitHub URL, or '' if it is not one."""
    match = _GITHUB_SLUG_RE.search(url)
    if match is None:
        return ""
    slug = match.group(1)
    return slug[: -len(".git")] if slug.endswith(".git") else slug


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def extract_description(path: str | os.PathLike) -> str:
    """Return a markdown-table-safe description from a file's frontmatter."""
    try:
        with open(os.fspath(path), encoding="utf-8") as handle:
            content = handle.read()
    except OSError:
        return ""

    desc = parse_frontmatter(content).string_val("description", "")

    if desc in ("|", ">"):
        lines = content.split("\n")
        in_frontmatter = False
        for index, line in enumerate(lines):
            if line.rstrip(" \t\r") == "---":
                in_frontmatter = not in_frontmatter
                continue
            if in_frontmatter and line.startswith("description:"):
                desc = lines[index + 1].strip() if index + 1 < len(lines) else ""
                break

    desc = desc.replace("|", "\u2014")
    return _strip_quotes(desc)


def short_description(desc: str) -> str:
    """Strip tags, collapse whitespace, keep the first sentence, cap at 200 chars."""
    desc = " ".join(_XML_TAG_RE.sub("", desc).split())
    index = desc.find(". ")
    if index >= 0:
        desc = desc[: index + 1]
    return desc[:200]


def is_semantic_version(ver: str) -> bool:
    """True for versions that start with a digit and contain a dot."""
    return bool(ver) and "0" <= ver[0] <= "9" and "." in ver


def _bare_name(key: str) -> str:
    return key.split("@", 1)[0]


def _first_instances(plugins: InstalledPlugins) -> Iterator[tuple[str, str]]:
    """Yield (key, install path of the first instance) in key order."""
    for key in sorted(plugins):
        instances = plugins[key]
        if instances:
            yield key, instances[0].install_path


def _dir_entries(path: str) -> list[tuple[str, bool]]:
    try:
        with os.scandir(path) as it:
            entries = [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in it]
    except OSError:
        return []
    return sorted(entries)


def _skill_dirs(install_path: str) -> list[str]:
    return [name for name, is_dir in _dir_entries(os.path.join(install_path, "skills")) if is_dir]


def _commands(install_path: str) -> list[tuple[str, str, str]]:
    """Return (command name, file path, description) for each commands/*.md."""
    cmds_dir = os.path.join(install_path, "commands")
    result = []
    for name, is_dir in _dir_entries(cmds_dir):
        if is_dir or not name.endswith(".md"):
            continue
        path = os.path.join(cmds_dir, name)
        result.append((name[: -len(".md")], path, extract_description(path)))
    return result


def _is_deprecated(desc: str) -> bool:
    return "deprecated" in desc.lower()


def build_plugin_repo_map(plugins: InstalledPlugins) -> dict[str, str]:
    """Map GitHub ``owner/repo`` slugs to the names of installed plugins."""
    result = {}
    for _key, install_path in _first_instances(plugins):
        meta = load_plugin_meta(install_path)
        if meta.repository and meta.name:
            slug = github_slug(meta.repository)
            if slug:
                result[slug] = meta.name
    return result


def build_plugin_skill_names(plugins: InstalledPlugins) -> dict[str, str]:
    """Map skill and non-deprecated command names to the plugin providing them."""
    result = {}
    for _key, install_path in _first_instances(plugins):
        pname = load_plugin_meta(install_path).name
        if not pname:
            continue
        for name in _skill_dirs(install_path):
            result[name] = pname
        for name, _path, desc in _commands(install_path):
            if not _is_deprecated(desc):
                result[name] = pname
    return result


def _count_plugin_provided_skills(plugins: InstalledPlugins) -> int:
    return sum(
        len(_skill_dirs(install_path))
        + sum(1 for _n, _p, desc in _commands(install_path) if not _is_deprecated(desc))
        for _key, install_path in _first_instances(plugins)
    )


def _find_deprecated_aliases(plugins: InstalledPlugins, target_plugin: str) -> list[tuple[str, str]]:
    replacement_re = re.compile(re.escape(target_plugin) + r" ([a-z-]+)")
    aliases = []
    for _key, install_path in _first_instances(plugins):
        if load_plugin_meta(install_path).name != target_plugin:
            continue
        for name, path, desc in _commands(install_path):
            if not _is_deprecated(desc):
                continue
            try:
                with open(path, encoding="utf-8") as handle:
                    content = handle.read()
            except OSError:
                continue
            match = replacement_re.search(content)
            new_name = f"{target_plugin}:{match.group(1)}" if match else ""
            aliases.append((f"{target_plugin}:{name}", new_name))
    return sorted(aliases, key=lambda alias: alias[0])


def _trim_git(url: str) -> str:
    return url[: -len(".git")] if url.endswith(".git") else url


# --- Markdown sections ---


def _plugins_section(plugins: InstalledPlugins) -> str:
    keys = sorted(plugins)
    out = [
        f"## Plugins ({len(keys)})\n\n",
        "| # | Name | Description | Source | Install |\n",
        "|---|------|-------------|--------|--------|\n",
    ]
    for number, key in enumerate(keys, 1):
        instances = plugins[key]
        if not instances:
            continue
        instance = instances[0]
        plugin_name, _, marketplace = key.partition("@")
        meta = load_plugin_meta(instance.install_path)
        name = meta.name or plugin_name
        ver = meta.version or instance.version

        name_display = f"**{name}**"
        if is_semantic_version(ver):
            name_display = f"**{name}** (v{ver})"

        source = ""
        if meta.repository:
            slug = github_slug(meta.repository) or meta.repository
            source = f"[{slug}]({meta.repository}) via `{marketplace}`"
        elif marketplace:
            source = f"`{marketplace}`"

        out.append(
            f"| {number} | {name_display} | {meta.description} | {source} "
            f"| `/plugin install {plugin_name}@{marketplace}` |\n"
        )
    out.append("\n---\n\n")
    return "".join(out)


def skills_section(
    plugins: InstalledPlugins,
    skill_lock: SkillLock,
    plugin_repo_map: Mapping[str, str],
    plugin_skill_names: Mapping[str, str],
) -> str:
    """Render the ``## Skills`` section, leaving out standalone duplicates of plugin skills."""
    home = _home()

    sp_skills: list[str] = []
    sp_source = sp_source_url = ""
    groups: dict[str, _SkillGroup] = {}

    for skill_name in sorted(skill_lock):
        entry = skill_lock[skill_name]
        if entry.source in plugin_repo_map:
            sp_skills.append(skill_name)
            sp_source, sp_source_url = entry.source, entry.source_url
            continue
        desc = extract_description(os.path.join(home, ".agents", "skills", skill_name, "SKILL.md"))
        group = groups.setdefault(entry.source, _SkillGroup(entry.source, entry.source_url))
        group.skills.append((skill_name, desc))

    duplicates = sorted(
        (name, plugin_skill_names[name])
        for group in groups.values()
        for name, _desc in group.skills
        if name in plugin_skill_names
    )
    duplicate_names = {name for name, _ in duplicates}

    for source in list(groups):
        group = groups[source]
        group.skills = [skill for skill in group.skills if skill[0] not in duplicate_names]
        if not group.skills:
            del groups[source]

    standalone_count = sum(len(group.skills) for group in groups.values())
    total = standalone_count + _count_plugin_provided_skills(plugins)

    out = [
        f"## Skills ({total})\n\n",
        "Install skills globally with `npx skills add <repo> -g -s <skill-name>`. "
        "Add `-l` to list available skills before installing.\n\n",
    ]

    if sp_skills:
        sp_plugin = plugin_repo_map[sp_source]
        out.append(
            f"> **Note:** The {len(sp_skills)} [{sp_source}]({_trim_git(sp_source_url)}) skills "
            f"({', '.join(sorted(sp_skills))}) are provided by the **{sp_plugin} plugin** and invoked "
            f"via the `{sp_plugin}:` prefix (e.g., `{sp_plugin}:brainstorming`). "
            "They are not installed as standalone skills.\n"
        )
        aliases = _find_deprecated_aliases(plugins, sp_plugin)
        if aliases:
            out.append(">\n")
            out.append(
                "> **Deprecated aliases:** The following superpowers skill names are deprecated "
                "but still functional:\n"
            )
            out.extend(f"> - `{old}` \u2192 use `{new}`\n" for old, new in aliases)
        out.append("\n")

    for source in sorted(groups):
        group = groups[source]
        word = "skill" if len(group.skills) == 1 else "skills"
        out.append(f"### From [{source}]({_trim_git(group.source_url)}) ({len(group.skills)} {word})\n\n")
        out.append("| Skill | Description | Install |\n")
        out.append("|-------|-------------|--------|\n")
        for name, desc in sorted(group.skills):
            out.append(f"| `{name}` | {desc} | `npx skills add {source} -g -s {name}` |\n")
        out.append("\n")

    out.append("### Plugin-Provided Skills\n\n")
    out.append(
        "Skills exposed by installed plugins, invoked via the `Skill` tool or `/skill-name` shorthand. "
        "These do not require separate installation.\n\n"
    )
    out.append("| Skill | Description | Plugin Source |\n")
    out.append("|-------|-------------|---------------|\n")

    for key, install_path in _first_instances(plugins):
        pname = load_plugin_meta(install_path).name or _bare_name(key)
        for name in _skill_dirs(install_path):
            desc = extract_description(os.path.join(install_path, "skills", name, "SKILL.md"))
            out.append(f"| `{pname}:{name}` | {desc} | {pname} |\n")
        for name, _path, desc in _commands(install_path):
            if not _is_deprecated(desc):
                out.append(f"| `{pname}:{name}` | {desc} | {pname} |\n")

    if duplicates:
        out.append("> **Redundant standalone skills:** These are already provided by plugins and can be removed:\n")
        out.extend(f"> - `npx skills remove {name}`\n" for name, _pname in duplicates)
        out.append("\n")

    out.append("\n---\n\n")
    return "".join(out)


def _agents_section(plugins: InstalledPlugins) -> str:
    rows = []
    for key, install_path in _first_instances(plugins):
        pname = load_plugin_meta(install_path).name or _bare_name(key)
        agents_dir = os.path.join(install_path, "agents")
        for name, is_dir in _dir_entries(agents_dir):
            if is_dir or not name.endswith(".md"):
                continue
            desc = short_description(extract_description(os.path.join(agents_dir, name)))
            rows.append(f"| `{pname}:{name[: -len('.md')]}` | {desc} | {pname} plugin |\n")

    return (
        f"## Custom Agents ({len(rows)})\n\n"
        "| Agent | Description | Provided By |\n"
        "|-------|-------------|-------------|\n" + "".join(rows) + "\n---\n\n"
    )


def _marketplaces_section(marketplaces: Mapping[str, str]) -> str:
    out = [
        f"## Plugin Marketplaces ({len(marketplaces)})\n\n",
        "| Marketplace | Source | Browse |\n",
        "|-------------|--------|--------|\n",
    ]
    for name in sorted(marketplaces):
        repo = marketplaces[name]
        if repo:
            out.append(f"| `{name}` | [{repo}](https://github.com/{repo}) | `/plugins` |\n")
        else:
            out.append(f"| `{name}` | \u2014 | `/plugins` |\n")
    out.append("\n---\n\n")
    return "".join(out)


def _mcp_section(plugins: InstalledPlugins) -> str:
    rows = []
    for _key, install_path in _first_instances(plugins):
        servers = _load_mcp_servers(install_path)
        for name in sorted(servers):
            server = servers[name]
            transport = endpoint = ""
            if server.url:
                transport, endpoint = "HTTP", server.url
            elif server.command:
                transport = "stdio"
                args = " ".join(server.args)
                endpoint = f"`{server.command} {args}`" if args else f"`{server.command}`"
            rows.append(f"| `{name}` | {transport} | {endpoint} |\n")

    return (
        f"## MCP Servers ({len(rows)})\n\n"
        "| Server | Transport | Endpoint |\n"
        "|--------|-----------|----------|\n" + "".join(rows)
    )


def generate() -> str:
    """Build the installed plugins and skills document from the user's home."""
    home = _home()
    plugins = load_installed_plugins(home)
    skill_lock = load_skill_lock(home)

    return "".join(
        [
            "# Claude Code \u2014 Installed Plugins & Skills\n\n",
            f"> Generated: {datetime.date.today().isoformat()}\n\n",
            _plugins_section(plugins),
            skills_section(
                plugins,
                skill_lock,
                build_plugin_repo_map(plugins),
                build_plugin_skill_names(plugins),
            ),
            _agents_section(plugins),
            _marketplaces_section(load_marketplaces(home)),
            _mcp_section(plugins),
        ]
    )


def write_plugins_and_skills(output_path: str | os.PathLike) -> None:
    """Generate the document and write it atomically to ``output_path``."""
    content = generate()
    path = os.fspath(output_path)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    os.replace(tmp, path)