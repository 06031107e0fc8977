"""Render orchestrator files and settings from templates into a destination."""

from __future__ import annotations

import json
import os
from typing import Any, Iterable

from agentarmy.model import Plugin
from agentarmy.transform import write_output

BASE_PLACEHOLDER = "{{BASE}}"

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _read_text(path: str | os.PathLike) -> str:
    with open(os.fspath(path), encoding="utf-8", newline="") as handle:
        return handle.read()


def _prefix_for(dest: str | os.PathLike, dirname: str) -> str:
    dest = os.fspath(dest)
    home = os.path.expanduser("~")
    if home != "~":
        global_dir = os.path.join(home, dirname)
        if os.path.normpath(dest) == os.path.normpath(global_dir):
            return "~/" + dirname
    if os.path.basename(os.path.normpath(dest)) == dirname:
        return dirname
    return dest


def dest_prefix(dest: str | os.PathLike) -> str:
    """Return the display prefix for a Claude destination.

    The global directory becomes ``~/.claude``, a project-local one ``.claude``,
    and any other path is returned as given.
    """
    return _prefix_for(dest, ".claude")


def cursor_dest_prefix(dest: str | os.PathLike) -> str:
    """Return the display prefix for a Cursor destination."""
    return _prefix_for(dest, ".cursor")


def generate_claude_md(dest: str | os.PathLike, template_path: str | os.PathLike) -> None:
    """Write ``CLAUDE.md`` into ``dest`` from the template, filling in ``{{BASE}}``."""
    content = _read_text(template_path).replace(BASE_PLACEHOLDER, dest_prefix(dest))
    write_output(dest, "CLAUDE.md", content)


def generate_agents_md(dest: str | os.PathLike, template_path: str | os.PathLike) -> None:
    """Write ``AGENTS.md`` into ``dest`` from the template, filling in ``{{BASE}}``."""
    content = _read_text(template_path).replace(BASE_PLACEHOLDER, cursor_dest_prefix(dest))
    write_output(dest, "AGENTS.md", content)


def build_enabled_plugins(plugins: Iterable[Plugin] | None) -> dict[str, bool]:
    """Map ``name@marketplace`` to True; plugins without a marketplace are skipped."""
    return {
        f"{plugin.name}@{plugin.marketplace}": True
        for plugin in plugins or ()
        if plugin.name and plugin.marketplace
    }


def _dump_json(value: Any) -> str:
    text = json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text


def generate_settings(
    dest: str | os.PathLike,
    template_path: str | os.PathLike,
    plugins: Iterable[Plugin] | None,
) -> None:
    """Write ``settings.json`` with ``enabledPlugins`` derived from ``plugins``.

    The plugin metadata sections of the template are left out of the output.
    Raises ValueError if the template is not a JSON object.
    """
    settings = json.loads(_read_text(template_path))
    if not isinstance(settings, dict):
        raise ValueError(f"settings template {os.fspath(template_path)} is not a JSON object")

    enabled = build_enabled_plugins(plugins)
    if enabled:
        settings["enabledPlugins"] = enabled

    settings.pop("external_plugins", None)
    settings.pop("external_skills", None)

    write_output(dest, "settings.json", _dump_json(settings) + "\n")