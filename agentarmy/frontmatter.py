"""Minimal YAML-style frontmatter parsing and single-field rewriting."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Iterable

_FIELD_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*):\s*(.*)")
_BLOCK_ITEM_RE = re.compile(r"^\s+-\s+(.*)")


@dataclass
class Value:
    """A frontmatter value: either a scalar string or a list of strings."""

    scalar: str = ""
    items: list[str] = field(default_factory=list)
    is_list: bool = False


class Frontmatter(dict):
    """Mapping of frontmatter field names to their values."""

    def string_val(self, key: str, default: str) -> str:
        """Return the scalar value, or ``default`` if missing, a list, or empty."""
        value = self.get(key)
        if value is None or value.is_list or value.scalar == "":
            return default
        return value.scalar

    def list_val(self, key: str) -> list[str] | None:
        """Return the list value, or None if missing or blank.

        A non-empty scalar is coerced to a single-element list.
        """
        value = self.get(key)
        if value is None:
            return None
        if value.is_list:
            return list(value.items)
        scalar = value.scalar.strip()
        return [scalar] if scalar else None


def parse_frontmatter(content: str) -> Frontmatter:
    """Parse frontmatter between the first two ``---`` lines."""
    lines = _extract_frontmatter_lines(content)
    if not lines:
        return Frontmatter()
    return _parse_lines(lines)


def extract_h1(content: str) -> str:
    """Return the first ``# Heading`` text after the frontmatter, or ''."""
    past_frontmatter = False
    dash_count = 0
    for line in content.split("\n"):
        if line.rstrip(" \t\r") == "---":
            dash_count += 1
            if dash_count >= 2:
                past_frontmatter = True
            continue
        if not past_frontmatter and dash_count == 0:
            past_frontmatter = True
        if past_frontmatter and line.startswith("# "):
            return line[2:].strip()
    return ""


def _extract_frontmatter_lines(content: str) -> list[str] | None:
    lines = content.split("\n")
    start = None
    for index, line in enumerate(lines):
        if line.rstrip(" \t\r") == "---":
            if start is None:
                start = index + 1
            else:
                return lines[start:index]
    return None


def _parse_lines(lines: list[str]) -> Frontmatter:
    result = Frontmatter()
    index = 0
    while index < len(lines):
        match = _FIELD_RE.match(lines[index])
        if match is None:
            index += 1
            continue

        key = match.group(1)
        raw_value = match.group(2).strip()

        if raw_value.startswith("["):
            result[key] = Value(items=_parse_inline_list(raw_value), is_list=True)
            index += 1
            continue

        if raw_value == "":
            block_items = _parse_block_list(lines, index + 1)
            if block_items is not None:
                result[key] = Value(items=block_items, is_list=True)
                index += 1 + len(block_items)
                continue
            result[key] = Value(scalar="")
            index += 1
            continue

        result[key] = Value(scalar=_strip_quotes(raw_value))
        index += 1
    return result


def _parse_inline_list(raw: str) -> list[str]:
    inner = raw.strip("[]").strip()
    if not inner:
        return []
    return [_strip_quotes(part.strip()) for part in inner.split(",") if part.strip()]


def _parse_block_list(lines: list[str], start: int) -> list[str] | None:
    items = []
    for line in lines[start:]:
        match = _BLOCK_ITEM_RE.match(line)
        if match is None:
            break
        items.append(_strip_quotes(match.group(1).strip()))
    return items or None


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def format_field_line(field: str, values: Iterable[str] | None) -> str:
    """Build a frontmatter line such as ``field: [a, b]``."""
    return f"{field}: [{', '.join(values or [])}]"


def write_field(file_path: str | os.PathLike, field: str, values: Iterable[str] | None) -> None:
    """Replace or insert a list field in a file's frontmatter, atomically."""
    path = os.fspath(file_path)
    with open(path, encoding="utf-8", newline="") as handle:
        content = handle.read()

    updated = _replace_or_insert_field(content, field, format_field_line(field, values))

    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8", newline="") as handle:
        handle.write(updated)
    os.replace(tmp_path, path)


def _split_keep_ends(text: str) -> list[str]:
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _replace_or_insert_field(content: str, field: str, new_line: str) -> str:
    dash_count = 0
    replaced = False
    prefix = field + ":"
    result = []

    for line in _split_keep_ends(content):
        stripped = line.rstrip("\n\r")

        if stripped == "---":
            dash_count += 1
            if dash_count == 2 and not replaced:
                result.append(new_line + "\n")
                replaced = True
            result.append(line)
            continue

        if dash_count == 1 and not replaced and stripped.startswith(prefix):
            result.append(new_line + "\n")
            replaced = True
            continue

        result.append(line)

    return "".join(result)