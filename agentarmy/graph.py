"""Dependency graph helpers: transitive closure and redundancy detection."""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable

from agentarmy.model import Redundancy

DepsFunc = Callable[[str], Iterable[str]]


def resolve_transitive(seeds: Iterable[str], get_deps: DepsFunc) -> list[str]:
    """Walk the graph breadth-first from ``seeds``; return nodes in discovery order."""
    queue = deque(seeds)
    visited: set[str] = set()
    result: list[str] = []
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        result.append(current)
        queue.extend(get_deps(current) or ())
    return result


def find_redundant(entries: list[str], get_deps: DepsFunc) -> list[Redundancy]:
    """Find entries transitively covered by another entry.

    At most one redundancy is reported per target: the first covering entry.
    """
    redundancies = []
    for i, target in enumerate(entries):
        for j, other in enumerate(entries):
            if i == j:
                continue
            if target in resolve_transitive([other], get_deps):
                redundancies.append(Redundancy(target=target, covered_by=other))
                break
    return redundancies