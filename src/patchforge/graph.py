"""Artifact dependency graph: cycle detection and topological ordering."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum

from .errors import CyclicDependencyError

logger = logging.getLogger(__name__)


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class DependencyGraph:
    """Directed graph of artifact names; an edge means "depends on".

    Node order follows insertion order, which keeps every traversal
    deterministic for identical input.
    """

    def __init__(self, edges: Mapping[str, Iterable[str]] | None = None) -> None:
        self._edges: dict[str, list[str]] = {}
        for name, depends in (edges or {}).items():
            self.add(name, depends)

    def add(self, name: str, depends: Iterable[str] = ()) -> None:
        """Add a node with its direct dependencies."""
        targets = self._edges.setdefault(name, [])
        for dep in depends:
            if dep not in targets:
                targets.append(dep)

    def dependencies(self, name: str) -> list[str]:
        return list(self._edges.get(name, []))

    def _walk(self) -> tuple[list[str], list[str] | None]:
        """Depth-first traversal with three-color marking.

        Returns the post-order (dependencies first) and the first cycle found,
        if any. Dependencies that are not nodes of the graph are leaves.
        """
        marks = {name: _Mark.UNVISITED for name in self._edges}
        order: list[str] = []

        for root in self._edges:
            if marks[root] is not _Mark.UNVISITED:
                continue

            # path and pending advance together; pending holds each node's unexplored deps
            path: list[str] = [root]
            pending: list[Iterator[str]] = [iter(self._edges[root])]
            marks[root] = _Mark.IN_PROGRESS

            while path:
                dep = next(pending[-1], None)
                if dep is None:
                    name = path.pop()
                    pending.pop()
                    marks[name] = _Mark.DONE
                    order.append(name)
                    continue

                mark = marks.get(dep, _Mark.DONE)
                if mark is _Mark.IN_PROGRESS:
                    return order, path[path.index(dep) :]
                if mark is _Mark.UNVISITED:
                    marks[dep] = _Mark.IN_PROGRESS
                    path.append(dep)
                    pending.append(iter(self._edges[dep]))

        return order, None

    def find_cycle(self) -> list[str] | None:
        """Return the names forming the first cycle found, or None if acyclic."""
        _, cycle = self._walk()
        return cycle

    def check_acyclic(self) -> None:
        """Raise CyclicDependencyError if the graph contains a cycle."""
        cycle = self.find_cycle()
        if cycle is not None:
            raise CyclicDependencyError(cycle)
        logger.debug("Dependency graph with %d node(s) is acyclic", len(self))

    def topological_order(self) -> list[str]:
        """Return every node with its dependencies before its dependents."""
        order, cycle = self._walk()
        if cycle is not None:
            raise CyclicDependencyError(cycle)
        return order

    def __contains__(self, name: object) -> bool:
        return name in self._edges

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        edge_count = sum(len(deps) for deps in self._edges.values())
        return f"DependencyGraph(nodes={len(self._edges)}, edges={edge_count})"
