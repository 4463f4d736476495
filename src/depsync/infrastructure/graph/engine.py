"""GraphEngine — NetworkX view of the resolved package graph.

Rebuilt per invocation, no cross-invocation cache. Nodes are package ids
carrying their category; edges point from consumer to dependency and carry
the edge reason. Reachability sets are memoized per node for the lifetime
of the engine.
"""

from __future__ import annotations

from collections.abc import Mapping

import networkx as nx

from depsync.domain.models import ResolvedProject

type _Graph = nx.DiGraph


class GraphEngine:
    """Lazy-building graph over resolved projects."""

    def __init__(self, projects: Mapping[str, ResolvedProject]) -> None:
        self._projects = projects
        self._graph: _Graph | None = None
        self._descendants: dict[str, frozenset[str]] = {}
        self._ancestors: dict[str, frozenset[str]] = {}

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        """Build a DiGraph from resolved projects.

        Adds every project first so isolated packages are visible to the
        algorithms, then one edge per resolved dependency. Edges to ids
        outside *projects* (ignored projects) still get a node.
        """
        g: _Graph = nx.DiGraph()
        for project_id in sorted(self._projects):
            resolved = self._projects[project_id]
            g.add_node(project_id, category=str(resolved.project.category))

        for project_id in sorted(self._projects):
            for dep_id, dep in sorted(self._projects[project_id].dependencies.items()):
                if dep_id not in g:
                    g.add_node(dep_id, category=str(dep.dependency.category))
                g.add_edge(project_id, dep_id, reason=str(dep.reason))
        return g

    def descendants(self, node_id: str) -> frozenset[str]:
        """Everything *node_id* reaches, excluding itself."""
        cached = self._descendants.get(node_id)
        if cached is None:
            found = nx.descendants(self.graph, node_id) if node_id in self.graph else set()
            cached = self._descendants[node_id] = frozenset(found)
        return cached

    def ancestors(self, node_id: str) -> frozenset[str]:
        """Everything that reaches *node_id*, excluding itself."""
        cached = self._ancestors.get(node_id)
        if cached is None:
            found = nx.ancestors(self.graph, node_id) if node_id in self.graph else set()
            cached = self._ancestors[node_id] = frozenset(found)
        return cached
