"""Derivation graph between source files, intermediate and final artifacts."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import yaml

from shlibguard.errors import DependencyCycleError


@dataclass(frozen=True)
class DependencyEdge:
    """``artifact`` is derived from ``source``."""

    artifact: str
    source: str


class DependencyGraph:
    def __init__(self, edges: Iterable[DependencyEdge] = ()) -> None:
        self._deps: dict[str, list[str]] = defaultdict(list)
        self._rdeps: dict[str, list[str]] = defaultdict(list)
        self._nodes: dict[str, None] = {}
        for edge in edges:
            self.add_edge(edge.artifact, edge.source)
        self._check_acyclic()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> DependencyGraph:
        return cls(
            DependencyEdge(str(artifact), str(source))
            for artifact, sources in mapping.items()
            for source in sources
        )

    def add_edge(self, artifact: str, source: str) -> None:
        self._nodes.setdefault(artifact)
        self._nodes.setdefault(source)
        if source not in self._deps[artifact]:
            self._deps[artifact].append(source)
            self._rdeps[source].append(artifact)

    @property
    def artifacts(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    @property
    def derived(self) -> tuple[str, ...]:
        """Nodes built from something else, i.e. everything but the sources."""
        return tuple(n for n in self._nodes if self._deps.get(n))

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return tuple(
            DependencyEdge(artifact, source)
            for artifact, sources in self._deps.items()
            for source in sources
        )

    def dependencies(self, artifact: str) -> tuple[str, ...]:
        return tuple(self._deps.get(artifact, ()))

    def dependents(self, artifact: str) -> tuple[str, ...]:
        return tuple(self._rdeps.get(artifact, ()))

    def transitive_dependencies(self, artifact: str) -> frozenset[str]:
        return self._reach(artifact, self._deps)

    def transitive_dependents(self, artifact: str) -> frozenset[str]:
        return self._reach(artifact, self._rdeps)

    @staticmethod
    def _reach(start: str, adjacency: Mapping[str, list[str]]) -> frozenset[str]:
        seen: set[str] = set()
        stack = list(adjacency.get(start, ()))
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(adjacency.get(node, ()))
        return frozenset(seen)

    def _check_acyclic(self) -> None:
        # 0 = unvisited, 1 = on the current path, 2 = done
        state: dict[str, int] = {}
        for root in self._nodes:
            if state.get(root):
                continue
            path: list[str] = [root]
            iters = [iter(self._deps.get(root, ()))]
            state[root] = 1
            while iters:
                node = next(iters[-1], None)
                if node is None:
                    state[path.pop()] = 2
                    iters.pop()
                    continue
                if state.get(node) == 1:
                    raise DependencyCycleError([*path[path.index(node):], node])
                if not state.get(node):
                    state[node] = 1
                    path.append(node)
                    iters.append(iter(self._deps.get(node, ())))


def load_graph(path: str | Path) -> DependencyGraph:
    """Load ``artifact: [inputs, ...]`` from a YAML file."""
    raw = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping of artifact to inputs")
    return DependencyGraph.from_mapping(
        {k: ([v] if isinstance(v, str) else (v or [])) for k, v in raw.items()}
    )
