"""
Result types for builds, closure walks and seed processing.

The discovered dependency graph uses resolvelib's DirectedGraph with base
identifiers as vertices; an edge parent -> child means parent depends on child.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from resolvelib.structs import DirectedGraph


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one successful external build."""

    spec: str
    base: str
    log_path: Path
    # Wheels pip reported as "Saved ..." in the build log
    saved: Tuple[Path, ...] = ()


@dataclass
class ClosureReport:
    """What one closure walk did."""

    seeded: List[str] = field(default_factory=list)
    attempted: List[str] = field(default_factory=list)
    built: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    produced: List[Path] = field(default_factory=list)
    skipped: int = 0
    have: int = 0
    graph: DirectedGraph = field(default_factory=DirectedGraph)

    @property
    def built_any(self) -> bool:
        return bool(self.built)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def add_edge(self, parent: str, child: str) -> None:
        for v in (parent, child):
            if v not in self.graph:
                self.graph.add(v)
        if parent != child and not self.graph.connected(parent, child):
            self.graph.connect(parent, child)

    def dependency_tree(self) -> Dict[str, Any]:
        """Plain nodes/edges view of the discovered graph (for JSON dumps)."""
        nodes = sorted(self.graph)
        edges = [(p, c) for p in nodes for c in sorted(self.graph.iter_children(p))]
        return {
            "seeded": list(self.seeded),
            "nodes": nodes,
            "edges": edges,
            "built": list(self.built),
            "failures": list(self.failures),
            "produced": [p.name for p in self.produced],
        }


@dataclass
class SeedResult:
    """Validation and closure outcome for one seed wheel."""

    wheel: Path
    valid: bool
    requirements: List[str] = field(default_factory=list)
    report: Optional[ClosureReport] = None

    @property
    def failed(self) -> int:
        return self.report.failed if self.report is not None else 0
