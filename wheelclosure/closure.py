"""
Transitive dependency closure: breadth-first walk that builds every missing
dependency from source until the queue is empty.

Identity is the base name only. A base is processed at most once per walk
(the seen set), and a base with any wheel already in the store is satisfied
regardless of the requested version. This is not a version solver.

What a build produced is found by diffing store snapshots taken around it, so
only one build may write to the store at a time.
"""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Iterable, List, Optional, Set

from packaging.utils import InvalidWheelFilename, parse_wheel_filename

from wheelclosure.builder import BuildExecutor
from wheelclosure.errors import BuildError
from wheelclosure.logs import bullets, hdr, rule
from wheelclosure.metadata import MetadataReader
from wheelclosure.names import base_name_from_spec
from wheelclosure.store import ArtifactStore
from wheelclosure.structures import BuildResult, ClosureReport

logger = logging.getLogger(__name__)


def wheel_base(wheel: Path, default: str) -> str:
    """Project name of a wheel file, or `default` if the filename is not PEP 427."""
    try:
        name, _, _, _ = parse_wheel_filename(wheel.name)
    except InvalidWheelFilename:
        return default
    return str(name)


class ClosureBuilder:
    """
    Owns the build queue and seen set for one walk at a time.

    `executor` needs a `build(spec) -> BuildResult` that raises BuildError on
    failure; `reader` needs `requires(wheel) -> list[str]`.
    """

    def __init__(
        self,
        store: ArtifactStore,
        executor: BuildExecutor,
        reader: MetadataReader,
        normalize: Callable[[str], str] = base_name_from_spec,
    ):
        self.store = store
        self.executor = executor
        self.reader = reader
        self.normalize = normalize
        self.queue: Deque[str] = deque()
        self.seen: Set[str] = set()

    def _mark_seen(self, base: str) -> None:
        # insert-once; nothing is ever removed during a walk
        if base in self.seen:
            raise ValueError(f"{base} already processed in this walk")
        self.seen.add(base)

    def _produced(self, spec: str, base: str, before: Set[str], result: BuildResult) -> List[Path]:
        produced = self.store.new_since(before)
        if produced:
            logger.info("Produced:")
            bullets(logger, [p.name for p in produced], indent="    ")
            return produced

        if self.store.has_base(base):
            logger.info("[have] %s present after build.", base)
            return []

        saved = [p for p in result.saved if p.is_file()]
        if saved:
            logger.info("Produced (from build log):")
            bullets(logger, [p.name for p in saved], indent="    ")
            return saved

        logger.warning("Built %s but could not determine produced wheel(s)", spec)
        return []

    def _enqueue_deps(self, wheels: Iterable[Path], parent: str, report: ClosureReport) -> None:
        for w in wheels:
            reqs = self.reader.requires(w)
            if not reqs:
                logger.info("deps(%s): (none)", w.name)
                continue
            logger.info("deps(%s):", w.name)
            bullets(logger, reqs, indent="    ")
            owner = wheel_base(w, parent)
            for r in reqs:
                self.queue.append(r)
                child = self.normalize(r)
                if child:
                    report.add_edge(owner, child)

    def step(self, spec: str, report: ClosureReport) -> None:
        """Process one dequeued specifier."""
        if not spec or not spec.strip():
            return
        base = self.normalize(spec)
        if not base:
            return

        if base in self.seen:
            logger.info("[skip] already processed: %s", spec)
            report.skipped += 1
            return
        self._mark_seen(base)

        if self.store.has_base(base):
            logger.info("[have] wheel exists for: %s", base)
            report.have += 1
            return

        before = self.store.snapshot()
        report.attempted.append(spec)
        try:
            result = self.executor.build(spec)
        except BuildError as e:
            logger.warning("Continuing after failed build of: %s (%s)", spec, e)
            report.failures.append(spec)
            return

        report.built.append(spec)
        produced = self._produced(spec, base, before, result)
        report.produced.extend(produced)
        self._enqueue_deps(produced, base, report)

    def run(self, initial: Iterable[str], root: Optional[str] = None) -> ClosureReport:
        """
        Walk the closure of `initial` and return what happened.

        `root` names the package whose dependencies these are; it only labels
        the discovered graph.
        """
        self.queue = deque(initial)
        self.seen = set()
        report = ClosureReport(seeded=list(self.queue))

        hdr(logger, "PHASE 3b: TRANSITIVE DEPENDENCIES (closure walk)")
        logger.info("Seeded specs:")
        bullets(logger, report.seeded)
        rule(logger)

        if root:
            for spec in report.seeded:
                child = self.normalize(spec)
                if child:
                    report.add_edge(root, child)

        while self.queue:
            spec = self.queue.popleft()
            self.step(spec, report)
            rule(logger)

        if report.failures:
            logger.warning("Closure walk finished with %d failure(s)", report.failed)
        return report


def run_closure(
    initial: Iterable[str],
    store: ArtifactStore,
    executor: BuildExecutor,
    reader: MetadataReader,
) -> bool:
    """One-shot walk; True if at least one build step succeeded."""
    return ClosureBuilder(store, executor, reader).run(initial).built_any
