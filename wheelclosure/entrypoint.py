"""
Entrypoint: wire the store, executor and metadata reader once, then process
seed wheels one at a time (validate -> direct deps -> closure walk).
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from tqdm import tqdm

from wheelclosure.builder import BuildExecutor
from wheelclosure.closure import ClosureBuilder
from wheelclosure.errors import ValidationError
from wheelclosure.loader import BuildContext
from wheelclosure.logs import bullets, hdr, rule
from wheelclosure.metadata import MetadataReader
from wheelclosure.names import normalize_name
from wheelclosure.store import ArtifactStore
from wheelclosure.structures import SeedResult
from wheelclosure.validator import Validator

logger = logging.getLogger(__name__)


def discover_seeds(seed_dir: Path) -> List[Path]:
    """*.whl files directly in seed_dir, sorted by name."""
    return sorted(p for p in Path(seed_dir).glob("*.whl") if p.is_file())


class WheelhouseRunner:
    """
    Holds the collaborators for a run. Call process_one() per seed wheel.

    Collaborators can be injected (tests use a fake executor); by default they
    are built from the context.
    """

    def __init__(
        self,
        ctx: BuildContext,
        executor: Optional[BuildExecutor] = None,
        reader: Optional[MetadataReader] = None,
        validator: Optional[Validator] = None,
    ):
        self.ctx = ctx
        self.store = ArtifactStore(ctx.store_dir)
        self.executor = executor if executor is not None else BuildExecutor(ctx)
        self.reader = reader if reader is not None else MetadataReader(ctx.environment)
        self.validator = validator if validator is not None else Validator(ctx)

    def closure_builder(self) -> ClosureBuilder:
        return ClosureBuilder(self.store, self.executor, self.reader)

    def _validate(self, wheel: Path) -> bool:
        hdr(logger, f"PHASE 2: STRUCTURAL VALIDATION -> {wheel.name}")
        logger.info("Install test (no-deps)... log: %s", self.validator.log_path(wheel))
        try:
            self.validator.validate(wheel)
        except ValidationError:
            logger.warning("Validation failed - will still analyze deps from METADATA: %s", wheel.name)
            rule(logger)
            return False
        try:
            self.validator.accept(wheel)
        except (OSError, shutil.Error) as e:
            logger.warning("copy failed: %s (%s)", wheel, e)
        else:
            logger.info("Valid -> copied to %s", self.ctx.store_dir)
        rule(logger)
        return True

    def _dump_graph(self, result: SeedResult) -> None:
        path = self.ctx.log_dir / f"closure_{result.wheel.stem}.json"
        with open(path, "w") as f:
            json.dump(result.report.dependency_tree(), f, indent=0)
        logger.info("[debug] closure graph written to %s", path)

    def process_one(self, wheel: Path) -> SeedResult:
        wheel = Path(wheel)
        valid = self._validate(wheel)

        hdr(logger, "PHASE 3: DEPENDENCY RESOLUTION (direct)")
        reqs = self.reader.requires(wheel)
        result = SeedResult(wheel=wheel, valid=valid, requirements=reqs)
        if not reqs:
            logger.info("No Requires-Dist found.")
            return result
        logger.info("Declared dependencies:")
        bullets(logger, reqs)
        rule(logger)

        root = normalize_name(wheel.name.split("-", 1)[0])
        result.report = self.closure_builder().run(reqs, root=root)
        if self.ctx.debug:
            self._dump_graph(result)
        return result

    def run_all(self, wheels: Iterable[Path], progress: bool = False) -> List[SeedResult]:
        results: List[SeedResult] = []
        for whl in tqdm(list(wheels), desc="Seeds", disable=not progress):
            logger.info(">>> Processing: %s", Path(whl).name)
            results.append(self.process_one(whl))
        return results


def process_wheel(ctx: BuildContext, wheel: Path) -> SeedResult:
    """One-shot processing of a single seed wheel."""
    return WheelhouseRunner(ctx).process_one(wheel)
