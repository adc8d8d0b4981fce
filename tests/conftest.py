"""
Shared fixtures: hand-built wheel archives and a fake build executor that
"builds" by writing wheels into the store.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from wheelclosure.errors import BuildError, PrerequisiteError
from wheelclosure.logs import ROOT_LOGGER
from wheelclosure.metadata import MetadataReader
from wheelclosure.names import base_name_from_spec
from wheelclosure.store import ArtifactStore
from wheelclosure.structures import BuildResult


def wheel_filename(name: str, version: str) -> str:
    return f"{name.replace('-', '_')}-{version}-py3-none-any.whl"


def make_wheel(
    directory: Path,
    name: str,
    version: str = "1.0",
    requires: Sequence[str] = (),
    filename: Optional[str] = None,
) -> Path:
    """Write a minimal wheel whose METADATA declares `requires`."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (filename or wheel_filename(name, version))
    dist_info = f"{name.replace('-', '_')}-{version}.dist-info"
    lines = ["Metadata-Version: 2.1", f"Name: {name}", f"Version: {version}"]
    lines += [f"Requires-Dist: {r}" for r in requires]
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{dist_info}/METADATA", "\n".join(lines) + "\n")
        zf.writestr(f"{dist_info}/WHEEL", "Wheel-Version: 1.0\n")
    return path


# base -> list of (name, version, requires) wheels the build writes
Recipe = List[Tuple[str, str, Sequence[str]]]


class FakeExecutor:
    """Stands in for BuildExecutor; records every build call."""

    def __init__(
        self,
        store_dir: Path,
        recipes: Optional[Dict[str, Recipe]] = None,
        fail: Sequence[str] = (),
        prerequisite_fail: Sequence[str] = (),
    ):
        self.store_dir = Path(store_dir)
        self.recipes = dict(recipes or {})
        self.fail = set(fail)
        self.prerequisite_fail = set(prerequisite_fail)
        self.calls: List[str] = []

    def build(self, spec: str) -> BuildResult:
        self.calls.append(spec)
        base = base_name_from_spec(spec)
        if base in self.prerequisite_fail:
            raise PrerequisiteError(spec, "native prerequisite failed")
        if base in self.fail:
            raise BuildError(spec, "pip wheel exited 1")
        for name, version, requires in self.recipes.get(base, [(base, "1.0", ())]):
            make_wheel(self.store_dir, name, version, requires)
        return BuildResult(spec=spec, base=base, log_path=self.store_dir / "build.log")

    def bases(self) -> List[str]:
        return [base_name_from_spec(s) for s in self.calls]


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    d = tmp_path / "wheelhouse"
    d.mkdir()
    return d


@pytest.fixture
def store(store_dir: Path) -> ArtifactStore:
    return ArtifactStore(store_dir)


@pytest.fixture
def reader() -> MetadataReader:
    return MetadataReader()
