"""
Build context: paths and toolchain binaries for one wheelhouse run.

Values come from the CLI, with PY_BIN / PIP_BIN environment fallbacks for the
build venv. Creating the context creates the store and log directories.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

DEFAULT_STORE_DIR = "/validated_wheels"
DEFAULT_LOG_DIR = "/work/build_logs"
DEFAULT_PY_BIN = "/venv/bin/python3"
DEFAULT_PIP_BIN = "/venv/bin/pip"
DEFAULT_ARROW_PREFIX = "/usr/local"
DEFAULT_ARROW_SRC = "/tmp/arrow-src"


@dataclass
class BuildContext:
    """Resolved configuration shared by every phase of a run."""

    store_dir: Path
    log_dir: Path
    seed_dir: Path = field(default_factory=Path.cwd)
    py_bin: str = DEFAULT_PY_BIN
    pip_bin: str = DEFAULT_PIP_BIN
    arrow_prefix: Path = Path(DEFAULT_ARROW_PREFIX)
    arrow_src: Path = Path(DEFAULT_ARROW_SRC)
    upgrade_tools: bool = True
    debug: bool = False

    # Marker-environment overrides for Requires-Dist filtering (None = host)
    environment: Optional[Dict[str, str]] = None

    def build_log(self, name: str) -> Path:
        return self.log_dir / name


def load_context(
    store_dir: Optional[str] = None,
    log_dir: Optional[str] = None,
    seed_dir: Optional[str] = None,
    py_bin: Optional[str] = None,
    pip_bin: Optional[str] = None,
    arrow_prefix: Optional[str] = None,
    arrow_src: Optional[str] = None,
    upgrade_tools: bool = True,
    debug: bool = False,
    environment: Optional[Dict[str, str]] = None,
) -> BuildContext:
    """Resolve defaults and create the store and log directories."""
    ctx = BuildContext(
        store_dir=Path(store_dir or DEFAULT_STORE_DIR),
        log_dir=Path(log_dir or DEFAULT_LOG_DIR),
        seed_dir=Path(seed_dir) if seed_dir else Path.cwd(),
        py_bin=py_bin or os.environ.get("PY_BIN", DEFAULT_PY_BIN),
        pip_bin=pip_bin or os.environ.get("PIP_BIN", DEFAULT_PIP_BIN),
        arrow_prefix=Path(arrow_prefix or DEFAULT_ARROW_PREFIX),
        arrow_src=Path(arrow_src or DEFAULT_ARROW_SRC),
        upgrade_tools=upgrade_tools,
        debug=debug,
        environment=environment,
    )
    ctx.store_dir.mkdir(parents=True, exist_ok=True)
    ctx.log_dir.mkdir(parents=True, exist_ok=True)
    return ctx
