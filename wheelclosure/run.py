#!/usr/bin/env python3
"""
Validate seed wheels and build their full dependency closure from source.

Discovers *.whl in the seed directory (default: cwd), smoke-tests each one with
a --no-deps install, copies the valid ones into the store, then builds every
missing transitive dependency with `pip wheel --no-binary=:all:`.

Usage:
  python -m wheelclosure.run [STORE_DIR] [LOG_DIR] [--seed-dir DIR] [--debug]

Exit status is 1 if any seed's closure walk had a failed build, else 0.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from wheelclosure.entrypoint import WheelhouseRunner, discover_seeds
from wheelclosure.loader import (
    DEFAULT_LOG_DIR,
    DEFAULT_STORE_DIR,
    BuildContext,
    load_context,
)
from wheelclosure.logs import bullets, hdr, rule, setup_logging
from wheelclosure.proc import run_capture, run_logged
from wheelclosure.store import ArtifactStore

logger = logging.getLogger("wheelclosure.run")

TOOL_PACKAGES = ["pip", "setuptools", "wheel", "packaging"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Validate seed wheels and build their transitive dependency closure from source."
    )
    ap.add_argument("store_dir", nargs="?", default=DEFAULT_STORE_DIR, help="Output wheel directory")
    ap.add_argument("log_dir", nargs="?", default=DEFAULT_LOG_DIR, help="Build/validation log directory")
    ap.add_argument("--seed-dir", default=None, help="Directory holding seed *.whl files (default: cwd)")
    ap.add_argument("--python", dest="py_bin", default=None, help="Build venv python (default: $PY_BIN)")
    ap.add_argument("--pip", dest="pip_bin", default=None, help="Build venv pip (default: $PIP_BIN)")
    ap.add_argument("--arrow-prefix", default=None, help="Install prefix for the Arrow C++ prerequisite")
    ap.add_argument("--skip-tool-upgrade", action="store_true", help="Do not upgrade pip/setuptools/wheel first")
    ap.add_argument("--debug", action="store_true", help="Write each closure graph as JSON into the log dir")
    return ap.parse_args(argv)


def env_check(ctx: BuildContext) -> None:
    hdr(logger, "ENV CHECK")
    py = run_capture([ctx.py_bin, "-c", "import sys; print(sys.version)"])
    pip = run_capture([ctx.py_bin, "-m", "pip", "--version"])
    logger.info("Python: %s", py or "(unavailable)")
    logger.info("pip:    %s", pip or "(unavailable)")
    rule(logger)


def ensure_tools(ctx: BuildContext) -> None:
    """Upgrade the build venv's packaging tools once per run."""
    log_path = ctx.build_log("tools_upgrade.log")
    try:
        rc = run_logged([ctx.pip_bin, "install", "--upgrade"] + TOOL_PACKAGES, log_path)
    except OSError as e:
        logger.warning("tool upgrade failed: %s", e)
        return
    if rc != 0:
        logger.warning("tool upgrade exited %d, see %s", rc, log_path)


def summarize(ctx: BuildContext, failed: int) -> int:
    hdr(logger, "PHASE 4: SUMMARY")
    store = ArtifactStore(ctx.store_dir)
    wheels = store.wheels()
    logger.info("Validated wheels directory (%s):", ctx.store_dir)
    bullets(logger, [p.name for p in wheels])
    rule(logger)
    logger.info("Total wheels present: %d", len(wheels))
    if failed > 0:
        logger.warning("Completed with %d failure(s). See logs in: %s", failed, ctx.log_dir)
        return 1
    logger.info("Completed successfully. Logs: %s", ctx.log_dir)
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    ctx = load_context(
        store_dir=args.store_dir,
        log_dir=args.log_dir,
        seed_dir=args.seed_dir,
        py_bin=args.py_bin,
        pip_bin=args.pip_bin,
        arrow_prefix=args.arrow_prefix,
        upgrade_tools=not args.skip_tool_upgrade,
        debug=args.debug,
    )
    setup_logging(ctx.log_dir)

    env_check(ctx)
    if ctx.upgrade_tools:
        ensure_tools(ctx)

    hdr(logger, "PHASE 1: DISCOVERY")
    seeds = discover_seeds(ctx.seed_dir)
    if not seeds:
        logger.info("No *.whl files found in %s", ctx.seed_dir)
        return 0
    logger.info("Found %d wheel(s):", len(seeds))
    bullets(logger, [p.name for p in seeds])
    rule(logger)

    results = WheelhouseRunner(ctx).run_all(seeds, progress=True)
    failed = sum(1 for r in results if r.failed)
    return summarize(ctx, failed)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
