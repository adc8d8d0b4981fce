"""
Build step executor: one from-source `pip wheel` per specifier into the store.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from wheelclosure.errors import BuildError
from wheelclosure.hooks import PREBUILD_HOOKS, HookFactory, PrebuildHook
from wheelclosure.loader import BuildContext
from wheelclosure.logs import bullets, hdr
from wheelclosure.names import base_name_from_spec
from wheelclosure.proc import run_logged
from wheelclosure.store import parse_saved_from_log
from wheelclosure.structures import BuildResult

logger = logging.getLogger(__name__)


def build_log_name(base: str) -> str:
    """build_<base with non-alphanumerics removed>.log"""
    return f"build_{re.sub(r'[^0-9A-Za-z]', '', base)}.log"


class BuildExecutor:
    """
    Runs `pip wheel --no-binary=:all:` for a specifier, writing into the store.

    Packages with a registered pre-build hook get it run first; the hook's
    environment is passed to that build only.
    """

    def __init__(self, ctx: BuildContext, hooks: Optional[Dict[str, HookFactory]] = None):
        self.ctx = ctx
        self._hook_types = dict(PREBUILD_HOOKS if hooks is None else hooks)
        self._hooks: Dict[str, PrebuildHook] = {}

    def hook_for(self, base: str) -> Optional[PrebuildHook]:
        if base not in self._hook_types:
            return None
        if base not in self._hooks:
            self._hooks[base] = self._hook_types[base](self.ctx)
        return self._hooks[base]

    def command(self, spec: str) -> List[str]:
        return [
            self.ctx.pip_bin,
            "wheel",
            "--wheel-dir",
            str(self.ctx.store_dir),
            "--no-binary=:all:",
            spec,
        ]

    def build(self, spec: str) -> BuildResult:
        """Build `spec` from source. Raises BuildError on any failure."""
        base = base_name_from_spec(spec)
        hook = self.hook_for(base)
        env: Dict[str, str] = {}
        log_name = build_log_name(base)
        if hook is not None:
            env = hook(spec)
            log_name = hook.log_name or log_name
            hdr(logger, f"BUILD: {spec} ({base}) with prerequisites")
        else:
            hdr(logger, f"BUILD: {spec} (source with deps)")

        log_path = self.ctx.build_log(log_name)
        logger.info("Wheel dir: %s  |  Log: %s", self.ctx.store_dir, log_path)
        try:
            rc = run_logged(self.command(spec), log_path, env=env)
        except OSError as e:
            logger.error("Build failed: %s (%s)", spec, e)
            raise BuildError(spec, str(e), log_path) from e
        if rc != 0:
            logger.error("Build failed: %s", spec)
            raise BuildError(spec, f"pip wheel exited {rc}", log_path)

        saved = parse_saved_from_log(log_path)
        if saved:
            logger.info("pip reported saved wheel(s):")
            bullets(logger, [p.name for p in saved])
        return BuildResult(spec=spec, base=base, log_path=log_path, saved=tuple(saved))
