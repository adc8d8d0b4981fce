"""
Pre-build hooks keyed by base identifier.

A hook runs before the from-source build of its package and returns extra
environment variables for that build. Hooks are created once per executor, so
any state they keep (e.g. "already built") lasts for the whole run.

Raising PrerequisiteError from a hook abandons that package's build only.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Callable, Dict, List, Optional

from wheelclosure.errors import PrerequisiteError
from wheelclosure.loader import BuildContext
from wheelclosure.logs import hdr
from wheelclosure.proc import run_logged

logger = logging.getLogger(__name__)

ARROW_GIT_URL = "https://github.com/apache/arrow.git"

ARROW_CMAKE_OPTIONS = [
    "-DARROW_DEPENDENCY_SOURCE=BUNDLED",
    "-DARROW_BUILD_SHARED=ON",
    "-DARROW_COMPUTE=ON",
    "-DARROW_CSV=ON",
    "-DARROW_DATASET=ON",
    "-DARROW_PARQUET=ON",
    "-DARROW_FILESYSTEM=ON",
    "-DARROW_JSON=ON",
]


class PrebuildHook:
    """Base hook: no prerequisites, no extra environment."""

    # Build log filename for the package; None = default build_<name>.log
    log_name = None

    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    def __call__(self, spec: str) -> Dict[str, str]:
        return {}


class ArrowCppHook(PrebuildHook):
    """
    Builds and installs Arrow C++ once, then points the pyarrow build at it.

    Memoized by the presence of <prefix>/lib/libarrow.so, so a previous run's
    install is reused.
    """

    log_name = "pyarrow_build.log"

    def __init__(self, ctx: BuildContext):
        super().__init__(ctx)
        self._failure: Optional[PrerequisiteError] = None

    @property
    def marker(self) -> Path:
        return self.ctx.arrow_prefix / "lib" / "libarrow.so"

    def build_env(self) -> Dict[str, str]:
        prefix = str(self.ctx.arrow_prefix)
        prev = os.environ.get("CMAKE_PREFIX_PATH", "")
        cmake_opts = os.environ.get("PYARROW_CMAKE_OPTIONS", "")
        return {
            "CMAKE_PREFIX_PATH": f"{prefix}:{prev}" if prev else prefix,
            "Arrow_DIR": str(self.ctx.arrow_prefix / "lib" / "cmake" / "Arrow"),
            "PYARROW_BUNDLE_ARROW_CPP": "0",
            "PYARROW_CMAKE_OPTIONS": f"{cmake_opts} -DCMAKE_FIND_DEBUG_MODE=OFF".strip(),
        }

    def cmake_command(self) -> List[str]:
        cmd = ["cmake", f"-DCMAKE_INSTALL_PREFIX={self.ctx.arrow_prefix}"]
        if platform.machine() == "s390x":
            cmd.append("-DARROW_S390X_ARCH=ON")
        return cmd + ARROW_CMAKE_OPTIONS + [".."]

    def _step(self, spec: str, what: str, cmd: List[str], log_name: str, cwd: Optional[Path] = None) -> None:
        log_path = self.ctx.build_log(log_name)
        logger.info("%s -> %s", what, log_path)
        try:
            rc = run_logged(cmd, log_path, cwd=cwd)
        except OSError as e:
            logger.error("Arrow %s failed: %s", what, e)
            raise PrerequisiteError(spec, f"Arrow C++ {what} failed: {e}", log_path) from e
        if rc != 0:
            logger.error("Arrow %s failed", what)
            raise PrerequisiteError(spec, f"Arrow C++ {what} failed (exit {rc})", log_path)

    def ensure_arrow(self, spec: str) -> None:
        if self.marker.is_file():
            logger.info("Arrow C++ already present at %s", self.ctx.arrow_prefix)
            return

        hdr(logger, f"BUILD: Arrow C++ ({platform.machine()}) - required for PyArrow")
        src = self.ctx.arrow_src
        if not src.is_dir():
            self._step(spec, "git clone", ["git", "clone", ARROW_GIT_URL, str(src)], "arrow_clone.out")

        build_dir = src / "cpp" / f"build_{platform.machine()}"
        try:
            build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Arrow build dir %s unusable: %s", build_dir, e)
            raise PrerequisiteError(spec, f"Arrow C++ build dir {build_dir} unusable: {e}") from e
        self._step(spec, "cmake configure", self.cmake_command(), "arrow_cmake.out", cwd=build_dir)
        jobs = os.cpu_count() or 1
        self._step(spec, f"make -j{jobs}", ["make", f"-j{jobs}"], "arrow_make.out", cwd=build_dir)
        self._step(spec, "make install", ["make", "install"], "arrow_install.out", cwd=build_dir)
        logger.info("Arrow C++ installed at %s", self.ctx.arrow_prefix)

    def __call__(self, spec: str) -> Dict[str, str]:
        # a failed prerequisite build is not retried within the run
        if self._failure is not None:
            raise PrerequisiteError(spec, "Arrow C++ build failed earlier in this run", self._failure.log_path)
        try:
            self.ensure_arrow(spec)
        except PrerequisiteError as e:
            self._failure = e
            raise
        return self.build_env()


HookFactory = Callable[[BuildContext], PrebuildHook]

PREBUILD_HOOKS: Dict[str, HookFactory] = {
    "pyarrow": ArrowCppHook,
}
