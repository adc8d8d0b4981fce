"""
Exceptions raised by the wheelhouse builder.

BuildError and its PrerequisiteError subclass are caught per specifier by the
closure walk; ValidationError is caught per seed by the runner.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class WheelhouseError(Exception):
    """Base class for all wheelclosure errors."""


class BuildError(WheelhouseError):
    """The external build step for one specifier failed."""

    def __init__(self, spec: str, message: str, log_path: Optional[Path] = None):
        super().__init__(f"{spec}: {message}")
        self.spec = spec
        self.log_path = log_path


class PrerequisiteError(BuildError):
    """A native prerequisite (e.g. Arrow C++) could not be built."""


class ValidationError(WheelhouseError):
    """A seed wheel failed the isolated --no-deps install."""

    def __init__(self, wheel: Path, log_path: Optional[Path] = None):
        super().__init__(f"install test failed for {wheel.name}")
        self.wheel = wheel
        self.log_path = log_path
