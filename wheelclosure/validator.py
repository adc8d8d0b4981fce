"""
Structural validation of seed wheels: a --no-deps install into a throwaway dir.

Passing means the wheel itself installs, not that its dependencies resolve.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List

from wheelclosure.errors import ValidationError
from wheelclosure.loader import BuildContext
from wheelclosure.proc import run_logged

logger = logging.getLogger(__name__)


class Validator:
    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    def log_path(self, wheel: Path) -> Path:
        return self.ctx.build_log(f"validate_{wheel.name}.log")

    def command(self, wheel: Path, target: Path) -> List[str]:
        return [self.ctx.pip_bin, "install", "--no-deps", "--target", str(target), str(wheel)]

    def validate(self, wheel: Path) -> None:
        """Raises ValidationError if the isolated install fails."""
        wheel = Path(wheel)
        log_path = self.log_path(wheel)
        with tempfile.TemporaryDirectory(prefix="wheelclosure-validate-") as tmp:
            try:
                rc = run_logged(self.command(wheel, Path(tmp)), log_path)
            except OSError as e:
                raise ValidationError(wheel, log_path) from e
        if rc != 0:
            raise ValidationError(wheel, log_path)

    def accept(self, wheel: Path) -> Path:
        """Copy a validated wheel into the store; returns the stored path."""
        dest = self.ctx.store_dir / Path(wheel).name
        shutil.copy2(wheel, dest)
        return dest
