"""
Subprocess helpers: run an external tool with its output captured to a log file.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional


def merged_env(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    env = dict(os.environ)
    if extra:
        env.update(extra)
    return env


def run_logged(
    cmd: List[str],
    log_path: Path,
    env: Optional[Dict[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    """
    Run `cmd` to completion with stdout and stderr written to `log_path`.

    Returns the exit status. A missing executable raises OSError.
    No timeout: a hung tool blocks the caller.
    """
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with open(log_path, "w") as f:
        proc = subprocess.run(
            cmd,
            stdout=f,
            stderr=subprocess.STDOUT,
            env=merged_env(env),
            cwd=str(cwd) if cwd is not None else None,
        )
    return proc.returncode


def run_capture(cmd: List[str]) -> Optional[str]:
    """First line of a command's stdout, or None if it cannot be run."""
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip().replace("\n", " ")
