"""
Read declared dependencies (Requires-Dist) out of a built wheel.

Requirements whose environment marker is false for the target environment are
dropped here, so nothing inapplicable ever reaches the build queue.
"""

from __future__ import annotations

import email
import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

from packaging.markers import default_environment
from packaging.requirements import InvalidRequirement, Requirement

logger = logging.getLogger(__name__)


def target_environment(overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Marker environment of the running interpreter, with optional overrides."""
    env = dict(default_environment())
    if overrides:
        env.update(overrides)
    return env


def _metadata_bytes(zf: zipfile.ZipFile) -> Optional[bytes]:
    metas = [p for p in zf.namelist() if p.endswith("METADATA") and ".dist-info/" in p]
    if not metas:
        return None
    return zf.read(metas[0])


class MetadataReader:
    """Extracts applicable dependency specifiers from wheels."""

    def __init__(self, environment: Optional[Dict[str, str]] = None):
        self.environment = target_environment(environment)

    def applies(self, req: Requirement) -> bool:
        if req.marker is None:
            return True
        return req.marker.evaluate(self.environment)

    def requires(self, wheel: Path) -> List[str]:
        """
        Ordered list of dependency specifiers declared by `wheel`.

        A wheel with no METADATA, or one that cannot be opened, has no
        dependencies as far as the closure walk is concerned.
        """
        try:
            with zipfile.ZipFile(wheel, "r") as zf:
                raw = _metadata_bytes(zf)
        except (zipfile.BadZipFile, OSError) as e:
            logger.debug("cannot read metadata from %s: %s", wheel, e)
            return []
        if raw is None:
            return []

        msg = email.message_from_bytes(raw)
        out: List[str] = []
        for line in msg.get_all("Requires-Dist", []):
            try:
                req = Requirement(line)
            except InvalidRequirement:
                continue
            if not self.applies(req):
                continue
            out.append(str(req))
        return out
