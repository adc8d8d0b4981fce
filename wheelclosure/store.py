"""
Artifact store inspection: list, diff and match wheels in the output directory.

The store is the only way the closure walk observes what a build produced, so
every question ("is this base present?", "what is new?") goes through here.
Only *.whl entries count; anything else in the directory is ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Set

from wheelclosure.names import normalize_name, underscored

WHEEL_GLOB = "*.whl"


class ArtifactStore:
    """View over the shared wheel output directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path(self, filename: str) -> Path:
        return self.root / filename

    def wheels(self) -> List[Path]:
        """All wheels currently in the store, sorted by filename."""
        if not self.root.is_dir():
            return []
        return sorted(p for p in self.root.glob(WHEEL_GLOB) if p.is_file())

    def snapshot(self) -> Set[str]:
        """Point-in-time set of wheel filenames."""
        return {p.name for p in self.wheels()}

    @staticmethod
    def diff(before: Set[str], after: Set[str]) -> Set[str]:
        """Filenames present after but not before."""
        return set(after) - set(before)

    def new_since(self, before: Set[str]) -> List[Path]:
        """Paths of wheels added since `before`, sorted by filename."""
        return [self.path(n) for n in sorted(self.diff(before, self.snapshot()))]

    def _patterns(self, base: str) -> List[str]:
        # canonical names use '-', wheel filenames use '_'; check both
        forms = [base]
        alt = underscored(base)
        if alt != base:
            forms.append(alt)
        return [f"{f}-*.whl" for f in forms]

    def matching(self, base: str) -> List[Path]:
        """
        Wheels for `base`: filenames starting with either separator form of
        it, plus those whose leading name token normalizes to it (dotted or
        mixed-case names such as PyYAML-6.0-...whl).
        """
        if not base or not self.root.is_dir():
            return []
        found: Set[Path] = set(self.guess(base))
        for pattern in self._patterns(base):
            found.update(p for p in self.root.glob(pattern) if p.is_file())
        return sorted(found)

    def has_base(self, base: str) -> bool:
        """True if any wheel for `base` exists, regardless of version."""
        return bool(self.matching(base))

    def guess(self, base: str) -> List[Path]:
        """Wheels whose leading name token normalizes to `base`."""
        if not base:
            return []
        return [p for p in self.wheels() if normalize_name(p.name.split("-", 1)[0]) == base]


def parse_saved_from_log(log_path: Path) -> List[Path]:
    """
    Wheel paths reported by pip as "Saved <path>.whl" in a build log.

    Only paths that exist on disk are returned; a missing log yields [].
    """
    try:
        text = Path(log_path).read_text(errors="replace")
    except OSError:
        return []
    found: List[Path] = []
    for line in text.splitlines():
        if "Saved " not in line or ".whl" not in line:
            continue
        rest = line.rsplit("Saved ", 1)[1].strip()
        if not rest:
            continue
        p = Path(rest.split()[0])
        if p.is_file() and p not in found:
            found.append(p)
    return found
