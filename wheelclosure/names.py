"""
Name normalization: specifier string -> canonical, version-free base identifier.
"""

from __future__ import annotations

import re

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

_LEADING_NAME = re.compile(r"[\s\[<>=!~;]")


def normalize_name(name: str) -> str:
    """pip-style normalization: runs of -, _ and . collapse to '-', lowercased."""
    return re.sub(r"[-_.]+", "-", name).lower()


def base_name_from_spec(spec: str) -> str:
    """
    Canonical project name for a PEP 508 specifier.

    Falls back to the first token before any bracket, space, comparison or
    marker separator when the specifier does not parse.
    """
    spec = spec.strip()
    if not spec:
        return ""
    try:
        return canonicalize_name(Requirement(spec).name)
    except InvalidRequirement:
        return canonicalize_name(_LEADING_NAME.split(spec, 1)[0])


def underscored(base: str) -> str:
    """On-disk wheel filename form of a base identifier."""
    return base.replace("-", "_")
