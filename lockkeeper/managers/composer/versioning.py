"""Minimal Composer version helpers.

Only what extraction and command planning need: telling a concrete release
apart from a branch alias, and reading major/minor out of a constraint.
"""

from __future__ import annotations

import re

# 1, 1.2, 1.2.3, v1.2.3, 1.2.3-beta.1, 2.0.0-RC1, 1.0.0+build
_VERSION_RE = re.compile(
    r"^v?\d+(?:\.\d+){0,2}"
    r"(?:-?[0-9A-Za-z]+(?:[.-][0-9A-Za-z]+)*)?"
    r"(?:\+[0-9A-Za-z.-]+)?$",
    re.IGNORECASE,
)

_BRANCH_RE = re.compile(r"(^dev-|[.-]x-dev$|^dev$)", re.IGNORECASE)

_MAJOR_MINOR_RE = re.compile(r"(\d+)(?:\.(\d+))?")

_LEADING_V_RE = re.compile(r"^v", re.IGNORECASE)


def is_version(value: str | None) -> bool:
    """True for a concrete release version, False for branch aliases like dev-main."""
    if not value:
        return False
    value = value.strip()
    if _BRANCH_RE.search(value):
        return False
    return _VERSION_RE.match(value) is not None


def strip_v(version: str) -> str:
    return _LEADING_V_RE.sub("", version)


def _major_minor(value: str) -> tuple[int, int] | None:
    m = _MAJOR_MINOR_RE.search(value)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2) or 0)


def get_major(value: str) -> int | None:
    """Major version of a version or constraint (``^2.3`` → 2)."""
    parts = _major_minor(value)
    return parts[0] if parts else None


def get_minor(value: str) -> int | None:
    parts = _major_minor(value)
    return parts[1] if parts else None
