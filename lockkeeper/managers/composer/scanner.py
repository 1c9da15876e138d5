"""Find every composer.json in a checkout and extract it (no side effects)."""

from __future__ import annotations

from pathlib import Path

import structlog

from lockkeeper.core.fs import LocalFileSystem
from lockkeeper.managers.composer.extract import extract_package_file
from lockkeeper.managers.composer.models import PackageFileContent

log = structlog.get_logger("lockkeeper.manager.composer")

FILE_PATTERNS = ["composer.json", "**/composer.json"]

# Installed packages ship their own composer.json; those are not ours to manage.
_IGNORED_DIRS = frozenset({"vendor", "node_modules", ".git"})


def discover_manifests(repo_path: Path) -> list[Path]:
    """Walk the repo and return composer.json files outside ignored directories."""
    seen: set[Path] = set()
    matches: list[Path] = []
    for pattern in FILE_PATTERNS:
        for hit in sorted(repo_path.glob(pattern)):
            if hit in seen or not hit.is_file():
                continue
            rel_parts = hit.relative_to(repo_path).parts[:-1]
            if _IGNORED_DIRS.intersection(rel_parts):
                continue
            seen.add(hit)
            matches.append(hit)
    return matches


def scan(repo_path: Path) -> dict[str, PackageFileContent]:
    """Extract every composer.json under *repo_path*.

    Keys are repository-relative manifest paths; manifests with nothing to
    manage are left out.
    """
    fs = LocalFileSystem(repo_path)
    results: dict[str, PackageFileContent] = {}
    for file_path in discover_manifests(repo_path):
        rel = file_path.relative_to(repo_path).as_posix()
        content = file_path.read_text(encoding="utf-8", errors="replace")
        extracted = extract_package_file(content, rel, fs)
        if extracted is None:
            log.debug("composer.scan_skipped", file_name=rel)
            continue
        results[rel] = extracted
    return results
