"""Extract dependencies from composer.json (and composer.lock, when present)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from lockkeeper.managers.composer.models import (
    GIT_TAGS_DATASOURCE,
    GITHUB_TAGS_DATASOURCE,
    PACKAGIST_DATASOURCE,
    ComposerManagerData,
    DepType,
    PackageDependency,
    PackageFileContent,
)
from lockkeeper.managers.composer.repositories import (
    GitRepository,
    NamedRepository,
    PathRepository,
    VcsRepository,
    parse_repositories,
)
from lockkeeper.managers.composer.schema import (
    ComposerLock,
    parse_composer_json,
    parse_composer_lock,
)
from lockkeeper.managers.composer.versioning import is_version, strip_v

if TYPE_CHECKING:
    from lockkeeper.core.fs import LocalFileSystem

log = structlog.get_logger("lockkeeper.manager.composer")

# The interpreter itself is tracked through php-src release tags (php-8.3.1).
PHP_DEP_NAME = "php"
PHP_PACKAGE_NAME = "php/php-src"
PHP_EXTRACT_VERSION = r"^php-(?P<version>.*)$"

_DEP_TYPES: tuple[DepType, ...] = ("require", "require-dev")

_JSON_SUFFIX_RE = re.compile(r"\.json$")


def get_lock_file_name(package_file_name: str) -> str:
    """composer.json -> composer.lock, keeping the directory."""
    return _JSON_SUFFIX_RE.sub(".lock", package_file_name)


def _build_dependency(
    dep_type: DepType,
    dep_name: str,
    current_value: str,
    repositories: dict[str, NamedRepository],
    registry_urls: list[str],
    lock: ComposerLock | None,
) -> PackageDependency:
    if dep_name == PHP_DEP_NAME:
        return PackageDependency(
            dep_name=dep_name,
            dep_type=dep_type,
            current_value=current_value,
            datasource=GITHUB_TAGS_DATASOURCE,
            package_name=PHP_PACKAGE_NAME,
            extract_version=PHP_EXTRACT_VERSION,
        )

    datasource = PACKAGIST_DATASOURCE
    package_name = dep_name

    repo = repositories.get(dep_name)
    if isinstance(repo, PathRepository):
        return PackageDependency(
            dep_name=dep_name,
            dep_type=dep_type,
            current_value=current_value,
            skip_reason="path-dependency",
        )
    if isinstance(repo, (VcsRepository, GitRepository)):
        datasource = GIT_TAGS_DATASOURCE
        package_name = repo.url

    dep = PackageDependency(
        dep_name=dep_name,
        dep_type=dep_type,
        current_value=current_value,
        datasource=datasource,
    )
    if package_name != dep_name:
        dep.package_name = package_name

    # Packagist only serves vendor/package names.
    if "/" not in dep_name:
        dep.skip_reason = "unsupported"

    if lock is not None:
        locked = lock.find(dep_name, dev=dep_type == "require-dev")
        if locked is not None and is_version(locked.version):
            dep.locked_version = strip_v(locked.version)

    if not dep.skip_reason and repo is None and registry_urls:
        dep.registry_urls = list(registry_urls)

    return dep


def extract_package_file(
    content: str,
    file_name: str,
    fs: LocalFileSystem | None = None,
) -> PackageFileContent | None:
    """Extract the dependencies declared in one composer.json.

    *fs* is used to read the sibling composer.lock; without it locked
    versions are not filled in.

    Returns None when the file is not a usable composer.json or declares no
    dependencies.
    """
    log.debug("composer.extract", file_name=file_name)
    composer_json = parse_composer_json(content, file_name)
    if composer_json is None:
        return None

    res = PackageFileContent(deps=[])

    lock: ComposerLock | None = None
    lock_file_name = get_lock_file_name(file_name)
    if fs is not None and lock_file_name != file_name:
        lock_contents = fs.read_local_file(lock_file_name)
        if lock_contents:
            log.debug("composer.lockfile_found", lock_file=lock_file_name)
            res.lock_files = [lock_file_name]
            lock = parse_composer_lock(lock_contents, lock_file_name)

    repositories, registry_urls = parse_repositories(composer_json.repositories)

    groups = {"require": composer_json.require, "require-dev": composer_json.require_dev}
    for dep_type in _DEP_TYPES:
        for dep_name, version in groups[dep_type].items():
            res.deps.append(
                _build_dependency(
                    dep_type,
                    dep_name,
                    version.strip(),
                    repositories,
                    registry_urls,
                    lock,
                )
            )

    if not res.deps:
        return None

    if isinstance(composer_json.type, str):
        res.manager_data = ComposerManagerData(composer_json_type=composer_json.type)

    php_constraint = composer_json.require.get(PHP_DEP_NAME)
    if php_constraint:
        res.extracted_constraints = {"php": php_constraint}

    return res
