"""Parse the ``repositories`` block of composer.json.

Entries of type vcs, git or path are kept by name so dependencies can be
bound to them; composer entries contribute a registry URL; packagist.org is
appended last unless some entry disables it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

import structlog

log = structlog.get_logger("lockkeeper.manager.composer")

PACKAGIST_URL = "https://packagist.org"

_PACKAGIST_KEYS = ("packagist", "packagist.org")

_PACKAGES_JSON_SUFFIX_RE = re.compile(r"/packages\.json$")


@dataclass(frozen=True)
class VcsRepository:
    name: str
    url: str
    type: str = "vcs"


@dataclass(frozen=True)
class GitRepository:
    name: str
    url: str
    type: str = "git"


@dataclass(frozen=True)
class PathRepository:
    name: str
    url: str
    type: str = "path"


@dataclass(frozen=True)
class ComposerRepository:
    url: str


@dataclass(frozen=True)
class PackageRepository:
    url: str | None


@dataclass(frozen=True)
class UnsupportedRepository:
    type: str


@dataclass(frozen=True)
class DisablePackagist:
    pass


NamedRepository = Union[VcsRepository, GitRepository, PathRepository]
Repository = Union[
    VcsRepository,
    GitRepository,
    PathRepository,
    ComposerRepository,
    PackageRepository,
    UnsupportedRepository,
    DisablePackagist,
]

_NAMED_TYPES: dict[str, type] = {
    "vcs": VcsRepository,
    "git": GitRepository,
    "path": PathRepository,
}


def transform_reg_url(url: str) -> str:
    """Strip a trailing ``/packages.json`` from a composer repository URL.

    GitLab documents its composer registry URL with packages.json appended;
    Composer itself accepts both forms, so the base URL is what we keep.
    """
    return _PACKAGES_JSON_SUFFIX_RE.sub("", url)


def _iter_entries(repo_json: Any) -> list[tuple[str | int, Any]]:
    if repo_json is None:
        return []
    if isinstance(repo_json, list):
        return list(enumerate(repo_json))
    if isinstance(repo_json, dict):
        return list(repo_json.items())
    raise TypeError(f"repositories must be a list or an object, got {type(repo_json).__name__}")


def classify_repository(key: str | int, repo: Any, *, list_form: bool) -> Repository | None:
    """Turn one entry of the repositories block into a typed variant.

    Returns None for entries that carry no routing information, including
    vcs/git/path entries without a name: Composer reads the package name
    from the repository itself, so they cannot be bound to a dependency.
    """
    if not isinstance(repo, dict):
        if key in _PACKAGIST_KEYS and repo is False:
            return DisablePackagist()
        return None

    repo_type = repo.get("type")
    if repo_type is None:
        return None

    if repo_type in _NAMED_TYPES:
        name = repo.get("name") if list_form else key
        url = repo.get("url")
        if not isinstance(url, str):
            raise ValueError(f"{repo_type} repository without url: {repo!r}")
        if not isinstance(name, str) or not name:
            log.debug("composer.repository_unnamed", type=repo_type, url=url)
            return None
        return _NAMED_TYPES[repo_type](name=name, url=url)
    if repo_type == "composer":
        url = repo.get("url")
        if not isinstance(url, str):
            raise ValueError(f"composer repository without url: {repo!r}")
        return ComposerRepository(url=transform_reg_url(url))
    if repo_type == "package":
        return PackageRepository(url=repo.get("url"))
    return UnsupportedRepository(type=str(repo_type))


def _disables_packagist(repo: Any) -> bool:
    return isinstance(repo, dict) and any(repo.get(k) is False for k in _PACKAGIST_KEYS)


def _parse_repositories(repo_json: Any) -> tuple[dict[str, NamedRepository], list[str]]:
    repositories: dict[str, NamedRepository] = {}
    registry_urls: list[str] = []
    packagist = True
    list_form = isinstance(repo_json, list)

    for key, repo in _iter_entries(repo_json):
        variant = classify_repository(key, repo, list_form=list_form)

        if isinstance(variant, (VcsRepository, GitRepository, PathRepository)):
            repositories[variant.name] = variant
        elif isinstance(variant, ComposerRepository):
            registry_urls.append(variant.url)
        elif isinstance(variant, PackageRepository):
            log.debug("composer.package_repository_unsupported", url=variant.url)
        elif isinstance(variant, UnsupportedRepository):
            log.debug("composer.repository_type_unsupported", type=variant.type)
        elif isinstance(variant, DisablePackagist):
            packagist = False

        if _disables_packagist(repo):
            packagist = False

    if packagist:
        registry_urls.append(PACKAGIST_URL)
    else:
        log.debug("composer.packagist_disabled")
    return repositories, registry_urls


def parse_repositories(repo_json: Any) -> tuple[dict[str, NamedRepository], list[str]]:
    """Return ``(named_repositories, registry_urls)`` for a repositories block.

    A malformed block yields ``({}, [])`` instead of failing extraction.
    """
    try:
        return _parse_repositories(repo_json)
    except (TypeError, ValueError) as exc:
        log.debug(
            "composer.repositories_parse_failed",
            repositories=repo_json,
            error=str(exc),
        )
        return {}, []
