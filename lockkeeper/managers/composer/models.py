"""Data models for the composer manager."""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

DepType = Literal["require", "require-dev"]
SkipReason = Literal["path-dependency", "unsupported"]

# Datasource identifiers attached to extracted dependencies.
PACKAGIST_DATASOURCE = "packagist"
GIT_TAGS_DATASOURCE = "git-tags"
GITHUB_TAGS_DATASOURCE = "github-tags"


@dataclass
class PackageDependency:
    """A single dependency declared in composer.json."""

    dep_name: str
    dep_type: DepType
    current_value: str
    datasource: str | None = None
    package_name: str | None = None
    locked_version: str | None = None
    registry_urls: list[str] | None = None
    skip_reason: SkipReason | None = None
    extract_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serializable form with unset fields omitted."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ComposerManagerData:
    composer_json_type: str


@dataclass
class PackageFileContent:
    """Everything extracted from one composer.json."""

    deps: list[PackageDependency]
    lock_files: list[str] = field(default_factory=list)
    manager_data: ComposerManagerData | None = None
    extracted_constraints: dict[str, str] = field(default_factory=dict)


@dataclass
class RunConfig:
    """Per-run options for lock file synthesis.

    ``composer_ignore_platform_reqs``: None leaves platform checks on, an
    empty list ignores all ``ext-*``/``lib-*`` requirements, a non-empty list
    ignores exactly those requirements.

    ``require_install``: None uses the lock-file heuristic to decide whether
    ``composer install`` must run before ``composer update``.
    """

    is_lock_file_maintenance: bool = False
    composer_ignore_platform_reqs: list[str] | None = None
    ignore_scripts: bool = False
    ignore_plugins: bool = False
    constraints: dict[str, str] = field(default_factory=dict)
    require_install: bool | None = None


@dataclass
class UpdatedDependency:
    dep_name: str
    new_value: str | None = None


@dataclass
class UpdateArtifact:
    package_file_name: str
    updated_deps: list[UpdatedDependency]
    new_package_file_content: str
    config: RunConfig = field(default_factory=RunConfig)


@dataclass
class FileAddition:
    """A file to write. Lock files carry text, vendored files raw bytes."""

    path: str
    contents: bytes | str | None
    type: Literal["addition"] = "addition"

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form; bytes that are not UTF-8 are base64 encoded."""
        data: dict[str, Any] = {"path": self.path, "contents": self.contents, "type": self.type}
        if isinstance(self.contents, bytes):
            try:
                data["contents"] = self.contents.decode("utf-8")
            except UnicodeDecodeError:
                data["contents"] = base64.b64encode(self.contents).decode("ascii")
                data["encoding"] = "base64"
        return data


@dataclass
class FileDeletion:
    path: str
    type: Literal["deletion"] = "deletion"


@dataclass
class ArtifactError:
    lock_file: str
    stderr: str


@dataclass
class UpdateArtifactsResult:
    """Exactly one of ``file`` or ``artifact_error`` is set."""

    file: FileAddition | FileDeletion | None = None
    artifact_error: ArtifactError | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.artifact_error is not None:
            return {"artifact_error": asdict(self.artifact_error)}
        if isinstance(self.file, FileAddition):
            return {"file": self.file.to_dict()}
        return {"file": asdict(self.file)} if self.file is not None else {}
