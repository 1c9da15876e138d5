"""Composer manager: extract composer.json dependencies and regenerate composer.lock."""

from lockkeeper.managers.composer.artifacts import ComposerArtifactUpdater
from lockkeeper.managers.composer.extract import extract_package_file
from lockkeeper.managers.composer.models import (
    ArtifactError,
    FileAddition,
    FileDeletion,
    PackageDependency,
    PackageFileContent,
    RunConfig,
    UpdateArtifact,
    UpdateArtifactsResult,
    UpdatedDependency,
)
from lockkeeper.managers.composer.scanner import scan

__all__ = [
    "ArtifactError",
    "ComposerArtifactUpdater",
    "FileAddition",
    "FileDeletion",
    "PackageDependency",
    "PackageFileContent",
    "RunConfig",
    "UpdateArtifact",
    "UpdateArtifactsResult",
    "UpdatedDependency",
    "extract_package_file",
    "scan",
]
