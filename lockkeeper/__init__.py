"""lockkeeper: keep composer.lock in step with composer.json edits."""

__version__ = "0.1.0"

from lockkeeper.managers.composer import (
    ComposerArtifactUpdater,
    PackageDependency,
    PackageFileContent,
    UpdateArtifact,
    UpdateArtifactsResult,
    extract_package_file,
)

__all__ = [
    "ComposerArtifactUpdater",
    "PackageDependency",
    "PackageFileContent",
    "UpdateArtifact",
    "UpdateArtifactsResult",
    "extract_package_file",
]
