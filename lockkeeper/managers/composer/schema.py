"""composer.json / composer.lock schemas."""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

log = structlog.get_logger("lockkeeper.manager.composer")


def _empty_to_dict(v: Any) -> Any:
    # PHP serializes an empty object as [] in hand-written files too.
    if v is None or v == []:
        return {}
    return v


class ComposerConfig(BaseModel):
    """The parts of composer.json this package reads. Other keys are ignored."""

    model_config = ConfigDict(populate_by_name=True)

    type: Any = None
    require: dict[str, str] = Field(default_factory=dict)
    require_dev: dict[str, str] = Field(default_factory=dict, alias="require-dev")
    # Kept loose: repository blocks are parsed best-effort later on.
    repositories: Any = None
    settings: dict[str, Any] = Field(default_factory=dict, alias="config")

    @field_validator("require", "require_dev", "settings", mode="before")
    @classmethod
    def _normalize_empty(cls, v: Any) -> Any:
        return _empty_to_dict(v)

    @property
    def platform_php(self) -> str | None:
        platform = self.settings.get("platform")
        if isinstance(platform, dict) and isinstance(platform.get("php"), str):
            return platform["php"]
        return None


class LockedPackage(BaseModel):
    name: str
    version: str
    type: str | None = None


class ComposerLock(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugin_api_version: str | None = Field(default=None, alias="plugin-api-version")
    packages: list[LockedPackage] = Field(default_factory=list)
    packages_dev: list[LockedPackage] = Field(default_factory=list, alias="packages-dev")

    @field_validator("packages", "packages_dev", mode="before")
    @classmethod
    def _drop_invalid_entries(cls, v: Any) -> list[dict[str, Any]]:
        """Keep well-formed entries only; one bad record must not hide the rest."""
        if not isinstance(v, list):
            return []
        kept: list[dict[str, Any]] = []
        for item in v:
            if not isinstance(item, dict):
                continue
            if not isinstance(item.get("name"), str) or not isinstance(item.get("version"), str):
                continue
            entry = {"name": item["name"], "version": item["version"]}
            if isinstance(item.get("type"), str):
                entry["type"] = item["type"]
            kept.append(entry)
        return kept

    @field_validator("plugin_api_version", mode="before")
    @classmethod
    def _ignore_non_string(cls, v: Any) -> Any:
        return v if isinstance(v, str) else None

    def find(self, name: str, *, dev: bool = False) -> LockedPackage | None:
        """First locked package called *name* in the production or dev list."""
        for pkg in self.packages_dev if dev else self.packages:
            if pkg.name == name:
                return pkg
        return None


def parse_composer_json(content: str, file_name: str = "composer.json") -> ComposerConfig | None:
    """Parse and validate composer.json, or return None if it is unusable."""
    try:
        return ComposerConfig.model_validate(json.loads(content))
    except json.JSONDecodeError:
        log.debug("composer.invalid_json", file_name=file_name)
    except ValidationError as exc:
        log.warning("composer.invalid_manifest", file_name=file_name, error=str(exc))
    return None


def parse_composer_lock(content: str, file_name: str = "composer.lock") -> ComposerLock | None:
    """Parse and validate composer.lock, or return None if it is unusable."""
    try:
        return ComposerLock.model_validate(json.loads(content))
    except json.JSONDecodeError as exc:
        log.warning("composer.invalid_lockfile_json", file_name=file_name, error=str(exc))
    except ValidationError as exc:
        log.warning("composer.invalid_lockfile", file_name=file_name, error=str(exc))
    return None
