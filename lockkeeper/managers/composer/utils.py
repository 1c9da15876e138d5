"""Helpers for planning composer invocations."""

from __future__ import annotations

import shlex

import structlog

from lockkeeper.core.config import GlobalConfig
from lockkeeper.core.exec import ToolConstraint
from lockkeeper.managers.composer.models import RunConfig
from lockkeeper.managers.composer.schema import ComposerConfig, ComposerLock
from lockkeeper.managers.composer.versioning import get_major, get_minor

log = structlog.get_logger("lockkeeper.manager.composer")

DEFAULT_COMPOSER_CONSTRAINT = "1.*"


def get_composer_arguments(
    config: RunConfig,
    tool_constraint: ToolConstraint,
    global_config: GlobalConfig,
) -> str:
    """Arguments shared by ``composer install`` and ``composer update``.

    The result starts with a space so it can be appended to a subcommand.
    """
    args = ""

    if config.composer_ignore_platform_reqs is not None:
        if not config.composer_ignore_platform_reqs:
            major = get_major(tool_constraint.constraint or "0.0")
            if major == 1:
                args += " --ignore-platform-reqs"
            else:
                args += " --ignore-platform-req='ext-*' --ignore-platform-req='lib-*'"
        else:
            for req in config.composer_ignore_platform_reqs:
                args += " --ignore-platform-req=" + shlex.quote(req)

    args += " --no-ansi --no-interaction"
    if not global_config.allow_scripts or config.ignore_scripts:
        args += " --no-scripts --no-autoloader"
    if not global_config.allow_plugins or config.ignore_plugins:
        args += " --no-plugins"
    return args


def _caret_major_minor(value: str) -> str | None:
    major = get_major(value)
    if major is None:
        return None
    return f"^{major}.{get_minor(value) or 0}"


def extract_constraints(composer_json: ComposerConfig, lock: ComposerLock) -> dict[str, str]:
    """Derive php and composer tool constraints from the manifest and lock."""
    res: dict[str, str] = {"composer": DEFAULT_COMPOSER_CONSTRAINT}
    require = composer_json.require
    require_dev = composer_json.require_dev

    platform_php = composer_json.platform_php
    if platform_php:
        res["php"] = f"<={platform_php}"
    elif require.get("php"):
        res["php"] = require["php"]

    # direct dependency first, then the composer platform package
    composer = (
        require.get("composer/composer")
        or require_dev.get("composer/composer")
        or require.get("composer")
        or require_dev.get("composer")
    )
    # the composer version that last wrote the lock file
    if not composer and lock.plugin_api_version:
        composer = _caret_major_minor(lock.plugin_api_version)
    if not composer and require.get("composer-runtime-api"):
        composer = _caret_major_minor(require["composer-runtime-api"])
    if composer:
        res["composer"] = composer
    return res


def get_php_constraint(constraints: dict[str, str]) -> str | None:
    php = constraints.get("php")
    if php:
        log.debug("composer.php_constraint", constraint=php)
        return php
    return None


def require_composer_dependency_installation(lock: ComposerLock) -> bool:
    """Whether ``composer install`` must run before ``composer update``.

    True when any locked package, production or dev, is a composer-plugin.
    """
    return any(
        pkg.type == "composer-plugin" for pkg in [*lock.packages, *lock.packages_dev]
    )
