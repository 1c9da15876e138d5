"""Regenerate composer.lock (and vendored files) by running composer."""

from __future__ import annotations

import posixpath
import shlex
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from lockkeeper.core.config import GlobalConfig
from lockkeeper.core.exec import CommandRunner, ExecOptions, ToolConstraint
from lockkeeper.core.fs import LocalFileSystem
from lockkeeper.core.git import RepoStatus, get_repo_status
from lockkeeper.core.host_rules import HostRules
from lockkeeper.exceptions import TEMPORARY_ERROR, InsufficientDiskSpaceError
from lockkeeper.managers.composer.auth import get_auth_json
from lockkeeper.managers.composer.extract import get_lock_file_name
from lockkeeper.managers.composer.models import (
    ArtifactError,
    FileAddition,
    FileDeletion,
    RunConfig,
    UpdateArtifact,
    UpdateArtifactsResult,
    UpdatedDependency,
)
from lockkeeper.managers.composer.schema import (
    ComposerLock,
    parse_composer_json,
    parse_composer_lock,
)
from lockkeeper.managers.composer.utils import (
    extract_constraints,
    get_composer_arguments,
    get_php_constraint,
    require_composer_dependency_installation,
)

log = structlog.get_logger("lockkeeper.manager.composer")

UNRESOLVABLE_MESSAGE = (
    "Your requirements could not be resolved to an installable set of packages."
)
DISK_FULL_MESSAGE = "write error (disk full?)"

RepoStatusFn = Callable[[Path], Awaitable[RepoStatus]]


def build_commands(
    package_file_name: str,
    updated_deps: list[UpdatedDependency],
    lock: ComposerLock,
    config: RunConfig,
    composer_constraint: ToolConstraint,
    global_config: GlobalConfig,
) -> list[str]:
    """The shell commands for one run, in execution order.

    When an install is required it runs against the previous manifest: the
    new one is stashed around ``composer install`` and restored afterwards.
    """
    commands: list[str] = []
    args = get_composer_arguments(config, composer_constraint, global_config)

    require_install = config.require_install
    if require_install is None:
        require_install = require_composer_dependency_installation(lock)
    if require_install:
        manifest = shlex.quote(posixpath.basename(package_file_name))
        commands.append(f"git stash -- {manifest}")
        commands.append(f"composer install{args}")
        commands.append("git stash pop || true")

    if config.is_lock_file_maintenance:
        update_args = "update"
    else:
        names = " ".join(shlex.quote(d.dep_name) for d in updated_deps if d.dep_name)
        update_args = f"update {names}".strip() + " --with-dependencies"
    commands.append(f"composer {update_args}{args}")

    log.debug("composer.commands", commands=commands)
    return commands


def reconcile(
    status: RepoStatus,
    lock_file_name: str,
    vendor_dir: str,
    commit_vendor_files: bool,
    read_file: Callable[[str], str | None],
    read_file_bytes: Callable[[str], bytes | None],
) -> list[UpdateArtifactsResult] | None:
    """Turn a post-run working-tree status into file additions/deletions.

    The lock file is read as text; vendored files are read as raw bytes.

    Returns None when the lock file was not touched.
    """
    if lock_file_name not in status.modified:
        return None

    res = [
        UpdateArtifactsResult(
            file=FileAddition(path=lock_file_name, contents=read_file(lock_file_name))
        )
    ]
    if not commit_vendor_files:
        return res

    prefix = vendor_dir.rstrip("/") + "/"
    log.debug("composer.committing_vendor_files", vendor_dir=vendor_dir)
    for f in [*status.modified, *status.not_added]:
        if f.startswith(prefix):
            res.append(UpdateArtifactsResult(file=FileAddition(path=f, contents=read_file_bytes(f))))
    for f in status.deleted:
        if f.startswith(prefix):
            res.append(UpdateArtifactsResult(file=FileDeletion(path=f)))
    return res


class ComposerArtifactUpdater:
    """Run composer for a manifest change and report the resulting file changes."""

    def __init__(
        self,
        fs: LocalFileSystem,
        runner: CommandRunner,
        host_rules: HostRules,
        global_config: GlobalConfig,
        repo_status: RepoStatusFn = get_repo_status,
    ) -> None:
        self._fs = fs
        self._runner = runner
        self._host_rules = host_rules
        self._global_config = global_config
        self._repo_status = repo_status

    async def update_artifacts(self, update: UpdateArtifact) -> list[UpdateArtifactsResult] | None:
        """Regenerate the lock file for *update*.

        Returns None when there is nothing to do, a list of file changes on
        success, or a single-element list holding an ArtifactError.

        Raises ``ExecError(TEMPORARY_ERROR)`` unchanged and
        ``InsufficientDiskSpaceError`` when the disk is full.
        """
        package_file_name = update.package_file_name
        log.debug("composer.update_artifacts", package_file=package_file_name)

        lock_file_name = get_lock_file_name(package_file_name)
        existing_lock_content = self._fs.read_local_file(lock_file_name)
        if not existing_lock_content:
            log.debug("composer.lockfile_not_found", lock_file=lock_file_name)
            return None

        vendor_dir = self._fs.get_sibling_file_name(package_file_name, "vendor")
        commit_vendor_files = self._fs.local_path_exists(vendor_dir)
        self._fs.ensure_local_dir(vendor_dir)

        try:
            self._fs.write_local_file(package_file_name, update.new_package_file_content)

            lock = parse_composer_lock(existing_lock_content, lock_file_name)
            if lock is None:
                return None
            composer_json = parse_composer_json(update.new_package_file_content, package_file_name)
            if composer_json is None:
                return None

            config = update.config
            constraints = {**extract_constraints(composer_json, lock), **config.constraints}
            composer_constraint = ToolConstraint("composer", constraints.get("composer"))
            php_constraint = ToolConstraint("php", get_php_constraint(constraints))

            options = ExecOptions(
                cwd_file=package_file_name,
                extra_env={
                    "COMPOSER_CACHE_DIR": self._fs.ensure_cache_dir("composer"),
                    "COMPOSER_AUTH": get_auth_json(self._host_rules),
                },
                tool_constraints=[php_constraint, composer_constraint],
            )
            commands = build_commands(
                package_file_name,
                update.updated_deps,
                lock,
                config,
                composer_constraint,
                self._global_config,
            )

            await self._runner.run(commands, options)
            status = await self._repo_status(self._fs.local_dir)

            res = reconcile(
                status,
                lock_file_name,
                vendor_dir,
                commit_vendor_files,
                self._fs.read_local_file,
                self._fs.read_local_file_bytes,
            )
            if res is not None:
                log.debug("composer.lockfile_updated", lock_file=lock_file_name)
            return res
        except Exception as err:
            message = str(err)
            if message == TEMPORARY_ERROR:
                raise
            if UNRESOLVABLE_MESSAGE in message:
                log.info("composer.requirements_unresolvable", lock_file=lock_file_name)
            elif DISK_FULL_MESSAGE in message:
                raise InsufficientDiskSpaceError() from err
            else:
                log.debug("composer.lockfile_generation_failed", error=message)
            return [
                UpdateArtifactsResult(
                    artifact_error=ArtifactError(lock_file=lock_file_name, stderr=message)
                )
            ]
