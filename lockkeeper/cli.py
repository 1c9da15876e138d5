"""CLI entry point: lockkeeper.

Subcommands:
    lockkeeper scan /path/to/repo [--json]          # list composer dependencies
    lockkeeper update composer.json --dep foo/bar   # regenerate composer.lock
    lockkeeper update composer.json --maintenance   # refresh the whole lock
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from lockkeeper.core.config import GlobalConfig
from lockkeeper.core.exec import CommandRunner
from lockkeeper.core.fs import LocalFileSystem
from lockkeeper.core.host_rules import HostRule, HostRules
from lockkeeper.core.logging import setup_logging
from lockkeeper.exceptions import LockkeeperError
from lockkeeper.managers.composer import (
    ComposerArtifactUpdater,
    PackageFileContent,
    RunConfig,
    UpdateArtifact,
    UpdatedDependency,
    scan,
)


def _load_host_rules(path: str | None) -> HostRules:
    """Read host rules from a JSON array of rule objects."""
    if not path:
        return HostRules()
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON in {path}: {e}") from None
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise click.BadParameter(f"{path} must contain a JSON array of objects")
    return HostRules([HostRule.from_dict(r) for r in data])


def _print_scan(results: dict[str, PackageFileContent], as_json: bool) -> None:
    if not results:
        click.echo("No composer dependencies found.")
        return

    if as_json:
        rows = {
            file_name: {
                "deps": [d.to_dict() for d in content.deps],
                "lock_files": content.lock_files,
                "extracted_constraints": content.extracted_constraints,
            }
            for file_name, content in results.items()
        }
        click.echo(json.dumps(rows, indent=2))
        return

    total = sum(len(c.deps) for c in results.values())
    click.echo(f"Found {total} dependencies in {len(results)} manifest(s)\n")
    for file_name, content in sorted(results.items()):
        click.echo(f"  {file_name}")
        for d in content.deps:
            locked = f" (locked {d.locked_version})" if d.locked_version else ""
            skip = f"  [skipped: {d.skip_reason}]" if d.skip_reason else ""
            click.echo(f"    {d.dep_name} {d.current_value}{locked}{skip}")
        click.echo()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
def main(verbose: bool, json_logs: bool) -> None:
    """lockkeeper: keep composer.lock in step with composer.json."""
    load_dotenv()
    setup_logging(
        level="DEBUG" if verbose else None,
        fmt="json" if json_logs else None,
    )


@main.command("scan")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan_cmd(repo_path: str, as_json: bool) -> None:
    """Extract dependencies from every composer.json in a repository."""
    _print_scan(scan(Path(repo_path).resolve()), as_json)


@main.command("update")
@click.argument("package_file")
@click.option("--repo", "repo_dir", default=None, help="Repository root (default: LOCKKEEPER_LOCAL_DIR or cwd)")
@click.option("--dep", "deps", multiple=True, help="Dependency to update (repeatable)")
@click.option("--maintenance", is_flag=True, help="Refresh the whole lock file")
@click.option("--new-content", type=click.Path(exists=True, dir_okay=False), default=None,
              help="File holding the edited composer.json (default: current content)")
@click.option("--host-rules", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON file with credential rules")
@click.option("--ignore-platform-req", "ignore_platform_reqs", multiple=True,
              help="Platform requirement to ignore (repeatable)")
@click.option("--ignore-all-platform-reqs", is_flag=True, help="Ignore ext-* and lib-* requirements")
def update_cmd(
    package_file: str,
    repo_dir: str | None,
    deps: tuple[str, ...],
    maintenance: bool,
    new_content: str | None,
    host_rules: str | None,
    ignore_platform_reqs: tuple[str, ...],
    ignore_all_platform_reqs: bool,
) -> None:
    """Regenerate the lock file for PACKAGE_FILE (repository-relative)."""
    if not deps and not maintenance:
        click.echo("Error: pass at least one --dep or --maintenance", err=True)
        sys.exit(2)

    global_config = GlobalConfig.from_env()
    local_dir = repo_dir or global_config.local_dir
    fs = LocalFileSystem(local_dir, global_config.cache_dir)

    if new_content is not None:
        content = Path(new_content).read_text(encoding="utf-8")
    else:
        current = fs.read_local_file(package_file)
        if current is None:
            click.echo(f"Error: {package_file} not found in {local_dir}", err=True)
            sys.exit(1)
        content = current

    ignore: list[str] | None = None
    if ignore_all_platform_reqs:
        ignore = []
    elif ignore_platform_reqs:
        ignore = list(ignore_platform_reqs)

    updater = ComposerArtifactUpdater(
        fs=fs,
        runner=CommandRunner(fs.local_dir, timeout=global_config.exec_timeout),
        host_rules=_load_host_rules(host_rules),
        global_config=global_config,
    )
    update = UpdateArtifact(
        package_file_name=package_file,
        updated_deps=[UpdatedDependency(dep_name=d) for d in deps],
        new_package_file_content=content,
        config=RunConfig(
            is_lock_file_maintenance=maintenance,
            composer_ignore_platform_reqs=ignore,
        ),
    )

    try:
        results = asyncio.run(updater.update_artifacts(update))
    except LockkeeperError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if results is None:
        click.echo("No changes.")
        return
    click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    if any(r.artifact_error is not None for r in results):
        sys.exit(1)
