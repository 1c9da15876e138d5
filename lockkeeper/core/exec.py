"""Run shell commands for a package manager inside the repository."""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

from lockkeeper.exceptions import TEMPORARY_ERROR, ExecError

logger = logging.getLogger(__name__)


@dataclass
class ToolConstraint:
    """A tool version requirement, e.g. ``ToolConstraint("php", "^8.1")``."""

    tool_name: str
    constraint: str | None = None


@dataclass
class ExecOptions:
    """How to run a command sequence.

    ``cwd_file`` is a repository-relative file; commands run in its directory.
    ``extra_env`` values of None remove the variable from the environment.
    """

    cwd_file: str | None = None
    extra_env: dict[str, str | None] = field(default_factory=dict)
    tool_constraints: list[ToolConstraint] = field(default_factory=list)


class CommandRunner:
    """Execute commands one after another, stopping at the first failure."""

    def __init__(self, local_dir: str | Path, timeout: float | None = None) -> None:
        self.local_dir = Path(local_dir)
        self.timeout = timeout

    async def run(self, commands: list[str], options: ExecOptions) -> None:
        cwd = self.local_dir
        if options.cwd_file:
            cwd = self.local_dir / posixpath.dirname(options.cwd_file)
        env = self._build_env(options.extra_env)

        for constraint in options.tool_constraints:
            logger.debug(
                "Tool constraint %s: %s",
                constraint.tool_name,
                constraint.constraint or "any",
            )

        for cmd in commands:
            await self._run_one(cmd, cwd, env)

    @staticmethod
    def _build_env(extra_env: dict[str, str | None]) -> dict[str, str]:
        env = dict(os.environ)
        for key, value in extra_env.items():
            if value is None:
                env.pop(key, None)
            else:
                env[key] = value
        return env

    async def _run_one(self, cmd: str, cwd: Path, env: dict[str, str]) -> None:
        logger.debug("Executing command: %s (cwd=%s)", cmd, cwd)
        proc = await asyncio.create_subprocess_shell(
            cmd,
            cwd=str(cwd),
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("Command timed out after %ss: %s", self.timeout, cmd)
            raise ExecError(TEMPORARY_ERROR, cmd=cmd) from None

        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        if proc.returncode != 0:
            raise ExecError(
                f"Command failed: {cmd}\n{err.strip()}",
                cmd=cmd,
                stdout=out,
                stderr=err,
                exit_code=proc.returncode,
            )
