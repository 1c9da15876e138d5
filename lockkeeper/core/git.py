"""Working-tree status via ``git status``."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from lockkeeper.exceptions import ExecError


@dataclass
class RepoStatus:
    """Uncommitted changes in a working tree, as repository-relative paths."""

    modified: list[str] = field(default_factory=list)
    not_added: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


def parse_porcelain(output: str) -> RepoStatus:
    """Parse ``git status --porcelain -z`` output.

    Entries are NUL-separated ``XY path`` records; renames and copies are
    followed by an extra record holding the original path.
    """
    status = RepoStatus()
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]

        if code == "??":
            status.not_added.append(path)
        elif "R" in code or "C" in code:
            origin = entries[i] if i < len(entries) else ""
            i += 1
            status.not_added.append(path)
            if "R" in code and origin:
                status.deleted.append(origin)
        elif "D" in code:
            status.deleted.append(path)
        elif "A" in code:
            status.not_added.append(path)
        elif "M" in code or "T" in code or "U" in code:
            status.modified.append(path)
    return status


async def get_repo_status(local_dir: str | Path) -> RepoStatus:
    """Return the working-tree status of the repository at *local_dir*."""
    cmd = ["git", "status", "--porcelain", "-z", "--untracked-files=all"]
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(local_dir),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise ExecError(
            f"git command failed (exit {proc.returncode}): {stderr.decode().strip()}",
            cmd=" ".join(cmd),
            stderr=stderr.decode(errors="replace"),
            exit_code=proc.returncode,
        )
    return parse_porcelain(stdout.decode(errors="replace"))
