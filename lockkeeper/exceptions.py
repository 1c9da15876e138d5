"""Custom exceptions for lockkeeper."""

# Sentinel messages shared with the process runner and callers.
TEMPORARY_ERROR = "temporary-error"
SYSTEM_INSUFFICIENT_DISK_SPACE = "system-insufficient-disk-space"


class LockkeeperError(Exception):
    """Base exception for all lockkeeper errors."""


class ExecError(LockkeeperError):
    """Raised when a command exits non-zero or cannot be run."""

    def __init__(
        self,
        message: str,
        cmd: str = "",
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
    ):
        self.cmd = cmd
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(message)


class InsufficientDiskSpaceError(LockkeeperError):
    """Raised when the resolver ran out of disk space. Retrying will not help."""

    def __init__(self) -> None:
        super().__init__(SYSTEM_INSUFFICIENT_DISK_SPACE)


class PathOutsideRepositoryError(LockkeeperError):
    """Raised when a file path escapes the local repository directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"path {path!r} is outside the repository directory")
