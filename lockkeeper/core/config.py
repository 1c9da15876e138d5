"""Process-wide configuration, read from the environment."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


@dataclass
class GlobalConfig:
    """Settings shared by every run in this process.

    ``allow_scripts`` / ``allow_plugins`` are admin-level switches: a run
    config can only further restrict them, never enable them.
    """

    local_dir: str
    cache_dir: str
    allow_scripts: bool = False
    allow_plugins: bool = False
    exec_timeout: float | None = None

    @classmethod
    def from_env(cls) -> GlobalConfig:
        """Build a config from ``LOCKKEEPER_*`` environment variables."""
        return cls(
            local_dir=os.environ.get("LOCKKEEPER_LOCAL_DIR") or os.getcwd(),
            cache_dir=os.environ.get("LOCKKEEPER_CACHE_DIR")
            or os.path.join(tempfile.gettempdir(), "lockkeeper", "cache"),
            allow_scripts=_env_bool("LOCKKEEPER_ALLOW_SCRIPTS"),
            allow_plugins=_env_bool("LOCKKEEPER_ALLOW_PLUGINS"),
            exec_timeout=_env_float("LOCKKEEPER_EXEC_TIMEOUT"),
        )
