"""
patchdepth.core.models — Pydantic schemas and sentinel values.

A version is ``PREFIX.PATCH``: ``PREFIX`` is the content of a tracked file at
the origin commit, ``PATCH`` is the longest run of commits, along any
ancestry path, over which that file kept the origin's content.
"""

from __future__ import annotations

import os
from collections.abc import Hashable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, computed_field


# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------

class Sentinel(Enum):
    """Distinguished values that can never collide with real data."""
    NO_FILE = "no-file"         # Fingerprint of a missing / non-regular path
    TRUNCATED = "truncated"     # Walk blocked on missing (shallow) history

    def __repr__(self) -> str:
        return self.name


NO_FILE = Sentinel.NO_FILE
TRUNCATED = Sentinel.TRUNCATED

# Opaque, comparable identity of a file's content at a commit.
Fingerprint = Hashable

# (commit id, direct parent ids) as emitted by a history source.
CommitRecord = tuple[str, list[str]]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class VersionResult(BaseModel):
    """Outcome of a converged version computation."""
    commit: str                             # Fully resolved origin commit
    prefix: str                             # Version file content at origin
    patch: int = Field(ge=0)                # Converged walk depth
    deepen_count: int = 0                   # History extensions performed
    passes: int = 1                         # compute() invocations

    @computed_field  # type: ignore[prop-decorator]
    @property
    def version(self) -> str:
        return f"{self.prefix}.{self.patch}"

    def outputs(self) -> dict[str, str]:
        """Structured values a build pipeline consumes."""
        return {"version": self.version, "patch": str(self.patch)}


class WalkReport(BaseModel):
    """Outcome of a single walk pass (no deepening)."""
    commit: str
    depth: int | None = None
    truncated: bool = False
    frontier: int = 0                       # Unclassified commits left


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def discover_repo_root(start: Path | None = None) -> Path | None:
    """
    Walk up from *start* (default: CWD) looking for a ``.git`` entry.

    ``.git`` may be a directory or, for worktrees and submodules, a file.
    Returns the work tree root, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / ".git").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


class PatchConfig(BaseModel):
    """Runtime configuration for a version computation."""
    repo_root: Path = Path(".")
    version_file: str = "VERSION"
    commit: str = "HEAD"
    deepen_by: int = Field(default=50, ge=1)
    max_deepen: int | None = Field(default=None, ge=0)
    git_timeout: float = Field(default=60.0, gt=0)

    @classmethod
    def for_project(cls, repo_root: Path | None = None, **overrides: Any) -> "PatchConfig":
        """
        Build a config anchored to a repository.

        Resolution order (highest priority first):
          1. Explicit ``overrides`` keyword arguments (``None`` means unset)
          2. Environment variables (PATCHDEPTH_FILE, PATCHDEPTH_DEEPEN_BY, …)
          3. Built-in defaults

        If *repo_root* is ``None``, ``PATCHDEPTH_REPO`` is consulted, then
        :func:`discover_repo_root` walks up from CWD.  If still not found,
        CWD is used.
        """
        overrides = {k: v for k, v in overrides.items() if v is not None}

        if repo_root is None and os.getenv("PATCHDEPTH_REPO"):
            repo_root = Path(os.environ["PATCHDEPTH_REPO"])
        if repo_root is None:
            repo_root = discover_repo_root()
        if repo_root is None:
            repo_root = Path.cwd()

        env: dict[str, Any] = {}
        env_map = {
            "version_file": "PATCHDEPTH_FILE",
            "commit": "PATCHDEPTH_COMMIT",
            "deepen_by": "PATCHDEPTH_DEEPEN_BY",
            "max_deepen": "PATCHDEPTH_MAX_DEEPEN",
            "git_timeout": "PATCHDEPTH_GIT_TIMEOUT",
        }
        for field, var in env_map.items():
            value = os.getenv(var)
            if value:
                env[field] = value

        return cls(repo_root=repo_root, **{**env, **overrides})
