"""Shared fixtures: in-memory DAGs and throwaway git repositories."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from patchdepth.history.memory import MemoryHistorySource

VERSION_FILE = "VERSION"

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_CONFIG_GLOBAL": os.devnull,
}


def git_env() -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if not k.startswith("GIT_")}
    env.update(GIT_ENV)
    return env


def chain(source: MemoryHistorySource, *prefixes: str | None, name: str = "c") -> list[str]:
    """Add a linear history, oldest first.  Returns commit ids oldest first."""
    ids: list[str] = []
    for i, prefix in enumerate(prefixes):
        commit_id = f"{name}{i}"
        source.commit(commit_id, ids[-1:], {VERSION_FILE: prefix})
        ids.append(commit_id)
    return ids


@pytest.fixture
def source() -> MemoryHistorySource:
    return MemoryHistorySource()


class GitRepo:
    """Tiny helper around a scratch repository."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=True,
            env=git_env(),
        )
        return result.stdout.strip()

    def commit(self, version: str | None, message: str = "commit") -> str:
        target = self.path / VERSION_FILE
        if version is None:
            if target.exists():
                target.unlink()
        else:
            target.write_text(version + "\n", encoding="utf-8")
        self.git("add", "-A")
        self.git("commit", "--allow-empty", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")

    def linear(self, *versions: str | None) -> list[str]:
        return [self.commit(v, f"commit {i}") for i, v in enumerate(versions)]


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    path = tmp_path / "upstream"
    path.mkdir()
    repo = GitRepo(path)
    repo.git("init", "-q")
    return repo


@pytest.fixture
def shallow_clone(tmp_path: Path):
    """Factory: ``shallow_clone(repo, depth)`` -> GitRepo of a ``--depth`` clone."""
    def _clone(upstream: GitRepo, depth: int) -> GitRepo:
        target = tmp_path / f"clone-{depth}"
        subprocess.run(
            ["git", "clone", "-q", f"--depth={depth}", upstream.path.as_uri(), str(target)],
            check=True,
            capture_output=True,
            env=git_env(),
        )
        return GitRepo(target)
    return _clone
