"""
patchdepth.history.git — History source backed by the ``git`` executable.

Short queries (rev-parse, ls-tree, show, fetch) go through ``_git()``.
The commit enumeration is a long-running ``git log --topo-order`` process
read line by line, so a walk that converges early never waits for git to
print the rest of the history.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from patchdepth.core.errors import ExtendFailed, GitError, MissingVersionFile, NotACommit, StreamFailure
from patchdepth.core.models import NO_FILE, CommitRecord, Fingerprint
from patchdepth.history.base import HistorySource

logger = logging.getLogger("patchdepth.history.git")

# ls-tree modes of regular files (plain and executable)
REGULAR_FILE_MODES = frozenset({"100644", "100755"})


class GitHistorySource(HistorySource):
    """History source for a local (possibly shallow) git clone."""

    def __init__(self, repo_root: Path | str = ".", timeout: float = 60.0) -> None:
        self.repo_root = Path(repo_root)
        self.timeout = timeout
        self._shallow: frozenset[str] | None = None

    # ------------------------------------------------------------------
    # Commits and files
    # ------------------------------------------------------------------

    def resolve_commit(self, ref: str) -> str:
        try:
            sha = self._git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}").strip()
        except subprocess.CalledProcessError as exc:
            raise NotACommit(ref, (exc.stderr or "").strip()) from exc
        if not sha:
            raise NotACommit(ref)
        return sha

    def resolve_fingerprint(self, commit: str, path: str) -> Fingerprint:
        """
        Return the blob id of *path* at *commit*.

        Directories, submodules, symlinks and missing paths all map to
        ``NO_FILE``.
        """
        try:
            listing = self._git("ls-tree", "--full-tree", commit, "--", path)
        except subprocess.CalledProcessError as exc:
            raise NotACommit(commit, (exc.stderr or "").strip()) from exc

        # "<mode> SP <type> SP <object> TAB <path>"
        entry = listing.split("\n", 1)[0]
        if not entry:
            return NO_FILE
        mode, obj_type, oid = entry.split("\t", 1)[0].split(" ")
        if obj_type != "blob" or mode not in REGULAR_FILE_MODES:
            return NO_FILE
        return oid

    def read_text(self, commit: str, path: str) -> str:
        if self.resolve_fingerprint(commit, path) is NO_FILE:
            raise MissingVersionFile(commit, path)
        return self._git("show", f"{commit}:{path}")

    # ------------------------------------------------------------------
    # Commit enumeration
    # ------------------------------------------------------------------

    @contextmanager
    def stream_commits(self, starts: Iterable[str]) -> Iterator[Iterator[CommitRecord]]:
        """
        Spawn ``git log --topo-order`` over *starts* and yield its records.

        The process is killed and reaped when the ``with`` block exits,
        including when the caller stops reading early or raises.
        """
        args = ["git", "log", "--topo-order", "--format=format:%H %P", *starts, "--"]
        logger.debug("git log --topo-order over %d start commit(s)", len(args) - 5)

        # stderr goes to a file: a pipe nobody drains could fill up and stall git
        with tempfile.TemporaryFile() as errors:
            try:
                proc = subprocess.Popen(
                    args,
                    stdout=subprocess.PIPE,
                    stderr=errors,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    encoding="ascii",
                    cwd=str(self.repo_root),
                )
            except FileNotFoundError as exc:
                raise GitError(f"Cannot run git in {self.repo_root}: {exc}") from exc
            try:
                yield self._read_records(proc, errors)
            finally:
                if proc.poll() is None:
                    proc.kill()
                proc.stdout.close()
                proc.wait()

    @staticmethod
    def _read_records(proc: subprocess.Popen, errors: IO[bytes]) -> Iterator[CommitRecord]:
        for line in proc.stdout:
            line = line.strip()
            if not line:
                continue
            commit, *parents = line.split(" ")
            yield commit, parents

        code = proc.wait()
        if code != 0:
            errors.seek(0)
            detail = errors.read().decode("utf-8", "replace").strip()
            raise StreamFailure(f"git log exited with status {code}: {detail}")

    # ------------------------------------------------------------------
    # Shallow boundary
    # ------------------------------------------------------------------

    def is_truncated_at(self, commit: str) -> bool:
        if self._shallow is None:
            self.refresh()
        return commit in self._shallow

    def refresh(self) -> None:
        self._shallow = self._read_shallow()
        logger.debug("Shallow boundary: %d commit(s)", len(self._shallow))

    def extend_history(self, count: int) -> None:
        """Fetch *count* more generations behind the current shallow boundary."""
        before = self._read_shallow()
        if not before:
            raise ExtendFailed(
                "Repository history is already complete; the walk reached the "
                "root commit before the version file changed"
            )

        try:
            self._git("fetch", f"--deepen={count}")
        except subprocess.CalledProcessError as exc:
            raise ExtendFailed(f"git fetch --deepen={count} failed: {(exc.stderr or '').strip()}") from exc
        except GitError as exc:
            raise ExtendFailed(f"git fetch --deepen={count}: {exc}") from exc

        after = self._read_shallow()
        if after == before:
            raise ExtendFailed(
                "The remote has no more history to fetch; the repository root "
                "was reached before the version file changed"
            )
        self._shallow = after

    def _read_shallow(self) -> frozenset[str]:
        """Commits listed in ``$GIT_DIR/shallow`` (empty for a full clone)."""
        shallow_path = Path(self._git("rev-parse", "--git-path", "shallow").strip())
        if not shallow_path.is_absolute():
            shallow_path = self.repo_root / shallow_path
        try:
            contents = shallow_path.read_text(encoding="ascii")
        except FileNotFoundError:
            return frozenset()
        return frozenset(line.strip() for line in contents.splitlines() if line.strip())

    # ------------------------------------------------------------------
    # Git helpers
    # ------------------------------------------------------------------

    def _git(self, *args: str) -> str:
        """Run a Git command in the repo root."""
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                cwd=str(self.repo_root),
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitError(f"git {args[0]} timed out after {self.timeout:g}s") from exc
        except FileNotFoundError as exc:
            raise GitError(f"Cannot run git in {self.repo_root}: {exc}") from exc
        result.check_returncode()
        return result.stdout
