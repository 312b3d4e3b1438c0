"""
patchdepth.history.memory — History source over an in-memory commit DAG.

Used by the test-suite and for experimenting with the walk without a git
repository.  Shallow clones are simulated by hiding the parents of
boundary commits until ``extend_history()`` reveals them.
"""

from __future__ import annotations

import hashlib
from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager

from patchdepth.core.errors import ExtendFailed, MissingVersionFile, NotACommit, StreamFailure
from patchdepth.core.models import NO_FILE, CommitRecord, Fingerprint
from patchdepth.history.base import HistorySource


class MemoryHistorySource(HistorySource):
    """In-memory commit graph with an optional shallow boundary.

    Commits must be added parents-first, the way history is written.
    Each commit carries a ``path -> content`` snapshot; a path missing from
    the snapshot (or mapped to ``None``) has no fingerprint.
    """

    def __init__(self) -> None:
        self._parents: dict[str, tuple[str, ...]] = {}
        self._files: dict[str, dict[str, str]] = {}
        self._shallow: set[str] = set()
        # Introspection for tests
        self.streams_opened = 0
        self.streams_closed = 0
        self.records_streamed = 0
        self.extensions = 0

    # ------------------------------------------------------------------
    # Building the graph
    # ------------------------------------------------------------------

    def commit(
        self,
        commit_id: str,
        parents: Sequence[str] = (),
        files: Mapping[str, str | None] | None = None,
    ) -> str:
        """Add a commit.  Returns *commit_id* for chaining."""
        if commit_id in self._parents:
            raise ValueError(f"Duplicate commit: {commit_id}")
        for parent in parents:
            if parent not in self._parents:
                raise ValueError(f"Unknown parent {parent} for {commit_id}")
        self._parents[commit_id] = tuple(parents)
        self._files[commit_id] = {p: c for p, c in (files or {}).items() if c is not None}
        return commit_id

    def truncate_at(self, *commit_ids: str) -> None:
        """Mark commits as shallow boundaries (their parents become unknown)."""
        for commit_id in commit_ids:
            self._require(commit_id)
            if self._parents[commit_id]:
                self._shallow.add(commit_id)

    def shallow_clone(self, tip: str, depth: int) -> None:
        """Keep only *depth* generations of history behind *tip*, like ``clone --depth``."""
        self._shallow.clear()
        self._shallow.update(self._generation_boundary([tip], depth - 1))

    @property
    def shallow(self) -> frozenset[str]:
        return frozenset(self._shallow)

    # ------------------------------------------------------------------
    # HistorySource
    # ------------------------------------------------------------------

    def resolve_commit(self, ref: str) -> str:
        if ref not in self._parents:
            raise NotACommit(ref)
        return ref

    def resolve_fingerprint(self, commit: str, path: str) -> Fingerprint:
        self._require(commit)
        content = self._files[commit].get(path)
        if content is None:
            return NO_FILE
        return hashlib.sha1(content.encode("utf-8")).hexdigest()

    def read_text(self, commit: str, path: str) -> str:
        self._require(commit)
        content = self._files[commit].get(path)
        if content is None:
            raise MissingVersionFile(commit, path)
        return content

    @contextmanager
    def stream_commits(self, starts: Iterable[str]) -> Iterator[Iterator[CommitRecord]]:
        starts = list(starts)
        for start in starts:
            if start not in self._parents:
                raise StreamFailure(f"Unknown start commit: {start}")
        self.streams_opened += 1
        try:
            yield self._topological(starts)
        finally:
            self.streams_closed += 1

    def is_truncated_at(self, commit: str) -> bool:
        return commit in self._shallow

    def refresh(self) -> None:
        """Nothing is cached; the shallow set is always current."""

    def extend_history(self, count: int) -> None:
        if not self._shallow:
            raise ExtendFailed("History is already complete; nothing left to fetch")
        self.extensions += 1
        boundary = list(self._shallow)
        self._shallow.clear()
        self._shallow.update(self._generation_boundary(boundary, count))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, commit_id: str) -> None:
        if commit_id not in self._parents:
            raise NotACommit(commit_id)

    def _visible_parents(self, commit_id: str) -> tuple[str, ...]:
        if commit_id in self._shallow:
            return ()
        return self._parents[commit_id]

    def _generation_boundary(self, roots: Sequence[str], generations: int) -> set[str]:
        """Commits exactly *generations* hops behind *roots* that still have parents."""
        seen = set(roots)
        layer = list(roots)
        for _ in range(generations):
            next_layer = []
            for commit_id in layer:
                for parent in self._parents[commit_id]:
                    if parent not in seen:
                        seen.add(parent)
                        next_layer.append(parent)
            layer = next_layer
        return {c for c in layer if self._parents[c]}

    def _topological(self, starts: list[str]) -> Iterator[CommitRecord]:
        """Children before parents over the visible graph reachable from *starts*."""
        reachable: set[str] = set()
        stack = list(starts)
        while stack:
            commit_id = stack.pop()
            if commit_id in reachable:
                continue
            reachable.add(commit_id)
            stack.extend(self._visible_parents(commit_id))

        pending_children = dict.fromkeys(reachable, 0)
        for commit_id in reachable:
            for parent in self._visible_parents(commit_id):
                pending_children[parent] += 1

        ready = deque(c for c in dict.fromkeys(starts) if pending_children[c] == 0)
        while ready:
            commit_id = ready.popleft()
            parents = list(self._visible_parents(commit_id))
            self.records_streamed += 1
            yield commit_id, parents
            for parent in parents:
                pending_children[parent] -= 1
                if pending_children[parent] == 0:
                    ready.append(parent)
