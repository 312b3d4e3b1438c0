"""
patchdepth.history.base — Abstract base class for history sources.

A history source is everything the depth walker knows about the commit
graph: file fingerprints, a streamed topological enumeration of commits,
which commits sit on a truncated (shallow) boundary, and a way to fetch
more history.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager

from patchdepth.core.models import CommitRecord, Fingerprint


class HistorySource(ABC):
    """
    Interface contract for all history sources.

    ``stream_commits()`` returns a context manager so that leaving the
    ``with`` block (convergence, truncation or an exception) always
    releases the underlying stream, whether or not it was fully read.
    """

    @abstractmethod
    def resolve_commit(self, ref: str) -> str:
        """Resolve *ref* to a full commit id, raising ``NotACommit`` on failure."""
        ...

    @abstractmethod
    def resolve_fingerprint(self, commit: str, path: str) -> Fingerprint:
        """Return the content identity of *path* at *commit*, or ``NO_FILE``."""
        ...

    @abstractmethod
    def read_text(self, commit: str, path: str) -> str:
        """Return the text of *path* at *commit*, raising ``MissingVersionFile``."""
        ...

    @abstractmethod
    def stream_commits(
        self, starts: Iterable[str]
    ) -> AbstractContextManager[Iterator[CommitRecord]]:
        """
        Enumerate every commit reachable from *starts*, children before
        parents, as ``(commit, parents)`` records.
        """
        ...

    @abstractmethod
    def is_truncated_at(self, commit: str) -> bool:
        """Whether the parents of *commit* are missing from local history."""
        ...

    @abstractmethod
    def refresh(self) -> None:
        """Re-read local history completeness after an extension."""
        ...

    @abstractmethod
    def extend_history(self, count: int) -> None:
        """Make *count* more generations available, raising ``ExtendFailed``."""
        ...
