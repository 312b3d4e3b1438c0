"""
patchdepth.operations.walker — The depth walk over the commit DAG.

Starting from an origin commit, the walker classifies ancestors in
topological order.  Commits whose version file matches the origin's are
"unchanged" and push their parents onto the frontier one step deeper; a
commit whose file differs is a boundary and stops that path.  The result is
the largest depth at which an unchanged commit was found.

The frontier maps each unclassified commit to the best (largest) depth
proposed for it so far.  It survives across ``compute()`` calls, so a pass
that runs into a shallow-clone boundary can be resumed once more history
has been fetched.
"""

from __future__ import annotations

import logging

from patchdepth.core.errors import StreamFailure
from patchdepth.core.models import TRUNCATED, Fingerprint, Sentinel
from patchdepth.history.base import HistorySource

logger = logging.getLogger("patchdepth.walker")


class DepthWalker:
    """
    Computes the patch depth of *origin* for the file at *path*.

    ``compute()`` returns the depth once the frontier drains, or
    ``TRUNCATED`` when a frontier commit sits on a shallow boundary.  In
    the latter case extend the source's history and call ``compute()``
    again; classified commits are never revisited.
    """

    def __init__(self, source: HistorySource, path: str, origin: str) -> None:
        self.source = source
        self.path = path
        self.origin = origin
        self.fingerprint: Fingerprint = source.resolve_fingerprint(origin, path)
        self._boundary: dict[str, int] = {origin: 0}
        self._depth = 0
        self.passes = 0

    @property
    def frontier(self) -> dict[str, int]:
        """Snapshot of the unclassified commits and their depth so far."""
        return dict(self._boundary)

    @property
    def depth(self) -> int:
        """Deepest matching commit classified so far."""
        return self._depth

    @property
    def converged(self) -> bool:
        return not self._boundary

    def compute(self) -> int | Sentinel:
        """Run one streaming pass over the history reachable from the frontier."""
        if not self._boundary:
            return self._depth

        self.passes += 1
        logger.debug(
            "Pass %d from %d frontier commit(s), depth so far %d",
            self.passes, len(self._boundary), self._depth,
        )

        with self.source.stream_commits(list(self._boundary)) as stream:
            for commit, parents in stream:
                if not self._classify(commit, parents):
                    logger.debug("Pass %d blocked on truncated history at %s", self.passes, commit[:12])
                    return TRUNCATED
                if not self._boundary:
                    logger.debug("Pass %d converged at depth %d", self.passes, self._depth)
                    return self._depth

        raise StreamFailure(
            f"Commit stream ended with {len(self._boundary)} unclassified commit(s)"
        )

    def _classify(self, commit: str, parents: list[str]) -> bool:
        """Classify one streamed commit.  Returns ``False`` if the pass is blocked."""
        depth = self._boundary.get(commit)
        if depth is None:
            return True

        if self.source.is_truncated_at(commit):
            return False

        del self._boundary[commit]

        if self.source.resolve_fingerprint(commit, self.path) != self.fingerprint:
            return True

        if self._depth < depth:
            self._depth = depth

        for parent in parents:
            if self._boundary.get(parent, -1) < depth + 1:
                self._boundary[parent] = depth + 1
        return True
