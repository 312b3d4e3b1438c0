"""
patchdepth.operations.engine — Version computation with incremental deepening.

Drives a :class:`DepthWalker` to convergence: every truncated pass asks the
history source for more history and resumes the same walk.
"""

from __future__ import annotations

import logging

from patchdepth.core.errors import DeepenLimitReached
from patchdepth.core.models import TRUNCATED, PatchConfig, VersionResult, WalkReport
from patchdepth.history.base import HistorySource
from patchdepth.history.git import GitHistorySource
from patchdepth.operations.walker import DepthWalker

logger = logging.getLogger("patchdepth.operations")


def compute_version_patch(
    source: HistorySource,
    origin: str,
    path: str,
    deepen_by: int,
    max_deepen: int | None = None,
) -> VersionResult:
    """
    Compute ``PREFIX.PATCH`` for *origin*.

    ``PREFIX`` is the content of *path* at *origin*; ``PATCH`` is the
    converged walk depth.  Each truncated pass extends history by
    *deepen_by* commits.  *max_deepen* bounds the number of extensions
    (``None`` retries until the source runs out of history).
    """
    head = source.resolve_commit(origin)
    prefix = source.read_text(head, path).strip()

    walker = DepthWalker(source, path, head)
    deepen_count = 0
    while (depth := walker.compute()) is TRUNCATED:
        if max_deepen is not None and deepen_count >= max_deepen:
            raise DeepenLimitReached(deepen_count, len(walker.frontier))
        logger.info("The repo is too shallow, deepening it by %d commits...", deepen_by)
        source.extend_history(deepen_by)
        source.refresh()
        deepen_count += 1

    result = VersionResult(
        commit=head,
        prefix=prefix,
        patch=depth,
        deepen_count=deepen_count,
        passes=walker.passes,
    )
    logger.info("Version %s", result.version)
    return result


def walk_once(source: HistorySource, origin: str, path: str) -> WalkReport:
    """Run a single pass without touching history."""
    head = source.resolve_commit(origin)
    walker = DepthWalker(source, path, head)
    depth = walker.compute()
    if depth is TRUNCATED:
        return WalkReport(commit=head, truncated=True, frontier=len(walker.frontier))
    return WalkReport(commit=head, depth=depth)


def compute_for_config(config: PatchConfig) -> VersionResult:
    """Compute the version of ``config.commit`` in the configured git repository."""
    source = GitHistorySource(config.repo_root, timeout=config.git_timeout)
    return compute_version_patch(
        source,
        config.commit,
        config.version_file,
        config.deepen_by,
        max_deepen=config.max_deepen,
    )
