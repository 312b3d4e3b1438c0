"""patchdepth error types."""


class PatchDepthError(Exception):
    """Base class for every fatal patchdepth error."""


class NotACommit(PatchDepthError):
    """Raised when a reference cannot be resolved to a commit."""

    def __init__(self, ref: str, detail: str = "") -> None:
        self.ref = ref
        message = f"'{ref}' is not a commit"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingVersionFile(PatchDepthError):
    """Raised when the version file is absent (or not a regular file) at the origin."""

    def __init__(self, commit: str, path: str) -> None:
        self.commit = commit
        self.path = path
        super().__init__(f"Version file '{path}' does not exist at {commit[:12]}")


class ExtendFailed(PatchDepthError):
    """Raised when no more history can be made available locally.

    The walk was still blocked on a truncated commit, so the repository's
    true root was reached before the version file ever differed. This
    usually means the version file was renamed or never existed under the
    configured path.
    """


class StreamFailure(PatchDepthError):
    """Raised when the commit enumeration ends abnormally in the middle of a pass.

    Frontier state after a broken pass cannot be trusted, so this is never
    retried.
    """


class DeepenLimitReached(PatchDepthError):
    """Raised when the caller's bound on history extensions is exhausted."""

    def __init__(self, attempts: int, frontier: int) -> None:
        self.attempts = attempts
        self.frontier = frontier
        super().__init__(
            f"Walk still blocked on truncated history after deepening "
            f"{attempts} time(s) ({frontier} unresolved commit(s))"
        )


class GitError(PatchDepthError):
    """Raised when the git executable is missing or a git command times out."""
