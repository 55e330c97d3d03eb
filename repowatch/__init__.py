"""RepoWatch - keep a local git clone in step with one remote branch.

Each run opens the clone, fetches a single branch from a single remote,
compares the fetched tip with HEAD and merges when they differ, aborting
on any conflict.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "WatchConfig",
    "WatchPipeline",
    "PollResult",
    "PollState",
    "open_repository",
    "fetch_latest_commit_sha",
    "differs",
    "merge_remote_branch",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name == "WatchConfig":
        from repowatch.config.schema import WatchConfig

        return WatchConfig
    if name in ("WatchPipeline", "PollResult", "PollState"):
        from repowatch import pipeline

        return getattr(pipeline, name)
    if name in ("open_repository", "fetch_latest_commit_sha", "differs", "merge_remote_branch"):
        from repowatch import git

        return getattr(git, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
