# RepoWatch Compare Stage
# Decide whether the fetched tip differs from the local tip

from repowatch.git.errors import RefError
from repowatch.git.repository import Divergence, RepositoryHandle


def local_tip(handle: RepositoryHandle) -> str:
    """Commit id of the checked-out branch, tagged with the compare stage on failure."""
    try:
        return handle.head_sha()
    except RefError as e:
        e.stage = "compare"
        raise


def differs(handle: RepositoryHandle, remote_sha: str) -> bool:
    """
    Check whether the local tip differs from the fetched tip.

    Plain id inequality: a local branch that is ahead or has diverged
    also counts as differing.

    Args:
        handle: Open repository handle.
        remote_sha: Commit id returned by the fetch stage.

    Returns:
        True if the ids differ.
    """
    return local_tip(handle) != remote_sha


def describe(handle: RepositoryHandle, remote_sha: str) -> Divergence:
    """Ancestry relationship between the local tip and the fetched tip."""
    return handle.divergence(local_tip(handle), remote_sha)
