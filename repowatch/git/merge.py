# RepoWatch Merge Stage
# Re-fetch and merge the fetch marker, aborting on any conflict

from git import GitCommandError

from repowatch.git.errors import ConflictError, GitError, MergeError, RefError, command_output
from repowatch.git.fetch import FETCH_MARKER, Fetcher
from repowatch.git.repository import Divergence, RepositoryHandle


class Merger:
    """
    Merges a freshly fetched branch into the checked-out branch.

    The merge runs with git's default analysis (fast-forward when possible,
    merge commit otherwise). A conflicted merge is aborted before returning,
    so the branch tip and work tree are left as they were.
    """

    def __init__(self, handle: RepositoryHandle, fetcher: Fetcher, *, fast_forward_only: bool = False):
        """
        Initialize merger.

        Args:
            handle: Open repository handle.
            fetcher: Fetcher used for the re-fetch.
            fast_forward_only: Refuse anything but a fast-forward.
        """
        self.handle = handle
        self.fetcher = fetcher
        self.fast_forward_only = fast_forward_only

    def merge(self, remote: str, branch: str) -> str:
        """
        Re-fetch a branch and merge it into the current branch.

        Args:
            remote: Configured remote name.
            branch: Branch name on the remote.

        Returns:
            Commit id of HEAD after the merge.

        Raises:
            ConfigError, AuthError, NetworkError: From the re-fetch.
            ConflictError: Both sides changed the same hunk.
            MergeError: Merge refused for any other reason.
        """
        try:
            fetched = self.fetcher.fetch(remote, branch)
        except GitError as e:
            e.stage = "merge"
            raise

        args = ["--no-edit"]
        if self.fast_forward_only:
            if self.handle.divergence(self._head(), fetched) == Divergence.DIVERGED:
                raise MergeError(
                    f"Local branch has diverged from {remote}/{branch}; refusing non fast-forward merge",
                    stage="merge",
                )
            args.append("--ff-only")

        try:
            self.handle.repo.git.merge(*args, FETCH_MARKER)
        except GitCommandError as e:
            self._fail(e, remote, branch)

        return self._head()

    def _head(self) -> str:
        try:
            return self.handle.head_sha()
        except RefError as e:
            e.stage = "merge"
            raise

    def _fail(self, exc: GitCommandError, remote: str, branch: str) -> None:
        """Abort a conflicted merge and raise the matching error."""
        output = command_output(exc)
        status = exc.status if isinstance(exc.status, int) else 1
        conflicted = self.handle.unmerged_paths()

        if self.handle.is_merging():
            self._abort()

        if conflicted or "conflict" in output.lower():
            raise ConflictError(
                f"Merging {remote}/{branch} conflicts in: {', '.join(conflicted) or 'unknown paths'}",
                paths=conflicted,
                returncode=status,
                stderr=output,
                stage="merge",
            )

        raise MergeError(
            f"Merging {remote}/{branch} failed",
            returncode=status,
            stderr=output,
            stage="merge",
        )

    def _abort(self) -> None:
        try:
            self.handle.repo.git.merge("--abort")
        except GitCommandError as e:
            raise MergeError(
                "Merge conflicted and 'git merge --abort' also failed; repository needs manual cleanup",
                stderr=command_output(e),
                stage="merge",
            )


def merge_remote_branch(
    handle: RepositoryHandle,
    fetcher: Fetcher,
    remote: str,
    branch: str,
    *,
    fast_forward_only: bool = False,
) -> str:
    """Re-fetch and merge; returns HEAD's commit id afterwards."""
    return Merger(handle, fetcher, fast_forward_only=fast_forward_only).merge(remote, branch)
