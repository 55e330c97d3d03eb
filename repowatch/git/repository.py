# RepoWatch Repository Handle
# Opens the local clone and answers ref / ancestry questions about it

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from repowatch.git.errors import ConfigError, PathError, RefError


class Divergence(str, Enum):
    """Relationship between the local tip and the fetched tip."""

    UP_TO_DATE = "up_to_date"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"


class RepositoryHandle:
    """
    Handle on an existing local git work tree.

    One handle is opened per run and shared by every stage. Refs are read
    from disk on each call, so nothing cached here goes stale across a fetch.
    """

    def __init__(self, repo: Repo):
        self._repo = repo
        self.path = Path(repo.working_tree_dir)

    @property
    def repo(self) -> Repo:
        """Underlying GitPython repository."""
        return self._repo

    @property
    def git_dir(self) -> Path:
        return Path(self._repo.git_dir)

    def head_sha(self) -> str:
        """
        Commit id that HEAD peels to.

        Raises:
            RefError: If HEAD is unborn or detached.
        """
        head = self._repo.head
        if not head.is_valid():
            raise RefError(f"HEAD of {self.path} does not point at a commit yet (unborn branch)")
        if head.is_detached:
            raise RefError(f"HEAD of {self.path} is detached; check out a branch first")
        return head.commit.hexsha

    def current_branch(self) -> Optional[str]:
        """Checked-out branch name, or None when detached."""
        if self._repo.head.is_detached:
            return None
        return self._repo.head.reference.name

    def remote_names(self) -> list[str]:
        """Names of all configured remotes."""
        return [remote.name for remote in self._repo.remotes]

    def has_remote(self, name: str) -> bool:
        return name in self.remote_names()

    def remote_url(self, name: str) -> str:
        """
        First URL configured for a remote.

        Raises:
            ConfigError: If the remote is not configured.
        """
        if not self.has_remote(name):
            raise ConfigError(
                f"Remote '{name}' is not configured in {self.path} "
                f"(known remotes: {', '.join(self.remote_names()) or 'none'})"
            )
        return self._repo.remote(name).url

    def resolve(self, ref: str) -> str:
        """
        Resolve any revision expression to a commit id.

        Raises:
            RefError: If the revision cannot be resolved to a commit.
        """
        try:
            return self._repo.git.rev_parse("--verify", f"{ref}^{{commit}}").strip()
        except GitCommandError as e:
            raise RefError(
                f"Cannot resolve '{ref}' to a commit",
                returncode=e.status if isinstance(e.status, int) else 1,
                stderr=str(e.stderr or "").strip(),
            )

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return self._repo.is_ancestor(ancestor, descendant)

    def divergence(self, local_sha: str, remote_sha: str) -> Divergence:
        """
        Classify how two commits relate through their merge base.

        Args:
            local_sha: Local branch tip.
            remote_sha: Fetched tip.

        Returns:
            Divergence value.
        """
        if local_sha == remote_sha:
            return Divergence.UP_TO_DATE
        if self.is_ancestor(local_sha, remote_sha):
            return Divergence.BEHIND
        if self.is_ancestor(remote_sha, local_sha):
            return Divergence.AHEAD
        return Divergence.DIVERGED

    def is_merging(self) -> bool:
        """True while a merge is in progress (MERGE_HEAD exists)."""
        return (self.git_dir / "MERGE_HEAD").exists()

    def unmerged_paths(self) -> list[str]:
        """Paths the index records as conflicted."""
        output = self._repo.git.diff("--name-only", "--diff-filter=U")
        return [line.strip() for line in output.splitlines() if line.strip()]


def open_repository(path: Union[str, Path]) -> RepositoryHandle:
    """
    Open an existing local repository.

    Args:
        path: Path to the work tree root.

    Returns:
        RepositoryHandle for the repository.

    Raises:
        PathError: If the path does not exist, is not a git repository,
            or is a bare repository.
    """
    path = Path(path).expanduser()

    try:
        repo = Repo(path)
    except NoSuchPathError:
        raise PathError(f"Path does not exist: {path}", stage="open")
    except InvalidGitRepositoryError:
        raise PathError(f"Not a git repository: {path}", stage="open")

    if repo.bare:
        raise PathError(f"Repository at {path} is bare; a work tree is required to merge", stage="open")

    return RepositoryHandle(repo)
