# RepoWatch Fetch Stage
# Fetch one branch from one remote and resolve the fetch marker

import time
from typing import Callable, Optional

from git import GitCommandError

from repowatch.git.credentials import CredentialChain, url_transport
from repowatch.git.errors import (
    AuthError,
    ConfigError,
    GitError,
    NetworkError,
    RefError,
    classify_fetch_error,
)
from repowatch.git.repository import RepositoryHandle

DEFAULT_FETCH_TIMEOUT = 120.0

FETCH_MARKER = "FETCH_HEAD"


def branch_refspec(remote: str, branch: str) -> str:
    """Refspec that updates only the remote-tracking ref of one branch."""
    return f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}"


class Fetcher:
    """
    Fetches exactly one branch, trying credential providers in order.

    A provider is abandoned only when git reports an authentication
    failure; any other failure ends the fetch immediately. A configured
    SSH key that ssh cannot load also ends the fetch.
    """

    def __init__(
        self,
        handle: RepositoryHandle,
        credentials: Optional[CredentialChain] = None,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        on_attempt: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize fetcher.

        Args:
            handle: Open repository handle.
            credentials: Provider chain (anonymous only if not given).
            timeout: Seconds before a hung transport is killed.
            on_attempt: Optional callback receiving each provider name tried.
        """
        self.handle = handle
        self.credentials = credentials or CredentialChain()
        self.timeout = timeout
        self.on_attempt = on_attempt

    def fetch(self, remote: str, branch: str) -> str:
        """
        Fetch a branch and return the commit id of the fetch marker.

        Args:
            remote: Configured remote name.
            branch: Branch name on the remote.

        Returns:
            40-hex commit id of the fetched tip.

        Raises:
            ConfigError: Remote not configured or branch missing on remote.
            AuthError: Every applicable credential was rejected or unusable.
            NetworkError: Transport failure or timeout.
            RefError: Fetch marker could not be resolved.
        """
        if not branch:
            raise ConfigError("No branch given to fetch", stage="fetch")

        try:
            url = self.handle.remote_url(remote)
        except ConfigError as e:
            e.stage = "fetch"
            raise

        self.credentials.validate()
        transport = url_transport(url)
        git_remote = self.handle.repo.remote(remote)
        refspec = branch_refspec(remote, branch)

        rejected: list[str] = []
        last_error: Optional[GitError] = None

        for provider in self.credentials.for_transport(transport):
            if self.on_attempt:
                self.on_attempt(provider.name)

            started = time.monotonic()
            try:
                with self.handle.repo.git.custom_environment(**provider.environment()):
                    git_remote.fetch(refspec, no_tags=True, kill_after_timeout=self.timeout)
            except GitCommandError as e:
                if time.monotonic() - started >= self.timeout:
                    raise NetworkError(
                        f"Fetching '{branch}' from '{remote}' timed out after {self.timeout:g}s",
                        stderr=str(e.stderr or "").strip(),
                        stage="fetch",
                    )
                error = classify_fetch_error(e, remote, branch)
                if not isinstance(error, AuthError):
                    raise error
                fatal = provider.fatal_rejection(error)
                if fatal is not None:
                    raise fatal
                rejected.append(provider.name)
                last_error = error
                continue

            try:
                return self.handle.resolve(FETCH_MARKER)
            except RefError as e:
                e.stage = "fetch"
                raise

        tried = ", ".join(rejected) or "none"
        raise AuthError(
            f"No credential accepted by remote '{remote}' (tried: {tried})",
            stderr=last_error.stderr if last_error else "",
            stage="fetch",
        )


def fetch_latest_commit_sha(
    handle: RepositoryHandle,
    remote: str,
    branch: str,
    credentials: Optional[CredentialChain] = None,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> str:
    """
    Fetch a branch and return the fetched tip's commit id.

    Args:
        handle: Open repository handle.
        remote: Configured remote name.
        branch: Branch name on the remote.
        credentials: Optional credential chain.
        timeout: Network timeout in seconds.

    Returns:
        Commit id string.
    """
    return Fetcher(handle, credentials, timeout=timeout).fetch(remote, branch)
