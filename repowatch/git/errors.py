# RepoWatch Git Errors
# Error taxonomy for the open / fetch / compare / merge stages

from typing import Optional

from git import GitCommandError


class GitError(Exception):
    """Exception raised for git operation errors."""

    def __init__(
        self,
        message: str,
        returncode: int = 1,
        stderr: str = "",
        *,
        stage: Optional[str] = None,
    ):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        self.stage = stage
        super().__init__(message)

    def describe(self) -> str:
        """Message prefixed with the stage that failed, if known."""
        if self.stage:
            return f"{self.stage} failed: {self.message}"
        return self.message


class PathError(GitError):
    """Local repository path is missing or is not a git work tree."""


class ConfigError(GitError):
    """Remote, branch or credential configuration is missing or wrong."""


class AuthError(GitError):
    """Credentials were rejected or could not be used."""


class NetworkError(GitError):
    """Transport failure (or timeout) while talking to the remote."""


class RefError(GitError):
    """HEAD or the fetch marker could not be resolved."""


class MergeError(GitError):
    """Merge failed for a reason other than conflicting changes."""


class ConflictError(MergeError):
    """Merge stopped because both sides changed the same hunk."""

    def __init__(self, message: str, paths: Optional[list[str]] = None, **kwargs):
        self.paths = list(paths or [])
        super().__init__(message, **kwargs)


# Lower-cased stderr fragments, checked in this order.
_CONFIG_MARKERS = (
    "couldn't find remote ref",
    "does not appear to be a git repository",
    "no such remote",
    "invalid refspec",
)

_AUTH_MARKERS = (
    "permission denied",
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "host key verification failed",
    "load key",
    "invalid format",
    "repository not found",
    "returned error: 401",
    "returned error: 403",
)

_NETWORK_MARKERS = (
    "could not resolve host",
    "could not resolve hostname",
    "connection refused",
    "connection timed out",
    "operation timed out",
    "network is unreachable",
    "connection reset",
    "early eof",
    "unable to access",
    "could not read from remote repository",
)


def command_output(exc: GitCommandError) -> str:
    """Flatten stderr and stdout of a failed git command into one string."""
    parts = [str(exc.stderr or ""), str(exc.stdout or "")]
    return "\n".join(p.strip() for p in parts if p and p.strip())


def classify_fetch_error(exc: GitCommandError, remote: str, branch: str) -> GitError:
    """
    Map a failed ``git fetch`` to the error taxonomy.

    Args:
        exc: Error raised by GitPython.
        remote: Remote name being fetched.
        branch: Branch name being fetched.

    Returns:
        A ConfigError, AuthError or NetworkError carrying the git output.
    """
    output = command_output(exc)
    lowered = output.lower()
    status = exc.status if isinstance(exc.status, int) else 1

    if any(marker in lowered for marker in _CONFIG_MARKERS):
        if "couldn't find remote ref" in lowered:
            message = f"Branch '{branch}' does not exist on remote '{remote}'"
        else:
            message = f"Remote '{remote}' does not point at a usable repository"
        return ConfigError(message, returncode=status, stderr=output, stage="fetch")

    if any(marker in lowered for marker in _AUTH_MARKERS):
        return AuthError(
            f"Authentication to remote '{remote}' was rejected",
            returncode=status,
            stderr=output,
            stage="fetch",
        )

    if any(marker in lowered for marker in _NETWORK_MARKERS):
        message = f"Could not reach remote '{remote}'"
    else:
        message = f"Fetching '{branch}' from '{remote}' failed"
    return NetworkError(message, returncode=status, stderr=output, stage="fetch")
