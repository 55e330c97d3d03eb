# RepoWatch Git Module
# Repository handle, fetch, compare and merge stages

from repowatch.git.compare import describe, differs, local_tip
from repowatch.git.credentials import (
    AnonymousCredential,
    CredentialChain,
    CredentialProvider,
    PasswordCredential,
    SshAgentCredential,
    SshKeyCredential,
    url_transport,
)
from repowatch.git.errors import (
    AuthError,
    ConfigError,
    ConflictError,
    GitError,
    MergeError,
    NetworkError,
    PathError,
    RefError,
)
from repowatch.git.fetch import DEFAULT_FETCH_TIMEOUT, Fetcher, fetch_latest_commit_sha
from repowatch.git.merge import Merger, merge_remote_branch
from repowatch.git.repository import Divergence, RepositoryHandle, open_repository

__all__ = [
    # Handle
    "RepositoryHandle",
    "Divergence",
    "open_repository",
    # Stages
    "Fetcher",
    "fetch_latest_commit_sha",
    "DEFAULT_FETCH_TIMEOUT",
    "differs",
    "describe",
    "local_tip",
    "Merger",
    "merge_remote_branch",
    # Credentials
    "CredentialChain",
    "CredentialProvider",
    "SshKeyCredential",
    "SshAgentCredential",
    "PasswordCredential",
    "AnonymousCredential",
    "url_transport",
    # Errors
    "GitError",
    "PathError",
    "ConfigError",
    "AuthError",
    "NetworkError",
    "RefError",
    "MergeError",
    "ConflictError",
]
