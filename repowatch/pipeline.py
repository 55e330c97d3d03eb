# RepoWatch Pipeline
# One run: open -> fetch -> compare -> (merge)

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from repowatch.config.schema import WatchConfig
from repowatch.git.compare import differs, local_tip
from repowatch.git.credentials import CredentialChain
from repowatch.git.errors import ConflictError, GitError
from repowatch.git.fetch import Fetcher
from repowatch.git.merge import Merger
from repowatch.git.repository import Divergence, RepositoryHandle, open_repository

if TYPE_CHECKING:
    from repowatch.output.console import Console


class PollState(str, Enum):
    """Where a run ended up."""

    IDLE = "idle"
    FETCHED = "fetched"
    UP_TO_DATE = "up_to_date"
    MERGING = "merging"
    MERGED = "merged"
    CONFLICT_FAILED = "conflict_failed"
    FAILED = "failed"


@dataclass
class PollResult:
    """Outcome of a single run."""

    remote: str
    branch: str
    state: PollState = PollState.IDLE
    local_sha: str | None = None
    remote_sha: str | None = None
    merged_sha: str | None = None
    divergence: Divergence | None = None
    dry_run: bool = False
    error: GitError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def needs_merge(self) -> bool:
        """Fetched tip differs from the local tip and nothing was merged."""
        return self.state == PollState.FETCHED and self.local_sha != self.remote_sha

    @property
    def target(self) -> str:
        return f"{self.remote}/{self.branch}"

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def build_credentials(config: WatchConfig) -> CredentialChain:
    """Credential chain for the configured auth settings."""
    auth = config.auth
    return CredentialChain.from_settings(
        ssh_key_path=Path(auth.ssh_key_path) if auth.ssh_key_path else None,
        username=auth.username,
        password=auth.password.get_secret_value() if auth.password is not None else None,
    )


class WatchPipeline:
    """
    Runs the open / fetch / compare / merge stages once.

    The repository is opened once and the handle is shared by all stages.
    Failures are recorded on the result, tagged with the failing stage;
    nothing is retried.
    """

    def __init__(self, config: WatchConfig, console: Console | None = None):
        """
        Initialize pipeline.

        Args:
            config: Resolved configuration.
            console: Optional console for progress output.
        """
        self.config = config
        self.console = console

    def status(self) -> PollResult:
        """Fetch and compare without merging."""
        return self.run(dry_run=True)

    def run(self, *, dry_run: bool = False) -> PollResult:
        """
        Execute one run.

        Args:
            dry_run: Stop after the comparison.

        Returns:
            PollResult describing the final state.
        """
        repo_cfg = self.config.repository
        result = PollResult(remote=repo_cfg.remote, branch=repo_cfg.branch, dry_run=dry_run)
        stage = "open"

        try:
            self._debug(f"Opening repository {repo_cfg.path}")
            handle = open_repository(repo_cfg.path)
            self._check_branch(handle)

            stage = "fetch"
            fetcher = Fetcher(
                handle,
                build_credentials(self.config),
                timeout=self.config.fetch.timeout,
                on_attempt=lambda name: self._debug(f"Fetching {result.target} (credentials: {name})"),
            )
            result.remote_sha = fetcher.fetch(repo_cfg.remote, repo_cfg.branch)
            result.state = PollState.FETCHED

            stage = "compare"
            result.local_sha = local_tip(handle)
            result.divergence = handle.divergence(result.local_sha, result.remote_sha)
            if not differs(handle, result.remote_sha):
                result.state = PollState.UP_TO_DATE
                return result

            self._debug(f"{result.target} is at {result.remote_sha[:12]}, HEAD at {result.local_sha[:12]}")
            if dry_run:
                return result

            stage = "merge"
            result.state = PollState.MERGING
            merger = Merger(handle, fetcher, fast_forward_only=self.config.fetch.fast_forward_only)
            result.merged_sha = merger.merge(repo_cfg.remote, repo_cfg.branch)
            result.state = PollState.MERGED
        except ConflictError as e:
            e.stage = e.stage or stage
            result.state = PollState.CONFLICT_FAILED
            result.error = e
        except GitError as e:
            e.stage = e.stage or stage
            result.state = PollState.FAILED
            result.error = e

        return result

    def _check_branch(self, handle: RepositoryHandle) -> None:
        current = handle.current_branch()
        wanted = self.config.repository.branch
        if current is not None and current != wanted and self.console:
            self.console.print_warning(
                f"Checked-out branch '{current}' differs from watched branch '{wanted}'; "
                f"changes will be merged into '{current}'"
            )

    def _debug(self, message: str) -> None:
        if self.console:
            self.console.print_debug(message)
