# RepoWatch Configuration Schema
# Pydantic models for the resolved run configuration

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator

from repowatch.git.fetch import DEFAULT_FETCH_TIMEOUT


class RepositoryConfig(BaseModel):
    """Which clone to watch and what to fetch into it."""

    path: str = Field(description="Local repository path")
    remote: str = Field(description="Configured remote name, e.g. origin")
    branch: str = Field(description="Branch to fetch and merge")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())

    @field_validator("remote", "branch")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class AuthConfig(BaseModel):
    """Credential material for the fetch stage. Never written to output."""

    ssh_key_path: str | None = Field(default=None, description="SSH private key (no passphrase)")
    username: str | None = Field(default=None, description="User name for HTTP remotes")
    password: SecretStr | None = Field(default=None, description="Password or token for HTTP remotes")

    @field_validator("ssh_key_path")
    @classmethod
    def expand_key_path(cls, v: str | None) -> str | None:
        """Expand ~ in key path."""
        if not v:
            return None
        return str(Path(v).expanduser())


class FetchConfig(BaseModel):
    """Network and merge policy settings."""

    timeout: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0, description="Fetch timeout in seconds")
    fast_forward_only: bool = Field(default=False, description="Refuse merges that are not fast-forwards")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Append one line per run to this file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if not v:
            return None
        return str(Path(v).expanduser())


class WatchConfig(BaseModel):
    """Root configuration model for RepoWatch."""

    repository: RepositoryConfig = Field(description="Repository settings")
    auth: AuthConfig = Field(default_factory=AuthConfig, description="Credential settings")
    fetch: FetchConfig = Field(default_factory=FetchConfig, description="Fetch settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    def redacted(self) -> dict:
        """Plain dict of the configuration with secrets masked."""
        data = self.model_dump(mode="json")
        if self.auth.password is not None:
            data["auth"]["password"] = "********"
        return data
