# RepoWatch Credentials
# Ordered credential providers for the fetch stage

import os
import re
import shlex
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from repowatch.git.errors import AuthError

SSH = "ssh"
HTTP = "http"
GIT = "git"
LOCAL = "local"

_SCP_LIKE = re.compile(r"^(?:[\w.+-]+@)?[\w.-]+:(?!//)")
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:[\\/]")

# Every attempt runs without a terminal to prompt on.
_BASE_ENV = {"GIT_TERMINAL_PROMPT": "0"}

_USERNAME_VAR = "REPOWATCH_GIT_USERNAME"
_PASSWORD_VAR = "REPOWATCH_GIT_PASSWORD"

# ssh output meaning the configured key file itself could not be used.
_KEY_LOAD_MARKERS = (
    "load key",
    "invalid format",
    "no such identity",
    "bad permissions",
    "unprotected private key file",
)


def url_transport(url: str) -> str:
    """
    Classify a remote URL by the transport git will use for it.

    Args:
        url: Remote URL as configured.

    Returns:
        One of "ssh", "http", "git" or "local".
    """
    lowered = url.lower()
    if lowered.startswith(("ssh://", "git+ssh://", "ssh+git://")):
        return SSH
    if lowered.startswith(("http://", "https://")):
        return HTTP
    if lowered.startswith("git://"):
        return GIT
    if lowered.startswith("file://") or _WINDOWS_DRIVE.match(url):
        return LOCAL
    if _SCP_LIKE.match(url) and "/" not in url.split(":", 1)[0]:
        return SSH
    return LOCAL


class CredentialProvider:
    """
    One way of authenticating a fetch.

    Providers contribute environment variables to the git process; they are
    tried in order until one is not rejected.
    """

    name = "base"
    transports: frozenset[str] = frozenset()

    def supports(self, transport: str) -> bool:
        return transport in self.transports

    def is_available(self) -> bool:
        return True

    def validate(self) -> None:
        """Raise AuthError if the provider's material is unusable."""

    def fatal_rejection(self, error: AuthError) -> Optional[AuthError]:
        """Error that must end the chain instead of moving to the next provider."""
        return None

    def environment(self) -> dict[str, str]:
        return dict(_BASE_ENV)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class SshKeyCredential(CredentialProvider):
    """Authenticate with one private key file, no passphrase."""

    name = "ssh-key"
    transports = frozenset({SSH})

    def __init__(self, key_path: Path):
        self.key_path = Path(key_path).expanduser()

    def validate(self) -> None:
        if not self.key_path.is_file():
            raise AuthError(f"SSH key not found: {self.key_path}", stage="fetch")
        try:
            head = self.key_path.read_text(encoding="utf-8", errors="replace")[:200]
        except OSError as e:
            raise AuthError(f"SSH key is not readable: {self.key_path} ({e})", stage="fetch")
        if "PRIVATE KEY" not in head:
            raise AuthError(f"Not a private key: {self.key_path}", stage="fetch")

    def fatal_rejection(self, error: AuthError) -> Optional[AuthError]:
        """A key ssh cannot load fails the fetch; other providers are not tried."""
        lowered = error.stderr.lower()
        if not any(marker in lowered for marker in _KEY_LOAD_MARKERS):
            return None
        return AuthError(
            f"SSH key could not be loaded: {self.key_path}",
            returncode=error.returncode,
            stderr=error.stderr,
            stage="fetch",
        )

    def environment(self) -> dict[str, str]:
        env = super().environment()
        # User name comes from the remote URL; ssh picks it up itself.
        env["GIT_SSH_COMMAND"] = (
            f"ssh -i {shlex.quote(str(self.key_path))} -o IdentitiesOnly=yes -o BatchMode=yes"
        )
        return env


class SshAgentCredential(CredentialProvider):
    """Authenticate with whatever keys the running ssh-agent offers."""

    name = "ssh-agent"
    transports = frozenset({SSH})

    def is_available(self) -> bool:
        return bool(os.environ.get("SSH_AUTH_SOCK"))

    def environment(self) -> dict[str, str]:
        env = super().environment()
        env["GIT_SSH_COMMAND"] = "ssh -o BatchMode=yes"
        return env


class PasswordCredential(CredentialProvider):
    """Username/password (or token) for HTTP remotes, fed through a credential helper."""

    name = "password"
    transports = frozenset({HTTP})

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def environment(self) -> dict[str, str]:
        env = super().environment()
        helper = (
            "!f() { test \"$1\" = get || exit 0; "
            f"echo \"username=${_USERNAME_VAR}\"; echo \"password=${_PASSWORD_VAR}\"; }}; f"
        )
        # Append after any config entries the caller's environment already passes.
        count = os.environ.get("GIT_CONFIG_COUNT", "")
        index = int(count) if count.isdigit() else 0
        env.update(
            {
                "GIT_CONFIG_COUNT": str(index + 1),
                f"GIT_CONFIG_KEY_{index}": "credential.helper",
                f"GIT_CONFIG_VALUE_{index}": helper,
                _USERNAME_VAR: self.username,
                _PASSWORD_VAR: self.password,
            }
        )
        return env


class AnonymousCredential(CredentialProvider):
    """No credentials; works for local paths and public remotes."""

    name = "anonymous"
    transports = frozenset({SSH, HTTP, GIT, LOCAL})

    def environment(self) -> dict[str, str]:
        env = super().environment()
        # No key files and no agent: ssh must not find a key on its own.
        env["GIT_SSH_COMMAND"] = (
            "ssh -o BatchMode=yes -o PubkeyAuthentication=no -o IdentityAgent=none -o IdentitiesOnly=yes"
        )
        return env


class CredentialChain:
    """Capability-ordered list of credential providers."""

    def __init__(self, providers: Optional[list[CredentialProvider]] = None):
        self.providers = list(providers) if providers is not None else [AnonymousCredential()]

    @classmethod
    def from_settings(
        cls,
        *,
        ssh_key_path: Optional[Path] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "CredentialChain":
        """
        Build the default chain: key, agent, password, anonymous.

        Args:
            ssh_key_path: Optional private key file.
            username: Optional HTTP user name.
            password: Optional HTTP password or token.

        Returns:
            CredentialChain in capability order.
        """
        providers: list[CredentialProvider] = []
        if ssh_key_path:
            providers.append(SshKeyCredential(ssh_key_path))
        providers.append(SshAgentCredential())
        if password is not None:
            providers.append(PasswordCredential(username or "git", password))
        providers.append(AnonymousCredential())
        return cls(providers)

    def for_transport(self, transport: str) -> Iterator[CredentialProvider]:
        """
        Yield the providers that can serve a transport, validating each.

        Raises:
            AuthError: If a configured provider's material is unusable.
        """
        for provider in self.providers:
            if not provider.supports(transport) or not provider.is_available():
                continue
            provider.validate()
            yield provider

    def validate(self) -> None:
        """Check every configured provider before any network call."""
        for provider in self.providers:
            provider.validate()
