# RepoWatch Test Fixtures
# Throwaway bare remotes and clones built with GitPython

import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import yaml
from git import Repo

from repowatch.config.loader import ENV_KEYS

CommitFn = Callable[..., str]


def _commit_file(repo: Repo, name: str, content: str, message: str | None = None) -> str:
    """Write a file, commit it, and return the new commit id."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    repo.index.add([name])
    commit = repo.index.commit(message or f"update {name}")
    return commit.hexsha


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Fresh HOME, fixed git identity, and no RepoWatch keys from the outer shell."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Tester")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@example.com")
    for key in (*ENV_KEYS, "REPOWATCH_CONFIG", "SSH_AUTH_SOCK", "GIT_CONFIG_COUNT"):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def commit_file() -> CommitFn:
    """Helper: commit_file(repo, name, content, message=None) -> sha."""
    return _commit_file


@pytest.fixture
def remote_path(temp_dir: Path) -> Path:
    """Bare remote seeded with one commit on main."""
    remote = temp_dir / "remote.git"
    remote.mkdir()
    Repo.init(remote, bare=True)

    seed_dir = temp_dir / "seed"
    seed = Repo.init(seed_dir)
    _commit_file(seed, "README.md", "line one\nline two\n", "seed")
    seed.git.branch("-M", "main")
    seed.create_remote("origin", remote.as_posix())
    seed.remotes.origin.push("main:main")
    seed.close()
    shutil.rmtree(seed_dir)
    return remote


@pytest.fixture
def upstream(temp_dir: Path, remote_path: Path) -> Generator[Repo, None, None]:
    """A second clone used to push new commits to the remote."""
    repo = Repo.clone_from(remote_path.as_posix(), temp_dir / "upstream", branch="main")
    yield repo
    repo.close()


@pytest.fixture
def local(temp_dir: Path, remote_path: Path) -> Generator[Repo, None, None]:
    """The clone being watched."""
    repo = Repo.clone_from(remote_path.as_posix(), temp_dir / "local", branch="main")
    yield repo
    repo.close()


@pytest.fixture
def push_commits(upstream: Repo, commit_file: CommitFn) -> Callable[[int], str]:
    """Helper: push_commits(n) pushes n linear commits to the remote, returns the new tip."""

    def _push(count: int = 1, name: str = "CHANGES.md") -> str:
        sha = ""
        for i in range(count):
            sha = commit_file(upstream, name, f"change {i}\n" * (i + 1), f"remote change {i}")
        upstream.remotes.origin.push("main:main")
        return sha

    return _push


@pytest.fixture
def watch_config(local: Repo) -> dict:
    """Configuration dict pointing at the watched clone."""
    return {
        "repository": {
            "path": local.working_tree_dir,
            "remote": "origin",
            "branch": "main",
        },
        "fetch": {"timeout": 30},
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config_file(temp_dir: Path, watch_config: dict) -> Path:
    """Write the configuration dict to a YAML file."""
    config_path = temp_dir / "repowatch.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(watch_config, f, default_flow_style=False)
    return config_path
