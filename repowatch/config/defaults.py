# RepoWatch Default Configuration
# Default values and YAML template generator

import copy
from typing import Any

import yaml

from repowatch.git.fetch import DEFAULT_FETCH_TIMEOUT

# No repository keys: path, remote and branch must be supplied by the user.
DEFAULT_CONFIG: dict[str, Any] = {
    "auth": {
        "ssh_key_path": None,
        "username": None,
        "password": None,
    },
    "fetch": {
        "timeout": DEFAULT_FETCH_TIMEOUT,
        "fast_forward_only": False,
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_file": None,
    },
}

TEMPLATE_CONFIG: dict[str, Any] = {
    "repository": {
        "path": "~/src/my-clone",
        "remote": "origin",
        "branch": "main",
    },
    "auth": {
        "ssh_key_path": "~/.ssh/id_ed25519",
    },
    "fetch": {
        "timeout": DEFAULT_FETCH_TIMEOUT,
        "fast_forward_only": False,
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_file": "~/.config/repowatch/history.log",
    },
}


def default_config() -> dict[str, Any]:
    """Deep copy of the defaults, safe to mutate."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate a starter configuration as YAML string with comments."""
    header = """# RepoWatch Configuration
#
# One run fetches repository.branch from repository.remote into the clone at
# repository.path and merges it when the remote tip differs from HEAD.
#
# Precedence (highest first):
#   command line flags > environment > --env-file > this file > defaults
#
# Environment keys: LOCAL_PATH, REMOTE, BRANCH, SSH_KEY_PATH,
#   GIT_USERNAME, GIT_PASSWORD, FETCH_TIMEOUT, FAST_FORWARD_ONLY
#
# Keep passwords and tokens out of this file; use the environment instead.

"""
    return header + yaml.dump(TEMPLATE_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
