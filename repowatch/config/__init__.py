# RepoWatch Configuration Module
# Handles configuration sources, validation, and defaults

from repowatch.config.defaults import DEFAULT_CONFIG, generate_default_config
from repowatch.config.loader import (
    ENV_KEYS,
    ensure_config_exists,
    get_config_path,
    read_env_file,
    resolve_config,
    resolve_output,
    save_config,
    validate_config,
    validate_config_file,
)
from repowatch.config.schema import (
    AuthConfig,
    FetchConfig,
    OutputConfig,
    RepositoryConfig,
    WatchConfig,
)

__all__ = [
    # Schema
    "WatchConfig",
    "RepositoryConfig",
    "AuthConfig",
    "FetchConfig",
    "OutputConfig",
    # Loader
    "ENV_KEYS",
    "resolve_config",
    "resolve_output",
    "validate_config",
    "read_env_file",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
