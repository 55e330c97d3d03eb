# RepoWatch Configuration Loader
# Merge flags, environment, .env file and YAML into one WatchConfig

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from repowatch.config.defaults import default_config, generate_default_config
from repowatch.config.schema import OutputConfig, WatchConfig
from repowatch.git.errors import ConfigError

# Environment / .env key -> (section, field)
ENV_KEYS: dict[str, tuple[str, str]] = {
    "LOCAL_PATH": ("repository", "path"),
    "REMOTE": ("repository", "remote"),
    "BRANCH": ("repository", "branch"),
    "SSH_KEY_PATH": ("auth", "ssh_key_path"),
    "GIT_USERNAME": ("auth", "username"),
    "GIT_PASSWORD": ("auth", "password"),
    "FETCH_TIMEOUT": ("fetch", "timeout"),
    "FAST_FORWARD_ONLY": ("fetch", "fast_forward_only"),
    "LOG_FILE": ("output", "log_file"),
}

# Human names for required settings, used in error messages.
REQUIRED_HINTS: dict[str, str] = {
    "path": "local path (--local-path / LOCAL_PATH)",
    "remote": "remote (--remote / REMOTE)",
    "branch": "branch (--branch / BRANCH)",
}


def get_config_dir() -> Path:
    """Get the RepoWatch configuration directory."""
    return Path.home() / ".config" / "repowatch"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("REPOWATCH_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML configuration file.

    Args:
        config_path: Path to the file.

    Returns:
        Parsed mapping (empty if the file is empty).

    Raises:
        ConfigError: If the file is missing or not a YAML mapping.
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}\nRun 'repowatch config init' to create one.")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")
    return data


def read_env_file(env_path: Path) -> dict[str, Optional[str]]:
    """
    Read a key/value .env file without touching os.environ.

    Raises:
        ConfigError: If the file does not exist.
    """
    if not env_path.is_file():
        raise ConfigError(f"Env file not found: {env_path}")
    return dict(dotenv_values(env_path))


def env_overrides(values: Mapping[str, Optional[str]]) -> dict[str, dict[str, Any]]:
    """
    Translate environment-style keys into configuration sections.

    Unknown keys, unset keys and empty values are ignored.
    """
    result: dict[str, dict[str, Any]] = {}
    for key, (section, name) in ENV_KEYS.items():
        value = values.get(key)
        if value is None or value == "":
            continue
        result.setdefault(section, {})[name] = value
    return result


def merge_sections(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge section dicts one level deep; None values in override are skipped."""
    result = {key: dict(value) if isinstance(value, dict) else value for key, value in base.items()}
    for section, values in override.items():
        if isinstance(values, Mapping):
            target = result.get(section)
            if not isinstance(target, dict):
                target = result[section] = {}
            for name, value in values.items():
                if value is not None:
                    target[name] = value
        elif values is not None:
            result[section] = values
    return result


def _collect(
    flags: Optional[Mapping[str, Any]],
    config_path: Optional[Path],
    env_file: Optional[Path],
    environ: Optional[Mapping[str, str]],
) -> dict[str, Any]:
    """Merge defaults and every source into one section dict, unvalidated."""
    environ = os.environ if environ is None else environ
    data = default_config()

    if config_path is not None:
        data = merge_sections(data, load_yaml_file(Path(config_path).expanduser()))
    else:
        default_path = get_config_path()
        if default_path.exists():
            data = merge_sections(data, load_yaml_file(default_path))

    if env_file is not None:
        data = merge_sections(data, env_overrides(read_env_file(Path(env_file).expanduser())))

    data = merge_sections(data, env_overrides(environ))

    if flags:
        data = merge_sections(data, flags)
    return data


def resolve_config(
    flags: Optional[Mapping[str, Any]] = None,
    *,
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> WatchConfig:
    """
    Resolve the run configuration from every source, once.

    Precedence, highest first: flags, environment, env file, YAML file,
    defaults. When no config_path is given the default location is used
    only if it exists.

    Args:
        flags: Section dict built from command line options.
        config_path: Explicit YAML configuration file.
        env_file: Optional .env key/value file.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Validated WatchConfig.

    Raises:
        ConfigError: If a source is unreadable, a required setting is
            missing, or a value is invalid.
    """
    return validate_config(_collect(flags, config_path, env_file, environ))


def resolve_output(
    *,
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> OutputConfig:
    """
    Resolve only the output section, with the same precedence as resolve_config.

    Repository settings are not required.

    Raises:
        ConfigError: If a source is unreadable or an output value is invalid.
    """
    data = _collect(None, config_path, env_file, environ)
    try:
        return OutputConfig.model_validate(data.get("output") or {})
    except ValidationError as e:
        raise ConfigError("; ".join(_describe_errors(e, prefix=("output",))))


def _describe_errors(error: ValidationError, prefix: tuple[str, ...] = ()) -> list[str]:
    """One 'section -> field: message' line per invalid value."""
    return [
        f"{' -> '.join([*prefix, *(str(part) for part in e['loc'])])}: {e['msg']}"
        for e in error.errors()
    ]


def validate_config(data: Mapping[str, Any]) -> WatchConfig:
    """
    Validate merged configuration data.

    Raises:
        ConfigError: Listing missing required settings or invalid values.
    """
    try:
        return WatchConfig.model_validate(data)
    except ValidationError as e:
        missing: list[str] = []
        problems: list[str] = []
        for error in e.errors():
            loc = [str(part) for part in error["loc"]]
            if error["type"] == "missing":
                field = loc[-1]
                missing.append(REQUIRED_HINTS.get(field, " -> ".join(loc)))
            else:
                problems.append(f"{' -> '.join(loc)}: {error['msg']}")
        if missing:
            problems.insert(0, "Missing required setting(s): " + ", ".join(missing))
        raise ConfigError("; ".join(problems))


def save_config(data: Mapping[str, Any], config_path: Optional[Path] = None) -> Path:
    """
    Write configuration data to a YAML file.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(dict(data), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating the template if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Path) -> tuple[bool, list[str]]:
    """
    Validate a configuration file on its own (no flags or environment).

    Returns:
        Tuple of (is_valid, error_messages).
    """
    try:
        data = merge_sections(default_config(), load_yaml_file(config_path))
        validate_config(data)
    except ConfigError as e:
        return False, [part for part in e.message.split("; ") if part]
    return True, []
