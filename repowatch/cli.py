"""Click-based CLI for RepoWatch - fetch a branch and merge it when the remote moved."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import click
from rich.markup import escape

from repowatch import __version__
from repowatch.config import (
    WatchConfig,
    ensure_config_exists,
    get_config_path,
    resolve_config,
    resolve_output,
    validate_config_file,
)
from repowatch.git.errors import ConfigError
from repowatch.history import append_entry, read_tail
from repowatch.output import create_console
from repowatch.pipeline import PollResult, WatchPipeline

console = create_console()


_SOURCE_OPTIONS = [
    click.option("--local-path", "-l", type=click.Path(path_type=Path), help="Local repository path"),
    click.option("--remote", "-r", help="Remote name as configured in the repository (e.g. origin)"),
    click.option("--branch", "-b", help="Branch to fetch and merge"),
    click.option("--ssh-key-path", "-s", type=click.Path(path_type=Path), help="SSH private key for the fetch"),
    click.option("--env-file", "-e", type=click.Path(path_type=Path), help="Key/value file with LOCAL_PATH, REMOTE, ..."),
    click.option("--config", "-c", "config_file", type=click.Path(path_type=Path), help="YAML configuration file"),
    click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Fetch timeout in seconds"),
    click.option("--verbose", "-v", is_flag=True, help="Show detailed output"),
]


def source_options(func: Callable) -> Callable:
    """Options shared by every command that needs a resolved configuration."""
    for option in reversed(_SOURCE_OPTIONS):
        func = option(func)
    return func


def _flags(
    *,
    local_path: Optional[Path] = None,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    ssh_key_path: Optional[Path] = None,
    timeout: Optional[float] = None,
    ff_only: Optional[bool] = None,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> dict[str, dict[str, Any]]:
    """Section dict from command line options; unset options stay None."""
    return {
        "repository": {
            "path": str(local_path) if local_path else None,
            "remote": remote,
            "branch": branch,
        },
        "auth": {"ssh_key_path": str(ssh_key_path) if ssh_key_path else None},
        "fetch": {"timeout": timeout, "fast_forward_only": ff_only},
        "output": {
            "verbose": True if verbose else None,
            "log_file": str(log_file) if log_file else None,
        },
    }


def _resolve(flags: dict[str, dict[str, Any]], config_file: Optional[Path], env_file: Optional[Path]) -> WatchConfig:
    """Resolve configuration or exit with status 1."""
    try:
        return resolve_config(flags, config_path=config_file, env_file=env_file)
    except ConfigError as e:
        console.print_error(escape(e.message))
        sys.exit(1)


def _source_label(config_file: Optional[Path], env_file: Optional[Path]) -> str:
    """Sources that fed the resolved configuration, lowest precedence first."""
    parts = []
    if config_file:
        parts.append(str(config_file))
    elif get_config_path().exists():
        parts.append(str(get_config_path()))
    if env_file:
        parts.append(str(env_file))
    parts.extend(["environment", "flags"])
    return " + ".join(parts)


def _record(config: WatchConfig, result: PollResult) -> None:
    if not config.output.log_file:
        return
    try:
        append_entry(Path(config.output.log_file), result)
    except OSError as e:
        console.print_warning(f"Could not write history log {config.output.log_file}: {e}")


@click.group()
@click.version_option(version=__version__, prog_name="repowatch")
def cli() -> None:
    """RepoWatch - keep a local clone in step with one remote branch.

    Each run fetches the branch, compares its tip with HEAD and merges when
    they differ. Conflicts abort the merge and exit non-zero.

    \b
    Settings come from, highest precedence first:
      flags > environment > --env-file > --config YAML > defaults
    """
    pass


@cli.command()
@source_options
@click.option("--ff-only/--no-ff-only", default=None, help="Only merge when it is a fast-forward")
@click.option("--dry-run", "-n", is_flag=True, help="Fetch and compare, but do not merge")
@click.option("--log-file", type=click.Path(path_type=Path), help="Append one line per run to this file")
def run(
    local_path: Optional[Path],
    remote: Optional[str],
    branch: Optional[str],
    ssh_key_path: Optional[Path],
    env_file: Optional[Path],
    config_file: Optional[Path],
    timeout: Optional[float],
    verbose: bool,
    ff_only: Optional[bool],
    dry_run: bool,
    log_file: Optional[Path],
) -> None:
    """Fetch the watched branch and merge it if the remote tip moved.

    Exits 0 when there was nothing to do or the merge succeeded, 1 when any
    stage failed (open, fetch, compare, merge).
    """
    flags = _flags(
        local_path=local_path,
        remote=remote,
        branch=branch,
        ssh_key_path=ssh_key_path,
        timeout=timeout,
        ff_only=ff_only,
        log_file=log_file,
        verbose=verbose,
    )
    config = _resolve(flags, config_file, env_file)
    out = create_console(verbose=config.output.verbose, colored=config.output.colored)

    result = WatchPipeline(config, out).run(dry_run=dry_run)
    out.print_result(result)
    _record(config, result)

    if not result.success:
        sys.exit(1)


@cli.command()
@source_options
def status(
    local_path: Optional[Path],
    remote: Optional[str],
    branch: Optional[str],
    ssh_key_path: Optional[Path],
    env_file: Optional[Path],
    config_file: Optional[Path],
    timeout: Optional[float],
    verbose: bool,
) -> None:
    """Fetch and show how HEAD relates to the remote tip. Never merges."""
    flags = _flags(
        local_path=local_path,
        remote=remote,
        branch=branch,
        ssh_key_path=ssh_key_path,
        timeout=timeout,
        verbose=verbose,
    )
    config = _resolve(flags, config_file, env_file)
    out = create_console(verbose=config.output.verbose, colored=config.output.colored)

    result = WatchPipeline(config, out).status()
    out.print_status(result)

    if not result.success:
        sys.exit(1)


@cli.command()
@click.option("--lines", "-n", default=50, help="Number of lines to show")
@click.option("--config", "-c", "config_file", type=click.Path(path_type=Path), help="YAML configuration file")
@click.option("--env-file", "-e", type=click.Path(path_type=Path), help="Key/value file that may set LOG_FILE")
@click.option("--file", "-f", "log_file", type=click.Path(path_type=Path), help="History log to read")
def log(lines: int, config_file: Optional[Path], env_file: Optional[Path], log_file: Optional[Path]) -> None:
    """Show recent runs from the history log."""
    if log_file is None:
        try:
            output = resolve_output(config_path=config_file, env_file=env_file)
        except ConfigError as e:
            console.print_error(escape(e.message))
            sys.exit(1)
        if not output.log_file:
            console.print_info("No history log configured (--log-file, LOG_FILE or output.log_file).")
            return
        log_file = Path(output.log_file)

    entries = read_tail(log_file, lines)
    if not entries:
        console.print_info(f"No runs recorded in {log_file} yet.")
        return
    console.print("\n".join(entries), markup=False)


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration file commands."""
    pass


@config.command("init")
@click.option("--path", "-p", "config_file", type=click.Path(path_type=Path), help="Where to write the file")
def config_init(config_file: Optional[Path]) -> None:
    """Write a starter configuration file."""
    path, created = ensure_config_exists(config_file)
    if created:
        console.print_success(f"Created configuration: {path}")
    else:
        console.print_info(f"Configuration already exists: {path}")


@config.command("show")
@source_options
def config_show(
    local_path: Optional[Path],
    remote: Optional[str],
    branch: Optional[str],
    ssh_key_path: Optional[Path],
    env_file: Optional[Path],
    config_file: Optional[Path],
    timeout: Optional[float],
    verbose: bool,
) -> None:
    """Show the resolved configuration (secrets masked)."""
    flags = _flags(
        local_path=local_path,
        remote=remote,
        branch=branch,
        ssh_key_path=ssh_key_path,
        timeout=timeout,
        verbose=verbose,
    )
    resolved = _resolve(flags, config_file, env_file)
    source = _source_label(config_file, env_file)
    console.print_config(resolved.redacted(), source)


@config.command("check")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
def config_check(file: Path) -> None:
    """Validate a configuration file on its own."""
    valid, errors = validate_config_file(file)
    if valid:
        console.print_success(f"✓ {file} is valid")
        return
    for error in errors:
        console.print_error(escape(error))
    sys.exit(1)
