# RepoWatch History Log
# One appended line per run, for the `log` command

from datetime import datetime, timezone
from pathlib import Path

from repowatch.pipeline import PollResult


def format_entry(result: PollResult, when: datetime | None = None) -> str:
    """Render a run as a single log line."""
    when = when or datetime.now(timezone.utc)
    local = (result.local_sha or "-")[:12]
    remote = (result.remote_sha or "-")[:12]
    line = f"{when.strftime('%Y-%m-%dT%H:%M:%SZ')} {result.state.value} {result.target} {local}..{remote}"
    if result.dry_run:
        line += " (dry-run)"
    if result.error is not None:
        line += f" error={result.error.describe()}"
    return line


def append_entry(log_path: Path, result: PollResult) -> None:
    """Append a run to the history log, creating it if needed."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    entry = format_entry(result).replace("\n", " ")
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(entry + "\n")


def read_tail(log_path: Path, lines: int = 50) -> list[str]:
    """Last `lines` entries of the history log (empty if missing)."""
    if not log_path.exists():
        return []
    content = log_path.read_text(encoding="utf-8").splitlines()
    return content[-lines:] if lines > 0 else []
