# RepoWatch Output Module
# Rich console output

from repowatch.output.console import Console, create_console, short_sha

__all__ = [
    "Console",
    "create_console",
    "short_sha",
]
