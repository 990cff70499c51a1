"""Report uncommitted changes in every repository below a directory."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from gitscan.aggregate import aggregate, collect_repo_status
from gitscan.config import get_logger
from gitscan.discovery import find_repositories
from gitscan.status import GitError, StatusEntry, require_git

console = Console(highlight=False, emoji=False, soft_wrap=True)
stderr_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)

logger = get_logger("scan")


def format_change(root: Path, entry: StatusEntry) -> str:
    return f"{root}/{entry.path} - {entry.flags.describe()}"


def print_change(root: Path, entry: StatusEntry) -> None:
    stderr_console.print(escape(format_change(root, entry)))


def scan_changes(root: Path, strict: bool = False, include_ignored: bool = False) -> int:
    """Find repositories under root and print their changed paths.

    Change lines go to stderr, the one-line summary to stdout.

    Args:
        root: Directory to scan
        strict: Abort on the first repository that cannot be read
        include_ignored: Also report ignored files

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        require_git()
    except GitError as e:
        stderr_console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    logger.debug(f"Scanning {root}")
    roots = find_repositories(root)
    logger.debug(f"Discovered {len(roots)} repositories")

    def collect(path: Path):
        return collect_repo_status(path, include_ignored=include_ignored)

    try:
        result = aggregate(roots, collect=collect, on_change=print_change, strict=strict)
    except GitError as e:
        stderr_console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    if result.skipped:
        logger.warning(f"Skipped {len(result.skipped)} repositories that could not be read")

    console.print(result.summary())
    return 0
