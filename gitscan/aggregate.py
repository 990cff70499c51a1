"""Fold per-repository status into a single scan result."""

from dataclasses import dataclass
from functools import reduce
from pathlib import Path
from typing import Callable, Iterable, Optional

from gitscan.config import get_logger
from gitscan.status import GitError, StatusEntry, open_repository, query_status

logger = get_logger("aggregate")


@dataclass(frozen=True)
class RepoStatus:
    """Status entries of one repository that opened and answered."""
    root: Path
    entries: tuple[StatusEntry, ...] = ()


@dataclass(frozen=True)
class ScanResult:
    repos: int = 0
    changes: int = 0
    skipped: tuple[Path, ...] = ()

    def add(self, status: RepoStatus) -> "ScanResult":
        return ScanResult(
            repos=self.repos + 1,
            changes=self.changes + len(status.entries),
            skipped=self.skipped,
        )

    def skip(self, root: Path) -> "ScanResult":
        return ScanResult(
            repos=self.repos,
            changes=self.changes,
            skipped=self.skipped + (root,),
        )

    def summary(self) -> str:
        return f"{self.repos} repos found, {self.changes} changes"


Collector = Callable[[Path], RepoStatus]
ChangeHandler = Callable[[Path, StatusEntry], None]


def collect_repo_status(root: Path, include_ignored: bool = False) -> RepoStatus:
    """Open ``root`` and read its status. Raises GitError subclasses on failure."""
    repo = open_repository(root)
    entries = query_status(repo, include_ignored=include_ignored)
    return RepoStatus(root=root, entries=tuple(entries))


def aggregate(
    roots: Iterable[Path],
    collect: Collector = collect_repo_status,
    on_change: Optional[ChangeHandler] = None,
    strict: bool = False,
) -> ScanResult:
    """Collect status for each root in order and total the results.

    A repository that fails to open or to report status is skipped and
    recorded in ``ScanResult.skipped``. With ``strict`` the first failure
    is raised instead.

    Args:
        roots: Repository roots, usually from find_repositories()
        collect: Reads one repository's status
        on_change: Called once per changed path, as soon as it is known
        strict: Raise the first GitError instead of skipping

    Returns:
        The final ScanResult
    """
    def step(result: ScanResult, root: Path) -> ScanResult:
        try:
            status = collect(root)
        except GitError as e:
            if strict:
                raise
            logger.warning(f"Skipping {root}: {e}")
            return result.skip(root)

        if on_change is not None:
            for entry in status.entries:
                on_change(root, entry)
        return result.add(status)

    return reduce(step, roots, ScanResult())
