"""Working-tree status of a single repository, read through the git CLI."""

import enum
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from gitscan.config import (
    GIT_DIR_NAME,
    GIT_EXECUTABLE,
    GIT_LOCAL_ENV_VARS,
    GIT_TIMEOUT_SECONDS,
    get_logger,
)

logger = get_logger("status")


class GitError(Exception):
    """Base exception for git access."""


class GitNotFoundError(GitError):
    """Raised when the git executable is not available."""


class RepositoryOpenError(GitError):
    """Raised when a directory cannot be opened as a repository."""


class StatusQueryError(GitError):
    """Raised when git status fails on an opened repository."""


class StatusFlag(enum.Flag):
    INDEX_NEW = enum.auto()
    INDEX_MODIFIED = enum.auto()
    INDEX_DELETED = enum.auto()
    INDEX_RENAMED = enum.auto()
    INDEX_TYPECHANGE = enum.auto()
    WT_NEW = enum.auto()
    WT_MODIFIED = enum.auto()
    WT_DELETED = enum.auto()
    WT_TYPECHANGE = enum.auto()
    WT_RENAMED = enum.auto()
    IGNORED = enum.auto()
    CONFLICTED = enum.auto()

    def describe(self) -> str:
        """Render as ``WT_NEW`` or ``INDEX_MODIFIED|WT_MODIFIED``."""
        names = [member.name for member in StatusFlag if member & self]
        return "|".join(names)


# Porcelain v1 XY pairs that mean an unmerged path
_CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

_INDEX_CODES = {
    "A": StatusFlag.INDEX_NEW,
    "C": StatusFlag.INDEX_NEW,
    "M": StatusFlag.INDEX_MODIFIED,
    "D": StatusFlag.INDEX_DELETED,
    "R": StatusFlag.INDEX_RENAMED,
    "T": StatusFlag.INDEX_TYPECHANGE,
}

_WORKTREE_CODES = {
    "A": StatusFlag.WT_NEW,
    "M": StatusFlag.WT_MODIFIED,
    "D": StatusFlag.WT_DELETED,
    "R": StatusFlag.WT_RENAMED,
    "T": StatusFlag.WT_TYPECHANGE,
}


@dataclass(frozen=True)
class StatusEntry:
    path: str
    flags: StatusFlag


@dataclass(frozen=True)
class Repository:
    root: Path
    git_dir: Path


def parse_status_code(code: str) -> StatusFlag:
    """Translate a porcelain v1 ``XY`` code into status flags."""
    if code == "??":
        return StatusFlag.WT_NEW
    if code == "!!":
        return StatusFlag.IGNORED
    if code in _CONFLICT_CODES:
        return StatusFlag.CONFLICTED

    flags = StatusFlag(0)
    index_code, worktree_code = code[0], code[1]
    if index_code in _INDEX_CODES:
        flags |= _INDEX_CODES[index_code]
    if worktree_code in _WORKTREE_CODES:
        flags |= _WORKTREE_CODES[worktree_code]
    return flags


def iter_porcelain_records(output: str) -> list[tuple[str, str]]:
    """Split ``git status --porcelain=v1 -z`` output into (code, path) pairs."""
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        if len(token) < 4 or token[2] != " ":
            continue

        code = token[:2]
        records.append((code, token[3:]))

        # Renames and copies carry the source path as the next token
        if "R" in code or "C" in code:
            index += 1

    return records


def is_utf8_path(path: str) -> bool:
    """False for paths whose undecodable bytes were kept as lone surrogates."""
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def require_git() -> str:
    """Return the path of the git executable or raise GitNotFoundError."""
    git = shutil.which(GIT_EXECUTABLE)
    if git is None:
        raise GitNotFoundError(f"'{GIT_EXECUTABLE}' executable not found on PATH")
    return git


def _run_git(repo: Repository, args: list[str]) -> subprocess.CompletedProcess:
    env = {key: value for key, value in os.environ.items() if key not in GIT_LOCAL_ENV_VARS}
    # Keep git status from refreshing the index on disk
    env["GIT_OPTIONAL_LOCKS"] = "0"
    return subprocess.run(
        [GIT_EXECUTABLE, f"--git-dir={repo.git_dir}", f"--work-tree={repo.root}", *args],
        cwd=str(repo.root),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="surrogateescape",
        env=env,
        check=False,
        timeout=GIT_TIMEOUT_SECONDS,
    )


def open_repository(path: Path) -> Repository:
    """Open ``path`` as a repository whose metadata lives in ``path/.git``.

    The git dir is passed explicitly, so a broken ``.git`` is never
    mistaken for an enclosing repository.
    """
    repo = Repository(root=path, git_dir=path / GIT_DIR_NAME)

    try:
        result = _run_git(repo, ["rev-parse", "--git-dir"])
    except subprocess.TimeoutExpired as e:
        raise RepositoryOpenError(f"Timed out opening {path}") from e
    except OSError as e:
        raise RepositoryOpenError(f"Cannot open {path}: {e}") from e

    if result.returncode != 0:
        raise RepositoryOpenError(
            f"Cannot open {path}: {result.stderr.strip() or f'git exited with {result.returncode}'}"
        )

    return repo


def query_status(repo: Repository, include_ignored: bool = False) -> list[StatusEntry]:
    """List every path that differs from a clean checkout, untracked files included."""
    args = ["status", "--porcelain=v1", "-z", "--untracked-files=normal"]
    if include_ignored:
        args.append("--ignored")

    try:
        result = _run_git(repo, args)
    except subprocess.TimeoutExpired as e:
        raise StatusQueryError(f"Timed out reading status of {repo.root}") from e
    except OSError as e:
        raise StatusQueryError(f"Cannot read status of {repo.root}: {e}") from e

    if result.returncode != 0:
        raise StatusQueryError(
            f"git status failed in {repo.root}: "
            f"{result.stderr.strip() or f'git exited with {result.returncode}'}"
        )

    entries = []
    for code, path in iter_porcelain_records(result.stdout):
        flags = parse_status_code(code)
        if not path or not flags:
            continue
        if flags & StatusFlag.IGNORED and not include_ignored:
            continue
        if not is_utf8_path(path):
            logger.debug(f"{repo.root}: skipping path that is not valid UTF-8: {path!a}")
            continue
        entries.append(StatusEntry(path=path, flags=flags))

    logger.debug(f"{repo.root}: {len(entries)} changed paths")
    return entries
