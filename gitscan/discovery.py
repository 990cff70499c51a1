"""Locate git repository roots below a directory.

The walk is depth first with siblings sorted by name. Two rules prune it:

    * hidden entries (name starts with ".") are skipped along with their subtree
    * a directory holding ``.git/config`` is recorded and not descended into

Nested repositories inside a recorded root are therefore never reported.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterator, Optional

from gitscan.config import GIT_CONFIG_NAME, GIT_DIR_NAME, HIDDEN_PREFIX, get_logger

logger = get_logger("discovery")

ErrorHandler = Callable[[Path, OSError], None]


@dataclass(frozen=True)
class DirEntry:
    """A path visited during the walk."""
    path: Path
    depth: int
    is_dir: bool
    is_repo: bool = False

    @property
    def name(self) -> str:
        return self.path.name


def is_hidden(entry: DirEntry) -> bool:
    # The root was asked for explicitly, so its own name never hides it
    return entry.depth > 0 and entry.name.startswith(HIDDEN_PREFIX)


def _has_git_config(path: Path) -> bool:
    try:
        return (path / GIT_DIR_NAME / GIT_CONFIG_NAME).is_file()
    except OSError:
        # Unreadable directories surface as listing errors once the walk enters them
        return False


def should_descend(entry: DirEntry) -> bool:
    """Decide whether the walk enters this entry's children."""
    if not entry.is_dir:
        return False
    if is_hidden(entry):
        return False
    if entry.is_repo:
        return False
    return True


def log_traversal_error(path: Path, error: OSError) -> None:
    logger.warning(f"Cannot read {path}: {error}")


def make_entry(path: Path, depth: int) -> DirEntry:
    """Stat ``path`` once and record whether it is a directory and a repository."""
    try:
        resolves_to_dir = path.is_dir()
        # Symlinked directories below the root are not walked into
        is_dir = resolves_to_dir and (depth == 0 or not path.is_symlink())
    except OSError:
        resolves_to_dir = is_dir = False

    entry = DirEntry(path=path, depth=depth, is_dir=is_dir)
    if resolves_to_dir and not is_hidden(entry):
        entry = replace(entry, is_repo=_has_git_config(path))
    return entry


def walk(
    root: Path,
    descend: Callable[[DirEntry], bool] = should_descend,
    on_error: ErrorHandler = log_traversal_error,
) -> Iterator[DirEntry]:
    """Yield entries below ``root`` (root included) in deterministic order.

    ``descend`` is asked for every entry before its children are listed.
    Listing failures go to ``on_error`` and the walk carries on with the
    remaining entries.
    """
    if not os.path.lexists(root):
        on_error(root, FileNotFoundError(f"No such file or directory: '{root}'"))
        return

    stack = [make_entry(root, 0)]
    while stack:
        entry = stack.pop()
        yield entry

        if not descend(entry):
            continue

        try:
            children = sorted(entry.path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            on_error(entry.path, e)
            continue

        # Reversed so the smallest name is popped first
        for child in reversed(children):
            stack.append(make_entry(child, entry.depth + 1))


def find_repositories(root: Path, on_error: Optional[ErrorHandler] = None) -> list[Path]:
    """Return every repository root reachable from ``root``.

    Never raises for unreadable entries; whatever could be collected is returned.
    """
    found = []

    for entry in walk(root, on_error=on_error or log_traversal_error):
        if is_hidden(entry):
            logger.debug(f"Skipping hidden entry {entry.path}")
            continue
        if entry.is_repo:
            logger.debug(f"Found repository at {entry.path}")
            found.append(entry.path)

    return found
