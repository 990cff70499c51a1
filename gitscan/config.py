"""Constants and logging setup for gitscan."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_NAME = "gitscan"

# Git
GIT_EXECUTABLE = "git"
GIT_TIMEOUT_SECONDS = 60
GIT_DIR_NAME = ".git"
GIT_CONFIG_NAME = "config"

# Repository-local variables (`git rev-parse --local-env-vars`) stripped from
# git's environment so only --git-dir/--work-tree select the repository
GIT_LOCAL_ENV_VARS = (
    "GIT_ALTERNATE_OBJECT_DIRECTORIES",
    "GIT_COMMON_DIR",
    "GIT_CONFIG",
    "GIT_CONFIG_COUNT",
    "GIT_CONFIG_PARAMETERS",
    "GIT_DIR",
    "GIT_GRAFT_FILE",
    "GIT_IMPLICIT_WORK_TREE",
    "GIT_INDEX_FILE",
    "GIT_NAMESPACE",
    "GIT_NO_REPLACE_OBJECTS",
    "GIT_OBJECT_DIRECTORY",
    "GIT_PREFIX",
    "GIT_REPLACE_REF_BASE",
    "GIT_SHALLOW_FILE",
    "GIT_WORK_TREE",
)

# Entries whose name starts with this are never scanned
HIDDEN_PREFIX = "."

# Log file rotation (10MB max, keep 5 backups)
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5


# =============================================================================
# Logging Configuration
# =============================================================================

_logging_initialized = False


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Set up logging to stderr and, optionally, to a rotating log file.

    Args:
        verbose: Emit debug messages on stderr instead of warnings only
        log_file: Also write everything to this file

    Returns:
        Configured logger instance
    """
    global _logging_initialized

    logger = logging.getLogger(APP_NAME)

    # Only configure once
    if _logging_initialized:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stderr_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    _logging_initialized = True
    logger.debug(f"Logging initialized (verbose={verbose}, log_file={log_file})")

    return logger


def reset_logging() -> None:
    """Drop all handlers so setup_logging() can run again."""
    global _logging_initialized

    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _logging_initialized = False


def get_logger(name: str = APP_NAME) -> logging.Logger:
    """Get a logger instance. Call setup_logging() first."""
    return logging.getLogger(f"{APP_NAME}.{name}" if name != APP_NAME else APP_NAME)
