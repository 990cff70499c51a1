import subprocess
from pathlib import Path

import pytest

from gitscan.config import reset_logging


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Test",
            "-c", "user.email=test@example.com",
            "-c", "init.defaultBranch=main",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def init_repo(path: Path) -> Path:
    """Create a repository with one committed file and a clean working tree."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    (path / "README.md").write_text("hello\n", encoding="utf-8")
    git(path, "add", "README.md")
    git(path, "commit", "-q", "-m", "initial commit")
    return path


def fake_repo(path: Path) -> Path:
    """A directory that only looks like a repository to discovery."""
    (path / ".git").mkdir(parents=True)
    (path / ".git" / "config").write_text("[core]\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def make_repo():
    return init_repo


@pytest.fixture
def scenario_root(tmp_path: Path) -> Path:
    """proj-a clean, proj-b with one untracked file, .cache hidden with its own repo."""
    root = tmp_path / "root"
    root.mkdir()
    init_repo(root / "proj-a")
    init_repo(root / "proj-b")
    (root / "proj-b" / "x.txt").write_text("new\n", encoding="utf-8")
    init_repo(root / ".cache")
    return root


@pytest.fixture
def make_fake_repo():
    return fake_repo


@pytest.fixture
def run_git():
    return git
