"""
Shared pytest fixtures for mrblame tests.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Dict

import pytest

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
}


def _git(repo: Path, *args: str) -> str:
    env = os.environ.copy()
    env.update(GIT_IDENTITY)
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        env=env,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


@pytest.fixture
def git() -> Callable[..., str]:
    """Run a git command in a repository with a fixed identity."""
    return _git


@pytest.fixture
def git_repo(tmp_path: Path) -> Dict[str, Path]:
    """Repository with one committed three-line file and no remote."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    source = repo / "app.py"
    source.write_text("import os\nprint(os.getcwd())\nprint('done')\n")
    _git(repo, "add", "app.py")
    _git(repo, "commit", "-q", "-m", "Initial commit")
    return {"repo": repo, "file": source}
