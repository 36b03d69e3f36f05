"""
Git subprocess runner.

Blame and remote lookups run against repositories the current user may not
own (containers, shared checkouts), which git refuses with a "dubious
ownership" error unless the directory is declared safe.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 30.0


def get_git_environment(repo_dir: Path) -> Dict[str, str]:
    """
    Build the environment for git commands run in ``repo_dir``.

    Adds ``safe.directory`` as the first ``GIT_CONFIG_*`` entry and shifts any
    entries already present in the environment behind it.

    Args:
        repo_dir: Directory the command runs in

    Returns:
        Environment mapping for subprocess.run
    """
    env = os.environ.copy()
    try:
        existing = int(os.environ.get("GIT_CONFIG_COUNT", "0"))
    except ValueError:
        existing = 0

    for idx in reversed(range(existing)):
        key = os.environ.get(f"GIT_CONFIG_KEY_{idx}")
        if key is None:
            continue
        env[f"GIT_CONFIG_KEY_{idx + 1}"] = key
        env[f"GIT_CONFIG_VALUE_{idx + 1}"] = os.environ.get(f"GIT_CONFIG_VALUE_{idx}", "")

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(repo_dir.resolve())
    env["GIT_CONFIG_COUNT"] = str(existing + 1)
    # Never block on a credential or editor prompt
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git_command(
    cmd: List[str],
    cwd: Path,
    check: bool = True,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> subprocess.CompletedProcess:
    """
    Run a git command and capture its text output.

    Args:
        cmd: Git command as a list (e.g., ["git", "blame", "--porcelain", "f.py"])
        cwd: Working directory for the command
        check: Whether to raise CalledProcessError on non-zero exit
        timeout: Timeout in seconds, None to wait forever

    Raises:
        ValueError: If the command is not a git command
        subprocess.CalledProcessError: If check=True and the command fails
        subprocess.TimeoutExpired: If the timeout is exceeded
        FileNotFoundError: If git is not installed
    """
    if not cmd or cmd[0] != "git":
        raise ValueError("Command must start with 'git'")

    logger.debug(f"Running {' '.join(cmd)} in {cwd}")
    return subprocess.run(
        cmd,
        cwd=cwd,
        check=check,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
        env=get_git_environment(cwd),
    )
