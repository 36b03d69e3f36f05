"""
Git access for blame and remote lookups.

Every failure (git missing, file untracked, no such remote) is logged and
reported as an empty result; callers treat that as "nothing to resolve".
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, Optional, Union

from ..blame.parser import BlameParser
from ..models import LineAttribution
from ..resolution.signals import RepositoryEvents
from ..utils.git_runner import run_git_command

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GitService:
    """Runs ``git blame`` and ``git remote`` for files in working trees."""

    def __init__(
        self,
        remote_name: str = "origin",
        parser: Optional[BlameParser] = None,
        events: Optional[RepositoryEvents] = None,
    ):
        """
        Initialize GitService.

        Args:
            remote_name: Remote whose URL identifies the hosted project
            parser: Blame parser to use
            events: Signal emitted when a repository's HEAD moves
        """
        self.remote_name = remote_name
        self.parser = parser or BlameParser()
        self.events = events
        self._remotes: Dict[Path, Optional[str]] = {}
        self._heads: Dict[Path, Optional[str]] = {}

    def _run(self, cmd, cwd: Path) -> Optional[str]:
        try:
            result = run_git_command(cmd, cwd=cwd)
        except subprocess.CalledProcessError as e:
            logger.debug(f"{' '.join(cmd)} failed in {cwd}: {(e.stderr or '').strip()}")
            return None
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"Could not run git in {cwd}: {e}")
            return None
        return result.stdout

    def get_blame_text(self, file_path: PathLike) -> Optional[str]:
        """Raw ``git blame --porcelain`` output for a file, None on failure."""
        path = Path(file_path)
        return self._run(["git", "blame", "--porcelain", "--", path.name], path.parent)

    def get_blame(self, file_path: PathLike) -> Dict[int, LineAttribution]:
        """Committed lines of a file mapped by line number."""
        text = self.get_blame_text(file_path)
        if not text:
            return {}
        return self.parser.parse(text)

    def get_blame_for_line(
        self, file_path: PathLike, line_number: int
    ) -> Optional[LineAttribution]:
        path = Path(file_path)
        text = self._run(
            [
                "git",
                "blame",
                "--porcelain",
                "-L",
                f"{line_number},{line_number}",
                "--",
                path.name,
            ],
            path.parent,
        )
        if not text:
            return None
        return self.parser.parse(text).get(line_number)

    def get_remote_url(self, file_path: PathLike) -> Optional[str]:
        """URL of the configured remote for the repository holding a file.

        Cached per directory until :meth:`forget_remotes` is called.
        """
        path = Path(file_path)
        directory = path if path.is_dir() else path.parent
        if directory in self._remotes:
            return self._remotes[directory]

        output = self._run(["git", "remote", "get-url", self.remote_name], directory)
        remote_url = output.strip() if output else None
        if remote_url is None:
            logger.debug(f"No '{self.remote_name}' remote for {directory}")
        self._remotes[directory] = remote_url or None
        return self._remotes[directory]

    def forget_remotes(self) -> None:
        self._remotes.clear()

    def get_head_commit(self, file_path: PathLike) -> Optional[str]:
        path = Path(file_path)
        directory = path if path.is_dir() else path.parent
        output = self._run(["git", "rev-parse", "HEAD"], directory)
        return output.strip() if output else None

    def detect_head_change(self, file_path: PathLike) -> bool:
        """
        Compare HEAD with the last observed value for the file's directory.

        A change (checkout, pull, commit) emits the repository signal, which
        invalidates cached resolutions. The first observation is not a change.
        """
        path = Path(file_path)
        directory = path if path.is_dir() else path.parent
        head = self.get_head_commit(directory)
        if directory not in self._heads:
            self._heads[directory] = head
            return False

        previous = self._heads[directory]
        self._heads[directory] = head
        if head == previous:
            return False

        logger.debug(f"HEAD moved in {directory}: {previous} -> {head}")
        self.forget_remotes()
        if self.events is not None:
            self.events.emit()
        return True
