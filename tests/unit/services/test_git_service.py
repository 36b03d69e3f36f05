"""Tests for GitService against real git repositories."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mrblame.resolution import RepositoryEvents
from mrblame.services.git_service import GitService
from mrblame.utils.git_runner import get_git_environment, run_git_command


class TestGitServiceBlame:
    def test_blame_of_committed_file(self, git_repo):
        blame = GitService().get_blame(git_repo["file"])

        assert sorted(blame) == [1, 2, 3]
        first = blame[1]
        assert first.author == "Test User"
        assert first.author_email == "test@example.com"
        assert first.summary == "Initial commit"
        assert len(first.commit_id) == 40
        assert len({a.commit_id for a in blame.values()}) == 1

    def test_uncommitted_lines_are_excluded(self, git_repo):
        source = git_repo["file"]
        source.write_text(source.read_text() + "print('draft')\n")

        blame = GitService().get_blame(source)

        assert sorted(blame) == [1, 2, 3]

    def test_blame_for_line(self, git_repo, git):
        source = git_repo["file"]
        source.write_text(source.read_text() + "print('second')\n")
        git(git_repo["repo"], "commit", "-q", "-am", "Second commit")

        line = GitService().get_blame_for_line(source, 4)

        assert line.line_number == 4
        assert line.summary == "Second commit"

    def test_untracked_file(self, git_repo):
        untracked = git_repo["repo"] / "new.py"
        untracked.write_text("x = 1\n")

        service = GitService()

        assert service.get_blame(untracked) == {}
        assert service.get_blame_for_line(untracked, 1) is None

    def test_outside_repository(self, tmp_path):
        outside = tmp_path / "plain.txt"
        outside.write_text("hello\n")

        assert GitService().get_blame_text(outside) is None


class TestGitServiceRemotes:
    def test_no_remote(self, git_repo):
        assert GitService().get_remote_url(git_repo["file"]) is None

    def test_remote_url_is_memoised(self, git_repo, git):
        repo = git_repo["repo"]
        git(repo, "remote", "add", "origin", "git@gitlab.com:group/project.git")
        service = GitService()

        assert service.get_remote_url(git_repo["file"]) == "git@gitlab.com:group/project.git"

        git(repo, "remote", "set-url", "origin", "https://github.com/owner/repo.git")
        assert service.get_remote_url(git_repo["file"]) == "git@gitlab.com:group/project.git"

        service.forget_remotes()
        assert service.get_remote_url(git_repo["file"]) == "https://github.com/owner/repo.git"

    def test_configured_remote_name(self, git_repo, git):
        git(git_repo["repo"], "remote", "add", "upstream", "https://github.com/o/r.git")

        assert GitService(remote_name="upstream").get_remote_url(git_repo["file"]) == (
            "https://github.com/o/r.git"
        )


class TestGitServiceHeadTracking:
    def test_head_change_emits_repository_signal(self, git_repo, git):
        events = RepositoryEvents()
        listener = MagicMock()
        events.subscribe(listener)
        service = GitService(events=events)

        assert not service.detect_head_change(git_repo["file"])
        assert not service.detect_head_change(git_repo["file"])

        source = git_repo["file"]
        source.write_text(source.read_text() + "print('more')\n")
        git(git_repo["repo"], "commit", "-q", "-am", "More")

        assert service.detect_head_change(git_repo["file"])
        listener.assert_called_once_with()


class TestGitRunner:
    def test_safe_directory_is_first_config_entry(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
        monkeypatch.setenv("GIT_CONFIG_KEY_0", "core.pager")
        monkeypatch.setenv("GIT_CONFIG_VALUE_0", "cat")

        env = get_git_environment(tmp_path)

        assert env["GIT_CONFIG_COUNT"] == "2"
        assert env["GIT_CONFIG_KEY_0"] == "safe.directory"
        assert env["GIT_CONFIG_VALUE_0"] == str(tmp_path.resolve())
        assert env["GIT_CONFIG_KEY_1"] == "core.pager"
        assert env["GIT_CONFIG_VALUE_1"] == "cat"

    def test_without_existing_config(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GIT_CONFIG_COUNT", raising=False)

        env = get_git_environment(tmp_path)

        assert env["GIT_CONFIG_COUNT"] == "1"
        assert env["GIT_TERMINAL_PROMPT"] == "0"

    def test_rejects_non_git_commands(self, tmp_path):
        with pytest.raises(ValueError):
            run_git_command(["ls"], cwd=Path(tmp_path))
