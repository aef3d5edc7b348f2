"""Tests for the git repository wrapper."""

from pathlib import Path

import pytest

from manual_deploy.modules.command_runner import CommandResult, MockCommandRunner
from manual_deploy.modules.git_repository import ChangeStatus, GitRepository, GitRepositoryError


class TestChangeStatus:
    """Parsing of ``git status --porcelain`` output."""

    def test_empty_output_has_no_changes(self):
        status = ChangeStatus.from_porcelain("")

        assert not status.has_changes

    def test_modified_files_are_changed(self):
        status = ChangeStatus.from_porcelain(" M manual/index.html\nM  _config.yml\nMM a.txt\n")

        assert status.changed == ["manual/index.html", "_config.yml", "a.txt"]
        assert status.has_changes

    def test_untracked_and_staged_files_are_added(self):
        status = ChangeStatus.from_porcelain("?? manual/new.html\nA  images/logo.png\n")

        assert status.added == ["manual/new.html", "images/logo.png"]
        assert status.deleted == []

    def test_deleted_files(self):
        status = ChangeStatus.from_porcelain(" D manual/old.html\nD  stale.css\n")

        assert status.deleted == ["manual/old.html", "stale.css"]
        assert status.has_changes

    def test_rename_counts_as_add_and_delete(self):
        status = ChangeStatus.from_porcelain("R  old.html -> new.html\n")

        assert status.added == ["new.html"]
        assert status.deleted == ["old.html"]

    def test_only_deletions_count_as_changes(self):
        assert ChangeStatus(deleted=["x"]).has_changes


class TestGitRepository:
    def test_clone(self, tmp_path):
        runner = MockCommandRunner()

        repo = GitRepository.clone(runner, "https://github.com/o/site.git", tmp_path / "site")

        assert repo.path == tmp_path / "site"
        assert runner.calls[0]["cmd"] == [
            "git",
            "clone",
            "https://github.com/o/site.git",
            str(tmp_path / "site"),
        ]

    def test_clone_failure_raises(self, tmp_path):
        runner = MockCommandRunner({"git clone": CommandResult(128, "", "fatal: not found")})

        with pytest.raises(GitRepositoryError, match="Failed to clone"):
            GitRepository.clone(runner, "https://github.com/o/missing.git", tmp_path / "m")

    def test_commands_run_inside_working_copy(self):
        runner = MockCommandRunner()
        repo = GitRepository(Path("/work/site"), runner)

        repo.configure_identity("Flycheck Travis CI", "travis@flycheck.org")
        repo.add_all()
        repo.commit("Update from flycheck/flycheck@abcdef12")
        repo.add_remote("deploy", "github.com:o/site.git")
        repo.push("deploy", "master:master")

        assert runner.commands == [
            "git config user.name Flycheck Travis CI",
            "git config user.email travis@flycheck.org",
            "git add --all .",
            "git commit --message Update from flycheck/flycheck@abcdef12",
            "git remote add deploy github.com:o/site.git",
            "git push deploy master:master",
        ]
        assert all(call["cwd"] == Path("/work/site") for call in runner.calls)

    def test_status_includes_untracked_files(self):
        runner = MockCommandRunner({"git status": CommandResult(0, "?? a.html\n")})
        repo = GitRepository(Path("/work/site"), runner)

        status = repo.status()

        assert status.added == ["a.html"]
        assert runner.calls[0]["cmd"] == ["git", "status", "--porcelain", "--untracked-files=all"]

    def test_push_failure_raises(self):
        runner = MockCommandRunner({"git push": CommandResult(1, "", "Permission denied")})
        repo = GitRepository(Path("/work/site"), runner)

        with pytest.raises(GitRepositoryError, match="git push failed"):
            repo.push("deploy", "master:master")
