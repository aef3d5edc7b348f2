"""
Git Repository Module

Clone the website repository and drive git through a command runner.

Security Requirements:
- Clone over anonymous HTTPS, push over SSH only
- No credentials in URLs
- No shell execution (argument lists only)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import DeploymentError
from .command_runner import CommandError, CommandRunner, check_call

logger = logging.getLogger(__name__)


@dataclass
class ChangeStatus:
    """Paths reported by ``git status``, grouped by kind of change."""

    added: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.deleted or self.changed)

    @classmethod
    def from_porcelain(cls, output: str) -> "ChangeStatus":
        """
        Parse ``git status --porcelain`` (v1) output.

        Untracked files count as added since ``git add --all`` stages them.
        A rename contributes its new path as added and its old path as
        deleted.

        Example:
            >>> status = ChangeStatus.from_porcelain(" M index.html\\n?? new.html\\n")
            >>> status.changed, status.added
            (['index.html'], ['new.html'])
        """
        status = cls()
        for line in output.splitlines():
            if len(line) < 4:
                continue
            code, path = line[:2], line[3:]

            if code == "??" or "A" in code:
                status.added.append(path)
            elif code[0] in "RC":
                old, _, new = path.partition(" -> ")
                status.added.append(new or old)
                if code[0] == "R":
                    status.deleted.append(old)
            elif "D" in code:
                status.deleted.append(path)
            elif code.strip():
                status.changed.append(path)
        return status


class GitRepositoryError(DeploymentError):
    """Raised when a git operation fails."""

    pass


class GitRepository:
    """
    A git working copy manipulated through a command runner.

    Example:
        >>> repo = GitRepository.clone(runner, "https://github.com/o/r.git", tmp / "r")
        >>> repo.configure_identity("Bot", "bot@example.org")
        >>> if repo.status().has_changes:
        ...     repo.add_all()
    """

    def __init__(self, path: Path, runner: CommandRunner):
        self.path = Path(path)
        self.runner = runner

    @classmethod
    def clone(cls, runner: CommandRunner, url: str, destination: Path) -> "GitRepository":
        """
        Clone ``url`` into ``destination``.

        Raises:
            GitRepositoryError: If the clone fails
        """
        logger.info(f"Cloning {url} into {destination}")
        try:
            check_call(runner, ["git", "clone", url, str(destination)])
        except CommandError as e:
            raise GitRepositoryError(f"Failed to clone {url}: {e}") from e
        return cls(destination, runner)

    def _git(self, *args: str) -> str:
        try:
            result = check_call(self.runner, ["git", *args], cwd=self.path)
        except CommandError as e:
            raise GitRepositoryError(f"git {args[0]} failed in {self.path}: {e}") from e
        return result.stdout

    def config(self, key: str, value: str) -> None:
        self._git("config", key, value)

    def configure_identity(self, name: str, email: str) -> None:
        """Set the commit author for this working copy only."""
        self.config("user.name", name)
        self.config("user.email", email)

    def status(self) -> ChangeStatus:
        output = self._git("status", "--porcelain", "--untracked-files=all")
        status = ChangeStatus.from_porcelain(output)
        logger.debug(
            f"{len(status.added)} added, {len(status.deleted)} deleted, "
            f"{len(status.changed)} changed"
        )
        return status

    def add_all(self) -> None:
        """Stage every change, deletions included."""
        self._git("add", "--all", ".")

    def commit(self, message: str) -> None:
        self._git("commit", "--message", message)

    def add_remote(self, name: str, url: str) -> None:
        self._git("remote", "add", name, url)

    def push(self, remote: str, refspec: str) -> None:
        logger.info(f"Pushing {refspec} to {remote}")
        self._git("push", remote, refspec)


__all__ = ["ChangeStatus", "GitRepository", "GitRepositoryError"]
