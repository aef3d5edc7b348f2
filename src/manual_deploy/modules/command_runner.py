"""External command execution abstraction.

Every external tool (git, bundle, rake, openssl) is invoked through a
``CommandRunner`` so the deployment pipeline can be exercised without
executing anything. The real runner delegates to ``safe_run``; the mock
runner records invocations and returns pre-programmed results.

Example:
    >>> runner = SubprocessCommandRunner()
    >>> result = check_call(runner, ["git", "--version"])
    >>> result.stdout.startswith("git version")
    True

    Testing example:
    >>> mock = MockCommandRunner({"git status": CommandResult(0, " M index.html\\n", "")})
    >>> check_call(mock, ["git", "status", "--porcelain"]).stdout
    ' M index.html\\n'
    >>> mock.commands
    ['git status --porcelain']
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..errors import DeploymentError
from ..log_sanitizer import LogSanitizer
from .subprocess_helper import safe_run

logger = logging.getLogger(__name__)

# Trailing stdout lines quoted in a CommandError when stderr is empty
OUTPUT_TAIL_LINES = 20


@dataclass
class CommandResult:
    """Exit status and captured output of one command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandError(DeploymentError):
    """Raised when an external command exits non-zero."""

    def __init__(self, cmd: str, returncode: int, stdout: str = "", stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {cmd}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        elif stdout.strip():
            message += "\n" + "\n".join(stdout.strip().splitlines()[-OUTPUT_TAIL_LINES:])
        super().__init__(message)


@runtime_checkable
class CommandRunner(Protocol):
    """Protocol for running external commands.

    Implementations block until the command finishes and never raise for a
    non-zero exit; use ``check_call`` for that.
    """

    def run(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments (never passed through a shell)
            cwd: Working directory
            env: Complete child environment (None = inherit)

        Returns:
            CommandResult with exit code and captured output
        """
        ...


class SubprocessCommandRunner:
    """Command runner backed by real child processes."""

    def run(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        result = safe_run(cmd, cwd=cwd, env=env)
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )


Handler = Callable[[list[str], Path | None, Mapping[str, str] | None], CommandResult]


class MockCommandRunner:
    """Command runner with pre-programmed results for testing.

    Responses are keyed by a substring of the space-joined command line; the
    first matching key wins. A response is either a ``CommandResult`` or a
    handler called with ``(cmd, cwd, env)`` that returns one, which lets a
    test simulate side effects such as openssl writing its output file.
    Unmatched commands succeed with empty output.

    Example:
        >>> runner = MockCommandRunner({"rake": CommandResult(1, "", "boom")})
        >>> runner.run(["rake", "build"]).returncode
        1
        >>> runner.calls[0]["cmd"]
        ['rake', 'build']
    """

    def __init__(self, responses: Mapping[str, CommandResult | Handler] | None = None):
        self.responses: dict[str, CommandResult | Handler] = dict(responses or {})
        self.calls: list[dict[str, Any]] = []

    def run(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "env": env})

        cmd_str = " ".join(cmd)
        for pattern, response in self.responses.items():
            if pattern in cmd_str:
                if callable(response):
                    return response(list(cmd), cwd, env)
                return response

        return CommandResult(returncode=0)

    @property
    def commands(self) -> list[str]:
        """Space-joined command lines in invocation order."""
        return [" ".join(call["cmd"]) for call in self.calls]

    def index_of(self, pattern: str) -> int:
        """Index of the first recorded command containing ``pattern``.

        Raises:
            ValueError: If no recorded command matches
        """
        for index, command in enumerate(self.commands):
            if pattern in command:
                return index
        raise ValueError(f"No command matching '{pattern}' in {self.commands}")

    def was_called(self, pattern: str) -> bool:
        return any(pattern in command for command in self.commands)


def check_call(
    runner: CommandRunner,
    cmd: list[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    secrets: Iterable[str] = (),
    output_level: int = logging.DEBUG,
) -> CommandResult:
    """Run a command and raise if it exits non-zero.

    Args:
        runner: Runner used to execute the command
        cmd: Command and arguments
        cwd: Working directory
        env: Complete child environment (None = inherit)
        secrets: Literal values to mask in logs and error messages
        output_level: Log level for the command's stdout

    Returns:
        CommandResult of the successful command

    Raises:
        CommandError: If the command exits non-zero
    """
    secrets = tuple(secrets)
    display = LogSanitizer.sanitize_command(cmd, secrets)
    logger.debug(f"Running: {display}" + (f" (in {cwd})" if cwd else ""))

    result = runner.run(cmd, cwd=cwd, env=env)

    if result.stdout:
        logger.log(output_level, LogSanitizer.sanitize(result.stdout.rstrip(), secrets))

    if not result.succeeded:
        stderr = LogSanitizer.sanitize(result.stderr, secrets)
        logger.error(f"{display} exited with {result.returncode}")
        raise CommandError(
            display,
            result.returncode,
            stdout=LogSanitizer.sanitize(result.stdout, secrets),
            stderr=stderr,
        )

    return result


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "MockCommandRunner",
    "SubprocessCommandRunner",
    "check_call",
]
