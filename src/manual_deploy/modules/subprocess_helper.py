"""Blocking subprocess execution with captured output.

Philosophy:
- Single responsibility: Run one external command to completion
- Standard library only (no external dependencies)
- No timeouts: a hung tool blocks until the CI platform kills the job

Public API (the "studs"):
    SubprocessResult: Result dataclass
    safe_run: Main execution function
"""

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

# Exit code used by shells when a command cannot be found
COMMAND_NOT_FOUND = 127


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    stdout: str
    stderr: str


def safe_run(
    cmd: list[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> SubprocessResult:
    """
    Execute a command and wait for it to finish.

    Both pipes are drained by ``communicate()`` so a chatty build tool
    cannot deadlock on a full pipe buffer.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        env: Complete environment for the child (None = inherit)

    Returns:
        SubprocessResult with output and exit code

    Example:
        >>> result = safe_run(["echo", "hello"])
        >>> assert result.returncode == 0
        >>> assert "hello" in result.stdout.lower()
    """
    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError:
        return SubprocessResult(
            returncode=COMMAND_NOT_FOUND,
            stdout="",
            stderr=f"Command not found: {cmd[0] if cmd else 'unknown'}",
        )
    except (PermissionError, OSError) as e:
        return SubprocessResult(
            returncode=1,
            stdout="",
            stderr=f"Error executing command: {e!s}",
        )

    stdout_data, stderr_data = process.communicate()

    return SubprocessResult(
        returncode=process.returncode,
        stdout=(stdout_data or b"").decode("utf-8", errors="replace"),
        stderr=(stderr_data or b"").decode("utf-8", errors="replace"),
    )


__all__ = ["COMMAND_NOT_FOUND", "SubprocessResult", "safe_run"]
