"""
Prerequisites Checker Module

Verify the external tools a deployment needs are on PATH.

Security Requirements:
- Read-only system checks
- No subprocess execution (shutil.which only)
"""

import logging
import shutil
from dataclasses import dataclass
from typing import ClassVar

from ..errors import DeploymentError

logger = logging.getLogger(__name__)


@dataclass
class PrerequisiteResult:
    """Result of prerequisite checks."""

    all_available: bool
    missing: list[str]
    available: list[str]


class PrerequisiteError(DeploymentError):
    """Raised when prerequisites are missing."""

    pass


class PrerequisiteChecker:
    """
    Check required external tools are installed.

    Required tools:
    - git (clone, commit, push)
    - bundle and rake (website build)
    - openssl (deployment key)
    - ssh (transport used by git push)
    """

    REQUIRED_TOOLS: ClassVar[list[str]] = ["git", "bundle", "rake", "openssl", "ssh"]

    # Where to get each tool, shown next to missing ones
    INSTALL_HINTS: ClassVar[dict[str, str]] = {
        "git": "https://git-scm.com/downloads",
        "bundle": "gem install bundler",
        "rake": "gem install rake",
        "openssl": "https://www.openssl.org/source/",
        "ssh": "https://www.openssh.com/",
    }

    @classmethod
    def check_tool(cls, tool_name: str) -> bool:
        result = shutil.which(tool_name)
        if result:
            logger.debug(f"Found {tool_name} at {result}")
            return True
        logger.debug(f"Tool not found: {tool_name}")
        return False

    @classmethod
    def check_all(cls) -> PrerequisiteResult:
        """
        Check all prerequisites and return comprehensive result.

        Example:
            >>> result = PrerequisiteChecker.check_all()
            >>> if not result.all_available:
            ...     print(f"Missing: {result.missing}")
        """
        missing: list[str] = []
        available: list[str] = []

        for tool in cls.REQUIRED_TOOLS:
            if cls.check_tool(tool):
                available.append(tool)
            else:
                missing.append(tool)

        result = PrerequisiteResult(
            all_available=(len(missing) == 0),
            missing=missing,
            available=available,
        )

        if result.all_available:
            logger.info("All prerequisites available")
        else:
            logger.error(f"Missing prerequisites: {', '.join(missing)}")

        return result

    @classmethod
    def format_missing_message(cls, missing: list[str]) -> str:
        """Format installation hints for missing tools."""
        if not missing:
            return "All prerequisites are installed."

        lines = ["Missing required tools:", ""]
        lines.extend(f"  - {tool}: {cls.INSTALL_HINTS.get(tool, 'install it')}" for tool in missing)
        return "\n".join(lines)

    @classmethod
    def require_all(cls) -> PrerequisiteResult:
        """
        Check prerequisites and fail if any is missing.

        Raises:
            PrerequisiteError: Listing missing tools with install hints
        """
        result = cls.check_all()
        if not result.all_available:
            raise PrerequisiteError(cls.format_missing_message(result.missing))
        return result


__all__ = ["PrerequisiteChecker", "PrerequisiteError", "PrerequisiteResult"]
