"""
Manual Builder Module

Build the manual into the website working copy.

The website repository carries its own Gemfile and Rakefile. Its gems are
installed with bundler and its rake tasks render the manual and the
documents from the source tree being deployed.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import ClassVar

from ..errors import DeploymentError
from .command_runner import CommandError, CommandRunner, check_call

logger = logging.getLogger(__name__)


class BuildError(DeploymentError):
    """Raised when installing dependencies or building the manual fails."""

    pass


class ManualBuilder:
    """
    Run ``bundle install`` and the rake build tasks in the website clone.

    Both commands run in a clean environment: variables bundler exports for
    the outer project are stripped so the website's Gemfile is resolved on
    its own.
    """

    # Variables set by an enclosing ``bundle exec``
    BUNDLER_PREFIXES: ClassVar[tuple[str, ...]] = ("BUNDLE_", "BUNDLER_")
    BUNDLER_VARIABLES: ClassVar[frozenset[str]] = frozenset(
        {"RUBYOPT", "RUBYLIB", "GEM_HOME", "GEM_PATH"}
    )

    def __init__(
        self,
        runner: CommandRunner,
        source_dir: Path,
        jobs: int = 3,
        retries: int = 3,
    ):
        self.runner = runner
        self.source_dir = Path(source_dir).resolve()
        self.jobs = jobs
        self.retries = retries

    @property
    def bundle_path(self) -> Path:
        """Gem install location, shared with the source tree's own bundle."""
        return self.source_dir / "vendor" / "bundle"

    @classmethod
    def clean_environment(cls, environ: Mapping[str, str]) -> dict[str, str]:
        """Copy of ``environ`` without bundler state."""
        return {
            name: value
            for name, value in environ.items()
            if not name.startswith(cls.BUNDLER_PREFIXES) and name not in cls.BUNDLER_VARIABLES
        }

    def install_command(self) -> list[str]:
        return [
            "bundle",
            "install",
            f"--jobs={self.jobs}",
            f"--retry={self.retries}",
            "--path",
            str(self.bundle_path),
        ]

    def build_command(self) -> list[str]:
        return [
            "rake",
            f"build:manual[{self.source_dir},latest]",
            f"build:documents[{self.source_dir}]",
        ]

    def build(self, website_dir: Path, environ: Mapping[str, str]) -> None:
        """
        Install the website's gems and build manual and documents.

        Args:
            website_dir: Website working copy to build into
            environ: Environment snapshot the clean child environment derives from

        Raises:
            BuildError: If either command exits non-zero
        """
        env = self.clean_environment(environ)

        try:
            logger.info("Installing website dependencies")
            check_call(
                self.runner,
                self.install_command(),
                cwd=website_dir,
                env=env,
                output_level=logging.INFO,
            )
            logger.info("Building manual and documents")
            check_call(
                self.runner,
                self.build_command(),
                cwd=website_dir,
                env=env,
                output_level=logging.INFO,
            )
        except CommandError as e:
            raise BuildError(f"Failed to build manual: {e}") from e


__all__ = ["BuildError", "ManualBuilder"]
