"""Configuration management module.

Two sources feed a deployment run:

- ``DeploySettings``: fixed deployment constants (which repository to build
  from, where to push, bot identity, build flags). Defaults target the
  Flycheck website; a TOML file can override them.
- ``DeployEnvironment``: a read-only snapshot of the CI environment taken
  once at startup and passed to every step instead of reading ``os.environ``.

Security:
- Secret values are only ever read from the environment snapshot
- Secret values are never included in ``repr`` output
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any

import tomli

from .errors import DeploymentError

logger = logging.getLogger(__name__)


class ConfigError(DeploymentError):
    """Raised when configuration operations fail."""

    pass


@dataclass
class DeploySettings:
    """Deployment constants."""

    source_repo_slug: str = "flycheck/flycheck"
    deploy_branch: str = "master"
    website_repo_path: str = "flycheck/flycheck.github.io"
    git_host: str = "github.com"
    git_user_name: str = "Flycheck Travis CI"
    git_user_email: str = "travis@flycheck.org"
    encrypted_key_path: str = "admin/deploy.enc"
    key_env_prefix: str = "encrypted_923a5f7c915e"
    install_jobs: int = 3
    install_retries: int = 3
    remote_name: str = "deploy"
    website_branch: str = "master"
    source_dir: Path = field(default_factory=lambda: Path.cwd().resolve())

    def __post_init__(self) -> None:
        self.source_dir = Path(self.source_dir).expanduser().resolve()

    @property
    def website_clone_url(self) -> str:
        """Anonymous HTTPS URL used for the initial clone."""
        return f"https://{self.git_host}/{self.website_repo_path}.git"

    @property
    def website_push_url(self) -> str:
        """SSH URL (host alias form) used for pushing."""
        return f"{self.git_host}:{self.website_repo_path}.git"

    @property
    def website_clone_dirname(self) -> str:
        return self.website_repo_path.rsplit("/", 1)[-1]

    @property
    def key_env_names(self) -> tuple[str, str]:
        """Names of the environment variables holding the key and IV."""
        return f"{self.key_env_prefix}_key", f"{self.key_env_prefix}_iv"

    @property
    def encrypted_key_file(self) -> Path:
        path = Path(self.encrypted_key_path)
        return path if path.is_absolute() else self.source_dir / path


class DeployEnvironment:
    """Read-only snapshot of the CI environment.

    Example:
        >>> env = DeployEnvironment({"TRAVIS_BRANCH": "master"})
        >>> env.branch
        'master'
        >>> env.get("MISSING") is None
        True
    """

    def __init__(self, variables: Mapping[str, str]):
        self._variables = MappingProxyType(dict(variables))

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "DeployEnvironment":
        """Snapshot the process environment (or the given mapping)."""
        return cls(os.environ if environ is None else environ)

    @property
    def variables(self) -> Mapping[str, str]:
        return self._variables

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._variables.get(name, default)

    @property
    def is_travis_ci(self) -> bool:
        """Whether this process runs on Travis CI."""
        return self.get("CI") == "true" and self.get("TRAVIS") == "true"

    @property
    def repo_slug(self) -> str | None:
        return self.get("TRAVIS_REPO_SLUG")

    @property
    def pull_request(self) -> str | None:
        return self.get("TRAVIS_PULL_REQUEST")

    @property
    def secure_env_vars(self) -> str | None:
        return self.get("TRAVIS_SECURE_ENV_VARS")

    @property
    def branch(self) -> str | None:
        return self.get("TRAVIS_BRANCH")

    @property
    def commit(self) -> str | None:
        return self.get("TRAVIS_COMMIT")

    def __repr__(self) -> str:
        # Values may hold secrets
        return f"DeployEnvironment({len(self._variables)} variables)"


class ConfigManager:
    """Load deployment settings from an optional TOML file.

    The file may hold the settings at the top level or under a ``[deploy]``
    table:

        [deploy]
        website_repo_path = "flycheck/flycheck.github.io"
        install_jobs = 4
    """

    @classmethod
    def load_settings(
        cls, config_path: str | Path | None = None, **overrides: Any
    ) -> DeploySettings:
        """Load settings, applying file values and then explicit overrides.

        Args:
            config_path: TOML file (None = defaults only)
            **overrides: Field values that win over the file (None values ignored)

        Returns:
            DeploySettings: Resolved settings

        Raises:
            ConfigError: If the file cannot be read or holds invalid values
        """
        data: dict[str, Any] = {}
        if config_path is not None:
            data = cls._read_toml(Path(config_path).expanduser())
        data.update({k: v for k, v in overrides.items() if v is not None})

        cls._validate(data)
        settings = DeploySettings(**data)
        logger.debug(f"Loaded settings for {settings.website_repo_path}")
        return settings

    @classmethod
    def _read_toml(cls, path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        table = data.get("deploy", data)
        if not isinstance(table, dict):
            raise ConfigError(f"[deploy] in {path} must be a table")
        logger.debug(f"Read config file: {path}")
        return dict(table)

    @classmethod
    def _validate(cls, data: dict[str, Any]) -> None:
        known = {f.name: f for f in fields(DeploySettings)}

        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        for name, value in data.items():
            if name in ("install_jobs", "install_retries"):
                if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                    raise ConfigError(f"{name} must be a positive integer (got {value!r})")
            elif name == "source_dir":
                if not isinstance(value, (str, Path)):
                    raise ConfigError(f"source_dir must be a path (got {value!r})")
            elif not isinstance(value, str) or not value:
                raise ConfigError(f"{name} must be a non-empty string (got {value!r})")

        path = data.get("website_repo_path")
        if path is not None and path.count("/") != 1:
            raise ConfigError(f"website_repo_path must be 'owner/name' (got {path!r})")


__all__ = ["ConfigError", "ConfigManager", "DeployEnvironment", "DeploySettings"]
