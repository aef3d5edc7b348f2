"""
SSH Config Writer Module

Point the SSH client at the deployment key for the git host.

Security Requirements:
- SSH directory permissions: 0700 (owner only)
- Config file permissions: 0600 (owner read/write)
- IdentityFile is always an absolute path

The config file is replaced, not merged: CI machines are disposable and
the deployment entry must be the only one for the host.
"""

import logging
from pathlib import Path

from ..errors import DeploymentError

logger = logging.getLogger(__name__)


class SSHConfigError(DeploymentError):
    """Raised when the SSH configuration cannot be written."""

    pass


class SSHConfigWriter:
    """Write a host entry that authenticates with a given key."""

    def __init__(self, ssh_dir: Path | None = None):
        self.ssh_dir = ssh_dir if ssh_dir is not None else Path.home() / ".ssh"

    @property
    def config_path(self) -> Path:
        return self.ssh_dir / "config"

    @staticmethod
    def generate_host_entry(host: str, key_path: Path, user: str = "git") -> str:
        """
        Generate the config entry for ``host``.

        Example output:
            Host github.com
              Compression yes
              User git
              IdentityFile /tmp/manual-deploy-x1y2/deploy
        """
        return (
            f"Host {host}\n"
            f"  Compression yes\n"
            f"  User {user}\n"
            f"  IdentityFile {Path(key_path).absolute()}\n"
        )

    def write(self, host: str, key_path: Path, user: str = "git") -> Path:
        """
        Create or overwrite the SSH config with a single host entry.

        Args:
            host: Host the entry applies to
            key_path: Private key used as identity
            user: Login user on the host

        Returns:
            Path: The written config file

        Raises:
            SSHConfigError: If the directory or file cannot be written
        """
        try:
            self.ssh_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            self.config_path.write_text(self.generate_host_entry(host, key_path, user))
            self.config_path.chmod(0o600)
        except OSError as e:
            raise SSHConfigError(f"Failed to write {self.config_path}: {e}") from e

        logger.debug(f"Wrote SSH config for {host} to {self.config_path}")
        return self.config_path


__all__ = ["SSHConfigError", "SSHConfigWriter"]
