"""
Deploy Key Module

Decrypt the SSH deployment key shipped encrypted in the source tree.

Security Requirements:
- Plaintext key created under umask 077 (never world readable, not even briefly)
- Key permissions: 0700 (owner only) right after decryption
- Key and IV come from the CI environment and are never logged
- Key file lives in the run's working directory and dies with it
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..config_manager import DeployEnvironment
from ..errors import DeploymentError
from .command_runner import CommandError, CommandRunner, check_call

logger = logging.getLogger(__name__)

SAFE_UMASK = 0o077
KEY_PERMISSIONS = 0o700


class DeployKeyError(DeploymentError):
    """Raised when the deployment key cannot be decrypted."""

    pass


@contextmanager
def safe_umask(mask: int = SAFE_UMASK) -> Iterator[int]:
    """Temporarily set the process umask, restoring the previous one on exit.

    Yields:
        int: The umask that was active before
    """
    previous = os.umask(mask)
    try:
        yield previous
    finally:
        os.umask(previous)


class DeployKeyDecryptor:
    """
    Decrypt the deployment key with ``openssl aes-256-cbc``.

    Example:
        >>> decryptor = DeployKeyDecryptor(runner, env, ("enc_key", "enc_iv"))
        >>> key = decryptor.decrypt(Path("admin/deploy.enc"), workdir / "deploy")
    """

    CIPHER = "aes-256-cbc"

    def __init__(
        self,
        runner: CommandRunner,
        environment: DeployEnvironment,
        key_env_names: tuple[str, str],
    ):
        self.runner = runner
        self.environment = environment
        self.key_env_names = key_env_names

    def _read_secrets(self) -> tuple[str, str]:
        key_var, iv_var = self.key_env_names
        key = self.environment.get(key_var)
        iv = self.environment.get(iv_var)
        missing = [name for name, value in ((key_var, key), (iv_var, iv)) if not value]
        if missing:
            raise DeployKeyError(f"Missing decryption secrets: {', '.join(missing)}")
        return key, iv

    def decrypt(self, source: Path, target: Path) -> Path:
        """
        Decrypt ``source`` into ``target``.

        Args:
            source: Encrypted key file
            target: Plaintext key path (inside the working directory)

        Returns:
            Path: Absolute path of the decrypted key

        Raises:
            DeployKeyError: If secrets are missing or decryption fails
        """
        key, iv = self._read_secrets()
        target = Path(target).absolute()

        cmd = [
            "openssl",
            self.CIPHER,
            "-K",
            key,
            "-iv",
            iv,
            "-in",
            str(source),
            "-out",
            str(target),
            "-d",
        ]

        with safe_umask():
            try:
                check_call(self.runner, cmd, secrets=(key, iv))
            except CommandError as e:
                raise DeployKeyError(f"Failed to decrypt {source}: {e}") from e

            try:
                target.chmod(KEY_PERMISSIONS)
            except OSError as e:
                raise DeployKeyError(f"Failed to restrict permissions of {target}: {e}") from e

        logger.debug(f"Deployment key written to {target}")
        return target


__all__ = ["DeployKeyDecryptor", "DeployKeyError", "safe_umask"]
