"""Pytest configuration for manual-deploy tests.

CRITICAL: Protects the real SSH configuration from test modifications.
"""

import shutil
from pathlib import Path

import pytest

pytest_plugins = ["pytester"]


@pytest.fixture(scope="session", autouse=True)
def protect_ssh_config():
    """Protect ~/.ssh/config from being overwritten by tests.

    A deployment replaces the SSH config wholesale, so a test that forgets to
    point the writer at a temporary directory would destroy the developer's
    own configuration.

    This fixture:
    1. Backs up the real config before any tests run
    2. Restores it after all tests complete, or removes a config that did
       not exist before the session
    """
    config_path = Path.home() / ".ssh" / "config"
    backup_path = Path.home() / ".ssh" / ".config.pytest-backup"

    config_existed = config_path.exists()
    if config_existed:
        shutil.copy2(config_path, backup_path)

    yield

    if config_existed and backup_path.exists():
        shutil.copy2(backup_path, config_path)
        backup_path.unlink()
    elif backup_path.exists():
        backup_path.unlink()

    if not config_existed and config_path.exists():
        config_path.unlink()
