"""Deployment orchestrator.

Runs the manual deployment pipeline end to end:

    gate -> clone -> build -> change check -> decrypt key -> ssh config
         -> commit -> push

Every external tool goes through the injected command runner and every
environment value through the injected snapshot, so the whole pipeline can
run against a ``MockCommandRunner`` in tests.

The working directory (website clone and decrypted key) is a
``tempfile.TemporaryDirectory``; it is removed on every exit path.
"""

import logging
import tempfile
from enum import Enum
from pathlib import Path

from .config_manager import DeployEnvironment, DeploySettings
from .errors import DeploymentError, DeploymentSkipped
from .modules.command_runner import CommandRunner, SubprocessCommandRunner
from .modules.deploy_key import DeployKeyDecryptor
from .modules.environment_gate import EnvironmentGate
from .modules.git_repository import GitRepository
from .modules.manual_builder import ManualBuilder
from .modules.progress import ProgressDisplay
from .modules.ssh_config import SSHConfigWriter

logger = logging.getLogger(__name__)

# Characters of the triggering commit quoted in the deployment commit message
SHORT_HASH_LENGTH = 8


class DeployOutcome(Enum):
    """How a deployment run ended (all of these are successes)."""

    SKIPPED = "skipped"
    NO_CHANGES = "no_changes"
    DEPLOYED = "deployed"


class DeploymentOrchestrator:
    """Clone, build and publish the manual.

    Attributes:
        working_directory: Temporary directory of the last run (removed once
            ``deploy_manual`` returns or raises)
    """

    def __init__(
        self,
        settings: DeploySettings,
        environment: DeployEnvironment,
        runner: CommandRunner | None = None,
        progress: ProgressDisplay | None = None,
        ssh_config_writer: SSHConfigWriter | None = None,
        temp_root: Path | None = None,
    ):
        self.settings = settings
        self.environment = environment
        self.runner = runner or SubprocessCommandRunner()
        self.progress = progress or ProgressDisplay()
        self.ssh_config_writer = ssh_config_writer or SSHConfigWriter()
        self.temp_root = temp_root
        self.gate = EnvironmentGate(settings)
        self.working_directory: Path | None = None

    def deploy_manual(self) -> DeployOutcome:
        """Run the deployment pipeline.

        Returns:
            DeployOutcome: Why the run ended

        Raises:
            DeploymentError: If any step fails (nothing is retried)
        """
        self.progress.start_operation("Deploy manual")

        try:
            self.gate.check(self.environment)
        except DeploymentSkipped as e:
            logger.debug(f"Gate failed: {e.reason}")
            self.progress.skip(str(e))
            return DeployOutcome.SKIPPED

        try:
            outcome = self._run_pipeline()
        except DeploymentError as e:
            self.progress.complete(success=False, message=f"Deployment failed: {e}")
            raise

        if outcome is DeployOutcome.DEPLOYED:
            self.progress.complete(message="Manual deployed")
        return outcome

    def _run_pipeline(self) -> DeployOutcome:
        with tempfile.TemporaryDirectory(prefix="manual-deploy-", dir=self.temp_root) as tmp:
            workdir = Path(tmp)
            self.working_directory = workdir

            self.progress.step("Clone website repository")
            repo = self.clone_and_configure_repo(workdir)

            self.progress.step("Build manual")
            self.build_manual(repo)

            self.progress.step("Add changes if any")
            if not self.add_changes(repo):
                self.progress.skip(str(DeploymentSkipped("no changes")))
                return DeployOutcome.NO_CHANGES

            # Resolved before the key and SSH config are touched
            message = self.commit_message()

            self.progress.step("Decrypt deployment key")
            key = self.decrypt_deployment_key(workdir / "deploy")

            self.progress.step(f"Setup {self.settings.git_host} SSH authentication")
            self.ssh_config_writer.write(self.settings.git_host, key)

            self.progress.step("Commit changes to manual")
            repo.commit(message)

            self.progress.step("Push changes")
            self.push_changes(repo)

        return DeployOutcome.DEPLOYED

    def clone_and_configure_repo(self, target_directory: Path) -> GitRepository:
        destination = target_directory / self.settings.website_clone_dirname
        repo = GitRepository.clone(self.runner, self.settings.website_clone_url, destination)
        repo.configure_identity(self.settings.git_user_name, self.settings.git_user_email)
        return repo

    def build_manual(self, repo: GitRepository) -> None:
        builder = ManualBuilder(
            self.runner,
            self.settings.source_dir,
            jobs=self.settings.install_jobs,
            retries=self.settings.install_retries,
        )
        builder.build(repo.path, self.environment.variables)

    def add_changes(self, repo: GitRepository) -> bool:
        """Stage everything if the build changed anything.

        Returns:
            bool: Whether there were changes
        """
        has_changed = repo.status().has_changes
        if has_changed:
            repo.add_all()
        return has_changed

    def decrypt_deployment_key(self, target: Path) -> Path:
        decryptor = DeployKeyDecryptor(
            self.runner, self.environment, self.settings.key_env_names
        )
        return decryptor.decrypt(self.settings.encrypted_key_file, target)

    def commit_message(self) -> str:
        """Message for the deployment commit, e.g.
        ``Update from flycheck/flycheck@abcdef12``."""
        commit = self.environment.commit
        if not commit:
            raise DeploymentError("TRAVIS_COMMIT is not set")
        return f"Update from {self.settings.source_repo_slug}@{commit[:SHORT_HASH_LENGTH]}"

    def push_changes(self, repo: GitRepository) -> None:
        repo.add_remote(self.settings.remote_name, self.settings.website_push_url)
        branch = self.settings.website_branch
        repo.push(self.settings.remote_name, f"{branch}:{branch}")


__all__ = ["DeployOutcome", "DeploymentOrchestrator"]
