"""
Environment Gate Module

Decide whether the current CI build is allowed to deploy.

Only pushes to the deployment branch of the upstream repository, with
secure variables available, may publish the manual. Anything else (forks,
pull requests, feature branches) is skipped without failing the build.
"""

import logging
from dataclasses import dataclass

from ..config_manager import DeployEnvironment, DeploySettings
from ..errors import DeploymentSkipped

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateCondition:
    """A single required environment value."""

    variable: str
    expected: str
    reason: str

    def is_met(self, environment: DeployEnvironment) -> bool:
        return environment.get(self.variable) == self.expected


class EnvironmentGate:
    """
    Check the CI environment before any deployment work happens.

    Conditions are evaluated in order and the first failing one stops the
    check.
    """

    def __init__(self, settings: DeploySettings):
        self.conditions: list[GateCondition] = [
            GateCondition("TRAVIS_REPO_SLUG", settings.source_repo_slug, "not our repo"),
            GateCondition("TRAVIS_PULL_REQUEST", "false", "pull request"),
            GateCondition("TRAVIS_SECURE_ENV_VARS", "true", "secure variables missing"),
            GateCondition(
                "TRAVIS_BRANCH", settings.deploy_branch, f"not the {settings.deploy_branch} branch"
            ),
        ]

    def first_failure(self, environment: DeployEnvironment) -> GateCondition | None:
        """Return the first unmet condition, or None if all are met."""
        for condition in self.conditions:
            if not condition.is_met(environment):
                logger.debug(
                    f"{condition.variable}={environment.get(condition.variable)!r}, "
                    f"expected {condition.expected!r}"
                )
                return condition
        return None

    def check(self, environment: DeployEnvironment) -> None:
        """
        Raise unless every condition holds.

        Raises:
            DeploymentSkipped: Naming the first failed condition

        Example:
            >>> gate = EnvironmentGate(DeploySettings())
            >>> gate.check(DeployEnvironment({}))
            Traceback (most recent call last):
            ...
            manual_deploy.errors.DeploymentSkipped: DEPLOYMENT SKIPPED (not our repo)
        """
        failed = self.first_failure(environment)
        if failed is not None:
            raise DeploymentSkipped(failed.reason)


__all__ = ["EnvironmentGate", "GateCondition"]
