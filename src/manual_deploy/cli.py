"""manual-deploy command line interface.

Commands:
    deploy  Build the manual and push it to the website repository
    check   Verify the external tools are installed
    gate    Show whether this CI build would deploy

Invoked from the Travis CI ``after_success`` hook:

    $ manual-deploy deploy
"""

import logging
import shutil
import sys

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config_manager import ConfigManager, DeployEnvironment
from .deploy_orchestrator import DeploymentOrchestrator
from .errors import DeploymentError, DeploymentSkipped
from .modules.environment_gate import EnvironmentGate
from .modules.prerequisites import PrerequisiteChecker

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


config_option = click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="TOML file overriding deployment settings",
)
verbose_option = click.option("--verbose", "-v", is_flag=True, help="Verbose output")


@click.group()
@click.version_option(__version__, prog_name="manual-deploy")
def main() -> None:
    """manual-deploy - Publish the Flycheck manual from Travis CI.

    \b
    Examples:
        manual-deploy deploy
        manual-deploy deploy --config deploy.toml --verbose
        manual-deploy check
        manual-deploy gate
    """


@main.command()
@config_option
@click.option(
    "--source-dir",
    type=click.Path(exists=True, file_okay=False),
    help="Source tree to build the manual from (default: current directory)",
)
@verbose_option
def deploy(config: str | None, source_dir: str | None, verbose: bool) -> None:
    """Build the manual and push it to the website repository.

    Fails early if git, bundle, rake, openssl or ssh is missing. Skipped builds
    (forks, pull requests, other branches, no changes) exit 0.
    """
    _setup_logging(verbose)

    environment = DeployEnvironment.from_environ()
    if not environment.is_travis_ci:
        logger.warning("Not running on Travis CI")

    try:
        settings = ConfigManager.load_settings(config, source_dir=source_dir)
        # Skipped builds need no tools
        if EnvironmentGate(settings).first_failure(environment) is None:
            PrerequisiteChecker.require_all()
        orchestrator = DeploymentOrchestrator(settings, environment)
        outcome = orchestrator.deploy_manual()
    except DeploymentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logger.debug(f"Deployment finished: {outcome.value}")


@main.command()
@verbose_option
def check(verbose: bool) -> None:
    """Verify git, bundle, rake, openssl and ssh are installed."""
    _setup_logging(verbose)

    result = PrerequisiteChecker.check_all()

    table = Table(title="Prerequisites", show_header=True, header_style="bold", border_style="dim")
    table.add_column("Tool", style="white")
    table.add_column("Status")
    table.add_column("Location", style="dim")

    for tool in PrerequisiteChecker.REQUIRED_TOOLS:
        if tool in result.available:
            table.add_row(tool, "[green]found[/green]", shutil.which(tool) or "")
        else:
            table.add_row(tool, "[red]missing[/red]", PrerequisiteChecker.INSTALL_HINTS[tool])

    Console().print(table)

    if not result.all_available:
        sys.exit(1)


@main.command()
@config_option
def gate(config: str | None) -> None:
    """Show whether this CI build would deploy (never fails)."""
    try:
        settings = ConfigManager.load_settings(config)
    except DeploymentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        EnvironmentGate(settings).check(DeployEnvironment.from_environ())
    except DeploymentSkipped as e:
        click.echo(str(e))
        return

    click.echo("Deployment would proceed")


if __name__ == "__main__":
    main()
