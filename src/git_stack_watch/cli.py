"""
Command line interface for the git_stack_watch daemon.

This module defines the ``main`` function used as the entry point of the
``git-stack-watch`` command. It resolves the configuration, opens the
repository, and hands a :class:`CycleController` to the
:class:`Scheduler`, which runs until SIGINT or SIGTERM.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from git_stack_watch import __version__
from git_stack_watch.config.loader import ConfigError, load_config
from git_stack_watch.vcs.git_client import GitClient, RepositoryOpenError
from git_stack_watch.watch.cycle import CycleController
from git_stack_watch.watch.scheduler import Scheduler


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 4


# ---------------------------------------------------------------------------
# Status display utilities
# ---------------------------------------------------------------------------

def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=False)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=False)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def format_interval(seconds: float) -> str:
    """Render an interval in whole minutes when possible."""
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} minutes"
    return f"{seconds:g} seconds"


def build_scheduler(client: GitClient, push: bool, ssh_key_path: Path, interval: float) -> Scheduler:
    """Wire a cycle controller for ``client`` into a new scheduler."""
    controller = CycleController(client, push_enabled=push, ssh_key_path=ssh_key_path)
    return Scheduler(controller.run_once, interval=interval)


@click.command()
@click.option(
    "--repo",
    "repo",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Path to the git repository to watch.",
)
@click.option("--push", "push", is_flag=True, help="Push to remote after committing changes.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="git-stack-watch")
def main(repo: Path, push: bool, verbose: bool) -> None:
    """Commit compose file changes in a git repository, one commit per stack.

    The repository is checked immediately and then every 29 minutes.
    Each changed compose.yml or compose.yaml becomes its own commit named
    after the directory that holds it, e.g. "updated komodo".

    Example: git-stack-watch --repo /path/to/repo --push
    """
    # force=True so repeated invocations (tests) reconfigure the handlers.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        force=True,
    )

    ctx = click.get_current_context(silent=True)

    try:
        try:
            config = load_config(repo, push=push)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        try:
            client = GitClient.open(config.repo_path)
        except RepositoryOpenError as exc:
            print_error(f"Failed to open repository: {exc}")
            raise click.exceptions.Exit(EXIT_NO_REPO)

        logger.info("Starting git-stack-watch for repository: %s", client.repo_root)
        logger.info("Checking for changes every %s...", format_interval(config.interval))
        if config.push:
            print_warning("Auto-push to remote is enabled.")
        print_info("Press Ctrl+C to stop")

        scheduler = build_scheduler(client, config.push, config.ssh_key_path, config.interval)
        scheduler.run(handle_signals=True)

        click.echo("\nReceived interrupt signal, shutting down...")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
