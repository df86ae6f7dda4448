"""
Configuration loader for git_stack_watch.

The watcher takes its settings from the command line (repository path
and push flag) and from the environment. The only environment setting is
``SSHKEY_PATH``, the private key used to authenticate pushes; when it is
unset the key at :data:`DEFAULT_SSH_KEY_PATH` is used.

If the configuration is inconsistent, a :class:`ConfigError` is raised.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from git_stack_watch.watch.scheduler import DEFAULT_INTERVAL


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


SSHKEY_ENV_VAR = "SSHKEY_PATH"
DEFAULT_SSH_KEY_PATH = Path("/root/.ssh/id_ed25519")


class ConfigError(Exception):
    """Raised when the watcher configuration is invalid."""

    pass


@dataclass(frozen=True)
class WatchConfig:
    """Resolved watcher settings.

    Attributes
    ----------
    repo_path : Path
        Path to the repository to watch.
    push : bool
        Push to the remote after each cycle that created commits.
    ssh_key_path : Path
        Private key used to authenticate pushes.
    interval : float
        Seconds between two cycles.
    """

    repo_path: Path
    push: bool
    ssh_key_path: Path
    interval: float = DEFAULT_INTERVAL


def resolve_ssh_key_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the SSH key path from ``SSHKEY_PATH`` or the default location."""
    if environ is None:
        environ = os.environ
    override = environ.get(SSHKEY_ENV_VAR, "").strip()
    if override:
        logger.info("Using SSH key at %s", override)
        return Path(override).expanduser()
    logger.info(
        "No %s env set, using default SSH key path at %s", SSHKEY_ENV_VAR, DEFAULT_SSH_KEY_PATH
    )
    return DEFAULT_SSH_KEY_PATH


def load_config(
    repo_path: Path,
    push: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> WatchConfig:
    """Build the :class:`WatchConfig` for a watcher run.

    Args:
        repo_path: Repository path given on the command line.
        push: Whether auto-push is enabled.
        environ: Environment to read from. Defaults to ``os.environ``.

    Returns:
        The resolved configuration.

    Raises:
        ConfigError: If push is enabled and the key named by
            ``SSHKEY_PATH`` does not exist. A missing default key only
            logs a warning; pushes will then fail and be reported.
    """
    if environ is None:
        environ = os.environ
    ssh_key_path = resolve_ssh_key_path(environ)

    if push and not ssh_key_path.is_file():
        if environ.get(SSHKEY_ENV_VAR, "").strip():
            logger.error("SSH key file '%s' does not exist", ssh_key_path)
            raise ConfigError(
                f"SSH key file not found: {ssh_key_path} (set via {SSHKEY_ENV_VAR})"
            )
        logger.warning("Default SSH key %s not found; pushes will fail", ssh_key_path)

    config = WatchConfig(repo_path=Path(repo_path), push=push, ssh_key_path=ssh_key_path)
    logger.debug("Configuration: %s", config)
    return config
