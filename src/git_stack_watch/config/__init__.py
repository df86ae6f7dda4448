"""
Configuration loading for git_stack_watch.

Resolves the watcher settings from the command line values and the
environment. See :mod:`git_stack_watch.config.loader` for details.
"""

from .loader import ConfigError, WatchConfig, load_config  # noqa: F401
