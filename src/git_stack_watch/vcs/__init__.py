"""
Version control integration.

This package wraps the ``git`` command line for the few operations the
watcher needs: reading the working tree status, staging and committing
a single path, and pushing to the configured remote.
"""

from .git_client import (  # noqa: F401
    CommitError,
    GitClient,
    GitError,
    NoRemoteError,
    PushError,
    PushOutcome,
    RepositoryOpenError,
    ScanError,
    StageError,
    StatusCode,
    StatusRecord,
)
