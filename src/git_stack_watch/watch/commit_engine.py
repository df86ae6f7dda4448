"""
One commit per stack change.

The :class:`CommitEngine` stages the file behind a :class:`Change` and
records it as its own commit. The commit message is always
``"<kind> <stack>"``, e.g. ``"updated komodo"``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from git_stack_watch.changes.change_model import Change, ChangeKind
from git_stack_watch.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a successful :meth:`CommitEngine.commit_one` call."""

    change: Change
    sha: str
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


def commit_message(change: Change) -> str:
    """Return the commit message for ``change``."""
    return f"{change.kind.value} {change.stack_name}"


class CommitEngine:
    """Stage and commit stack changes one at a time."""

    def __init__(self, client: GitClient) -> None:
        self.client = client

    def commit_one(self, change: Change) -> CommitResult:
        """Stage ``change`` and create exactly one commit for it.

        Deleted files are removed from the index; created and updated
        files have their current content added. Only the change's own
        path goes into the commit.

        Raises
        ------
        StageError
            If the path cannot be staged.
        CommitError
            If ``git commit`` fails, e.g. because nothing is left to
            commit or no identity is configured.
        """
        if change.kind is ChangeKind.DELETED:
            self.client.remove(change.file_path)
        else:
            self.client.add(change.file_path)

        message = commit_message(change)
        sha = self.client.commit(message, change.file_path)
        result = CommitResult(change=change, sha=sha, message=message)
        logger.info("✓ Created commit %s: %s", result.short_sha, message)
        return result
