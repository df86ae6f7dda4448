"""
Classification of repository status into stack changes.

Only files named exactly ``compose.yml`` or ``compose.yaml`` are
considered, at any directory depth. Everything else in the status is
ignored. The change kind is derived from the index and working tree
flags alone; file contents are never inspected.
"""

from __future__ import annotations

import posixpath
from typing import List, Mapping, Optional

from git_stack_watch.changes.change_model import Change, ChangeKind
from git_stack_watch.vcs.git_client import StatusCode, StatusRecord


COMPOSE_FILENAMES = frozenset({"compose.yml", "compose.yaml"})


def is_compose_file(file_path: str) -> bool:
    """Return True if the last component of ``file_path`` is a compose filename."""
    return posixpath.basename(file_path) in COMPOSE_FILENAMES


def classify_status(record: StatusRecord) -> Optional[ChangeKind]:
    """Map a status record to a change kind.

    The first matching rule wins: an added or untracked file is
    ``CREATED``, a deleted one ``DELETED``, a modified one ``UPDATED``.
    Any other combination returns ``None``.
    """
    staging, worktree = record.staging, record.worktree
    if staging is StatusCode.ADDED or worktree is StatusCode.UNTRACKED:
        return ChangeKind.CREATED
    if staging is StatusCode.DELETED or worktree is StatusCode.DELETED:
        return ChangeKind.DELETED
    if staging is StatusCode.MODIFIED or worktree is StatusCode.MODIFIED:
        return ChangeKind.UPDATED
    return None


def classify_changes(status: Mapping[str, StatusRecord]) -> List[Change]:
    """Build one :class:`Change` per compose file with a relevant status.

    Parameters
    ----------
    status : Mapping[str, StatusRecord]
        Repository status keyed by repository-relative path.

    Returns
    -------
    List[Change]
        Changes in the iteration order of ``status``. Two compose files in
        the same directory yield two separate changes.
    """
    changes: List[Change] = []
    for file_path, record in status.items():
        if not is_compose_file(file_path):
            continue
        kind = classify_status(record)
        if kind is None:
            continue
        changes.append(Change(file_path=file_path, kind=kind))
    return changes
