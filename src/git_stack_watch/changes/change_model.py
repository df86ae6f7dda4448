"""
Data models for stack changes.

A :class:`Change` describes one compose file whose state differs from the
last commit. Changes are rebuilt from the live repository status on every
cycle and are never stored.
"""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass


ROOT_STACK = "root"


class ChangeKind(enum.Enum):
    """How a compose file changed since the last commit."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


def stack_name_for(file_path: str) -> str:
    """Return the stack name for a compose file path.

    The stack is named after the directory holding the file, e.g.
    ``"docker/komodo/compose.yml"`` gives ``"komodo"``. Files at the
    repository root belong to the ``"root"`` stack.
    """
    parent = posixpath.dirname(file_path.rstrip("/"))
    name = posixpath.basename(parent)
    if name in ("", ".", "/"):
        return ROOT_STACK
    return name


@dataclass(frozen=True)
class Change:
    """A single compose file change.

    Attributes
    ----------
    file_path : str
        Repository-relative path to the compose file.
    kind : ChangeKind
        Whether the file was created, updated or deleted.
    """

    file_path: str
    kind: ChangeKind

    @property
    def stack_name(self) -> str:
        return stack_name_for(self.file_path)
