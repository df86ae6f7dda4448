"""
Detection of compose file changes.

This package turns the raw repository status into stack change events.
See :mod:`git_stack_watch.changes.change_classifier` and
:mod:`git_stack_watch.changes.change_model` for details.
"""

from .change_classifier import classify_changes, classify_status  # noqa: F401
from .change_model import Change, ChangeKind  # noqa: F401
