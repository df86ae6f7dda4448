"""
The watch loop: committing compose changes and scheduling the cycles.

See :mod:`git_stack_watch.watch.commit_engine`,
:mod:`git_stack_watch.watch.cycle` and :mod:`git_stack_watch.watch.scheduler`.
"""

from .commit_engine import CommitEngine, CommitResult, commit_message  # noqa: F401
from .cycle import CycleController, CycleSummary  # noqa: F401
from .scheduler import DEFAULT_INTERVAL, Scheduler  # noqa: F401
