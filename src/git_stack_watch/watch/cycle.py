"""
A single scan, classify, commit and push pass over the repository.

:class:`CycleController` owns no state between runs. Everything it needs
is recomputed from the live repository status, so a change whose commit
failed is simply picked up again by the next cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from git_stack_watch.changes.change_classifier import classify_changes
from git_stack_watch.changes.change_model import Change
from git_stack_watch.vcs.git_client import (
    GitClient,
    GitError,
    NoRemoteError,
    PushError,
    PushOutcome,
    ScanError,
)
from git_stack_watch.watch.commit_engine import CommitEngine, CommitResult


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass
class CycleSummary:
    """What happened during one cycle.

    Attributes
    ----------
    changes : List[Change]
        Changes detected by the classifier.
    commits : List[CommitResult]
        Commits created successfully.
    failures : List[Tuple[Change, GitError]]
        Changes that could not be committed, with the error raised.
    push_attempted : bool
        True if the push gateway was invoked.
    push_outcome : Optional[PushOutcome]
        Result of a successful push.
    push_error : Optional[PushError]
        Error raised by a failed push.
    scan_error : Optional[ScanError]
        Set when the cycle was abandoned because the status scan failed.
    """

    changes: List[Change] = field(default_factory=list)
    commits: List[CommitResult] = field(default_factory=list)
    failures: List[Tuple[Change, GitError]] = field(default_factory=list)
    push_attempted: bool = False
    push_outcome: Optional[PushOutcome] = None
    push_error: Optional[PushError] = None
    scan_error: Optional[ScanError] = None

    @property
    def commit_count(self) -> int:
        return len(self.commits)

    @property
    def pushed(self) -> bool:
        return self.push_outcome is not None

    def describe(self) -> str:
        """Return the one-line summary logged at the end of the cycle."""
        if self.scan_error is not None:
            return "Cycle abandoned: status scan failed."
        if not self.changes:
            return "Done. No compose file changes."
        text = f"Done. {self.commit_count}/{len(self.changes)} change(s) committed"
        if self.failures:
            text += f", {len(self.failures)} failed"
        if self.push_outcome is PushOutcome.UP_TO_DATE:
            text += ", remote already up to date"
        elif self.push_outcome is PushOutcome.PUSHED:
            text += ", pushed"
        elif self.push_error is not None:
            text += ", push failed"
        return text + "."


class CycleController:
    """Run the scan, classify, commit and push pipeline once per call."""

    def __init__(
        self,
        client: GitClient,
        push_enabled: bool = False,
        ssh_key_path: Optional[Path] = None,
        engine: Optional[CommitEngine] = None,
    ) -> None:
        if push_enabled and ssh_key_path is None:
            raise ValueError("ssh_key_path is required when push is enabled")
        self.client = client
        self.push_enabled = push_enabled
        self.ssh_key_path = ssh_key_path
        self.engine = engine or CommitEngine(client)

    def run_once(self) -> CycleSummary:
        """Run one full cycle and return its summary."""
        summary = CycleSummary()
        logger.info("Checking for compose file changes...")
        try:
            self._run(summary)
        finally:
            logger.info(summary.describe())
        return summary

    def _run(self, summary: CycleSummary) -> None:
        try:
            status = self.client.status()
        except ScanError as exc:
            logger.error("%s", exc)
            summary.scan_error = exc
            return

        summary.changes = classify_changes(status)
        if not summary.changes:
            logger.info("No compose file changes detected.")
            return

        logger.info("Found %d stack change(s):", len(summary.changes))
        for change in summary.changes:
            logger.info("  - %s %s (%s)", change.kind.value, change.stack_name, change.file_path)

        # Commits mutate the index and HEAD, so they run strictly in order.
        for change in summary.changes:
            try:
                summary.commits.append(self.engine.commit_one(change))
            except GitError as exc:
                logger.error(
                    "Failed to commit %s (%s): %s", change.stack_name, change.file_path, exc
                )
                summary.failures.append((change, exc))

        if summary.commit_count == 0:
            logger.info("No commits were created, skipping push.")
            return
        if self.push_enabled:
            self._push(summary)

    def _push(self, summary: CycleSummary) -> None:
        logger.info("Pushing to remote...")
        summary.push_attempted = True
        try:
            summary.push_outcome = self.client.push(self.ssh_key_path)
        except NoRemoteError as exc:
            logger.error("x No remote available, please add one!")
            summary.push_error = exc
            return
        except PushError as exc:
            logger.error("Failed to push to remote: %s", exc)
            summary.push_error = exc
            return

        if summary.push_outcome is PushOutcome.UP_TO_DATE:
            logger.info("✓ Already up to date")
        else:
            logger.info("✓ Successfully pushed to remote")
