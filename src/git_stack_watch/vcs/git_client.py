"""
Git client implementation for git_stack_watch.

This module wraps the handful of Git operations the watcher needs:
reading the working tree status, staging a single path, committing it,
and pushing to the configured remote. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import enum
import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional


logger = logging.getLogger(__name__)
# Attach a null handler so that library use without logging configured
# stays silent. Messages propagate to the root once the CLI configures it.
logger.addHandler(logging.NullHandler())


DEFAULT_REMOTE = "origin"


class StatusCode(enum.Enum):
    """Single-letter status flags as printed by ``git status --porcelain``."""

    UNMODIFIED = " "
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"
    UNTRACKED = "?"
    IGNORED = "!"


@dataclass(frozen=True)
class StatusRecord:
    """Index (staging) and working tree state of a single path."""

    staging: StatusCode
    worktree: StatusCode


class PushOutcome(enum.Enum):
    """Successful results of :meth:`GitClient.push`."""

    PUSHED = "pushed"
    UP_TO_DATE = "up-to-date"


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class RepositoryOpenError(GitError):
    """Raised when the watched path is not a usable Git repository."""


class ScanError(GitError):
    """Raised when the repository status cannot be read."""


class StageError(GitError):
    """Raised when a path cannot be added to or removed from the index."""


class CommitError(GitError):
    """Raised when ``git commit`` fails."""


class PushError(GitError):
    """Raised when pushing to the remote fails."""


class NoRemoteError(PushError):
    """Raised when the repository has no remote to push to."""


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------
    @classmethod
    def open(cls, path: Path) -> "GitClient":
        """Return a client for the repository rooted at ``path``.

        Raises
        ------
        RepositoryOpenError
            If ``path`` is not a directory or Git does not recognise it
            as part of a working tree.
        """
        path = Path(path).expanduser()
        if not path.is_dir():
            raise RepositoryOpenError(f"Repository path does not exist: {path}")
        try:
            result = cls(path.resolve())._run(["rev-parse", "--show-toplevel"], check=True)
        except GitError as exc:
            raise RepositoryOpenError(f"Not a git repository: {path} ({exc})") from exc
        toplevel = result.stdout.strip()
        if not toplevel:
            raise RepositoryOpenError(f"Not a git working tree: {path}")
        # Status paths are relative to the top level, so commands run there.
        return cls(Path(toplevel))

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(
        self,
        args: List[str],
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        ``env`` entries are added on top of the current process
        environment.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is
            True, or if the ``git`` executable cannot be started.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=run_env,
            )
        except OSError as e:
            logger.error("Could not run git: %s", e)
            raise GitError(f"Failed to run git: {e}") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def status(self) -> Dict[str, StatusRecord]:
        """Return the status of every changed path in the repository.

        Untracked files are listed one by one, including those inside
        untracked directories. Rename detection is turned off so a moved
        file shows up as a deletion of the old path plus an addition of
        the new one.

        Raises
        ------
        ScanError
            If ``git status`` fails.
        """
        try:
            result = self._run(
                [
                    "status",
                    "--porcelain=v1",
                    "-z",
                    "--untracked-files=all",
                    "--no-renames",
                ],
                check=True,
            )
        except GitError as exc:
            raise ScanError(f"Failed to get status: {exc}") from exc
        return parse_porcelain(result.stdout)

    # ------------------------------------------------------------------
    # Staging, committing, pushing
    # ------------------------------------------------------------------
    def add(self, path: str) -> None:
        """Stage the current on-disk content of ``path``."""
        try:
            self._run(["add", "--", path], check=True)
        except GitError as exc:
            raise StageError(f"failed to add file: {exc}") from exc

    def remove(self, path: str) -> None:
        """Stage the deletion of ``path``.

        Only the index entry is removed; a path whose deletion is already
        staged is left alone.
        """
        try:
            self._run(["rm", "--cached", "--ignore-unmatch", "--quiet", "--", path], check=True)
        except GitError as exc:
            raise StageError(f"failed to remove file: {exc}") from exc

    def commit(self, message: str, path: str) -> str:
        """Commit the staged state of ``path`` alone and return the new sha.

        ``--only`` keeps anything else that happens to be staged out of
        the commit.
        """
        try:
            self._run(["commit", "--quiet", "-m", message, "--only", "--", path], check=True)
            result = self._run(["rev-parse", "HEAD"], check=True)
        except GitError as exc:
            raise CommitError(f"failed to commit: {exc}") from exc
        return result.stdout.strip()

    def _remotes(self) -> List[str]:
        """Return the names of the configured remotes."""
        result = self._run(["remote"], check=False)
        return result.stdout.split()

    def _has_upstream(self) -> bool:
        """Return True if the current branch tracks a remote branch."""
        result = self._run(
            ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], check=False
        )
        return result.returncode == 0

    def push(self, ssh_key_path: Path) -> PushOutcome:
        """Push the current branch to its configured remote.

        A branch with an upstream is pushed there. Otherwise ``HEAD`` is
        pushed to the branch of the same name on ``origin``, or on the
        first remote when there is no ``origin``. Authentication uses the
        private key at ``ssh_key_path``.

        Raises
        ------
        NoRemoteError
            If no remote is configured.
        PushError
            If pushing fails for any other reason.
        """
        remotes = self._remotes()
        if not remotes:
            raise NoRemoteError("no remote configured")

        args = ["push", "--porcelain"]
        if not self._has_upstream():
            remote = DEFAULT_REMOTE if DEFAULT_REMOTE in remotes else remotes[0]
            args += [remote, "HEAD"]

        env = {"GIT_SSH_COMMAND": ssh_command(ssh_key_path)}
        try:
            result = self._run(args, check=True, env=env)
        except GitError as exc:
            raise PushError(f"push failed: {exc}") from exc

        if is_up_to_date(result.stdout, result.stderr):
            return PushOutcome.UP_TO_DATE
        return PushOutcome.PUSHED


def ssh_command(ssh_key_path: Path) -> str:
    """Build the ``GIT_SSH_COMMAND`` value for authenticating with a key."""
    return f"ssh -i {shlex.quote(str(ssh_key_path))} -o IdentitiesOnly=yes"


def is_up_to_date(stdout: str, stderr: str) -> bool:
    """Return True if ``git push --porcelain`` output says nothing was sent.

    Porcelain ref lines start with a flag character followed by a tab;
    ``=`` marks an up-to-date ref. When no ref needed sending git also
    prints ``Everything up-to-date`` on stderr.
    """
    if "Everything up-to-date" in stderr:
        return True
    flags = [line.split("\t", 1)[0] for line in stdout.splitlines() if "\t" in line]
    return bool(flags) and all(flag == "=" for flag in flags)


def parse_porcelain(output: str) -> Dict[str, StatusRecord]:
    """Parse ``git status --porcelain=v1 -z`` output.

    Each entry is ``XY path`` terminated by NUL, where ``X`` is the index
    status and ``Y`` the working tree status. Rename and copy entries are
    followed by an extra NUL-terminated source path, which is skipped.
    Unknown status letters are mapped to ``UNMODIFIED``.

    A path removed from the index but still on disk is listed twice, as
    ``D `` and as ``??``. The two entries are merged into one record
    with a ``DELETED`` index flag and an ``UNTRACKED`` working tree flag.
    """
    records: Dict[str, StatusRecord] = {}
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        # We need at least 4 characters (XY + space + filename)
        if len(entry) < 4:
            continue
        staging = _status_code(entry[0])
        worktree = _status_code(entry[1])
        path = entry[3:]
        if staging in (StatusCode.RENAMED, StatusCode.COPIED):
            i += 1
        previous = records.get(path)
        if previous is not None:
            if worktree is StatusCode.UNTRACKED:
                staging = previous.staging
            elif previous.worktree is StatusCode.UNTRACKED:
                worktree = StatusCode.UNTRACKED
        records[path] = StatusRecord(staging=staging, worktree=worktree)
    return records


def _status_code(letter: str) -> StatusCode:
    try:
        return StatusCode(letter)
    except ValueError:
        logger.debug("Unknown status letter %r", letter)
        return StatusCode.UNMODIFIED
