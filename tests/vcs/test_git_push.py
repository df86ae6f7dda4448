import shlex
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from git_stack_watch.vcs.git_client import (
    GitClient,
    GitError,
    NoRemoteError,
    PushError,
    PushOutcome,
    is_up_to_date,
    ssh_command,
)


class DummyProc(SimpleNamespace):
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


KEY = Path("/keys/id_ed25519")


class TestGitClientPush(unittest.TestCase):
    """Tests for the push gateway of GitClient."""

    def _client_with(
        self, push_result=None, push_error=None, remotes="origin\n", upstream=True
    ):
        calls = []

        def fake_run(self, args, check=True, env=None):
            calls.append((args, env))
            if args[0] == "remote":
                return DummyProc(returncode=0, stdout=remotes, stderr="")
            if args[0] == "rev-parse":
                if upstream:
                    return DummyProc(returncode=0, stdout="origin/main\n", stderr="")
                return DummyProc(returncode=128, stdout="", stderr="fatal: no upstream configured")
            if args[0] == "push":
                if push_error is not None:
                    raise push_error
                return push_result
            raise AssertionError(f"Unexpected git command: {args}")

        patcher = patch.object(GitClient, "_run", autospec=True, side_effect=fake_run)
        patcher.start()
        self.addCleanup(patcher.stop)
        return GitClient(Path("/repo")), calls

    def test_push_uses_ssh_key(self) -> None:
        result = DummyProc(
            returncode=0,
            stdout="To git@example.com:me/stacks.git\n \trefs/heads/main:refs/heads/main\tabc..def\nDone\n",
            stderr="",
        )
        client, calls = self._client_with(push_result=result)
        outcome = client.push(KEY)

        self.assertIs(outcome, PushOutcome.PUSHED)
        push_args, push_env = calls[-1]
        self.assertEqual(push_args, ["push", "--porcelain"])
        self.assertEqual(push_env, {"GIT_SSH_COMMAND": ssh_command(KEY)})
        self.assertIn(str(KEY), push_env["GIT_SSH_COMMAND"])

    def test_branch_without_upstream_pushes_head_to_origin(self) -> None:
        result = DummyProc(returncode=0, stdout="*\trefs/heads/main:refs/heads/main\t[new branch]\n")
        client, calls = self._client_with(
            push_result=result, remotes="backup\norigin\n", upstream=False
        )

        self.assertIs(client.push(KEY), PushOutcome.PUSHED)
        self.assertEqual(calls[-1][0], ["push", "--porcelain", "origin", "HEAD"])

    def test_branch_without_upstream_falls_back_to_first_remote(self) -> None:
        result = DummyProc(returncode=0, stdout="*\trefs/heads/main:refs/heads/main\t[new branch]\n")
        client, calls = self._client_with(
            push_result=result, remotes="backup\nmirror\n", upstream=False
        )

        client.push(KEY)
        self.assertEqual(calls[-1][0], ["push", "--porcelain", "backup", "HEAD"])

    def test_already_up_to_date_is_success(self) -> None:
        result = DummyProc(
            returncode=0,
            stdout="To git@example.com:me/stacks.git\n=\trefs/heads/main:refs/heads/main\t[up to date]\nDone\n",
            stderr="Everything up-to-date\n",
        )
        client, _ = self._client_with(push_result=result)
        self.assertIs(client.push(KEY), PushOutcome.UP_TO_DATE)

    def test_no_remote_is_reported_distinctly(self) -> None:
        client, calls = self._client_with(remotes="")
        with self.assertRaises(NoRemoteError):
            client.push(KEY)
        self.assertTrue(all(args[0] != "push" for args, _ in calls))

    def test_transport_failure_raises_push_error(self) -> None:
        client, _ = self._client_with(push_error=GitError("Permission denied (publickey)."))
        with self.assertRaises(PushError) as ctx:
            client.push(KEY)
        self.assertNotIsInstance(ctx.exception, NoRemoteError)
        self.assertIn("publickey", str(ctx.exception))


class TestSshCommand(unittest.TestCase):
    def test_plain_path(self) -> None:
        self.assertEqual(
            ssh_command(KEY), "ssh -i /keys/id_ed25519 -o IdentitiesOnly=yes"
        )

    def test_shell_characters_in_path_are_quoted(self) -> None:
        command = ssh_command(Path('/keys/my "deploy" $HOME key'))
        self.assertEqual(
            shlex.split(command),
            ["ssh", "-i", '/keys/my "deploy" $HOME key', "-o", "IdentitiesOnly=yes"],
        )
        self.assertIn("'", command)


class TestUpToDateDetection(unittest.TestCase):
    def test_cases(self) -> None:
        cases = [
            ("", "Everything up-to-date\n", True),
            ("=\trefs/heads/main:refs/heads/main\t[up to date]\n", "", True),
            (" \trefs/heads/main:refs/heads/main\ta..b\n", "", False),
            ("*\trefs/heads/new:refs/heads/new\t[new branch]\n", "", False),
            ("", "", False),
        ]
        for stdout, stderr, expected in cases:
            with self.subTest(stdout=stdout, stderr=stderr):
                self.assertEqual(is_up_to_date(stdout, stderr), expected)


if __name__ == "__main__":
    unittest.main()
