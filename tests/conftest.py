import shutil
import subprocess
from pathlib import Path

import pytest


def run_git(repo: Path, *args: str) -> str:
    """Run git in ``repo`` and return its stdout, failing the test on error."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch) -> Path:
    """A throwaway repository with one commit and a local identity.

    Global and system git configuration are ignored so the tests do not
    depend on the machine they run on.
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("HOME", str(tmp_path))

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "config", "user.name", "Stack Watch")
    run_git(repo, "config", "user.email", "watch@example.com")
    run_git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("stacks\n")
    run_git(repo, "add", "README.md")
    run_git(repo, "commit", "-q", "-m", "initial")
    return repo


@pytest.fixture
def git():
    """Return a helper that runs git in a repository and returns stdout."""
    return run_git
