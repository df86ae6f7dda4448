#!/usr/bin/env python
"""
Thin wrapper script to invoke the git_stack_watch CLI.

Running ``python stackwatch.py`` is equivalent to running the
``git-stack-watch`` console script installed via ``pyproject.toml``.
"""

from git_stack_watch.cli import main


if __name__ == "__main__":
    main(prog_name="git-stack-watch")
