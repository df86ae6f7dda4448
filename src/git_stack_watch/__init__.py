"""
Top-level package for git_stack_watch.

This package exposes the main CLI entry point via the
``git_stack_watch.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
