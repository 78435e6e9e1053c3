"""CLI command modules for bt.

Each module registers its commands on the shared Typer app:
- project: init, import
- task: new, show, context, edit, update, describe, log
- workflow: start, stop, close, cancel, reopen, block, unblock
- views: list, ready, next, activity, tree
"""

from bt.interfaces.cli.commands import project, task, views, workflow

__all__ = ["project", "task", "views", "workflow"]
