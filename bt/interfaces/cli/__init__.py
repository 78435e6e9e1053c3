"""CLI interface for bt using Typer.

Usage:
    bt init                     # Create .tasks/ in the current directory
    bt new "Write the lexer"    # Create a task, prints its id
    bt ready                    # Tasks with nothing left blocking them
    bt close 3f                 # Close by unique id prefix

The CLI is structured as:
- app.py: Main Typer application and global options
- commands/: Command modules, registered on import
- common.py: Shared utilities for CLI commands
- main.py: Entry point that runs the app
"""

from bt.interfaces.cli.app import app

# Importing the command modules registers their commands on ``app``
from bt.interfaces.cli import commands  # noqa: E402,F401

__all__ = ["app"]
