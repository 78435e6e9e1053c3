"""Locating the project root that holds ``.tasks``."""

import logging
import os
from pathlib import Path

from bt.domain.shared import Err, NotInitialized, Ok, Result
from bt.infrastructure.storage.store import TASKS_DIR

logger = logging.getLogger(__name__)

# A repository boundary: stop searching upward here
VCS_MARKERS = (".git", ".jj", ".hg", ".svn")


def find_tasks_root(start: Path) -> Result[Path, NotInitialized]:
    """Walk up from ``start`` to the nearest directory containing ``.tasks``.

    The walk stops at the first VCS root without a ``.tasks`` directory and
    at any parent the current user cannot traverse.

    Args:
        start: Directory to begin from, usually the working directory.

    Returns:
        Ok(project_root), or Err(NotInitialized) explaining where it stopped.
    """
    current = start.absolute()
    while True:
        if (current / TASKS_DIR).is_dir():
            logger.debug("Found task repository at %s", current)
            return Ok(current)

        for marker in VCS_MARKERS:
            if (current / marker).exists():
                return Err(
                    NotInitialized(
                        current,
                        f"Not a bt-enabled directory (found {marker} but no "
                        f"{TASKS_DIR}). Run 'bt init' first.",
                    )
                )

        parent = current.parent
        if parent == current:
            return Err(NotInitialized(start))
        if not os.access(parent, os.X_OK):
            logger.debug("Stopping at permission boundary %s", parent)
            return Err(NotInitialized(start))
        current = parent
