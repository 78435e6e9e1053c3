"""Configuration for bt.

Settings are resolved once per command and passed explicitly into the
application services; nothing below the CLI looks up the user on its own.

Author resolution order:
    1. BT_AUTHOR environment variable
    2. ``author`` in ``.tasks/config.yaml``
    3. ``git config user.name``
    4. The login name
"""

import getpass
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from bt.domain.shared import Ok
from bt.infrastructure.git import GitOperations

logger = logging.getLogger(__name__)

AUTHOR_ENV = "BT_AUTHOR"
ROOT_ENV = "BT_ROOT"


class Settings(BaseModel):
    """Per-invocation settings."""

    author: str = "unknown"
    editor: str | None = None


def _read_config_file(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        return {}
    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_file, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a mapping", config_file)
        return {}
    return data


def _login_name() -> str | None:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def load_settings(project_root: Path | None = None, config_file: Path | None = None) -> Settings:
    """Build Settings for a command run in ``project_root``.

    Args:
        project_root: Directory holding ``.tasks``; used for git lookup.
        config_file: Path to ``config.yaml``; skipped when None.

    Returns:
        Settings with every field resolved.
    """
    data = _read_config_file(config_file) if config_file else {}

    author = os.environ.get(AUTHOR_ENV) or data.get("author")
    if not author:
        git_result = GitOperations().user_name(project_root or Path.cwd())
        if isinstance(git_result, Ok):
            author = git_result.value
        else:
            logger.debug("No git author: %s", git_result.error)
            author = _login_name()

    try:
        return Settings(author=str(author or "unknown"), editor=data.get("editor"))
    except ValidationError as e:
        logger.warning("Invalid settings in %s: %s", config_file, e)
        return Settings(author=str(author or "unknown"))
