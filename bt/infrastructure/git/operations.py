"""Git lookups with Result-based error handling.

bt only asks git one thing: who the user is, for the author recorded on
new tasks and log entries.
"""

import subprocess
from pathlib import Path

from bt.domain.shared.result import Err, Ok, Result


class GitOperations:
    """Git queries executed through subprocess.

    Example:
        git = GitOperations()
        result = git.user_name(Path.cwd())
        if isinstance(result, Ok):
            author = result.value
    """

    def __init__(self, timeout: int = 5) -> None:
        """Initialize git operations.

        Args:
            timeout: Timeout in seconds for git commands.
        """
        self._timeout = timeout

    def user_name(self, path: Path) -> Result[str, str]:
        """Return ``git config user.name`` as seen from ``path``.

        Args:
            path: Directory to run git in.

        Returns:
            Ok(name) if configured, Err(str) otherwise.
        """
        try:
            result = subprocess.run(
                ["git", "config", "user.name"],
                cwd=str(path),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return Err("Git operation timed out")
        except OSError as e:
            return Err(f"Git command failed: {e}")

        name = result.stdout.strip()
        if result.returncode != 0 or not name:
            return Err("git user.name is not set")
        return Ok(name)
