"""Git infrastructure for bt.

Provides wrappers around git queries with Result-based error handling.
"""

from bt.infrastructure.git.operations import GitOperations

__all__ = ["GitOperations"]
