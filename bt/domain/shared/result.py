"""Result values for explicit error handling.

Store and service operations return ``Ok(value)`` or ``Err(error)`` instead
of raising for expected failures (missing task, ambiguous prefix, bad
record). Callers branch with ``isinstance``.

Example usage:
    >>> result = store.find("3f2")
    >>> if isinstance(result, Err):
    ...     print(f"Error: {result.error}")
    ... else:
    ...     location = result.value
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result.

    Attributes:
        value: The success value of type T.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result.

    Attributes:
        error: The error value of type E.
    """

    error: E


Result = Union[Ok[T], Err[E]]  # noqa: UP007


def map_result(result: Ok[T] | Err[E], fn: Callable[[T], U]) -> Ok[U] | Err[E]:
    """Transform the value inside an Ok, passing an Err through unchanged."""
    if isinstance(result, Ok):
        return Ok(fn(result.value))
    return result
