"""Shared domain building blocks: result values and the error taxonomy."""

from bt.domain.shared.errors import (
    AmbiguousPrefix,
    DependencyCycle,
    InitializationError,
    IntegrityError,
    InvalidTransition,
    IOFailure,
    LookupFailure,
    MalformedRecord,
    NotFound,
    NotInitialized,
    StoreError,
)
from bt.domain.shared.result import Err, Ok, Result, map_result

__all__ = [
    # Result values
    "Ok",
    "Err",
    "Result",
    "map_result",
    # Errors
    "StoreError",
    "InitializationError",
    "NotInitialized",
    "LookupFailure",
    "NotFound",
    "AmbiguousPrefix",
    "IntegrityError",
    "MalformedRecord",
    "InvalidTransition",
    "DependencyCycle",
    "IOFailure",
]
