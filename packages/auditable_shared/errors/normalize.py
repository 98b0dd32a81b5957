"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from packages.auditable.errors import (
    CacheWriteError,
    InvalidMappingError,
    NoSessionFoundError,
)

from . import codes
from .factories import dependency_error, internal_error, not_found_error, validation_error
from .types import ErrorDetail


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    Auditable exceptions map to dedicated codes; anything else falls back to
    the generic mapping.
    """
    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, InvalidMappingError):
        if exc.class_name:
            metadata["class_name"] = exc.class_name
        return validation_error(str(exc), code=codes.INVALID_MAPPING, metadata=metadata)

    if isinstance(exc, NoSessionFoundError):
        return not_found_error(str(exc), code=codes.NO_SESSION, metadata=metadata)

    if isinstance(exc, CacheWriteError):
        metadata["path"] = str(exc.path)
        return dependency_error(
            str(exc),
            code=codes.CACHE_WRITE_FAILED,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, ValueError):
        return validation_error(str(exc), code=codes.INVALID_ARGUMENT, metadata=metadata)

    if isinstance(exc, OSError):
        return dependency_error(str(exc) or "filesystem failure", metadata=metadata)

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
