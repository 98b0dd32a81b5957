"""Exception types raised by the auditable extension."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(eq=False)
class AuditableError(Exception):
    """Base error type for auditable failures."""

    message: str

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(eq=False)
class InvalidMappingError(AuditableError):
    """Audit declaration of one class is invalid or incomplete.

    Raised during configuration resolution and never handled by the engine, so
    the flush that triggered resolution fails.
    """

    class_name: str | None = None


@dataclass(eq=False)
class NoSessionFoundError(AuditableError):
    """Comment was described for an instance that belongs to no session."""


@dataclass(eq=False)
class CacheWriteError(AuditableError):
    """Warmed configuration artifact could not be written."""

    path: Path | None = None
