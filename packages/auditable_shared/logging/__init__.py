"""Public logging API for the auditable extension.

This package wraps Python's ``logging`` module with stdout defaults and
per-entity context for audit processing.
"""

from .config import configure_logging, get_logger
from .context import get_context, log_context

__all__ = [
    "configure_logging",
    "get_context",
    "get_logger",
    "log_context",
]
