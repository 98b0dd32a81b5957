"""Public API for auditable configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    AuditableSettings,
    AuditSettings,
    LoggingSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AuditableSettings",
    "AuditSettings",
    "LoggingSettings",
    "load_settings",
]
