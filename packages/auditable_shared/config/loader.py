"""Settings loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ``~/.config/auditable/auditable.yaml`` (or an explicit path)
4) Model defaults

Environment variable format:
- Prefix: ``AUDITABLE_``
- Nested keys: ``__`` separator
- Example: ``AUDITABLE_AUDIT__NAIVE_TIMEZONE=Europe/Berlin``
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .models import DEFAULT_CONFIG_PATH, AuditableSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> AuditableSettings:
    """Load settings by applying the standard precedence cascade."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    settings_cls = _settings_class_for(resolved)
    return settings_cls(**dict(cli_params or {}))


@lru_cache(maxsize=None)
def _settings_class_for(path: Path) -> type[AuditableSettings]:
    """Return a settings class whose YAML source reads ``path``."""
    if path == DEFAULT_CONFIG_PATH:
        return AuditableSettings
    return type(
        "AuditableSettings",
        (AuditableSettings,),
        {"__module__": __name__, "_config_path": path},
    )
