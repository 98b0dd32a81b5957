"""Build-time warming of audit configuration artifacts.

One JSON artifact is written per audited class so runtime resolution can read
configuration verbatim instead of inspecting mappers.

Usage:
    auditable-warm myapp.models:Base --cache-dir var/cache
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path
from typing import Iterable, Sequence

from sqlalchemy.orm import registry as sa_registry

from packages.auditable.configuration import artifact_path, resolve_class
from packages.auditable.domain import AuditConfiguration
from packages.auditable.errors import AuditableError, CacheWriteError
from packages.auditable.mapping import qualified_name
from packages.auditable_shared.config import load_settings
from packages.auditable_shared.errors import exception_to_error
from packages.auditable_shared.logging import (
    configure_logging,
    fields,
    get_logger,
    log_context,
)

logger = get_logger(__name__)


class MetadataWarmer:
    """Write resolved configuration of audited classes under ``base_dir``."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir

    def warm(self, classes: Iterable[type]) -> list[Path]:
        """Write one artifact per audited class and return written paths."""
        written: list[Path] = []
        for cls in sorted(classes, key=qualified_name):
            config = resolve_class(cls)
            if not config.is_audited:
                continue
            written.append(self._write(qualified_name(cls), config))
        return written

    def warm_registry(self, registry: sa_registry) -> list[Path]:
        """Warm every class mapped by one declarative registry."""
        return self.warm(mapper.class_ for mapper in registry.mappers)

    def _write(self, class_name: str, config: AuditConfiguration) -> Path:
        """Persist one artifact, creating parent directories as needed."""
        path = artifact_path(self._base_dir, class_name)
        data = config.model_dump_json()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise CacheWriteError(
                f"Failed to write audit metadata cache for class \"{class_name}\"",
                path=path,
            ) from exc

        with log_context({fields.ENTITY_CLASS: class_name, fields.CACHE_PATH: path}):
            logger.info("Wrote audit configuration artifact")
        return path


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    """Parse command line arguments for cache warming."""
    parser = argparse.ArgumentParser(description="Warm audit configuration artifacts.")
    parser.add_argument(
        "target",
        help="Module holding the declarative base, as MODULE or MODULE:ATTRIBUTE.",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Cache root directory. Defaults to audit.cache_dir from settings.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional settings YAML path.",
    )
    return parser.parse_args(argv)


def _load_registry(target: str) -> sa_registry:
    """Import ``MODULE[:ATTRIBUTE]`` and return the base's registry."""
    module_name, _, attribute = target.partition(":")
    module = importlib.import_module(module_name)
    base = getattr(module, attribute or "Base")
    registry = getattr(base, "registry", None)
    if not isinstance(registry, sa_registry):
        raise ValueError(f"{target} is not a declarative base")
    return registry


def main(argv: Sequence[str] | None = None) -> int:
    """Warm artifacts for every class of a declarative base; return exit status."""
    args = _parse_args(argv)
    settings = load_settings(config_path=args.config)
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )

    if args.cache_dir is not None:
        base_dir = args.cache_dir / settings.audit.metadata_cache_path
    else:
        base_dir = settings.audit.metadata_cache_dir()
    if base_dir is None:
        print("no cache directory configured; pass --cache-dir", file=sys.stderr)
        return 2

    try:
        written = MetadataWarmer(base_dir).warm_registry(_load_registry(args.target))
    except (AuditableError, ImportError, AttributeError, ValueError) as exc:
        error = exception_to_error(exc)
        print(json.dumps({"error": error.as_dict()}), file=sys.stderr)
        return 1

    print(json.dumps({"written": [str(path) for path in written]}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
