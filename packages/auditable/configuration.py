"""Resolution of per-class audit configuration.

``resolve_class`` derives a configuration from declarations and mapper
metadata. ``ConfigurationResolver`` memoizes results for the life of the
process and prefers warmed artifacts when a cache directory is configured.
"""

from __future__ import annotations

import threading
from pathlib import Path

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from packages.auditable.domain import EMPTY_CONFIGURATION, AuditConfiguration
from packages.auditable.errors import InvalidMappingError
from packages.auditable.mapping import (
    ancestor_chain,
    merge_contributions,
    qualified_name,
    read_level,
)
from packages.auditable_shared.logging import fields, get_logger, log_context

logger = get_logger(__name__)

ARTIFACT_SUFFIX = ".json"


def artifact_path(base_dir: Path, class_name: str) -> Path:
    """Return the warmed artifact path for one fully-qualified class name."""
    relative = class_name.lstrip(".").replace(".", "/")
    return base_dir / f"{relative}{ARTIFACT_SUFFIX}"


def resolve_class(cls: type) -> AuditConfiguration:
    """Derive the audit configuration of ``cls`` from its inheritance chain.

    Unmapped classes resolve to the empty configuration. Invalid declarations
    raise ``InvalidMappingError``.
    """
    mapper = sa_inspect(cls, raiseerr=False)
    if not isinstance(mapper, Mapper):
        return EMPTY_CONFIGURATION

    chain = [read_level(klass) for klass in ancestor_chain(cls)]
    config = merge_contributions(chain)
    validate_configuration(cls, mapper, config)
    return config


def validate_configuration(
    cls: type,
    mapper: Mapper[object],
    config: AuditConfiguration,
) -> None:
    """Reject configurations the engine cannot audit."""
    name = qualified_name(cls)

    if config.comment_property is not None and not hasattr(cls, config.comment_property):
        raise InvalidMappingError(
            f"Comment property '{config.comment_property}' does not exist on {name}",
            class_name=name,
        )

    if not config.is_audited:
        return

    if len(mapper.primary_key) > 1:
        raise InvalidMappingError(
            f"Composite identifiers are not supported, found in class \"{name}\"",
            class_name=name,
        )

    for column in sorted(config.columns):
        if column in mapper.composites:
            raise InvalidMappingError(
                f"Embedded values are not supported, {name}::{column}",
                class_name=name,
            )
        relationship = mapper.relationships.get(column)
        if relationship is not None:
            if relationship.uselist:
                raise InvalidMappingError(
                    f"Collections are not supported, {name}::{column}",
                    class_name=name,
                )
            continue
        if column not in mapper.column_attrs:
            raise InvalidMappingError(
                f"Auditable property does not exist, {name}::{column}",
                class_name=name,
            )


class ConfigurationResolver:
    """Process-wide memoizing resolver of class audit configuration.

    The first resolution of a class is authoritative. Concurrent first
    resolutions may race; the first stored value wins and all racers compute
    the same value.
    """

    def __init__(self, *, cache_dir: Path | None = None) -> None:
        self._cache_dir = cache_dir
        self._configs: dict[type, AuditConfiguration] = {}
        self._lock = threading.Lock()

    @property
    def cache_dir(self) -> Path | None:
        """Directory holding warmed artifacts, if configured."""
        return self._cache_dir

    def resolve(self, cls: type) -> AuditConfiguration:
        """Return the audit configuration of ``cls``."""
        config = self._configs.get(cls)
        if config is not None:
            return config

        config = self._load(cls)
        with self._lock:
            return self._configs.setdefault(cls, config)

    def clear(self) -> None:
        """Forget every memoized configuration."""
        with self._lock:
            self._configs.clear()

    def _load(self, cls: type) -> AuditConfiguration:
        """Read a warmed artifact when present, else resolve on demand."""
        name = qualified_name(cls)
        if self._cache_dir is not None:
            path = artifact_path(self._cache_dir, name)
            if path.is_file():
                with log_context({fields.ENTITY_CLASS: name, fields.CACHE_PATH: path}):
                    logger.debug("Loaded warmed audit configuration")
                return AuditConfiguration.model_validate_json(
                    path.read_text(encoding="utf-8")
                )

        config = resolve_class(cls)
        with log_context(
            {fields.ENTITY_CLASS: name, fields.CONFIG_SOURCE: "metadata"}
        ):
            logger.debug("Resolved audit configuration")
        return config
