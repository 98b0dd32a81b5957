"""Stdout logging for processes hosting the audit listener or the warmer.

Records carry the audited entity they concern. The JSON formatter promotes
the entity fields to top-level keys that are always present, so audit lines
can be filtered by class or identifier; any other bound field is nested
under ``context``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Mapping

from . import fields
from .context import get_context

ENTITY_FIELDS = (
    fields.ENTITY_CLASS,
    fields.ENTITY_ID,
    fields.ENTRY_COUNT,
    fields.USERNAME,
)


class AuditContextFilter(logging.Filter):
    """Attach process fields and the bound entity context to each record."""

    def __init__(self, process_fields: Mapping[str, str] | None = None) -> None:
        super().__init__()
        self._process_fields = dict(process_fields or {})

    def filter(self, record: logging.LogRecord) -> bool:
        context = dict(self._process_fields)
        context.update(get_context())
        setattr(record, "context", context)
        return True


def split_context(record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(entity fields, remaining context)`` of one record."""
    context = dict(getattr(record, "context", None) or {})
    entity = {key: context.pop(key, None) for key in ENTITY_FIELDS}
    return entity, context


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per line with entity fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entity, context = split_context(record)
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **entity,
        }
        if context:
            payload[fields.CONTEXT] = context
        if record.exc_info:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable line tagged ``[class#id]`` with trailing ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        entity, context = split_context(record)

        entity_class = entity.pop(fields.ENTITY_CLASS)
        entity_id = entity.pop(fields.ENTITY_ID)
        if entity_class is not None:
            subject = entity_class if entity_id is None else f"{entity_class}#{entity_id}"
            message = f"{message} [{subject}]"

        extras = {key: value for key, value in entity.items() if value is not None}
        extras.update(context)
        if not extras:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Configure root logging with a single stdout handler.

    Existing root handlers are replaced so repeated calls never duplicate
    emissions. ``service`` and ``environment`` are stamped on every record.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    process_fields = {
        key: value
        for key, value in ((fields.SERVICE, service), (fields.ENVIRONMENT, environment))
        if value
    }
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(AuditContextFilter(process_fields))
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)
