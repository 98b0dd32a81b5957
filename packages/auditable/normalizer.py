"""Canonical text form of audited before/after values.

Each column type resolves once to a ``ValueKind``; values are then formatted
by kind. Temporal values use ISO-8601 at second precision with a numeric
offset, provider-convertible values go through the column type's own bind
conversion for the active dialect, and everything else is stringified.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.engine import Dialect
from sqlalchemy.types import (
    DateTime,
    Enum as EnumType,
    Integer,
    String,
    TypeDecorator,
    TypeEngine,
)


class ValueKind(str, Enum):
    """Normalization strategy of one column."""

    TEMPORAL_WITH_OFFSET = "temporal_with_offset"
    TEMPORAL_NAIVE = "temporal_naive"
    PROVIDER_CONVERTIBLE = "provider_convertible"
    PLAIN = "plain"


_DEFAULT_KINDS: dict[type[TypeEngine[Any]], ValueKind] = {
    DateTime: ValueKind.TEMPORAL_WITH_OFFSET,
    EnumType: ValueKind.PROVIDER_CONVERTIBLE,
    String: ValueKind.PLAIN,
    Integer: ValueKind.PLAIN,
}


class TypeRegistry:
    """Lookup table from SQLAlchemy type classes to value kinds.

    The most specific registered class of a type's MRO wins. Types with no
    registered ancestor are provider-convertible.
    """

    def __init__(self) -> None:
        self._kinds = dict(_DEFAULT_KINDS)

    def register(self, type_class: type[TypeEngine[Any]], kind: ValueKind) -> None:
        """Map ``type_class`` and its subclasses to ``kind``."""
        self._kinds[type_class] = kind

    def kind_for(self, column_type: object) -> ValueKind:
        """Return the value kind of one declared column type."""
        if not isinstance(column_type, TypeEngine):
            return ValueKind.PLAIN

        for klass in type(column_type).__mro__:
            kind = self._kinds.get(klass)
            if kind is not None:
                break
        else:
            kind = None

        if kind is None and isinstance(column_type, TypeDecorator):
            impl_kind = self.kind_for(column_type.impl)
            if impl_kind in (ValueKind.TEMPORAL_WITH_OFFSET, ValueKind.TEMPORAL_NAIVE):
                return impl_kind
            return ValueKind.PROVIDER_CONVERTIBLE
        if kind is None:
            return ValueKind.PROVIDER_CONVERTIBLE

        if kind is ValueKind.TEMPORAL_WITH_OFFSET and not getattr(
            column_type, "timezone", False
        ):
            return ValueKind.TEMPORAL_NAIVE
        return kind


def format_temporal(value: object, *, assume_tz: tzinfo = timezone.utc) -> str | None:
    """Format a date or datetime as ``YYYY-MM-DDTHH:MM:SS+HH:MM``.

    Naive values are interpreted in ``assume_tz``; plain dates are read as midnight.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time())
    else:
        return str(value)

    if moment.tzinfo is None or moment.utcoffset() is None:
        moment = moment.replace(tzinfo=assume_tz)
    return moment.isoformat(timespec="seconds")


def convert_to_storage(value: object, column_type: TypeEngine[Any], dialect: Dialect) -> object:
    """Convert ``value`` the way ``column_type`` binds it for ``dialect``."""
    processor = column_type.dialect_impl(dialect).bind_processor(dialect)
    if processor is None:
        return value
    return processor(value)


class ValueNormalizer:
    """Turn raw attribute values into nullable audit strings."""

    def __init__(
        self,
        *,
        registry: TypeRegistry | None = None,
        naive_timezone: str = "UTC",
    ) -> None:
        self._registry = registry if registry is not None else TypeRegistry()
        self._naive_tz = ZoneInfo(naive_timezone)

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def kind_for(self, column_type: object) -> ValueKind:
        """Resolve the normalization strategy of a declared column type."""
        return self._registry.kind_for(column_type)

    def normalize(
        self,
        value: object,
        *,
        kind: ValueKind,
        column_type: TypeEngine[Any] | None = None,
        dialect: Dialect | None = None,
    ) -> str | None:
        """Return the canonical text of ``value``; ``None`` stays ``None``."""
        if value is None:
            return None

        if kind is ValueKind.TEMPORAL_WITH_OFFSET:
            return format_temporal(value, assume_tz=timezone.utc)
        if kind is ValueKind.TEMPORAL_NAIVE:
            return format_temporal(value, assume_tz=self._naive_tz)
        if kind is ValueKind.PROVIDER_CONVERTIBLE and column_type is not None and dialect is not None:
            value = convert_to_storage(value, column_type, dialect)
            if value is None:
                return None
        return str(value)
