"""Audit declarations on mapped classes and per-level configuration reading.

A class opts into auditing with the ``@auditable`` decorator, naming its
audited properties directly or marking them with ``info=audited()``. Every
class of an inheritance chain contributes one level; levels are merged from
the root to the leaf.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, MapperProperty, registry

from packages.auditable.domain import AuditConfiguration
from packages.auditable.errors import InvalidMappingError

DECLARATION_ATTRIBUTE = "__auditable__"
AUDITED_INFO_KEY = "auditable"

_T = TypeVar("_T", bound=type)


@dataclass(frozen=True)
class AuditableDeclaration:
    """Audit settings declared directly on one class."""

    columns: frozenset[str]
    comment_property: str | None = None


@dataclass(frozen=True)
class LevelContribution:
    """What one class of an inheritance chain adds to the merged configuration."""

    class_name: str
    columns: frozenset[str] = frozenset()
    comment_property: str | None = None
    declared: bool = False


def auditable(
    *columns: str,
    comment_property: str | None = None,
) -> Callable[[_T], _T]:
    """Mark a mapped class (or mapped superclass) as audited.

    ``columns`` lists property names to audit at this level; properties marked
    with ``info=audited()`` are added for mapped classes. ``comment_property``
    names a plain attribute read once per flush as the group comment; it is
    deprecated in favor of ``CommentStore.describe``.
    """
    if comment_property is not None:
        warnings.warn(
            "comment_property is deprecated; describe changes through CommentStore",
            DeprecationWarning,
            stacklevel=2,
        )
    declaration = AuditableDeclaration(
        columns=frozenset(columns),
        comment_property=comment_property,
    )

    def decorate(cls: _T) -> _T:
        setattr(cls, DECLARATION_ATTRIBUTE, declaration)
        return cls

    return decorate


def audited() -> dict[str, Any]:
    """Return an ``info`` mapping marking one column or relationship as audited."""
    return {AUDITED_INFO_KEY: True}


def declaration_of(cls: type) -> AuditableDeclaration | None:
    """Return the declaration attached to ``cls`` itself, ignoring ancestors."""
    declaration = vars(cls).get(DECLARATION_ATTRIBUTE)
    if isinstance(declaration, AuditableDeclaration):
        return declaration
    return None


def ancestor_chain(cls: type) -> list[type]:
    """Return the configurable classes of ``cls``'s hierarchy, root first."""
    return [klass for klass in reversed(cls.__mro__) if _is_configurable(klass)]


def read_level(cls: type) -> LevelContribution:
    """Read the contribution of exactly one class, without its ancestors."""
    name = qualified_name(cls)
    declaration = declaration_of(cls)
    if declaration is None:
        return LevelContribution(class_name=name)

    columns = set(declaration.columns)
    mapper = sa_inspect(cls, raiseerr=False)
    if isinstance(mapper, Mapper):
        columns.update(
            prop.key
            for prop in mapper.attrs
            if prop.parent is mapper and _is_marked(prop)
        )
    return LevelContribution(
        class_name=name,
        columns=frozenset(columns),
        comment_property=declaration.comment_property,
        declared=True,
    )


def merge_contributions(chain: Sequence[LevelContribution]) -> AuditConfiguration:
    """Merge per-level contributions ordered from root to leaf.

    Columns are the union of every level. Only the root level may name a
    comment property.
    """
    columns: set[str] = set()
    comment_property: str | None = None
    for index, level in enumerate(chain):
        if level.comment_property is not None:
            if index > 0:
                raise InvalidMappingError(
                    "Comment property may only be declared on the root class of an "
                    f"inheritance chain, found on {level.class_name}",
                    class_name=level.class_name,
                )
            comment_property = level.comment_property
        columns.update(level.columns)
    return AuditConfiguration(
        columns=frozenset(columns),
        comment_property=comment_property,
    )


def qualified_name(cls: type) -> str:
    """Return the fully-qualified dotted name of ``cls``."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _is_configurable(klass: type) -> bool:
    """Return whether ``klass`` takes part in audit configuration merging."""
    namespace = vars(klass)
    if DECLARATION_ATTRIBUTE in namespace:
        return True
    # Declarative bases are abstract too but never part of an entity hierarchy.
    if isinstance(namespace.get("registry"), registry):
        return False
    if namespace.get("__abstract__", False):
        return True
    return isinstance(sa_inspect(klass, raiseerr=False), Mapper)


def _is_marked(prop: MapperProperty[Any]) -> bool:
    """Return whether a mapper property carries the ``audited()`` marker."""
    if prop.info.get(AUDITED_INFO_KEY):
        return True
    for column in getattr(prop, "columns", ()):
        info = getattr(column, "info", None) or {}
        if info.get(AUDITED_INFO_KEY):
            return True
    return False
