"""The audit engine's view of the flush in progress.

``UnitOfWork`` is what the engine needs from the persistence layer;
``SessionUnitOfWork`` answers it from a SQLAlchemy ``Session`` inside
``before_flush``.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import InstanceState, RelationshipProperty, Session
from sqlalchemy.orm.interfaces import MANYTOONE

from packages.auditable.domain import ClassMapping
from packages.auditable.mapping import qualified_name

ChangeSet = Mapping[str, tuple[Any, Any]]


class UnitOfWork(Protocol):
    """Pending state of one flush as consumed by the audit engine."""

    @property
    def session(self) -> Any:
        """Return the session owning the flush."""

    def scheduled_updates(self) -> Sequence[object]:
        """Return persistent instances with pending attribute changes."""

    def class_mapping(self, cls: type) -> ClassMapping:
        """Describe the scalar columns and to-one associations of ``cls``."""

    def change_set(self, entity: object) -> ChangeSet:
        """Return ``{attribute: (old, new)}`` for changed attributes."""

    def identifier(self, entity: object | None) -> str | None:
        """Return the string identifier of ``entity``, or ``None``."""

    def dialect_for(self, cls: type) -> Dialect | None:
        """Return the storage dialect used for ``cls``."""

    def persist(self, record: object) -> None:
        """Register ``record`` for insert within the current flush."""


class SessionUnitOfWork:
    """``UnitOfWork`` backed by a SQLAlchemy session during ``before_flush``.

    Objects added here are picked up by the flush already in progress.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._mappings: dict[type, ClassMapping] = {}

    @property
    def session(self) -> Session:
        return self._session

    def scheduled_updates(self) -> list[object]:
        return [
            entity
            for entity in self._session.dirty
            if self._session.is_modified(entity, include_collections=False)
        ]

    def class_mapping(self, cls: type) -> ClassMapping:
        mapping = self._mappings.get(cls)
        if mapping is None:
            mapping = describe_mapper(cls)
            self._mappings[cls] = mapping
        return mapping

    def change_set(self, entity: object) -> dict[str, tuple[Any, Any]]:
        state = sa_inspect(entity)
        changes: dict[str, tuple[Any, Any]] = {}
        unknown: list[str] = []
        for attr in state.attrs:
            history = attr.history
            if not history.has_changes():
                continue
            new = history.added[0] if history.added else None
            if history.deleted:
                changes[attr.key] = (history.deleted[0], new)
            else:
                changes[attr.key] = (None, new)
                unknown.append(attr.key)
        if unknown:
            self._restore_previous(state, changes, unknown)
        return changes

    def identifier(self, entity: object | None) -> str | None:
        if entity is None:
            return None
        state = sa_inspect(entity)
        values = state.identity
        if values is None:
            values = state.mapper.primary_key_from_instance(entity)
        if not values or any(value is None for value in values):
            return None
        return ",".join(str(value) for value in values)

    def dialect_for(self, cls: type) -> Dialect | None:
        return self._session.get_bind(mapper=cls).dialect

    def persist(self, record: object) -> None:
        self._session.add(record)

    def _restore_previous(
        self,
        state: InstanceState[Any],
        changes: dict[str, tuple[Any, Any]],
        keys: Sequence[str],
    ) -> None:
        """Fill in old values that were never loaded before being replaced.

        Columns set while expired and to-one associations set without their
        previous target loaded have no deleted history. Their committed values
        are read from the database; the old target of an association is
        located through the committed foreign key.
        """
        mapper = state.mapper
        columns = [key for key in keys if key in mapper.column_attrs]
        associations = [
            mapper.relationships[key]
            for key in keys
            if key in mapper.relationships and _is_to_one(mapper.relationships[key])
        ]
        foreign_keys = {
            local: mapper.get_property_by_column(local).key
            for relationship in associations
            for local, _ in relationship.local_remote_pairs
        }
        committed = self._committed_values(state, [*columns, *foreign_keys.values()])

        for key in columns:
            if key not in committed:
                continue
            new = changes[key][1]
            column_type = mapper.column_attrs[key].columns[0].type
            if column_type.compare_values(committed[key], new):
                del changes[key]
            else:
                changes[key] = (committed[key], new)

        for relationship in associations:
            remote_values = {
                remote: committed.get(foreign_keys[local])
                for local, remote in relationship.local_remote_pairs
            }
            previous = self._previous_target(relationship, remote_values)
            new = changes[relationship.key][1]
            if previous is new:
                del changes[relationship.key]
            else:
                changes[relationship.key] = (previous, new)

    def _committed_values(
        self,
        state: InstanceState[Any],
        keys: Sequence[str],
    ) -> dict[str, Any]:
        """Return the committed values of column attributes ``keys``."""
        values: dict[str, Any] = {}
        missing: list[str] = []
        for key in dict.fromkeys(keys):
            history = state.attrs[key].history
            if history.deleted:
                values[key] = history.deleted[0]
            elif history.unchanged:
                values[key] = history.unchanged[0]
            else:
                missing.append(key)
        if not missing or state.identity is None:
            return values

        mapper = state.mapper
        statement = (
            select(*(mapper.column_attrs[key].columns[0].label(key) for key in missing))
            .select_from(mapper.persist_selectable)
            .where(
                *(
                    column == value
                    for column, value in zip(mapper.primary_key, state.identity)
                )
            )
        )
        with self._session.no_autoflush:
            row = self._session.execute(statement).one_or_none()
        if row is not None:
            values.update(row._mapping)
        return values

    def _previous_target(
        self,
        relationship: RelationshipProperty[Any],
        remote_values: Mapping[Any, Any],
    ) -> object | None:
        """Load the entity a to-one association pointed at before the flush."""
        if any(value is None for value in remote_values.values()):
            return None
        target = relationship.mapper
        with self._session.no_autoflush:
            if set(remote_values) == set(target.primary_key):
                return self._session.get(
                    target.class_,
                    [remote_values[column] for column in target.primary_key],
                )
            statement = select(target.class_).where(
                *(column == value for column, value in remote_values.items())
            )
            return self._session.scalars(statement).first()


def describe_mapper(cls: type) -> ClassMapping:
    """Build the ``ClassMapping`` of a mapped class."""
    mapper = sa_inspect(cls)
    column_types = {prop.key: prop.columns[0].type for prop in mapper.column_attrs}
    to_one = frozenset(
        relationship.key
        for relationship in mapper.relationships
        if _is_to_one(relationship)
    )
    return ClassMapping(
        class_name=qualified_name(cls),
        column_types=column_types,
        to_one_associations=to_one,
    )


def _is_to_one(relationship: RelationshipProperty[Any]) -> bool:
    return relationship.direction is MANYTOONE and not relationship.uselist
