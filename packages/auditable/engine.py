"""Turn pending entity updates into audit groups and entries.

For every updated instance of an audited class the engine writes one
``Group`` and one ``Entry`` per changed audited column or to-one association,
inside the flush that carries the change. Mapping errors raised while
resolving configuration are never caught here so the flush fails.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable, Sequence

from packages.auditable.actors import ActorProvider, current_actor
from packages.auditable.comments import CommentStore, PendingComments
from packages.auditable.configuration import ConfigurationResolver
from packages.auditable.domain import AuditConfiguration, ClassMapping
from packages.auditable.mapping import qualified_name
from packages.auditable.models import Entry, Group
from packages.auditable.normalizer import ValueKind, ValueNormalizer
from packages.auditable.unit_of_work import UnitOfWork
from packages.auditable_shared.logging import fields, get_logger, log_context

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def display_string(related: object | None) -> str | None:
    """Return ``str(related)`` when its class defines its own ``__str__``."""
    if related is None:
        return None
    if type(related).__str__ is object.__str__:
        return None
    return str(related)


class AuditEngine:
    """Build audit records for the updates of one flush."""

    def __init__(
        self,
        resolver: ConfigurationResolver,
        comments: CommentStore,
        *,
        actor_provider: ActorProvider = current_actor,
        normalizer: ValueNormalizer | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._resolver = resolver
        self._comments = comments
        self._actor_provider = actor_provider
        self._normalizer = normalizer if normalizer is not None else ValueNormalizer()
        self._clock = clock
        self._kinds: dict[tuple[type, str], ValueKind] = {}

    @property
    def resolver(self) -> ConfigurationResolver:
        return self._resolver

    @property
    def comments(self) -> CommentStore:
        return self._comments

    def process_pending_changes(
        self,
        uow: UnitOfWork,
        entities: Sequence[object] | None = None,
    ) -> None:
        """Audit ``entities``, or every scheduled update of ``uow``.

        Each call creates new groups; callers invoke it once per flush.
        """
        pending = self._comments.pop(uow.session)
        if entities is None:
            entities = uow.scheduled_updates()
        for entity in entities:
            self._audit_entity(uow, entity, pending)

    def create_group(
        self,
        *,
        entity_class: str,
        entity_id: str | None,
        comment: str | None,
    ) -> Group:
        """Build the group of one audited instance."""
        return Group(
            created_ts=self._clock(),
            username=self._actor_provider(),
            entity_class=entity_class,
            entity_id=entity_id,
            comment=comment,
        )

    def _audit_entity(
        self,
        uow: UnitOfWork,
        entity: object,
        pending: PendingComments,
    ) -> None:
        cls = type(entity)
        config = self._resolver.resolve(cls)
        if not config.is_audited:
            with log_context({fields.ENTITY_CLASS: qualified_name(cls)}):
                logger.debug("Skipping class without audited properties")
            return

        changes = uow.change_set(entity)
        mapping = uow.class_mapping(cls)
        columns = [
            key
            for key in changes
            if key in mapping.column_types and key in config.columns
        ]
        associations = [
            key
            for key in changes
            if key in mapping.to_one_associations and key in config.columns
        ]
        if not columns and not associations:
            return

        comment = self._resolve_comment(entity, config, pending)
        group = self.create_group(
            entity_class=mapping.class_name,
            entity_id=uow.identifier(entity),
            comment=comment,
        )
        uow.persist(group)

        for key in columns:
            before, after = changes[key]
            uow.persist(
                Entry.for_column(
                    group,
                    key,
                    self._normalize(uow, cls, mapping, key, before),
                    self._normalize(uow, cls, mapping, key, after),
                )
            )

        for key in associations:
            before, after = changes[key]
            uow.persist(
                Entry.for_association(
                    group,
                    key,
                    uow.identifier(before),
                    uow.identifier(after),
                    display_string(before),
                    display_string(after),
                )
            )

        with log_context(
            {
                fields.ENTITY_CLASS: group.entity_class,
                fields.ENTITY_ID: group.entity_id,
                fields.ENTRY_COUNT: len(columns) + len(associations),
                fields.USERNAME: group.username,
            }
        ):
            logger.debug("Created audit group")

    def _resolve_comment(
        self,
        entity: object,
        config: AuditConfiguration,
        pending: PendingComments,
    ) -> str | None:
        """Return the stored comment, else consume the legacy comment property."""
        comment = pending.for_instance(entity)
        if comment is not None:
            return comment
        if config.comment_property is None:
            return None

        value = getattr(entity, config.comment_property, None)
        setattr(entity, config.comment_property, None)
        return None if value is None else str(value)

    def _normalize(
        self,
        uow: UnitOfWork,
        cls: type,
        mapping: ClassMapping,
        key: str,
        value: Any,
    ) -> str | None:
        if value is None:
            return None
        column_type = mapping.column_types.get(key)
        kind = self._kinds.get((cls, key))
        if kind is None:
            kind = self._normalizer.kind_for(column_type)
            self._kinds[(cls, key)] = kind
        dialect = uow.dialect_for(cls) if kind is ValueKind.PROVIDER_CONVERTIBLE else None
        return self._normalizer.normalize(
            value,
            kind=kind,
            column_type=column_type,
            dialect=dialect,
        )
