"""Persisted audit trail models: one ``Group`` per audited change, many ``Entry`` rows."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.orm.attributes import set_committed_value

AuditBase = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_ENTRY_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Group(AuditBase):
    """All audited changes of one entity instance within one flush."""

    __tablename__ = "audit_group"
    __table_args__ = (
        Index("ix_audit_group_created_ts", "created_ts"),
        Index("ix_audit_group_entity_class_entity_id", "entity_class", "entity_id"),
        Index("ix_audit_group_username", "username"),
    )

    id = Column(Integer, primary_key=True)
    created_ts = Column(DateTime(timezone=True), nullable=False)
    username = Column(String(255), nullable=True)
    entity_class = Column(String(255), nullable=False)
    entity_id = Column(String(255), nullable=False)
    comment = Column(Text, nullable=True)

    entries = relationship("Entry", back_populates="group", order_by="Entry.id")

    def __repr__(self) -> str:
        return (
            f"<Group id={self.id} entity={self.entity_class}#{self.entity_id} "
            f"username={self.username!r}>"
        )


class Entry(AuditBase):
    """Before/after values of one audited column or to-one association."""

    __tablename__ = "audit_entry"
    __table_args__ = (
        Index("ix_audit_entry_entity_column_is_association", "entity_column", "is_association"),
        Index("ix_audit_entry_value_before", "value_before"),
        Index("ix_audit_entry_value_after", "value_after"),
    )

    id = Column(_ENTRY_ID_TYPE, primary_key=True)
    group_id = Column(Integer, ForeignKey("audit_group.id"), nullable=False)
    entity_column = Column(String(255), nullable=False)
    is_association = Column(Boolean, nullable=False, default=False)
    value_before = Column(String(255), nullable=True)
    value_after = Column(String(255), nullable=True)
    related_string_before = Column(String(255), nullable=True)
    related_string_after = Column(String(255), nullable=True)

    group = relationship(Group, back_populates="entries")

    @classmethod
    def for_column(
        cls,
        group: Group,
        entity_column: str,
        value_before: str | None,
        value_after: str | None,
    ) -> "Entry":
        """Build a scalar-column entry; related strings are always empty."""
        return cls(
            group=group,
            entity_column=entity_column,
            is_association=False,
            value_before=value_before,
            value_after=value_after,
            related_string_before=None,
            related_string_after=None,
        )

    @classmethod
    def for_association(
        cls,
        group: Group,
        entity_column: str,
        value_before: str | None,
        value_after: str | None,
        related_string_before: str | None = None,
        related_string_after: str | None = None,
    ) -> "Entry":
        """Build a to-one association entry holding related identifiers."""
        return cls(
            group=group,
            entity_column=entity_column,
            is_association=True,
            value_before=value_before,
            value_after=value_after,
            related_string_before=related_string_before,
            related_string_after=related_string_after,
        )

    def __repr__(self) -> str:
        return (
            f"<Entry id={self.id} column={self.entity_column} "
            f"{self.value_before!r} -> {self.value_after!r}>"
        )


def _ensure_aware_timestamp(value: datetime | None) -> datetime | None:
    """Normalize timestamps to UTC when timezone info is missing."""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@event.listens_for(Group, "load")
def _normalize_group_on_load(target: Group, _context: object) -> None:
    """Ensure loaded group timestamps retain timezone awareness."""
    set_committed_value(target, "created_ts", _ensure_aware_timestamp(target.created_ts))
