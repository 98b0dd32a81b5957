"""Read access to the persisted audit trail."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import and_
from sqlalchemy.orm import Session

from packages.auditable.models import Entry, Group
from packages.auditable_shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GroupHistoryQuery:
    """Query parameters for audit group history with filtering and pagination.

    Supports filtering by audited class, entity id, username, and time range.
    Results are ordered by id descending.
    """

    entity_class: str | None = None
    entity_id: str | None = None
    username: str | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None
    limit: int = 100
    cursor: int | None = None


@dataclass(frozen=True)
class GroupHistoryResult:
    """Result page of an audit group history query."""

    groups: list[Group]
    next_cursor: int | None


def get_group(session: Session, group_id: int) -> Group | None:
    """Fetch one audit group by ID, or ``None`` when absent."""
    return session.query(Group).filter(Group.id == group_id).one_or_none()


def list_groups(session: Session, query: GroupHistoryQuery) -> GroupHistoryResult:
    """List audit groups matching ``query``, newest first.

    Args:
        session: SQLAlchemy session.
        query: Filters, page size, and the cursor returned by the previous page.

    Returns:
        GroupHistoryResult with at most ``query.limit`` groups and the cursor of
        the next page, or ``None`` on the last page.

    Raises:
        ValueError: If ``query.limit`` is not positive.
    """
    if query.limit < 1:
        raise ValueError("limit must be positive.")

    filters = []
    if query.entity_class is not None:
        filters.append(Group.entity_class == query.entity_class)
    if query.entity_id is not None:
        filters.append(Group.entity_id == query.entity_id)
    if query.username is not None:
        filters.append(Group.username == query.username)
    if query.created_after is not None:
        created_after = _normalize_timestamp(query.created_after, "created_after")
        filters.append(Group.created_ts >= created_after)
    if query.created_before is not None:
        created_before = _normalize_timestamp(query.created_before, "created_before")
        filters.append(Group.created_ts <= created_before)
    if query.cursor is not None:
        filters.append(Group.id < query.cursor)

    base_query = session.query(Group)
    if filters:
        base_query = base_query.filter(and_(*filters))

    groups = base_query.order_by(Group.id.desc()).limit(query.limit + 1).all()

    if len(groups) > query.limit:
        groups = groups[: query.limit]
        next_cursor = groups[-1].id
    else:
        next_cursor = None

    return GroupHistoryResult(groups=groups, next_cursor=next_cursor)


def list_entries(session: Session, group: Group | int) -> list[Entry]:
    """Return the entries of one group in creation order."""
    group_id = group.id if isinstance(group, Group) else group
    return session.query(Entry).filter(Entry.group_id == group_id).order_by(Entry.id).all()


def _normalize_timestamp(value: datetime, label: str) -> datetime:
    """Convert timestamps to UTC, assuming UTC for naive values."""
    if value.tzinfo is None:
        logger.warning("Naive timestamp provided for %s; assuming UTC.", label)
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
