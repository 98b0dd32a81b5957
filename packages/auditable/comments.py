"""Session-scoped comments describing the next audited change of an instance.

Comments are recorded before a flush, keyed by instance rather than primary
key since pending instances have no identifier yet. Each session gets an
arena that issues one integer token per observed instance and holds the
instance until the arena is dropped, so a token never refers to two objects.
"""

from __future__ import annotations

import threading
from typing import Iterator, Mapping
from weakref import WeakKeyDictionary

from sqlalchemy.orm import Session, object_session
from sqlalchemy.orm.exc import UnmappedInstanceError

from packages.auditable.errors import NoSessionFoundError


class _SessionArena:
    """Tokens and comments of one session."""

    def __init__(self) -> None:
        self._tokens: dict[int, int] = {}
        self._instances: list[object] = []
        self.comments: dict[int, str] = {}

    def token_for(self, instance: object) -> int:
        """Return the token of ``instance``, issuing one on first sight."""
        key = id(instance)
        token = self._tokens.get(key)
        if token is None:
            token = len(self._instances)
            self._instances.append(instance)
            self._tokens[key] = token
        return token

    def lookup(self, instance: object) -> int | None:
        """Return the token of ``instance`` without issuing one."""
        token = self._tokens.get(id(instance))
        if token is None or self._instances[token] is not instance:
            return None
        return token


class PendingComments(Mapping[int, str]):
    """Read-only snapshot of the comments popped from one session."""

    def __init__(self, arena: _SessionArena | None = None) -> None:
        self._arena = arena if arena is not None else _SessionArena()

    @classmethod
    def empty(cls) -> "PendingComments":
        return cls()

    def for_instance(self, instance: object) -> str | None:
        """Return the comment recorded for exactly ``instance``, if any."""
        token = self._arena.lookup(instance)
        if token is None:
            return None
        return self._arena.comments.get(token)

    def __getitem__(self, token: int) -> str:
        return self._arena.comments[token]

    def __iter__(self) -> Iterator[int]:
        return iter(self._arena.comments)

    def __len__(self) -> int:
        return len(self._arena.comments)


class CommentStore:
    """Per-session mapping from instances about to be flushed to comments.

    Only the outer session map is locked. One session is never used from two
    threads at once, so its arena needs no guard of its own.
    """

    def __init__(self) -> None:
        self._arenas: WeakKeyDictionary[Session, _SessionArena] = WeakKeyDictionary()
        self._lock = threading.Lock()

    def describe(self, entity: object, comment: str | None) -> None:
        """Record ``comment`` for the next audited change of ``entity``.

        Empty comments are ignored. Raises ``NoSessionFoundError`` when
        ``entity`` is not attached to a session.
        """
        if not comment:
            return

        try:
            session = object_session(entity)
        except UnmappedInstanceError as exc:
            raise NoSessionFoundError(
                f"No session found for unmapped instance of {type(entity).__name__}"
            ) from exc
        if session is None:
            raise NoSessionFoundError(
                f"No session found for instance of {type(entity).__name__}"
            )

        with self._lock:
            arena = self._arenas.get(session)
            if arena is None:
                arena = _SessionArena()
                self._arenas[session] = arena
        arena.comments[arena.token_for(entity)] = comment

    def pop(self, session: Session) -> PendingComments:
        """Return and forget every comment recorded for ``session``."""
        with self._lock:
            arena = self._arenas.pop(session, None)
        if arena is None:
            return PendingComments.empty()
        return PendingComments(arena)

    def on_session_flushed(self, session: Session, flush_context: object = None) -> None:
        """Drop comments left over after a flush of ``session``."""
        with self._lock:
            self._arenas.pop(session, None)

    def has_pending(self, session: Session) -> bool:
        """Return whether any comment is recorded for ``session``."""
        with self._lock:
            arena = self._arenas.get(session)
        return arena is not None and bool(arena.comments)
