"""Identity of the actor responsible for the changes being flushed."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator, Protocol

_CURRENT_ACTOR: ContextVar[str | None] = ContextVar("auditable_actor", default=None)


class ActorProvider(Protocol):
    """Zero-argument callable returning the current username, if any."""

    def __call__(self) -> str | None: ...


def current_actor() -> str | None:
    """Return the username bound in the current context."""
    return _CURRENT_ACTOR.get()


def bind_actor(username: str | None) -> Token[str | None]:
    """Bind ``username`` for the current context and return a reset token."""
    return _CURRENT_ACTOR.set(username)


def reset_actor(token: Token[str | None]) -> None:
    """Restore the binding that preceded ``bind_actor``."""
    _CURRENT_ACTOR.reset(token)


@contextmanager
def actor_context(username: str | None) -> Iterator[None]:
    """Bind ``username`` as the acting user for the duration of a block."""
    token = bind_actor(username)
    try:
        yield
    finally:
        reset_actor(token)
