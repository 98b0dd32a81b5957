"""Per-entity logging context built on ``contextvars``.

Engine, resolver and warmer code wrap the work on one class or instance in
``log_context`` so every line emitted inside names the audited entity.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

_LOG_CONTEXT: ContextVar[Mapping[str, object]] = ContextVar(
    "auditable_log_context", default={}
)


def get_context() -> dict[str, object]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a block.

    ``None`` values are skipped. Nested blocks layer over the enclosing
    fields and the enclosing fields come back on exit.
    """
    merged = dict(_LOG_CONTEXT.get())
    merged.update((key, value) for key, value in values.items() if value is not None)
    token = _LOG_CONTEXT.set(merged)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)
