"""Session event wiring for the audit engine."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import Session

from packages.auditable.engine import AuditEngine
from packages.auditable.unit_of_work import SessionUnitOfWork


class AuditListener:
    """Run the audit engine on ``before_flush`` and clear comments afterwards.

    ``target`` may be a ``Session``, a ``sessionmaker``, a ``scoped_session``
    or the ``Session`` class itself.
    """

    def __init__(self, engine: AuditEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AuditEngine:
        return self._engine

    def before_flush(self, session: Session, flush_context: Any, instances: Any) -> None:
        self._engine.process_pending_changes(SessionUnitOfWork(session))

    def after_flush_postexec(self, session: Session, flush_context: Any) -> None:
        self._engine.comments.on_session_flushed(session, flush_context)

    def install(self, target: Any) -> None:
        """Attach the engine, then the comment cleanup, to ``target``."""
        event.listen(target, "before_flush", self.before_flush)
        event.listen(target, "after_flush_postexec", self.after_flush_postexec)

    def uninstall(self, target: Any) -> None:
        """Detach both handlers from ``target``."""
        event.remove(target, "before_flush", self.before_flush)
        event.remove(target, "after_flush_postexec", self.after_flush_postexec)

    def is_installed(self, target: Any) -> bool:
        """Return whether the engine handler is attached to ``target``."""
        return event.contains(target, "before_flush", self.before_flush)


def install(target: Any, engine: AuditEngine) -> AuditListener:
    """Audit every flush of ``target`` with ``engine``; return the listener."""
    listener = AuditListener(engine)
    listener.install(target)
    return listener


def uninstall(target: Any, listener: AuditListener) -> None:
    """Stop auditing flushes of ``target``."""
    listener.uninstall(target)
