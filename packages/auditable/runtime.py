"""Settings-driven wiring of the audit components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from packages.auditable.actors import ActorProvider, current_actor
from packages.auditable.comments import CommentStore
from packages.auditable.configuration import ConfigurationResolver
from packages.auditable.engine import AuditEngine
from packages.auditable.listener import AuditListener
from packages.auditable.normalizer import ValueNormalizer
from packages.auditable_shared.config import AuditableSettings


def build_resolver(settings: AuditableSettings) -> ConfigurationResolver:
    """Build a resolver reading warmed artifacts when a cache dir is set."""
    return ConfigurationResolver(cache_dir=settings.audit.metadata_cache_dir())


def build_engine(
    settings: AuditableSettings,
    *,
    comments: CommentStore | None = None,
    actor_provider: ActorProvider = current_actor,
) -> AuditEngine:
    """Build an audit engine from typed settings."""
    return AuditEngine(
        build_resolver(settings),
        comments if comments is not None else CommentStore(),
        actor_provider=actor_provider,
        normalizer=ValueNormalizer(naive_timezone=settings.audit.naive_timezone),
    )


@dataclass(frozen=True)
class AuditRuntime:
    """Audit engine, its comment store, and the listener binding them to sessions."""

    engine: AuditEngine
    comments: CommentStore
    listener: AuditListener

    @classmethod
    def from_settings(
        cls,
        settings: AuditableSettings,
        *,
        actor_provider: ActorProvider = current_actor,
    ) -> "AuditRuntime":
        """Build the engine, a fresh comment store and an uninstalled listener."""
        comments = CommentStore()
        engine = build_engine(settings, comments=comments, actor_provider=actor_provider)
        return cls(engine=engine, comments=comments, listener=AuditListener(engine))

    def install(self, target: Any) -> None:
        """Audit every flush of ``target``."""
        self.listener.install(target)

    def uninstall(self, target: Any) -> None:
        """Stop auditing flushes of ``target``."""
        self.listener.uninstall(target)
