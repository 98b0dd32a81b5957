"""Audit trail for SQLAlchemy entity updates.

Public API:
- ``auditable`` / ``audited`` declare audited classes and properties.
- ``AuditRuntime`` and ``install`` attach the audit engine to sessions.
- ``CommentStore.describe`` attaches a comment to the next audited change.
- ``Group`` / ``Entry`` are the persisted audit records.
"""

from packages.auditable.actors import actor_context, bind_actor, current_actor, reset_actor
from packages.auditable.comments import CommentStore, PendingComments
from packages.auditable.configuration import ConfigurationResolver, resolve_class
from packages.auditable.domain import AuditConfiguration
from packages.auditable.engine import AuditEngine
from packages.auditable.errors import (
    AuditableError,
    CacheWriteError,
    InvalidMappingError,
    NoSessionFoundError,
)
from packages.auditable.listener import AuditListener, install, uninstall
from packages.auditable.mapping import auditable, audited
from packages.auditable.models import AuditBase, Entry, Group
from packages.auditable.normalizer import TypeRegistry, ValueKind, ValueNormalizer
from packages.auditable.runtime import AuditRuntime, build_engine, build_resolver
from packages.auditable.unit_of_work import SessionUnitOfWork, UnitOfWork

__all__ = [
    "AuditBase",
    "AuditConfiguration",
    "AuditEngine",
    "AuditListener",
    "AuditRuntime",
    "AuditableError",
    "CacheWriteError",
    "CommentStore",
    "ConfigurationResolver",
    "Entry",
    "Group",
    "InvalidMappingError",
    "NoSessionFoundError",
    "PendingComments",
    "SessionUnitOfWork",
    "TypeRegistry",
    "UnitOfWork",
    "ValueKind",
    "ValueNormalizer",
    "actor_context",
    "auditable",
    "audited",
    "bind_actor",
    "build_engine",
    "build_resolver",
    "current_actor",
    "install",
    "reset_actor",
    "resolve_class",
    "uninstall",
]
