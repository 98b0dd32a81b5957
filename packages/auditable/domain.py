"""Value objects shared by the resolver, the warmer, and the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_serializer


class AuditConfiguration(BaseModel):
    """Resolved audit configuration of one class."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    columns: frozenset[str] = frozenset()
    comment_property: str | None = None

    @property
    def is_audited(self) -> bool:
        """Return ``True`` when at least one property is audited."""
        return bool(self.columns)

    @field_serializer("columns")
    def _serialize_columns(self, columns: frozenset[str]) -> list[str]:
        """Serialize columns in a stable order."""
        return sorted(columns)


EMPTY_CONFIGURATION = AuditConfiguration()


@dataclass(frozen=True)
class ClassMapping:
    """Persistence metadata of one entity class as seen by the engine.

    ``column_types`` maps scalar column properties to their declared type;
    ``to_one_associations`` holds owning-side single-valued relationships.
    """

    class_name: str
    column_types: Mapping[str, Any] = field(default_factory=dict)
    to_one_associations: frozenset[str] = frozenset()
