"""
Typed references to the closed set of entities an activity or notification
can point at.

A reference is the pair (kind, id). Lookup goes through ENTITY_MODELS keyed by
kind rather than by inspecting the referenced row.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import ValidationIssue
from core.models import ENTITY_MODELS, EntityKind
from core.validators import validate_object_id


@dataclass(frozen=True)
class EntityRef:
    kind: EntityKind
    id: str

    @staticmethod
    def of(kind, entity_id, *, field: str = "entity") -> "EntityRef":
        return EntityRef(kind=parse_kind(kind, field=f"{field}Type"), id=validate_object_id(entity_id, f"{field}Id"))


def parse_kind(value, *, field: str = "entityType") -> EntityKind:
    if isinstance(value, EntityKind):
        return value
    try:
        return EntityKind(value)
    except ValueError as exc:
        allowed = "|".join(kind.value for kind in EntityKind)
        raise ValidationIssue(
            f"{field} must be one of: {allowed}",
            field=field,
            error_type="invalid_value",
        ) from exc


def resolve_entity(db, ref: EntityRef):
    """Load the referenced row, or None when it no longer exists."""
    model = ENTITY_MODELS[ref.kind]
    return db.get(model, ref.id)
