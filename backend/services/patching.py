"""Partial updates driven by typed patch models.

A field takes part in an update only when the client actually sent it.
``null`` is an explicit value and clears the column, unless the column is
NOT NULL, in which case the patch is rejected before the store is touched.
"""

from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session


class PatchValidationError(ValueError):
    pass


def collect_assignments(patch: BaseModel, model: type, exclude: set[str] | None = None) -> dict[str, Any]:
    assignments = patch.model_dump(exclude_unset=True, exclude=exclude)
    if not assignments:
        raise PatchValidationError('No valid fields provided for update.')

    columns = model.__table__.columns
    for name, value in assignments.items():
        column = columns.get(name)
        if column is None or column.primary_key:
            raise PatchValidationError(f'Field {name} cannot be updated.')
        if value is None and not column.nullable:
            raise PatchValidationError(f'Field {name} cannot be null.')

    return assignments


def apply_patch(db: Session, entity: Any, assignments: dict[str, Any]) -> Any:
    for name, value in assignments.items():
        setattr(entity, name, value)
    db.commit()
    db.refresh(entity)
    return entity


def patch_by_id(db: Session, model: type, entity_id: Any, assignments: dict[str, Any]) -> Any | None:
    """Apply ``assignments`` to the row with ``entity_id``; ``None`` if there is no such row."""
    entity = db.get(model, entity_id)
    if entity is None:
        return None
    return apply_patch(db, entity, assignments)
