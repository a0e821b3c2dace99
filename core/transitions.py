# core/transitions.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from core.errors import InvalidTransitionError, NotFoundError


def _value(v: Any) -> str:
    return getattr(v, "value", v)


def compare_and_set(
    db: Session,
    model,
    row_id: int,
    status_column,
    expected: Any,
    values: Mapping[str, Any],
    entity: str,
    requested: Any,
    visible: Optional[Any] = None,
):
    """
    Move a row out of `expected` (one status or a list of them) with a
    single conditional UPDATE.

    Nothing is committed here. When the row is not in `expected` (or was
    changed by someone else first) the current state is re-read:
    missing rows raise NotFoundError, anything else InvalidTransitionError.
    `visible` is an extra predicate that hides rows entirely (soft deletes).
    """
    if isinstance(expected, (list, tuple, set)):
        conds = [model.id == row_id, status_column.in_(list(expected))]
    else:
        conds = [model.id == row_id, status_column == expected]
    if visible is not None:
        conds.append(visible)
    result = db.execute(
        update(model).where(*conds).values(**values).execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        db.flush()
        row = db.get(model, row_id)
        db.refresh(row)
        return row

    q = db.query(model).filter(model.id == row_id)
    if visible is not None:
        q = q.filter(visible)
    row = q.first()
    if row is None:
        raise NotFoundError(f"{entity.capitalize()} not found")
    db.refresh(row)
    current = getattr(row, status_column.key)
    raise InvalidTransitionError(entity, _value(current), _value(requested))
