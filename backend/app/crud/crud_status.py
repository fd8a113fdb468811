"""Compare-and-swap helpers for lifecycle status columns."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..utils.status_logger import log_swapped_status


def swap_status(
    db: Session,
    model,
    row_id: int,
    expected: Any,
    new: Any,
    extra: Optional[Dict[str, Any]] = None,
    attr: str = "status",
) -> bool:
    """Move ``model.<attr>`` from ``expected`` to ``new`` for one row.

    The UPDATE only matches while the stored value still equals ``expected``,
    so a concurrent writer that got there first leaves zero rows touched and
    the caller sees ``False``. Nothing is committed here.
    """
    column = getattr(model, attr)
    values = {column: new}
    for key, value in (extra or {}).items():
        values[getattr(model, key)] = value
    updated = (
        db.query(model)
        .filter(model.id == row_id, column == expected)
        .update(values, synchronize_session=False)
    )
    if updated == 1:
        log_swapped_status(model.__name__, row_id, attr, expected, new)
        return True
    return False
