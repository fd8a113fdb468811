import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

_registered = False


def _listener_factory(model_name: str, attr: str):
    """Return a SQLAlchemy attribute listener that logs status changes."""

    def _status_change(target, value, oldvalue, initiator):  # noqa: ANN001
        if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
            return value
        logger.info(
            "%s id=%s %s changed from %s to %s",
            model_name,
            getattr(target, "id", "unknown"),
            attr,
            getattr(oldvalue, "value", oldvalue),
            getattr(value, "value", value),
        )
        return value

    return _status_change


def register_status_listeners() -> None:
    """Attach listeners for every lifecycle model's status column."""
    global _registered
    if _registered:
        return
    for model, attr in (
        (models.Booking, "status"),
        (models.BookingTalent, "request_status"),
        (models.Contract, "status"),
        (models.Signature, "status"),
        (models.Task, "status"),
    ):
        event.listen(
            getattr(model, attr),
            "set",
            _listener_factory(model.__name__, attr),
            retval=False,
            propagate=True,
        )
    _registered = True


def log_swapped_status(model_name: str, entity_id: int, attr: str, old, new) -> None:
    """Log a transition applied through a bulk compare-and-swap UPDATE.

    Bulk updates bypass attribute events, so the services call this after a
    successful swap to keep the transition log complete.
    """
    logger.info(
        "%s id=%s %s changed from %s to %s",
        model_name,
        entity_id,
        attr,
        getattr(old, "value", old),
        getattr(new, "value", new),
    )
