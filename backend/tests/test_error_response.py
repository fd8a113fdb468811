import logging
import pytest
from fastapi import HTTPException

from app.utils.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    error_response,
)


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="app.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


@pytest.mark.parametrize(
    "exc_type,code",
    [(NotFoundError, 404), (ForbiddenError, 403), (ConflictError, 409), (DomainValidationError, 422)],
)
def test_domain_errors_map_to_http(exc_type, code):
    exc = exc_type("Nope", {"status": "stale"}).to_http()
    assert exc.status_code == code
    assert exc.detail == {"message": "Nope", "field_errors": {"status": "stale"}}


def test_domain_error_defaults_to_empty_field_errors():
    assert ConflictError("Busy").field_errors == {}
