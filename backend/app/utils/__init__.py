from .errors import (
    error_response,
    DomainError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    DomainValidationError,
)
from .email import send_email
from .auth import normalize_email
