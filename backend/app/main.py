# backend/app/main.py

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from . import models  # noqa: F401  registers every table on Base.metadata

# Routers under app/api/
from .api import (
    api_booking,
    api_booking_request,
    api_contract,
    api_notification,
    api_talent,
    api_task,
    api_user,
    auth,
)
from .core.config import settings
from .core.observability import setup_logging, setup_tracer
from .database import Base, engine
from .middleware.security_headers import SecurityHeadersMiddleware
from .utils.errors import DomainError
from .utils.r2 import STATIC_DIR
from .utils.status_logger import register_status_listeners

setup_logging()
logger = logging.getLogger(__name__)

register_status_listeners()

# Always use ORJSONResponse for JSON payloads
app = FastAPI(title="Talent Booking API", default_response_class=ORJSONResponse)
setup_tracer(app)

# Locally stored contract PDFs are served from backend/app/static
os.makedirs(os.path.join(STATIC_DIR, "contracts"), exist_ok=True)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


# ─── CORS middleware (credentials-compatible, explicit allowlist) ─────────────
# With cookies, Access-Control-Allow-Origin cannot be "*".
if settings.CORS_ALLOW_ALL:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.rstrip("/") for o in settings.CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1024)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Return JSON responses for HTTP errors and log them."""
    try:
        response = await call_next(request)
    except StarletteHTTPException as exc:
        logger.error(
            "HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail
        )
        response = ORJSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database busy, please retry"},
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )
    return response


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Render lifecycle errors as ``{"detail": {"message", "field_errors"}}``."""
    logger.warning(
        "%s at %s: %s %s",
        type(exc).__name__,
        request.url.path,
        exc.message,
        exc.field_errors,
    )
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"detail": {"message": exc.message, "field_errors": exc.field_errors}},
    )


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error("Database unavailable at %s: %s", request.url.path, exc)
    return ORJSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "message": "Database temporarily unavailable, please retry",
                "field_errors": {},
            }
        },
    )


def _jsonable_errors(errors):
    # pydantic may put exception instances in ``ctx``
    cleaned = []
    for err in errors:
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        cleaned.append(err)
    return cleaned


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": _jsonable_errors(errors)},
    )


@app.get("/healthz", tags=["health"])
async def healthz():
    return {"status": "ok"}


api_prefix = settings.API_V1_STR  # usually "/api/v1"

# ─── AUTH ROUTES (no version prefix) ────────────────────────────────────────────────
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(api_user.router, prefix="/auth", tags=["auth"])

app.include_router(api_booking.router, prefix=api_prefix, tags=["bookings"])
app.include_router(api_booking_request.router, prefix=api_prefix, tags=["booking-requests"])
app.include_router(api_contract.router, prefix=api_prefix, tags=["contracts"])
app.include_router(api_task.router, prefix=api_prefix, tags=["tasks"])
app.include_router(api_talent.router, prefix=api_prefix, tags=["talents"])
app.include_router(api_notification.router, prefix=api_prefix, tags=["notifications"])


@app.on_event("startup")
def create_tables() -> None:
    """Create missing tables; Alembic owns real schema migrations."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


@app.get("/")
async def root():
    return {"message": "Welcome to Talent Booking API"}
