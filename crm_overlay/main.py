from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from crm_overlay.api.v1.router import router as api_v1_router
from crm_overlay.core.exceptions import (
    BatchTooLargeError,
    ConfigStoreUnavailableError,
    ConfigValidationError,
    CrmUnavailableError,
    RecordNotFoundError,
)
from crm_overlay.core.config import settings as app_settings
from crm_overlay.core.rate_limit import limiter

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="CRM Overlay Risk & Priority Service",
    description="Admin-configurable risk flags and role-aware priority scoring for CRM accounts and opportunities",
    version="0.1.0",
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware – restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(ConfigValidationError)
async def config_validation_handler(request: Request, exc: ConfigValidationError):
    logger.warning("Rejected configuration write: %s", exc.detail)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.detail, "type": "invalid_configuration"},
    )


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    logger.warning("Record not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "record_not_found"},
    )


@app.exception_handler(CrmUnavailableError)
async def crm_unavailable_handler(request: Request, exc: CrmUnavailableError):
    logger.error("CRM unavailable: %s", exc.detail)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.detail, "type": "crm_unavailable"},
    )


@app.exception_handler(ConfigStoreUnavailableError)
async def config_store_unavailable_handler(
    request: Request, exc: ConfigStoreUnavailableError
):
    logger.error("Configuration store unavailable: %s", exc.detail)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.detail, "type": "config_store_unavailable"},
    )


@app.exception_handler(BatchTooLargeError)
async def batch_too_large_handler(request: Request, exc: BatchTooLargeError):
    logger.warning("Batch rejected: %s", exc.detail)
    return JSONResponse(
        status_code=413,
        content={"detail": exc.detail, "type": "batch_too_large"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_errors(exc),
            "type": "validation_error",
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with any non-JSON ``ctx`` values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
