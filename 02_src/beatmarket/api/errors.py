"""Map domain errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import (
    AccessDenied,
    AuthenticationFailed,
    Conflict,
    InvalidOperation,
    MarketplaceError,
    NotFound,
    StateInconsistency,
    ValidationFailed,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

STATUS_CODES: dict[type[MarketplaceError], int] = {
    InvalidOperation: 400,
    AuthenticationFailed: 401,
    AccessDenied: 403,
    NotFound: 404,
    Conflict: 409,
    ValidationFailed: 422,
    StateInconsistency: 500,
}


def status_for(exc: MarketplaceError) -> int:
    """Status of the closest mapped class in the error's MRO."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
