"""
Exception handlers translating service failures into HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from structlog import get_logger

from studysync.core.tokens import KeyDecodeError, KeyExpiredError
from studysync.service.errors import (
    CapacityExceeded,
    Conflict,
    CoordinatorError,
    Forbidden,
    InvalidArgument,
    NotFound,
)

STATUS_CODES = {
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    CapacityExceeded: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: CoordinatorError) -> int:
    for family, code in STATUS_CODES.items():
        if isinstance(exc, family):
            return code

    return status.HTTP_400_BAD_REQUEST


async def coordinator_error_handler(
    request: Request, exc: CoordinatorError
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc), "error": type(exc).__name__},
    )


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log = get_logger()
    await log.aerror("store.unavailable", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "The data store is unavailable, please retry"},
    )


async def key_decode_handler(request: Request, exc: KeyDecodeError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Invalid token"},
    )


async def key_expired_handler(request: Request, exc: KeyExpiredError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Token expired"},
    )


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(CoordinatorError, coordinator_error_handler)
    app.add_exception_handler(OperationalError, store_error_handler)
    app.add_exception_handler(InterfaceError, store_error_handler)
    app.add_exception_handler(KeyDecodeError, key_decode_handler)
    app.add_exception_handler(KeyExpiredError, key_expired_handler)
    return app
