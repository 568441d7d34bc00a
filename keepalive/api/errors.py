"""
Domain error -> HTTP status mapping
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from keepalive.domain.errors import (
    KeepAliveError, ValidationError, InsufficientAccountsError, CapacityExhaustedError,
    NotFoundError, IllegalTransitionError, ImmutablePolicyError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[KeepAliveError], int] = {
    ValidationError: 400,
    InsufficientAccountsError: 400,
    ImmutablePolicyError: 403,
    NotFoundError: 404,
    IllegalTransitionError: 409,
    CapacityExhaustedError: 422,
}


def status_for(exc: KeepAliveError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return 400


async def keepalive_error_handler(request: Request, exc: KeepAliveError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info("%s %s -> %d %s: %s", request.method, request.url.path, status_code, type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KeepAliveError, keepalive_error_handler)
