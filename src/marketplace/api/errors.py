"""Structured error responses for the marketplace API.

Every failure answers with a JSON body carrying a machine-readable ``kind``
and a human ``message``; retryable failures add a ``Retry-After`` header.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.errors import (
    InsufficientStock,
    InvalidTransition,
    OrderLifecycleError,
    PersistenceFailure,
    ReceiptUnavailable,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    InvalidTransition: 409,
    InsufficientStock: 409,
    ReceiptUnavailable: 409,
    PersistenceFailure: 503,
}


def status_code_for(exc: OrderLifecycleError) -> int:
    for error_cls, status_code in _STATUS_CODES.items():
        if isinstance(exc, error_cls):
            return status_code
    return 500


async def lifecycle_error_handler(request: Request, exc: OrderLifecycleError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info("request_failed", path=request.url.path, status_code=status_code, kind=exc.kind)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"kind": "validation_error", "message": "Request validation failed", "errors": exc.messages},
    )


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"kind": "not_found", "message": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderLifecycleError, lifecycle_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
