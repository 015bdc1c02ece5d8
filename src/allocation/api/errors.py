"""Map allocation errors to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from allocation.exceptions import ConflictError, HasDependents, UnknownPincode

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ConflictError, 409),
    (HasDependents, 409),
    (UnknownPincode, 404),
    (ObjectNotFoundError, 404),
)


def _messages(exc):
    messages = getattr(exc, "messages", None)
    return messages if messages else str(exc)


def _handler_for(status_code):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.info(
            "Request rejected",
            path=request.url.path,
            status_code=status_code,
            error=type(exc).__name__,
        )
        return JSONResponse(status_code=status_code, content={"error": _messages(exc)})

    return handler


def register_error_handlers(app: FastAPI) -> None:
    """Install protean's handlers, then pin the allocation status codes."""
    register_exception_handlers(app)
    for error_class, status_code in _STATUS_BY_ERROR:
        app.add_exception_handler(error_class, _handler_for(status_code))
