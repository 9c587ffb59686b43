"""Map the ordering error taxonomy onto HTTP responses.

Protean's own handlers cover the base exception classes; the handlers
registered here take precedence for the ordering categories and add the
external-dependency mapping Protean does not know about.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from ordering.exceptions import AccessDeniedError, ExternalDependencyError, StateConflictError

logger = structlog.get_logger(__name__)


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"_entity": [str(exc)]}


def _error_body(exc, error_type: str) -> dict:
    messages = _messages(exc)
    first = next(iter(messages.values()), [str(exc)])
    message = first[0] if isinstance(first, list) and first else str(first)
    return {"success": False, "error": error_type, "message": message, "errors": messages}


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Request rejected", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=400, content=_error_body(exc, type(exc).__name__))


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    logger.info("Resource not found", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=404, content=_error_body(exc, type(exc).__name__))


async def access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    logger.warning("Access denied", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=403, content=_error_body(exc, type(exc).__name__))


async def state_conflict_handler(request: Request, exc: StateConflictError) -> JSONResponse:
    logger.info("State conflict", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=409, content=_error_body(exc, type(exc).__name__))


async def external_dependency_handler(request: Request, exc: ExternalDependencyError) -> JSONResponse:
    logger.error(
        "External dependency failed",
        path=request.url.path,
        error=type(exc).__name__,
        order_id=exc.order_id,
    )
    content = {"success": False, "error": type(exc).__name__, "message": exc.message}
    if exc.order_id:
        content["order_id"] = exc.order_id
    return JSONResponse(status_code=502, content=content)


def install_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(AccessDeniedError, access_denied_handler)
    app.add_exception_handler(StateConflictError, state_conflict_handler)
    app.add_exception_handler(ExternalDependencyError, external_dependency_handler)
