"""Translate domain errors into JSON error responses.

Every error body has the shape ``{"success": false, "error": kind, "message": ...}``.
Unexpected exceptions are logged and reported without internal detail.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.exceptions import ValidationError as DomainValidationError

from shared.errors import StorefrontError

logger = structlog.get_logger(__name__)


def _error(status_code: int, kind: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": kind, "message": message})


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code == 503:
        logger.warning("Upstream unavailable", path=request.url.path, message=exc.message)
        return _error(503, exc.kind, "Payment provider temporarily unavailable")
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.kind, message=exc.message)
        return _error(exc.status_code, exc.kind, "Internal server error")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def domain_validation_handler(request: Request, exc: DomainValidationError) -> JSONResponse:
    messages = exc.messages if isinstance(exc.messages, dict) else {"error": [str(exc.messages)]}
    message = "; ".join(f"{field}: {', '.join(map(str, errors))}" for field, errors in messages.items())
    return _error(400, "validation_error", message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}" for error in exc.errors()
    )
    return _error(400, "validation_error", message or "Invalid request")


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error(404, "not_found", "Resource not found")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return _error(500, "internal_error", "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(DomainValidationError, domain_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
