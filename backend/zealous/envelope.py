"""
Uniform response envelope.

Every route answers with ``{"status": "ok"|"error", "statusCode": n, "result": ...}``
and the HTTP status mirrors ``statusCode``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong."


class ApiError(Exception):
    """A precondition failure that maps to a targeted status code and message."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpstreamError(ApiError):
    """A third-party call (gateway, carrier, email) failed."""

    def __init__(self, service: str, detail: str = ""):
        super().__init__(500, GENERIC_ERROR)
        self.service = service
        self.detail = detail


def success(status_code: int, result: Any, **extra: Any) -> JSONResponse:
    body = {"status": "ok", "statusCode": status_code, "result": result}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def error(status_code: int, result: Any) -> JSONResponse:
    body = {"status": "error", "statusCode": status_code, "result": result}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def api_error_handler(request: Request, exc: ApiError):
    if isinstance(exc, UpstreamError):
        logger.error("%s call failed on %s %s: %s", exc.service, request.method, request.url.path, exc.detail)
    return error(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR
    if exc.status_code == 404 and message == "Not Found":
        message = "Not found."
    return error(exc.status_code, message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request body."
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ())[1:])
        message = f"Invalid value for '{field}'." if field else errors[0].get("msg", message)
    return error(400, message)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error(500, GENERIC_ERROR)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
