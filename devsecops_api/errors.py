"""
Error responses.

Every failure the API reports has the same body: ``{"error": "<message>"}``.

  400 -- malformed path id or request body (static message, no details)
  404 -- the requested record does not exist
  500 -- anything unexpected; the traceback is logged, never returned
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INVALID_ID = "Invalid identifier"
INVALID_BODY = "Invalid request body"
INTERNAL_ERROR = "Internal server error"


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    in_path = any(err.get("loc", ("",))[0] == "path" for err in errors)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    return error_response(400, INVALID_ID if in_path else INVALID_BODY)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, INTERNAL_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
