"""
Error types and the JSON error envelope.

Every failure leaves the API as ``{"success": false, "message": ...}``.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class APIError(HTTPException):
    status_code = 400
    message = "Bad request"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)


class ValidationError(APIError):
    status_code = 400
    message = "Invalid request"


class DuplicateSlug(APIError):
    status_code = 400
    message = "Slug already exists"


class NotFound(APIError):
    status_code = 404
    message = "Not found"


class UploadFailed(APIError):
    status_code = 500
    message = "Upload failed"


class MailFailed(APIError):
    status_code = 500
    message = "Failed to send email."


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # drop the "body"/"query" prefix FastAPI adds to the location
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "form")]
    if loc:
        return f"{'.'.join(loc)}: {first.get('msg')}"
    return first.get("msg", "Invalid request")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, _validation_message(exc))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, method=request.method, exc_info=exc)
    return error_response(500, "Server Error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
