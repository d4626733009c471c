"""
Error taxonomy and exception handlers.
Every failure leaves the service as a {code, message} body; internal detail is only logged.
"""

import logging
from enum import Enum
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    FETCH_ERROR = "FETCH_ERROR"
    DELETION_FAILED = "DELETION_FAILED"


_STATUS_CODES = {
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PROCESSING_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.FETCH_ERROR: 500,
    ErrorCode.DELETION_FAILED: 500,
}


class APIError(Exception):
    """Error surfaced to API callers."""

    def __init__(self, code: ErrorCode, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code or _STATUS_CODES.get(code, 500)

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message}


def error_response(code: ErrorCode, message: str, status_code: Optional[int] = None) -> JSONResponse:
    """Build a JSON error response in the service's error shape."""
    error = APIError(code, message, status_code)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every failure as {code, message}."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code.value} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return error_response(ErrorCode.METHOD_NOT_ALLOWED, "Only POST requests are allowed")
        if exc.status_code == 404:
            return error_response(ErrorCode.NOT_FOUND, "Resource not found")
        if exc.status_code == 401:
            return error_response(ErrorCode.UNAUTHORIZED, str(exc.detail))
        if exc.status_code < 500:
            return error_response(ErrorCode.INVALID_REQUEST, str(exc.detail), exc.status_code)
        return error_response(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred", exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(ErrorCode.INVALID_REQUEST, "Invalid request format")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        # Log the actual error for debugging
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return error_response(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")
