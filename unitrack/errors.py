"""
Error taxonomy shared by services and routers, plus the FastAPI handlers that
turn errors into the response envelope.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from unitrack.responses import api_version_of, error_response, request_id_of

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 500, details: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(ApiError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__("VALIDATION_ERROR", message, 422, details)


class AuthenticationError(ApiError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, 401)


class AuthorizationError(ApiError):
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__("AUTHORIZATION_ERROR", message, 403)


class NotFoundError(ApiError):
    def __init__(self, resource: str = "Resource"):
        super().__init__("RESOURCE_NOT_FOUND", f"{resource} not found", 404)


class ConflictError(ApiError):
    def __init__(self, message: str):
        super().__init__("RESOURCE_CONFLICT", message, 409)


class InternalError(ApiError):
    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__("INTERNAL_ERROR", message, 500)


HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_ERROR",
    403: "AUTHORIZATION_ERROR",
    404: "RESOURCE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "RESOURCE_CONFLICT",
    422: "VALIDATION_ERROR",
}


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, exc.details, request_id_of(request), api_version_of(request)),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            # Drop the "body"/"query" location prefix
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_response("VALIDATION_ERROR", "Invalid input data", details, request_id_of(request), api_version_of(request)),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    code = HTTP_STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "BAD_REQUEST")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, str(exc.detail), None, request_id_of(request), api_version_of(request)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    error = InternalError()
    request_id = request_id_of(request)
    # Runs outside the request-id middleware, so echo the header here
    return JSONResponse(
        status_code=error.status_code,
        content=error_response(error.code, error.message, None, request_id, api_version_of(request)),
        headers={"X-Request-ID": request_id} if request_id else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
