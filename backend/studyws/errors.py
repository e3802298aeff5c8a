"""
Exception handlers rendering every failure as the uniform JSON envelope.

The auth core raises typed errors that know nothing about HTTP; the
mapping from ErrorKind to status code lives here only.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from studyws.core.errors import AuthServiceError, ErrorKind, InternalError, RateLimitedError
from studyws.schemas.auth import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.AUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(
    status_code: int,
    message: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope response."""
    body = ErrorResponse(error=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for the error taxonomy, request validation and store faults."""

    @app.exception_handler(AuthServiceError)
    async def handle_auth_service_error(request: Request, exc: AuthServiceError):
        status_code = STATUS_BY_KIND[exc.kind]
        headers = None
        if exc.kind is ErrorKind.AUTH:
            headers = {"WWW-Authenticate": "Bearer"}
        elif isinstance(exc, RateLimitedError) and exc.retry_after:
            headers = {"Retry-After": str(exc.retry_after)}

        log = logger.error if status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {status_code} {exc.kind.value}: {exc.message}")
        return error_response(status_code, exc.message, exc.details, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
            for err in exc.errors()
        ]
        logger.info(f"{request.method} {request.url.path} -> 400 malformed request")
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body", details)

    @app.exception_handler(PyMongoError)
    async def handle_store_error(request: Request, exc: PyMongoError):
        logger.error(f"{request.method} {request.url.path} -> 500 store failure: {exc}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} -> 500 unhandled error")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)
