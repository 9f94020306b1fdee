from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from crowdfund.api.errors import ApiError, error_title
from crowdfund.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)


logger = logging.getLogger(__name__)

_DOMAIN_STATUS = (
    (ValidationError, 400, "VALIDATION_ERROR"),
    (AuthenticationError, 401, "UNAUTHORIZED"),
    (AuthorizationError, 403, "FORBIDDEN"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ConflictError, 409, "CONFLICT"),
)

GENERIC_SERVER_MESSAGE = "An unexpected error occurred."


def domain_error_status(exc: DomainError) -> tuple[int, str]:
    for error_type, status_code, code in _DOMAIN_STATUS:
        if isinstance(exc, error_type):
            return status_code, code
    return 500, "INTERNAL_ERROR"


def _error_response(
    status_code: int,
    code: str,
    message: str,
    *,
    error: str | None = None,
    extra: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "error": error or error_title(status_code),
        "message": message,
        "code": code,
        **(extra or {}),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def register_exception_handlers(app: FastAPI, *, hide_internal_errors: bool = False) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(
                "api: server_error path=%s status=%s code=%s",
                request.url.path,
                exc.status_code,
                exc.code,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError):
        status_code, code = domain_error_status(exc)
        if status_code >= 500:
            logger.error(
                "api: unhandled_domain_error path=%s error=%s",
                request.url.path,
                type(exc).__name__,
                exc_info=exc,
            )
            message = GENERIC_SERVER_MESSAGE if hide_internal_errors else str(exc)
        else:
            message = str(exc)
        return _error_response(status_code, code, message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error_response(
            400,
            "VALIDATION_ERROR",
            "Invalid input data",
            extra={"details": exc.errors()},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed."
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return _error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))
