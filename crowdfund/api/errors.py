from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import HTTPException


ERROR_TITLES = {
    400: "Validation Error",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def error_title(status_code: int) -> str:
    title = ERROR_TITLES.get(status_code)
    if title is not None:
        return title
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


class ApiError(HTTPException):
    """HTTP error rendered as ``{"error", "message", "code"}`` plus optional extra fields."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        *,
        error: str | None = None,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code = code
        self.message = message
        self.error = error or error_title(status_code)
        self.extra = extra or {}

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "code": self.code, **self.extra}
