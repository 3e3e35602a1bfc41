from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def envelope(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN", status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConfigError(AppError):
    def __init__(self, message: str = "Backend not configured"):
        super().__init__(message, code="CONFIG_ERROR", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class TemplateSaveError(AppError):
    """Raised by the editor save path; carries everything the data source reported.

    ``code`` and ``details`` are the data source's own values. The HTTP body
    uses TEMPLATE_SAVE_FAILED and nests them under ``details`` so editor
    screens can show status/code/details/hint/sent_keys as-is.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        sent_keys: list[str] | None = None,
    ):
        super().__init__(message, code="TEMPLATE_SAVE_FAILED", status_code=400)
        self.status = status
        self.code = code
        self.details = details
        self.hint = hint
        self.sent_keys = sent_keys or []

    def envelope(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": "TEMPLATE_SAVE_FAILED",
            "details": {
                "status": self.status,
                "code": self.code,
                "details": self.details,
                "hint": self.hint,
                "sent_keys": self.sent_keys,
            },
        }


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {"error": exc.envelope()}
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = {
        "error": {
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": exc.errors()},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from sponsorhub.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
