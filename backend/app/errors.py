"""Application error type and the handlers that translate errors to JSON responses."""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Error carrying a client-facing message and an HTTP status code.

    Attributes:
        message: Message returned to the client as ``{"error": message}``.
        status_code: HTTP status code of the response.
        is_operational: False for programming errors that should page someone.
    """

    def __init__(self, message: str, status_code: int = 500, is_operational: bool = True):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.is_operational = is_operational


class PaymentProviderError(AppError):
    """Raised when a payment gateway rejects a request or returns non-2xx."""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"{provider} error: {detail}", status_code=500)
        self.provider = provider


def is_production() -> bool:
    return os.environ.get("APP_ENV", "development") == "production"


def log_error(error: Any, context: str | None = None) -> None:
    """Log an error together with where it happened.

    In production the record is a single JSON line so log shippers can parse it.
    """
    if isinstance(error, BaseException):
        error_info: Any = {"name": type(error).__name__, "message": str(error)}
    else:
        error_info = error

    if is_production():
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "context": context,
            "error": error_info,
        }
        logger.error("Production Error: %s", json.dumps(record, default=str))
    else:
        logger.error(
            "Error in %s: %s",
            context or "request",
            error_info,
            exc_info=error if isinstance(error, BaseException) else None,
        )


def handle_api_error(error: BaseException) -> tuple[str, int]:
    """Map any exception to a (message, status_code) pair."""
    if isinstance(error, AppError):
        return error.message, error.status_code

    logger.exception("API Error", exc_info=error)
    if is_production():
        return "Internal server error", 500
    return str(error) or "An unexpected error occurred", 500


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    message, status_code = handle_api_error(exc)
    return JSONResponse(status_code=status_code, content={"error": message})


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    message, status_code = handle_api_error(exc)
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on the application."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
