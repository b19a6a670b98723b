"""Custom exception classes and handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
INVALID_REQUEST_MESSAGE = "The request is missing required fields or contains invalid values"


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class ValidationError(BusinessLogicError):
    """Malformed or inconsistent input (id mismatch, bad references)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BusinessLogicError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BusinessLogicError):
    """The requested state change collides with existing data."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BusinessLogicError):
    status_code = status.HTTP_400_BAD_REQUEST


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: Request, exc: BusinessLogicError):
        return JSONResponse(
            {"success": False, "message": exc.detail},
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        # Only field names go back to the client, never the submitted values.
        fields = []
        for error in exc.errors():
            name = ".".join(str(part) for part in error.get("loc", ())[1:])
            if name and name not in fields:
                fields.append(name)
        logger.info("Rejected request to %s: invalid fields %s", request.url.path, fields)
        message = INVALID_REQUEST_MESSAGE
        if fields:
            message = f"{message}: {', '.join(fields)}"
        return JSONResponse(
            {"success": False, "message": message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def _unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            {"success": False, "message": GENERIC_ERROR_MESSAGE},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
