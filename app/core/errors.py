"""
Domain errors for the access / payment workflow.
Services raise them; app.main renders them as {"detail", "code"} responses.
"Not entitled" is not an error: the access gate returns a deny decision instead.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class NotFound(AppError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ValidationError(AppError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DuplicateReference(AppError):
    code = "duplicate_reference"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "This transaction reference has already been submitted."


class DocumentNotPayable(AppError):
    code = "document_not_payable"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "This document is free and does not need a payment."


class InvalidTransition(AppError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT
    message = "Payment request is already closed"


class RateLimited(AppError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Try again later."


class StorageFailure(AppError):
    code = "storage_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Storage failure, nothing was changed. Please retry."


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )
