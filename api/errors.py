"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.llm_client import LLMError
from clients.media_client import MediaUploadError
from core.exceptions import (
    BusinessProfileExistsError,
    InvoiceNumberConflictError,
    InvoiceValidationError,
)
from core.invoice_numbers import AllocationExhaustedError

logger = logging.getLogger(__name__)


def _json_error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list[str] | None = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, details, request_id).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers on the app.

    Handlers are matched on the exception's MRO, so the ValueError
    subclasses below take precedence over the generic ValueError handler.
    """

    @app.exception_handler(InvoiceValidationError)
    async def invoice_validation_handler(request: Request, exc: InvoiceValidationError):
        return _json_error(
            request, 400, ErrorCodes.VALIDATION_ERROR,
            "Invoice is invalid", details=exc.errors,
        )

    @app.exception_handler(InvoiceNumberConflictError)
    async def invoice_conflict_handler(request: Request, exc: InvoiceNumberConflictError):
        return _json_error(request, 409, ErrorCodes.ALREADY_EXISTS, str(exc))

    @app.exception_handler(BusinessProfileExistsError)
    async def profile_exists_handler(request: Request, exc: BusinessProfileExistsError):
        return _json_error(request, 409, ErrorCodes.ALREADY_EXISTS, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json_error(request, 404, ErrorCodes.NOT_FOUND, message)
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(PermissionError)
    async def permission_error_handler(request: Request, exc: PermissionError):
        return _json_error(request, 403, ErrorCodes.FORBIDDEN, str(exc) or "Forbidden")

    @app.exception_handler(LLMError)
    async def llm_error_handler(request: Request, exc: LLMError):
        logger.warning(f"AI generation failed: {exc}")
        return _json_error(
            request, 502, ErrorCodes.LLM_UNAVAILABLE,
            "AI generation failed. Please try again.",
        )

    @app.exception_handler(MediaUploadError)
    async def media_error_handler(request: Request, exc: MediaUploadError):
        return _json_error(request, 502, ErrorCodes.UPLOAD_FAILED, str(exc))

    @app.exception_handler(AllocationExhaustedError)
    async def allocation_error_handler(request: Request, exc: AllocationExhaustedError):
        logger.error(str(exc))
        return _json_error(
            request, 503, ErrorCodes.SERVICE_UNAVAILABLE,
            "Could not allocate an invoice number. Please try again.",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(
            request, 422, ErrorCodes.VALIDATION_ERROR,
            str(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(
            request, 500, ErrorCodes.INTERNAL_ERROR,
            "An internal error occurred",
        )
