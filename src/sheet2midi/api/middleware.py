"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from sheet2midi.models.errors import (
    ErrorResponse,
    PipelineBusyError,
    RecognitionFailure,
    Sheet2MidiError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def sheet2midi_error_handler(request: Request, exc: Sheet2MidiError) -> JSONResponse:
    """Handle Sheet2MidiError exceptions."""
    response = ErrorResponse(
        error_type=type(exc).__name__,
        component=exc.component,
        message=exc.message,
        details=exc.details,
        actionable_guidance=_get_guidance(exc),
        retry_possible=_is_retryable(exc),
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: Sheet2MidiError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, ValidationError):
        return 400
    elif isinstance(exc, PipelineBusyError):
        return 409
    elif isinstance(exc, RecognitionFailure):
        return 422
    return 500


def _get_guidance(exc: Sheet2MidiError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, ValidationError):
        return "Check your document and processing options."
    if isinstance(exc, PipelineBusyError):
        return "Wait for the current conversion to finish, or reset it."
    return "Please try again or contact support."


def _is_retryable(exc: Sheet2MidiError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, PipelineBusyError)
