"""Classification of recognition failures into user-facing errors."""

import logging
import random

from pydantic import BaseModel, ConfigDict

from sheet2midi.config import get_settings
from sheet2midi.models.errors import (
    ErrorKind,
    FailureSignal,
    ProcessingError,
    RecognitionFailure,
)

logger = logging.getLogger(__name__)


class ErrorTemplate(BaseModel):
    """Canonical message and remediation steps for one error kind."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    suggestions: tuple[str, ...]


ERROR_TEMPLATES: dict[ErrorKind, ErrorTemplate] = {
    ErrorKind.BLUR: ErrorTemplate(
        kind=ErrorKind.BLUR,
        message="Image resolution too low for accurate note recognition",
        suggestions=(
            "Try scanning at 300 DPI or higher",
            "Ensure good lighting when photographing",
            "Use a flatbed scanner for best results",
        ),
    ),
    ErrorKind.NOTATION: ErrorTemplate(
        kind=ErrorKind.NOTATION,
        message="Complex notation style not fully supported",
        suggestions=(
            "Try using standard notation without extensive markings",
            "Consider using enhanced processing mode",
            "Manual assistance mode may help with complex scores",
        ),
    ),
    ErrorKind.HANDWRITTEN: ErrorTemplate(
        kind=ErrorKind.HANDWRITTEN,
        message="Handwritten notation detected - accuracy significantly reduced",
        suggestions=(
            "Use printed or engraved sheet music for best results",
            "Try enhanced processing mode for handwritten scores",
            "Consider manual correction of detected notes",
        ),
    ),
    ErrorKind.FORMAT: ErrorTemplate(
        kind=ErrorKind.FORMAT,
        message="Unsupported or corrupted document format",
        suggestions=(
            "Upload a PNG, JPEG or PDF file",
            "Re-export the document and upload it again",
        ),
    ),
    ErrorKind.MULTIPLE_SIGNATURES: ErrorTemplate(
        kind=ErrorKind.MULTIPLE_SIGNATURES,
        message="Conflicting key or time signatures detected",
        suggestions=(
            "Convert one movement or section at a time",
            "Select only the pages that share a signature",
            "Set a preferred key to resolve the conflict",
        ),
    ),
    ErrorKind.UNKNOWN: ErrorTemplate(
        kind=ErrorKind.UNKNOWN,
        message="Unknown error occurred",
        suggestions=("Try a different file", "Check file format and quality"),
    ),
}

CONFIDENCE_RANGE = (0.1, 0.4)


class ErrorClassifier:
    """Maps any failure signal to exactly one ProcessingError.

    Kind, message and suggestions are a pure function of the signal; only the
    confidence is drawn, uniformly from CONFIDENCE_RANGE.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        low_confidence_threshold: float | None = None,
    ):
        self.rng = rng or random.Random()
        if low_confidence_threshold is None:
            low_confidence_threshold = get_settings().low_confidence_threshold
        self.low_confidence_threshold = low_confidence_threshold

    def resolve_kind(self, cause: str) -> ErrorKind:
        try:
            return ErrorKind(cause.strip().lower())
        except ValueError:
            return ErrorKind.UNKNOWN

    def classify(self, signal: FailureSignal | BaseException | str) -> ProcessingError:
        """Classify a failure signal, falling back to ``unknown``."""
        message = None
        if isinstance(signal, RecognitionFailure):
            signal = signal.signal
        elif isinstance(signal, BaseException):
            message = str(signal) or None
            signal = FailureSignal(cause=ErrorKind.UNKNOWN.value, detail=message)
        elif isinstance(signal, str):
            signal = FailureSignal(cause=signal or ErrorKind.UNKNOWN.value)

        kind = self.resolve_kind(signal.cause)
        template = ERROR_TEMPLATES[kind]
        if kind == ErrorKind.UNKNOWN and message:
            text = message
        else:
            text = template.message

        error = ProcessingError(
            kind=kind,
            message=text,
            suggestions=template.suggestions,
            confidence=round(self.rng.uniform(*CONFIDENCE_RANGE), 4),
            low_confidence_threshold=self.low_confidence_threshold,
        )
        logger.warning(
            f"Classified failure '{signal.cause}' as {kind.value} "
            f"(confidence {error.confidence:.2f}, stage: {signal.stage_label or 'n/a'})"
        )
        return error
