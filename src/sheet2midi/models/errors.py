"""Error hierarchy, failure signals and error response models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ErrorKind(StrEnum):
    """Classified recognition failure kinds."""

    BLUR = "blur"
    NOTATION = "notation"
    FORMAT = "format"
    HANDWRITTEN = "handwritten"
    MULTIPLE_SIGNATURES = "multiple_signatures"
    UNKNOWN = "unknown"


class FailureSignal(BaseModel):
    """Raw failure indicator raised by a stage, before classification."""

    model_config = ConfigDict(frozen=True)

    cause: str = Field(..., min_length=1, description="Failure cause, usually an ErrorKind value")
    detail: str | None = Field(default=None, description="Stage-specific detail")
    stage_label: str | None = None


class ProcessingError(BaseModel):
    """Classified failure delivered as the terminal outcome of a failed job."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str = Field(..., min_length=1)
    suggestions: tuple[str, ...] = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1, description="Certainty of the classification")
    low_confidence_threshold: float = Field(default=0.5, ge=0, le=1, exclude=True)

    @computed_field
    @property
    def low_confidence(self) -> bool:
        return self.confidence < self.low_confidence_threshold


class Sheet2MidiError(Exception):
    """Base error for all Sheet2MIDI errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ValidationError(Sheet2MidiError):
    """Input validation errors (options, missing documents, bad requests)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class PipelineBusyError(Sheet2MidiError):
    """A job is already running on the controller."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="pipeline", details=details)


class RecognitionFailure(Sheet2MidiError):
    """Raised by a stage when the document cannot be recognized."""

    def __init__(self, signal: FailureSignal | str, details: dict | None = None):
        if isinstance(signal, str):
            signal = FailureSignal(cause=signal)
        super().__init__(signal.detail or signal.cause, component="recognition", details=details)
        self.signal = signal


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: Sheet2MidiError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
