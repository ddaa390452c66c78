"""Data models for Sheet2MIDI."""

from sheet2midi.models.elements import DetectedElements, MidiMetadata, TrackInfo
from sheet2midi.models.errors import (
    ErrorKind,
    ErrorResponse,
    FailureSignal,
    PipelineBusyError,
    ProcessingError,
    RecognitionFailure,
    Sheet2MidiError,
    ValidationError,
)
from sheet2midi.models.options import Document, ProcessingMode, ProcessingOptions
from sheet2midi.models.pipeline import (
    JobOutcome,
    JobSnapshot,
    JobState,
    JobStatus,
    Phase,
)
from sheet2midi.models.result import ProcessingResult

__all__ = [
    "DetectedElements",
    "Document",
    "ErrorKind",
    "ErrorResponse",
    "FailureSignal",
    "JobOutcome",
    "JobSnapshot",
    "JobState",
    "JobStatus",
    "MidiMetadata",
    "Phase",
    "PipelineBusyError",
    "ProcessingError",
    "ProcessingMode",
    "ProcessingOptions",
    "ProcessingResult",
    "RecognitionFailure",
    "Sheet2MidiError",
    "TrackInfo",
    "ValidationError",
]
