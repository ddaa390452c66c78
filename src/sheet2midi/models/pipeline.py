"""Pipeline state, phase and progress models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from sheet2midi.models.elements import DetectedElements
from sheet2midi.models.errors import ProcessingError
from sheet2midi.models.options import ProcessingMode
from sheet2midi.models.result import ProcessingResult


class JobStatus(StrEnum):
    """Controller status; the last four are terminal."""

    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    PROCESSING = "processing"
    GENERATING = "generating"
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {JobStatus.SUCCESS, JobStatus.PARTIAL_SUCCESS, JobStatus.ERROR, JobStatus.CANCELLED}
)


class Phase(StrEnum):
    """Named groups of consecutive stages, in execution order."""

    UPLOAD = "upload"
    ANALYSIS = "analysis"
    PROCESSING = "processing"
    GENERATION = "generation"

    @property
    def status(self) -> JobStatus:
        return PHASE_STATUS[self]

    @property
    def order(self) -> int:
        return list(Phase).index(self)


PHASE_STATUS = {
    Phase.UPLOAD: JobStatus.UPLOADING,
    Phase.ANALYSIS: JobStatus.ANALYZING,
    Phase.PROCESSING: JobStatus.PROCESSING,
    Phase.GENERATION: JobStatus.GENERATING,
}


class JobState(BaseModel):
    """Mutable bookkeeping of the active job."""

    job_id: str = Field(..., min_length=1)
    status: JobStatus = Field(default=JobStatus.IDLE)
    progress: int = Field(default=0, ge=0, le=100)
    current_stage_label: str = Field(default="")
    processing_mode: ProcessingMode = Field(default=ProcessingMode.STANDARD)
    document_name: str | None = None
    estimated_total_ms: float = Field(default=0.0, ge=0)
    estimated_remaining_ms: float = Field(default=0.0, ge=0)
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    result: ProcessingResult | None = None
    error: ProcessingError | None = None


class JobSnapshot(BaseModel):
    """Immutable view of a job published at every stage boundary."""

    model_config = ConfigDict(frozen=True)

    job_id: str | None = None
    status: JobStatus = JobStatus.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    current_stage_label: str = ""
    estimated_total_ms: float = Field(default=0.0, ge=0)
    estimated_remaining_ms: float = Field(default=0.0, ge=0)
    detected_elements: DetectedElements = Field(default_factory=DetectedElements)
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    has_result: bool = False
    error: ProcessingError | None = None


class JobOutcome(BaseModel):
    """Terminal outcome of one submission."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: JobStatus
    result: ProcessingResult | None = None
    error: ProcessingError | None = None
