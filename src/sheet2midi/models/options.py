"""Processing options and input document models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessingMode(StrEnum):
    """Recognition effort level; slower modes take proportionally longer."""

    STANDARD = "standard"
    ENHANCED = "enhanced"
    MANUAL_ASSIST = "manual_assist"


class ProcessingOptions(BaseModel):
    """User-specified conversion options, frozen once a job starts.

    The tempo and key preferences override what recognition detects.
    ``selected_pages``, ``include_chords``, ``include_lyrics`` and
    ``separate_tracks`` are recognition hints; the controller hands them to
    the stage executor untouched and logs them when a job is accepted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    processing_mode: ProcessingMode = Field(
        default=ProcessingMode.STANDARD, description="Recognition effort level"
    )
    preferred_tempo: int | None = Field(default=None, gt=0, description="Tempo override in BPM")
    preferred_key: str | None = Field(default=None, min_length=1, description="Key override")
    selected_pages: frozenset[int] | None = Field(
        default=None, description="Zero-based page indices to convert"
    )
    include_chords: bool = False
    include_lyrics: bool = False
    separate_tracks: bool = True

    @field_validator("selected_pages")
    @classmethod
    def validate_selected_pages(cls, v: frozenset[int] | None) -> frozenset[int] | None:
        if v is None:
            return v
        if not v:
            raise ValueError("selected_pages must not be empty when given")
        for page in v:
            if page < 0:
                raise ValueError(f"Page index must be non-negative, got {page}")
        return v


class Document(BaseModel):
    """An uploaded sheet music document."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1)
    content: bytes = Field(..., repr=False)
    content_type: str | None = None

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else ""

    @property
    def hint(self) -> str:
        """Lower-cased identifying text used for signature lookup."""
        return self.filename.lower()

    @property
    def size_bytes(self) -> int:
        return len(self.content)
