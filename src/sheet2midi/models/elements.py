"""Detected musical elements and MIDI metadata models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DetectedElements(BaseModel):
    """Structural summary of the recognized music, filled in stage by stage."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    time_signature: str | None = Field(default=None, description="Meter, e.g. '4/4'")
    key_signature: str | None = Field(default=None, description="Key, e.g. 'C Major'")
    tempo: int | None = Field(default=None, gt=0, description="Tempo in BPM")
    tempo_marking: str | None = Field(default=None, description="Expression, e.g. 'Moderato'")
    clefs: tuple[str, ...] | None = None
    note_count: int | None = Field(default=None, ge=0)
    measures: int | None = Field(default=None, ge=0)
    dynamics: tuple[str, ...] | None = None
    articulations: tuple[str, ...] | None = None

    @field_validator("time_signature")
    @classmethod
    def validate_time_signature(cls, v: str | None) -> str | None:
        if v is None:
            return v
        numerator, slash, denominator = v.partition("/")
        if not slash or not numerator.isdigit() or not denominator.isdigit():
            raise ValueError(f"Time signature must look like '3/4', got {v!r}")
        if int(numerator) <= 0 or int(denominator) <= 0:
            raise ValueError(f"Time signature parts must be positive, got {v!r}")
        return v

    @field_validator("clefs")
    @classmethod
    def validate_clefs(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if v is None:
            return v
        # keep first-detection order, drop repeats
        return tuple(dict.fromkeys(v))

    def present_fields(self) -> dict:
        """Fields that carry a value."""
        return self.model_dump(exclude_none=True)


class TrackInfo(BaseModel):
    """One output MIDI track, derived from the detected clefs."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    instrument: str = Field(..., min_length=1)
    clef: str = Field(..., min_length=1)
    note_count: int = Field(..., ge=0)


class MidiMetadata(BaseModel):
    """Descriptive metadata written alongside the MIDI data."""

    model_config = ConfigDict(frozen=True)

    title: str
    composer: str
    copyright: str
    processing_date: str = Field(..., description="ISO-8601 timestamp")
    software: str
    tracks: tuple[TrackInfo, ...] = Field(default_factory=tuple)
