"""Conversion result model."""

from pydantic import BaseModel, ConfigDict, Field

from sheet2midi.models.elements import DetectedElements, MidiMetadata


class ProcessingResult(BaseModel):
    """Final artifact of a successful or partially successful job."""

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(..., min_length=1)
    midi_data: bytes = Field(..., repr=False)
    title: str
    composer: str
    processing_date: str = Field(..., description="ISO-8601 timestamp")
    confidence: float = Field(..., ge=0, le=1)
    detected_elements: DetectedElements
    metadata: MidiMetadata
    flagged_sections: tuple[str, ...] = Field(
        default_factory=tuple, description="Element fields recognized with low confidence"
    )

    @property
    def is_partial(self) -> bool:
        return bool(self.flagged_sections)
