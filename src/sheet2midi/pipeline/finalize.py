"""Finalization: identification, track derivation and result assembly."""

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from sheet2midi.config import Settings, get_settings
from sheet2midi.encoding.midi import write_midi
from sheet2midi.models.elements import DetectedElements, MidiMetadata, TrackInfo
from sheet2midi.models.result import ProcessingResult

DEFAULT_TITLE = "Sheet Music"
DEFAULT_COMPOSER = "Unknown"
DEFAULT_NOTE_COUNT = 100

# Fields a complete recognition is expected to fill in
EXPECTED_FIELDS = (
    "time_signature",
    "key_signature",
    "tempo",
    "clefs",
    "note_count",
    "measures",
)


class Identification(BaseModel):
    """Best-effort title and composer recognized from document hints."""

    model_config = ConfigDict(frozen=True)

    title: str
    composer: str
    confidence: float = Field(..., ge=0, le=1)


class Signature(BaseModel):
    model_config = ConfigDict(frozen=True)

    keywords: tuple[str, ...]
    identification: Identification


KNOWN_SIGNATURES: tuple[Signature, ...] = tuple(
    Signature(
        keywords=keywords,
        identification=Identification(title=title, composer=composer, confidence=confidence),
    )
    for keywords, title, composer, confidence in [
        (("amore", "piccioni"), "Amore Mio Aiutami", "Piero Piccioni", 0.95),
        (("mozart",), "Piano Sonata", "Wolfgang Amadeus Mozart", 0.92),
        (("bach",), "Two-Part Invention", "Johann Sebastian Bach", 0.90),
        (("chopin",), "Nocturne", "Frédéric Chopin", 0.88),
        (("beethoven",), "Piano Sonata", "Ludwig van Beethoven", 0.91),
    ]
)


def identify(hint: str, settings: Settings | None = None) -> Identification:
    """Match a document hint against known signatures; first match wins."""
    hint = hint.lower()
    for signature in KNOWN_SIGNATURES:
        if any(keyword in hint for keyword in signature.keywords):
            return signature.identification
    confidence = (settings or get_settings()).default_confidence
    return Identification(title=DEFAULT_TITLE, composer=DEFAULT_COMPOSER, confidence=confidence)


# clef -> (track name, percentage of the note count)
CLEF_TRACKS = {
    "Treble": ("Treble Clef", 60),
    "Bass": ("Bass Clef", 40),
}


def derive_tracks(elements: DetectedElements, instrument: str = "Piano") -> list[TrackInfo]:
    """One Treble track always, plus a Bass track when a bass clef was seen."""
    note_count = elements.note_count if elements.note_count is not None else DEFAULT_NOTE_COUNT
    clefs = ["Treble"]
    if elements.clefs and "Bass" in elements.clefs:
        clefs.append("Bass")
    tracks = []
    for clef in clefs:
        name, percent = CLEF_TRACKS[clef]
        tracks.append(
            TrackInfo(
                name=name,
                instrument=instrument,
                clef=clef,
                note_count=note_count * percent // 100,
            )
        )
    return tracks


def output_file_name(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", title.lower()) + ".mid"


def build_result(
    identification: Identification,
    elements: DetectedElements,
    flagged_sections: list[str] | tuple[str, ...] = (),
    settings: Settings | None = None,
    now: datetime | None = None,
) -> ProcessingResult:
    """Assemble the immutable result; flagged sections cap the confidence."""
    settings = settings or get_settings()
    now = now or datetime.now(UTC)
    processing_date = now.isoformat()

    metadata = MidiMetadata(
        title=identification.title,
        composer=identification.composer,
        copyright=f"© {now.year} - Processed by {settings.software_name}",
        processing_date=processing_date,
        software=settings.software_tag,
        tracks=tuple(derive_tracks(elements, settings.default_instrument)),
    )

    confidence = identification.confidence
    if flagged_sections:
        confidence = settings.partial_success_confidence

    return ProcessingResult(
        file_name=output_file_name(identification.title),
        midi_data=write_midi(metadata, elements, settings.ticks_per_beat),
        title=identification.title,
        composer=identification.composer,
        processing_date=processing_date,
        confidence=confidence,
        detected_elements=elements,
        metadata=metadata,
        flagged_sections=tuple(flagged_sections),
    )
