"""MIDI container writer.

Packages the metadata and element summary of a conversion into a standard
type 1 MIDI file: a conductor track with title, copyright, tempo, meter and
key, followed by one named track per derived TrackInfo. Note events come from
the recognition service and are outside the scope of this writer.
"""

import io
import logging

import mido
from mido import MetaMessage, Message, MidiFile, MidiTrack

from sheet2midi.config import get_settings
from sheet2midi.models.elements import DetectedElements, MidiMetadata

logger = logging.getLogger(__name__)

# General MIDI program numbers, zero-based
GM_PROGRAMS = {
    "Piano": 0,
    "Harpsichord": 6,
    "Organ": 19,
    "Guitar": 24,
    "Violin": 40,
    "Cello": 42,
    "Flute": 73,
}

MIDO_KEYS = frozenset(
    [
        "C", "G", "D", "A", "E", "B", "F#", "C#", "F", "Bb", "Eb", "Ab", "Db", "Gb", "Cb",
        "Am", "Em", "Bm", "F#m", "C#m", "G#m", "D#m", "A#m",
        "Dm", "Gm", "Cm", "Fm", "Bbm", "Ebm", "Abm",
    ]
)


def to_mido_key(key_signature: str) -> str | None:
    """Convert 'C Major' / 'F# minor' style names to mido key names."""
    parts = key_signature.split()
    if not parts:
        return None
    tonic = parts[0][0].upper() + parts[0][1:].replace("♯", "#").replace("♭", "b")
    mode = parts[1].lower() if len(parts) > 1 else "major"
    key = tonic + ("m" if mode.startswith("min") else "")
    return key if key in MIDO_KEYS else None


# set_tempo stores microseconds per beat in three bytes
MAX_TEMPO_US = 0xFFFFFF


def tempo_microseconds(bpm: int) -> int | None:
    """Microseconds per beat for ``bpm``, or None when it does not fit a set_tempo event."""
    tempo = mido.bpm2tempo(bpm)
    if not 0 < tempo <= MAX_TEMPO_US:
        return None
    return tempo


def parse_time_signature(time_signature: str) -> tuple[int, int] | None:
    numerator, _, denominator = time_signature.partition("/")
    num, den = int(numerator), int(denominator)
    # MIDI stores the numerator in one byte and the denominator as a power of two
    if num > 255 or den & (den - 1) or den.bit_length() - 1 > 255:
        return None
    return num, den


def _latin1(text: str) -> str:
    return text.encode("latin-1", "replace").decode("latin-1")


def build_conductor_track(metadata: MidiMetadata, elements: DetectedElements) -> MidiTrack:
    track = MidiTrack()
    track.append(MetaMessage("track_name", name=_latin1(metadata.title), time=0))
    track.append(MetaMessage("copyright", text=_latin1(metadata.copyright), time=0))
    track.append(MetaMessage("text", text=_latin1(f"Composer: {metadata.composer}"), time=0))
    track.append(MetaMessage("text", text=_latin1(metadata.software), time=0))

    if elements.tempo:
        tempo = tempo_microseconds(elements.tempo)
        if tempo:
            track.append(MetaMessage("set_tempo", tempo=tempo, time=0))
        else:
            logger.warning(f"Skipping tempo {elements.tempo} BPM: not encodable")

    if elements.time_signature:
        meter = parse_time_signature(elements.time_signature)
        if meter:
            track.append(
                MetaMessage("time_signature", numerator=meter[0], denominator=meter[1], time=0)
            )
        else:
            logger.warning(f"Skipping time signature {elements.time_signature}: not encodable")

    if elements.key_signature:
        key = to_mido_key(elements.key_signature)
        if key:
            track.append(MetaMessage("key_signature", key=key, time=0))
        else:
            logger.warning(f"Skipping key signature {elements.key_signature!r}: not encodable")

    if elements.tempo_marking:
        track.append(MetaMessage("marker", text=_latin1(elements.tempo_marking), time=0))
    return track


def write_midi(
    metadata: MidiMetadata, elements: DetectedElements, ticks_per_beat: int | None = None
) -> bytes:
    """Serialize the conversion into MIDI file bytes."""
    midi_file = MidiFile(type=1, ticks_per_beat=ticks_per_beat or get_settings().ticks_per_beat)
    midi_file.tracks.append(build_conductor_track(metadata, elements))

    for channel, info in enumerate(metadata.tracks):
        # channel 9 is reserved for percussion
        channel = channel if channel < 9 else channel + 1
        track = MidiTrack()
        track.append(MetaMessage("track_name", name=_latin1(info.name), time=0))
        track.append(MetaMessage("instrument_name", name=_latin1(info.instrument), time=0))
        program = GM_PROGRAMS.get(info.instrument, 0)
        track.append(Message("program_change", program=program, channel=channel % 16, time=0))
        midi_file.tracks.append(track)

    buffer = io.BytesIO()
    midi_file.save(file=buffer)
    return buffer.getvalue()


def read_midi(data: bytes) -> MidiFile:
    """Parse MIDI bytes, e.g. to inspect a result."""
    return MidiFile(file=io.BytesIO(data))
