"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

from sheet2midi.models.elements import DetectedElements
from sheet2midi.models.errors import ErrorKind
from sheet2midi.models.options import ProcessingMode, ProcessingOptions

KEYS = ["C Major", "G Major", "F Major", "D minor", "E♭ Major", "B♭ minor"]
CLEFS = ["Treble", "Bass", "Alto"]


@st.composite
def generate_processing_options(draw):
    """Generate random valid ProcessingOptions."""
    return ProcessingOptions(
        processing_mode=draw(st.sampled_from(list(ProcessingMode))),
        preferred_tempo=draw(st.none() | st.integers(min_value=20, max_value=240)),
        preferred_key=draw(st.none() | st.sampled_from(KEYS)),
        include_chords=draw(st.booleans()),
        include_lyrics=draw(st.booleans()),
        separate_tracks=draw(st.booleans()),
    )


@st.composite
def generate_partial_elements(draw):
    """Generate DetectedElements with an arbitrary subset of fields present."""
    fields = {
        "time_signature": st.sampled_from(["2/4", "3/4", "4/4", "6/8", "12/8"]),
        "key_signature": st.sampled_from(KEYS),
        "tempo": st.integers(min_value=20, max_value=240),
        "tempo_marking": st.sampled_from(["Adagio", "Andante", "Moderato", "Allegro"]),
        "clefs": st.lists(st.sampled_from(CLEFS), min_size=1, max_size=3),
        "note_count": st.integers(min_value=0, max_value=5000),
        "measures": st.integers(min_value=0, max_value=400),
        "dynamics": st.lists(st.sampled_from(["pp", "p", "mf", "f", "ff"]), max_size=4),
        "articulations": st.lists(st.sampled_from(["staccato", "legato", "accent"]), max_size=3),
    }
    chosen = draw(st.sets(st.sampled_from(sorted(fields))))
    return DetectedElements(**{name: draw(fields[name]) for name in chosen})


@st.composite
def generate_failure_script(draw, stage_count=10):
    """Generate (fail_at, cause, flagged) for a ScriptedFailureSource."""
    fail_at = draw(st.none() | st.integers(min_value=0, max_value=stage_count - 1))
    cause = draw(st.sampled_from([k.value for k in ErrorKind] + ["paper jam", ""]))
    flagged = draw(
        st.lists(st.sampled_from(["dynamics", "articulations", "tempo_marking"]), max_size=2)
    )
    return fail_at, cause or "unknown", flagged
