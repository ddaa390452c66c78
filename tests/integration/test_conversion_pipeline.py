"""End-to-end tests: documents through validation, stages, and MIDI output."""

import random

import cv2
import mido
import numpy as np
import pytest

from sheet2midi.encoding.midi import read_midi
from sheet2midi.models.errors import ErrorKind
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.models.pipeline import JobStatus
from sheet2midi.pipeline.failures import RandomFailureSource
from sheet2midi.pipeline.finalize import EXPECTED_FIELDS
from tests.conftest import generate_sheet_png, run

pytestmark = pytest.mark.integration


def _jpeg_score() -> bytes:
    png = np.frombuffer(generate_sheet_png(seed=3), dtype=np.uint8)
    image = cv2.imdecode(png, cv2.IMREAD_GRAYSCALE)
    ok, encoded = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, 95])
    assert ok
    return encoded.tobytes()


def _meta(track, kind):
    return [msg for msg in track if msg.is_meta and msg.type == kind]


class TestConversionPipeline:
    def test_png_to_midi(self, make_controller, bach_document):
        options = ProcessingOptions(preferred_tempo=96, preferred_key="D minor")
        outcome = run(make_controller().submit(bach_document, options))
        assert outcome.status == JobStatus.SUCCESS

        midi = read_midi(outcome.result.midi_data)
        conductor = midi.tracks[0]
        assert _meta(conductor, "track_name")[0].name == "Two-Part Invention"
        tempo = _meta(conductor, "set_tempo")[0].tempo
        assert round(mido.tempo2bpm(tempo)) == 96
        assert _meta(conductor, "key_signature")[0].key == "Dm"
        time_sig = _meta(conductor, "time_signature")[0]
        assert (time_sig.numerator, time_sig.denominator) == (4, 4)
        assert [_meta(t, "track_name")[0].name for t in midi.tracks[1:]] == [
            "Treble Clef",
            "Bass Clef",
        ]

    def test_jpeg_document(self, make_controller):
        doc = Document(filename="mozart.jpg", content=_jpeg_score(), content_type="image/jpeg")
        outcome = run(make_controller().submit(doc))
        assert outcome.status == JobStatus.SUCCESS
        assert outcome.result.composer == "Wolfgang Amadeus Mozart"

    def test_pdf_document(self, make_controller, pdf_document):
        outcome = run(make_controller().submit(pdf_document))
        assert outcome.status == JobStatus.SUCCESS
        assert outcome.result.composer == "Frédéric Chopin"
        assert outcome.result.confidence == pytest.approx(0.88)

    def test_truncated_pdf(self, make_controller):
        doc = Document(filename="score.pdf", content=b"%PDF-1.4\n1 0 obj")
        outcome = run(make_controller().submit(doc))
        assert outcome.error.kind == ErrorKind.FORMAT

    def test_mismatched_extension(self, make_controller, sheet_png):
        doc = Document(filename="score.pdf", content=sheet_png)
        outcome = run(make_controller().submit(doc))
        assert outcome.error.kind == ErrorKind.FORMAT

    def test_undersized_image_is_blur(self, make_controller):
        doc = Document(filename="thumb.png", content=generate_sheet_png(width=160, height=120))
        controller = make_controller()
        outcome = run(controller.submit(doc))
        assert outcome.error.kind == ErrorKind.BLUR
        # upload passed, preprocessing did not
        assert controller.snapshot().progress == 5

    def test_blurry_photo(self, make_controller, blurry_document):
        outcome = run(make_controller().submit(blurry_document))
        assert outcome.error.kind == ErrorKind.BLUR
        assert outcome.result is None

    def test_random_failure_hits_final_stage(self, make_controller, sheet_document):
        source = RandomFailureSource(1.0, 0.0, rng=random.Random(11))
        controller = make_controller(failure_source=source)
        outcome = run(controller.submit(sheet_document))
        assert outcome.status == JobStatus.ERROR
        assert outcome.error.kind in {ErrorKind.BLUR, ErrorKind.NOTATION, ErrorKind.HANDWRITTEN}
        assert controller.snapshot().progress == 95

    def test_random_partial_success(self, make_controller, sheet_document):
        source = RandomFailureSource(0.0, 1.0, rng=random.Random(11))
        outcome = run(make_controller(failure_source=source).submit(sheet_document))
        assert outcome.status == JobStatus.PARTIAL_SUCCESS
        assert len(outcome.result.flagged_sections) == 1
        assert outcome.result.confidence == 0.65
        assert not set(EXPECTED_FIELDS) - set(
            outcome.result.detected_elements.present_fields()
        )

    def test_sequential_jobs(self, make_controller, sheet_document, pdf_document):
        controller = make_controller()
        outcomes = [run(controller.submit(doc)) for doc in (sheet_document, pdf_document)]
        assert [o.status for o in outcomes] == [JobStatus.SUCCESS, JobStatus.SUCCESS]
        assert controller.result.composer == "Frédéric Chopin"
