"""Shared test fixtures and test document generators."""

import asyncio
import random

import cv2
import numpy as np
import pytest

from sheet2midi.config import Settings
from sheet2midi.models.elements import DetectedElements
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.pipeline.classifier import ErrorClassifier
from sheet2midi.pipeline.controller import PipelineController
from sheet2midi.pipeline.failures import NoFailures
from sheet2midi.pipeline.stages import SimulatedStageExecutor


def generate_sheet_png(width: int = 400, height: int = 300, seed: int = 0) -> bytes:
    """Generate a sharp, staff-like PNG: white page with black lines and noise blobs."""
    rng = np.random.default_rng(seed)
    page = np.full((height, width), 255, dtype=np.uint8)
    for y in range(40, height - 40, 12):
        page[y, 20 : width - 20] = 0
    for _ in range(60):
        x = int(rng.integers(30, width - 30))
        y = int(rng.integers(30, height - 30))
        cv2.ellipse(page, (x, y), (5, 4), -20, 0, 360, 0, -1)
    ok, encoded = cv2.imencode(".png", page)
    assert ok
    return encoded.tobytes()


def generate_blurry_png(width: int = 400, height: int = 300) -> bytes:
    """Generate a featureless gray PNG that no recognizer could read."""
    page = np.full((height, width), 180, dtype=np.uint8)
    ok, encoded = cv2.imencode(".png", page)
    assert ok
    return encoded.tobytes()


def generate_pdf() -> bytes:
    """Minimal single-page PDF."""
    return (
        b"%PDF-1.4\n1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        b"2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj\n"
        b"3 0 obj << /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >> endobj\n"
        b"trailer << /Root 1 0 R >>\n%%EOF\n"
    )


def run(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def fast_settings():
    """Settings with instantaneous stages and no random failures."""
    return Settings(stage_time_scale=0.0, failure_rate=0.0, partial_failure_rate=0.0)


@pytest.fixture
def sheet_png():
    return generate_sheet_png()


@pytest.fixture
def sheet_document(sheet_png):
    return Document(filename="score.png", content=sheet_png, content_type="image/png")


@pytest.fixture
def bach_document(sheet_png):
    return Document(filename="bach_invention_1.png", content=sheet_png, content_type="image/png")


@pytest.fixture
def blurry_document():
    return Document(filename="photo.png", content=generate_blurry_png(), content_type="image/png")


@pytest.fixture
def pdf_document():
    return Document(filename="chopin.pdf", content=generate_pdf(), content_type="application/pdf")


@pytest.fixture
def standard_options():
    return ProcessingOptions()


@pytest.fixture
def make_controller(fast_settings):
    """Build a controller with instantaneous, seeded, failure-free defaults."""

    def _make(failure_source=None, executor=None, check_documents=True, catalog=None):
        return PipelineController(
            catalog=catalog,
            executor=executor
            or SimulatedStageExecutor(
                fast_settings, rng=random.Random(7), check_documents=check_documents
            ),
            failure_source=failure_source or NoFailures(),
            classifier=ErrorClassifier(
                rng=random.Random(7),
                low_confidence_threshold=fast_settings.low_confidence_threshold,
            ),
            settings=fast_settings,
        )

    return _make


@pytest.fixture
def complete_elements():
    return DetectedElements(
        time_signature="4/4",
        key_signature="C Major",
        tempo=120,
        tempo_marking="Moderato",
        clefs=("Treble", "Bass"),
        note_count=150,
        measures=32,
        dynamics=("p", "mf", "f"),
        articulations=("staccato", "legato"),
    )
