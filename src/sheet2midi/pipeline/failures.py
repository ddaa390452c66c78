"""Injectable failure sources for the conversion pipeline."""

import logging
import random
from collections.abc import Iterable
from typing import Protocol

from sheet2midi.config import Settings, get_settings
from sheet2midi.models.elements import DetectedElements
from sheet2midi.models.errors import ErrorKind, FailureSignal
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.pipeline.catalog import Stage

logger = logging.getLogger(__name__)

# Causes the simulated recognizer fails with, in equal measure
SIMULATED_CAUSES = (ErrorKind.BLUR, ErrorKind.NOTATION, ErrorKind.HANDWRITTEN)

# Element fields the simulated recognizer is least sure about
UNCERTAIN_PRONE_FIELDS = ("dynamics", "articulations", "tempo_marking", "note_count")


class FailureSource(Protocol):
    """Decides whether a stage fails and which sections end up uncertain."""

    def stage_failure(
        self, index: int, stage: Stage, document: Document, options: ProcessingOptions
    ) -> FailureSignal | None: ...

    def flagged_sections(
        self, elements: DetectedElements, options: ProcessingOptions
    ) -> list[str]: ...


class NoFailures:
    """Failure source that never fails and never flags anything."""

    def stage_failure(self, index, stage, document, options):
        return None

    def flagged_sections(self, elements, options):
        return []


class RandomFailureSource:
    """Demonstration failure source with fixed failure probabilities.

    A job fails after its last stage with probability ``failure_rate``; a job
    that survives has one uncertain-prone section flagged with probability
    ``partial_failure_rate``.
    """

    def __init__(
        self,
        failure_rate: float | None = None,
        partial_failure_rate: float | None = None,
        rng: random.Random | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.failure_rate = settings.failure_rate if failure_rate is None else failure_rate
        self.partial_failure_rate = (
            settings.partial_failure_rate
            if partial_failure_rate is None
            else partial_failure_rate
        )
        self.rng = rng or random.Random(settings.random_seed)

    def stage_failure(self, index, stage, document, options):
        # only the final stage of a catalog reaches 100
        if stage.progress_weight < 100:
            return None
        if self.rng.random() >= self.failure_rate:
            return None
        cause = self.rng.choice(SIMULATED_CAUSES)
        logger.info(f"Injecting simulated {cause.value} failure at '{stage.label}'")
        return FailureSignal(cause=cause.value, stage_label=stage.label)

    def flagged_sections(self, elements, options):
        if self.rng.random() >= self.partial_failure_rate:
            return []
        present = elements.present_fields()
        candidates = [name for name in UNCERTAIN_PRONE_FIELDS if name in present]
        if not candidates:
            return []
        return [self.rng.choice(candidates)]


class ScriptedFailureSource:
    """Deterministic failure source: fail at a given stage and/or flag given sections."""

    def __init__(
        self,
        fail_at: int | None = None,
        cause: ErrorKind | str = ErrorKind.UNKNOWN,
        detail: str | None = None,
        flagged: Iterable[str] = (),
    ):
        self.fail_at = fail_at
        self.cause = str(cause)
        self.detail = detail
        self.flagged = list(flagged)

    def stage_failure(self, index, stage, document, options):
        if index != self.fail_at:
            return None
        return FailureSignal(cause=self.cause, detail=self.detail, stage_label=stage.label)

    def flagged_sections(self, elements, options):
        return list(self.flagged)
