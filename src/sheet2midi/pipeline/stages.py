"""Stage executors: the unit of work behind each catalog stage."""

import asyncio
import logging
import random
from typing import Protocol

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from sheet2midi.config import Settings, get_settings
from sheet2midi.documents.quality import check_image_quality
from sheet2midi.documents.validators import validate_document
from sheet2midi.models.elements import DetectedElements
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.pipeline.catalog import Stage
from sheet2midi.pipeline.eta import multiplier

logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 120
DEFAULT_KEY = "C Major"


class StageOutcome(BaseModel):
    """What a stage contributed to the job."""

    model_config = ConfigDict(frozen=True)

    elements: DetectedElements | None = None
    uncertain: tuple[str, ...] = Field(
        default_factory=tuple, description="Element fields this stage could not pin down"
    )


class StageContext:
    """Scratch space shared by the stages of one job and nothing else."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.image: np.ndarray | None = None


class StageExecutor(Protocol):
    """Performs the work of one stage.

    Implementations raise RecognitionFailure when the document cannot be
    recognized; any other exception is classified as an unknown failure.
    Anything one stage hands to a later one goes through ``context``, which
    belongs to a single job; an executor is shared by every job of its
    controller.
    """

    async def execute(
        self,
        index: int,
        stage: Stage,
        document: Document,
        options: ProcessingOptions,
        context: StageContext,
    ) -> StageOutcome: ...


class SimulatedStageExecutor:
    """Stand-in recognizer that waits out each stage's nominal duration.

    The upload and preprocessing stages run the real document checks; the
    remaining stages report the element values a typical piano score yields.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        check_documents: bool = True,
    ):
        self.settings = settings or get_settings()
        self.rng = rng or random.Random(self.settings.random_seed)
        self.check_documents = check_documents

    async def execute(self, index, stage, document, options, context):
        delay_ms = stage.nominal_duration_ms * self.settings.stage_time_scale
        # the upload stage is bound by transfer time, not recognition effort
        if index > 0:
            delay_ms *= multiplier(options.processing_mode)
        logger.debug(f"Running stage {index} '{stage.label}' ({delay_ms:.0f}ms)")
        await asyncio.sleep(delay_ms / 1000)

        handler = getattr(self, f"_stage_{index}", None)
        if handler is None:
            return StageOutcome()
        return handler(document, options, context)

    def _stage_0(self, document, options, context: StageContext) -> StageOutcome:
        if self.check_documents:
            context.image = validate_document(document, self.settings)
        return StageOutcome()

    def _stage_1(self, document, options, context: StageContext) -> StageOutcome:
        image, context.image = context.image, None
        if self.check_documents and image is not None:
            check_image_quality(
                image, self.settings.blur_threshold, self.settings.min_image_side_px
            )
        return StageOutcome()

    def _stage_2(self, document, options, context) -> StageOutcome:
        return StageOutcome(
            elements=DetectedElements(time_signature="4/4", clefs=("Treble", "Bass"))
        )

    def _stage_3(self, document, options: ProcessingOptions, context) -> StageOutcome:
        return StageOutcome(
            elements=DetectedElements(
                key_signature=options.preferred_key or DEFAULT_KEY,
                tempo=options.preferred_tempo or DEFAULT_TEMPO,
            )
        )

    def _stage_5(self, document, options, context) -> StageOutcome:
        return StageOutcome(
            elements=DetectedElements(
                note_count=self.rng.randint(50, 249),
                measures=self.rng.randint(16, 47),
            )
        )

    def _stage_6(self, document, options, context) -> StageOutcome:
        return StageOutcome(
            elements=DetectedElements(
                dynamics=("p", "mf", "f"),
                articulations=("staccato", "legato"),
            )
        )

    def _stage_7(self, document, options, context) -> StageOutcome:
        return StageOutcome(elements=DetectedElements(tempo_marking="Moderato"))
