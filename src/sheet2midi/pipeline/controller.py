"""Pipeline controller: runs one conversion job through the stage catalog."""

import logging
import random
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from sheet2midi.config import Settings, get_settings
from sheet2midi.models.errors import PipelineBusyError, ProcessingError, RecognitionFailure
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.models.pipeline import JobOutcome, JobSnapshot, JobState, JobStatus
from sheet2midi.models.result import ProcessingResult
from sheet2midi.pipeline.accumulator import ElementAccumulator
from sheet2midi.pipeline.catalog import Stage, StageCatalog
from sheet2midi.pipeline.classifier import ErrorClassifier
from sheet2midi.pipeline.eta import ETAEstimator
from sheet2midi.pipeline.failures import FailureSource, RandomFailureSource
from sheet2midi.pipeline.finalize import EXPECTED_FIELDS, build_result, identify
from sheet2midi.pipeline.stages import (
    SimulatedStageExecutor,
    StageContext,
    StageExecutor,
    StageOutcome,
)

logger = logging.getLogger(__name__)

ProgressListener = Callable[[JobSnapshot], None]


class Job:
    """Live, mutable aggregate of one submission."""

    def __init__(self, document: Document, options: ProcessingOptions):
        self.document = document
        self.options = options
        self.state = JobState(
            job_id=str(uuid.uuid4()),
            processing_mode=options.processing_mode,
            document_name=document.filename,
        )
        self.accumulator = ElementAccumulator()
        self.uncertain: list[str] = []
        self.context = StageContext(self.state.job_id)
        self.cancel_event = threading.Event()

    @property
    def job_id(self) -> str:
        return self.state.job_id

    def outcome(self) -> JobOutcome:
        return JobOutcome(
            job_id=self.job_id,
            status=self.state.status,
            result=self.state.result,
            error=self.state.error,
        )


class PipelineController:
    """Sequences the stages of a conversion job and reports its progress.

    One controller holds at most one job. Stages run strictly one after the
    other; every stage boundary is a suspension point at which progress, ETA
    and the detected elements are published and cancellation is checked.
    """

    def __init__(
        self,
        catalog: StageCatalog | None = None,
        executor: StageExecutor | None = None,
        failure_source: FailureSource | None = None,
        classifier: ErrorClassifier | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog or StageCatalog()
        self.eta = ETAEstimator(self.catalog)
        self.executor = executor or SimulatedStageExecutor(self.settings)
        self.failure_source = failure_source or RandomFailureSource(settings=self.settings)
        self.classifier = classifier or ErrorClassifier(
            rng=random.Random(self.settings.random_seed),
            low_confidence_threshold=self.settings.low_confidence_threshold,
        )
        self._lock = threading.Lock()
        self._job: Job | None = None
        self._listeners: list[ProgressListener] = []

    # --- observation ---

    @property
    def status(self) -> JobStatus:
        with self._lock:
            return self._job.state.status if self._job else JobStatus.IDLE

    @property
    def result(self) -> ProcessingResult | None:
        with self._lock:
            return self._job.state.result if self._job else None

    @property
    def error(self) -> ProcessingError | None:
        with self._lock:
            return self._job.state.error if self._job else None

    def snapshot(self) -> JobSnapshot:
        """Copy of the current job's observable state; idle defaults when no job."""
        with self._lock:
            job = self._job
            if job is None:
                return JobSnapshot()
            return self._snapshot(job)

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- lifecycle ---

    async def submit(
        self, document: Document, options: ProcessingOptions | None = None
    ) -> JobOutcome:
        """Run a document through the whole pipeline and return its outcome."""
        job = self.begin(document, options)
        return await self.run(job)

    def begin(self, document: Document, options: ProcessingOptions | None = None) -> Job:
        """Register a new job, rejecting it while another one is running."""
        options = options or ProcessingOptions()
        job = Job(document, options)
        with self._lock:
            if self._job is not None and not self._job.state.status.is_terminal:
                raise PipelineBusyError(
                    f"Job {self._job.job_id} is still {self._job.state.status.value}",
                    details={"job_id": self._job.job_id, "status": self._job.state.status.value},
                )
            now = datetime.now(UTC)
            total = self.eta.total_estimate(options.processing_mode)
            job.state.status = JobStatus.UPLOADING
            job.state.estimated_total_ms = total
            job.state.estimated_remaining_ms = total
            job.state.started_at = now
            job.state.updated_at = now
            self._job = job
        logger.info(
            f"Job {job.job_id} accepted: {document.filename} "
            f"({options.processing_mode.value}, ~{total / 1000:.1f}s)"
        )
        logger.debug(f"Job {job.job_id} options: {options.model_dump(exclude_defaults=True)}")
        self._publish(job)
        return job

    async def run(self, job: Job) -> JobOutcome:
        """Execute the stages of a job registered with begin()."""
        try:
            for index, stage in enumerate(self.catalog):
                if job.cancel_event.is_set():
                    return self._cancel(job)
                self._enter_stage(job, stage)

                try:
                    outcome = await self.executor.execute(
                        index, stage, job.document, job.options, job.context
                    )
                    signal = self.failure_source.stage_failure(
                        index, stage, job.document, job.options
                    )
                    if signal is not None:
                        raise RecognitionFailure(signal)
                except RecognitionFailure as e:
                    if job.cancel_event.is_set():
                        return self._cancel(job)
                    return self._fail(job, e)

                if job.cancel_event.is_set():
                    return self._cancel(job)
                self._complete_stage(job, index, stage, outcome)

            return self._finalize(job)

        except Exception as e:
            logger.exception(f"Job {job.job_id} failed unexpectedly")
            return self._fail(job, e)

    def cancel(self) -> bool:
        """Ask the running job to stop at its next stage boundary."""
        with self._lock:
            job = self._job
            if job is None or job.state.status.is_terminal:
                return False
            job.cancel_event.set()
        logger.info(f"Cancellation requested for job {job.job_id}")
        return True

    def reset(self) -> None:
        """Discard the current job, running or not, and return to idle."""
        with self._lock:
            job, self._job = self._job, None
        if job is not None:
            job.cancel_event.set()
            logger.info(f"Job {job.job_id} discarded")
        self._notify(JobSnapshot())

    # --- transitions ---

    def _enter_stage(self, job: Job, stage: Stage) -> None:
        with self._lock:
            job.state.status = stage.phase.status
            job.state.current_stage_label = stage.label
            job.state.updated_at = datetime.now(UTC)
        self._publish(job)

    def _complete_stage(self, job: Job, index: int, stage: Stage, outcome: StageOutcome) -> None:
        if outcome.elements is not None:
            job.accumulator.merge(outcome.elements)
        with self._lock:
            job.state.progress = stage.progress_weight
            job.state.estimated_remaining_ms = self.eta.remaining(
                job.options.processing_mode, index
            )
            job.state.updated_at = datetime.now(UTC)
            for name in outcome.uncertain:
                if name not in job.uncertain:
                    job.uncertain.append(name)
        logger.debug(f"Job {job.job_id}: '{stage.label}' done ({stage.progress_weight}%)")
        self._publish(job)

    def _finalize(self, job: Job) -> JobOutcome:
        elements = job.accumulator.snapshot()
        flagged = list(job.accumulator.missing(EXPECTED_FIELDS))
        flagged += job.uncertain
        flagged += self.failure_source.flagged_sections(elements, job.options)
        flagged = list(dict.fromkeys(flagged))

        identification = identify(job.document.hint, self.settings)
        result = build_result(identification, elements, flagged, self.settings)

        with self._lock:
            job.state.result = result
            job.state.status = JobStatus.PARTIAL_SUCCESS if flagged else JobStatus.SUCCESS
            job.state.estimated_remaining_ms = 0.0
            job.state.completed_at = datetime.now(UTC)
            job.state.updated_at = job.state.completed_at
        if flagged:
            logger.info(
                f"Job {job.job_id} partially succeeded, uncertain: {', '.join(flagged)}"
            )
        else:
            logger.info(
                f"Job {job.job_id} succeeded: '{result.title}' by {result.composer} "
                f"(confidence {result.confidence:.2f})"
            )
        self._publish(job)
        return job.outcome()

    def _fail(self, job: Job, exc: Exception) -> JobOutcome:
        error = self.classifier.classify(exc)
        with self._lock:
            job.state.error = error
            job.state.status = JobStatus.ERROR
            job.state.completed_at = datetime.now(UTC)
            job.state.updated_at = job.state.completed_at
        logger.warning(f"Job {job.job_id} failed: {error.kind.value} - {error.message}")
        self._publish(job)
        return job.outcome()

    def _cancel(self, job: Job) -> JobOutcome:
        with self._lock:
            job.state.status = JobStatus.CANCELLED
            job.state.completed_at = datetime.now(UTC)
            job.state.updated_at = job.state.completed_at
        logger.info(f"Job {job.job_id} cancelled at {job.state.progress}%")
        self._publish(job)
        return job.outcome()

    # --- publication ---

    def _snapshot(self, job: Job) -> JobSnapshot:
        state = job.state
        return JobSnapshot(
            job_id=state.job_id,
            status=state.status,
            progress=state.progress,
            current_stage_label=state.current_stage_label,
            estimated_total_ms=state.estimated_total_ms,
            estimated_remaining_ms=state.estimated_remaining_ms,
            detected_elements=job.accumulator.snapshot(),
            started_at=state.started_at,
            updated_at=state.updated_at,
            completed_at=state.completed_at,
            has_result=state.result is not None,
            error=state.error,
        )

    def _publish(self, job: Job) -> None:
        """Notify listeners, unless the job has been discarded by reset()."""
        with self._lock:
            if job is not self._job:
                return
            snapshot = self._snapshot(job)
        self._notify(snapshot)

    def _notify(self, snapshot: JobSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Progress listener failed")
