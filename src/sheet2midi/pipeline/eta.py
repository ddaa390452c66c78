"""Completion time estimates for a stage catalog."""

from sheet2midi.models.options import ProcessingMode
from sheet2midi.pipeline.catalog import StageCatalog

MODE_MULTIPLIERS: dict[ProcessingMode, float] = {
    ProcessingMode.STANDARD: 1.0,
    ProcessingMode.ENHANCED: 1.5,
    ProcessingMode.MANUAL_ASSIST: 2.0,
}


def multiplier(mode: ProcessingMode | str) -> float:
    """Time multiplier applied to nominal stage durations."""
    return MODE_MULTIPLIERS[ProcessingMode(mode)]


class ETAEstimator:
    """Turns nominal stage durations into total and remaining estimates (ms)."""

    def __init__(self, catalog: StageCatalog):
        self.catalog = catalog
        # prefix sums of nominal durations, index i covers stages 0..i
        self._completed: list[int] = []
        running = 0
        for stage in catalog:
            running += stage.nominal_duration_ms
            self._completed.append(running)

    def total_estimate(self, mode: ProcessingMode | str) -> float:
        return self.catalog.total_nominal_duration_ms() * multiplier(mode)

    def remaining(self, mode: ProcessingMode | str, completed_index: int) -> float:
        """Estimated time left once stage ``completed_index`` has finished."""
        if not 0 <= completed_index < len(self._completed):
            raise IndexError(
                f"Stage index {completed_index} out of range [0, {len(self._completed)})"
            )
        if completed_index == self.catalog.last_index:
            return 0.0
        done = self._completed[completed_index] * multiplier(mode)
        return max(0.0, self.total_estimate(mode) - done)

    def stage_estimate(self, mode: ProcessingMode | str, index: int) -> float:
        """Expected duration of a single stage under ``mode``."""
        return self.catalog.stage(index).nominal_duration_ms * multiplier(mode)
