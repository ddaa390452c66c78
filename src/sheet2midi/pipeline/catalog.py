"""Ordered catalog of conversion stages."""

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field

from sheet2midi.models.pipeline import Phase


class Stage(BaseModel):
    """One discrete unit of pipeline work."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1)
    nominal_duration_ms: int = Field(..., gt=0)
    progress_weight: int = Field(..., ge=0, le=100, description="Cumulative progress when done")
    phase: Phase


DEFAULT_STAGES: tuple[Stage, ...] = tuple(
    Stage(label=label, nominal_duration_ms=ms, progress_weight=weight, phase=phase)
    for label, ms, weight, phase in [
        ("Uploading and validating file...", 800, 5, Phase.UPLOAD),
        ("Preprocessing and image enhancement...", 1200, 15, Phase.ANALYSIS),
        ("Detecting staff lines and layout...", 1500, 25, Phase.ANALYSIS),
        ("Identifying clefs and key signatures...", 1000, 35, Phase.ANALYSIS),
        ("Recognizing note heads and stems...", 2000, 55, Phase.PROCESSING),
        ("Analyzing rhythmic patterns...", 1500, 70, Phase.PROCESSING),
        ("Processing dynamics and articulations...", 1000, 80, Phase.PROCESSING),
        ("Extracting tempo and expression marks...", 800, 85, Phase.PROCESSING),
        ("Generating MIDI structure...", 1200, 95, Phase.GENERATION),
        ("Finalizing and optimizing...", 500, 100, Phase.GENERATION),
    ]
)


class StageCatalog:
    """Immutable, validated sequence of stages."""

    def __init__(self, stages: tuple[Stage, ...] | list[Stage] = DEFAULT_STAGES):
        stages = tuple(stages)
        self._validate(stages)
        self._stages = stages

    @staticmethod
    def _validate(stages: tuple[Stage, ...]) -> None:
        if not stages:
            raise ValueError("Stage catalog must contain at least one stage")
        for prev, cur in zip(stages, stages[1:]):
            if cur.progress_weight <= prev.progress_weight:
                raise ValueError(
                    f"Progress weights must strictly increase: '{cur.label}' "
                    f"({cur.progress_weight}) follows '{prev.label}' ({prev.progress_weight})"
                )
            if cur.phase.order < prev.phase.order:
                raise ValueError(
                    f"Stage '{cur.label}' in phase {cur.phase} follows phase {prev.phase}"
                )
        if stages[-1].progress_weight != 100:
            raise ValueError(
                f"Final stage must reach progress 100, got {stages[-1].progress_weight}"
            )

    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def stage(self, index: int) -> Stage:
        if not 0 <= index < len(self._stages):
            raise IndexError(f"Stage index {index} out of range [0, {len(self._stages)})")
        return self._stages[index]

    def phase_stages(self, phase: Phase) -> tuple[Stage, ...]:
        return tuple(s for s in self._stages if s.phase == phase)

    def total_nominal_duration_ms(self) -> int:
        return sum(s.nominal_duration_ms for s in self._stages)

    @property
    def last_index(self) -> int:
        return len(self._stages) - 1

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)
