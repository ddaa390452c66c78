"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from sheet2midi.pipeline.controller import PipelineController


@lru_cache
def get_pipeline_controller() -> PipelineController:
    return PipelineController()
