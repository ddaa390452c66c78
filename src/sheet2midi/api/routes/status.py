"""Status and result endpoints."""

from fastapi import APIRouter, Depends

from sheet2midi.api.dependencies import get_pipeline_controller
from sheet2midi.models.errors import ValidationError
from sheet2midi.pipeline.controller import PipelineController

router = APIRouter(prefix="/api/v1", tags=["status"])


@router.get("/status")
async def get_status(
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Get the progress of the current conversion."""
    return controller.snapshot().model_dump(mode="json")


@router.get("/result")
async def get_result(
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Get the result of the finished conversion, without the MIDI bytes."""
    result = controller.result
    if result is None:
        raise ValidationError(
            f"No result available (current status: {controller.status.value})"
        )
    data = result.model_dump(mode="json", exclude={"midi_data"})
    data["status"] = controller.status.value
    data["midi_size_bytes"] = len(result.midi_data)
    return data
