"""Job control endpoints."""

from fastapi import APIRouter, Depends

from sheet2midi.api.dependencies import get_pipeline_controller
from sheet2midi.models.errors import ValidationError
from sheet2midi.pipeline.controller import PipelineController

router = APIRouter(prefix="/api/v1", tags=["process"])


@router.post("/cancel")
async def cancel_processing(
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Cancel the running conversion at its next stage boundary."""
    if not controller.cancel():
        raise ValidationError("No conversion is running")
    return {"status": "cancelling"}


@router.post("/reset")
async def reset_processing(
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Discard the current conversion and return to idle."""
    controller.reset()
    return {"status": controller.status.value}
