"""Download endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from sheet2midi.api.dependencies import get_pipeline_controller
from sheet2midi.models.errors import ValidationError
from sheet2midi.pipeline.controller import PipelineController

router = APIRouter(prefix="/api/v1", tags=["download"])


@router.get("/download")
async def download_output(
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Download the generated MIDI file."""
    result = controller.result
    if result is None:
        raise ValidationError(
            f"Conversion is not complete (current status: {controller.status.value})"
        )

    return Response(
        content=result.midi_data,
        media_type="audio/midi",
        headers={"Content-Disposition": f'attachment; filename="{result.file_name}"'},
    )
