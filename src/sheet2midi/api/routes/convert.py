"""Conversion submission endpoint."""

import pydantic
from fastapi import APIRouter, BackgroundTasks, Depends, Form, UploadFile

from sheet2midi.api.dependencies import get_pipeline_controller
from sheet2midi.models.errors import ValidationError
from sheet2midi.models.options import Document, ProcessingOptions
from sheet2midi.pipeline.controller import PipelineController

router = APIRouter(prefix="/api/v1", tags=["convert"])


@router.post("/convert", status_code=202)
async def convert_document(
    file: UploadFile,
    background_tasks: BackgroundTasks,
    options: str = Form(default="{}"),
    controller: PipelineController = Depends(get_pipeline_controller),
):
    """Upload a sheet music document and start converting it."""
    if not file.filename:
        raise ValidationError("No filename provided")

    try:
        parsed = ProcessingOptions.model_validate_json(options)
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Invalid processing options",
            details={"errors": [err["msg"] for err in e.errors()]},
        )

    content = await file.read()
    document = Document(filename=file.filename, content=content, content_type=file.content_type)
    job = controller.begin(document, parsed)
    background_tasks.add_task(controller.run, job)

    return {
        "job_id": job.job_id,
        "status": job.state.status.value,
        "estimated_total_ms": job.state.estimated_total_ms,
        "message": "Conversion started",
    }
