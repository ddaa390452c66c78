"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sheet2midi.api.middleware import sheet2midi_error_handler
from sheet2midi.api.routes import convert, download, process, status
from sheet2midi.config import get_settings
from sheet2midi.models.errors import Sheet2MidiError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.software_name,
        description="Sheet music to MIDI conversion pipeline",
        version=settings.software_version,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(Sheet2MidiError, sheet2midi_error_handler)

    # Routes
    app.include_router(convert.router)
    app.include_router(process.router)
    app.include_router(status.router)
    app.include_router(download.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": settings.software_version}

    return app


app = create_app()
