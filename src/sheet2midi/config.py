"""Application configuration using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Sheet2MIDI configuration loaded from environment variables."""

    model_config = {"env_prefix": "SHEET2MIDI_", "env_file": ".env", "extra": "ignore"}

    # Software identity written into MIDI metadata
    software_name: str = "Sheet2MIDI"
    software_version: str = "2.0"

    # Upload constraints
    upload_max_size_mb: int = 25
    allowed_document_formats: list[str] = ["png", "jpg", "jpeg", "pdf", "bmp", "tif", "tiff"]

    # Stage timing: nominal durations are multiplied by this factor before waiting.
    # 0 turns the simulated stages into pure control flow.
    stage_time_scale: float = 1.0

    # Failure injection for the simulated recognizer
    failure_rate: float = 0.1
    partial_failure_rate: float = 0.15
    random_seed: int | None = None

    # Confidence policy
    low_confidence_threshold: float = 0.5
    partial_success_confidence: float = 0.65
    default_confidence: float = 0.85

    # Image quality
    blur_threshold: float = 50.0
    min_image_side_px: int = 200

    # MIDI output
    ticks_per_beat: int = 480
    default_instrument: str = "Piano"

    @property
    def software_tag(self) -> str:
        return f"{self.software_name} v{self.software_version}"


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
