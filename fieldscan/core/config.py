"""Application configuration settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Field Scan"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # API
    api_v1_prefix: str = "/api/v1"

    # Rendering
    render_scale: float = 1.5
    max_concurrent_pages: int = 4

    # Text recognition
    ocr_language: str = "eng"
    ocr_timeout_seconds: float = 30.0
    tesseract_cmd: str | None = None

    # Label / blank-line detection
    label_offset_px: float = 10.0
    label_field_width: float = 200.0
    label_field_height: float = 18.0
    blank_line_min_underscores: int = 5
    blank_line_field_height: float = 18.0

    # Horizontal line detection
    line_dark_threshold: int = 120
    line_min_length_px: int = 40
    line_min_dark_ratio: float = 0.7
    line_max_gap_px: int = 4
    line_min_width: float = 30.0
    line_max_width: float = 400.0
    line_field_height: float = 18.0

    # Checkbox pattern detection
    checkbox_detection_enabled: bool = True
    checkbox_sizes: list[int] = [10, 12, 14, 16, 18]
    checkbox_dark_threshold: int = 100
    checkbox_light_threshold: int = 220
    checkbox_isolation_light_threshold: int = 200
    checkbox_isolation_buffer: int = 3
    checkbox_min_dark_edges: int = 6
    checkbox_min_light_center: int = 2
    checkbox_isolation_min_ratio: float = 0.7
    checkbox_perimeter_min_ratio: float = 0.7
    checkbox_score_threshold: float = 0.8
    checkbox_high_score: float = 0.9
    checkbox_dedup_cell_px: int = 5

    # Fusion
    merge_tolerance: float = 3.0
    text_min_width: float = 20.0
    text_max_width: float = 500.0
    text_min_height: float = 5.0
    text_max_height: float = 50.0
    box_min_size: float = 5.0
    box_max_size: float = 40.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
