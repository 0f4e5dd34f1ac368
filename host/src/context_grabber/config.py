"""Host configuration with environment variable support."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Capture engine settings with environment variable support.

    Every field is read from ``CONTEXT_GRABBER_<FIELD>``.
    Priority: ENV > .env.local > .env > defaults
    .env.local is gitignored for local overrides
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTEXT_GRABBER_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Native messaging bridge
    REPO_ROOT: Optional[str] = None  # Explicit checkout holding packages/extension-*
    BUN_BIN: Optional[str] = None  # Explicit bun binary for the bridge CLI
    CAPTURE_TIMEOUT_MS: int = 1200
    PING_TIMEOUT_MS: int = 800

    # Target override for testing/automation
    BROWSER_TARGET: Optional[str] = None  # "safari" or "chrome"

    # Desktop pipeline overrides (skip live AX/OCR when set)
    DESKTOP_AX_TEXT: Optional[str] = None
    DESKTOP_OCR_TEXT: Optional[str] = None

    # OCR
    OCR_RETRY_ATTEMPTS: int = 2
    SCREEN_CAPTURE_TIMEOUT_S: float = 1.5
    OCR_RECOGNITION_TIMEOUT_S: float = 10.0
    TESSERACT_LANG: str = "eng"


# Global settings instance
settings = Settings()
