"""Capture resolution models produced by the engine."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .context import ContextPayload

ERR_TIMEOUT = "ERR_TIMEOUT"
ERR_PROTOCOL_VERSION = "ERR_PROTOCOL_VERSION"
ERR_EXTENSION_UNAVAILABLE = "ERR_EXTENSION_UNAVAILABLE"

DESKTOP_CAPTURE_ACCESSIBILITY = "desktop_capture_accessibility"
DESKTOP_CAPTURE_OCR = "desktop_capture_ocr"
DESKTOP_CAPTURE_METADATA_ONLY = "desktop_capture_metadata_only"


class ExtractionMethod(str, Enum):
    """Tier that produced the payload."""
    BROWSER_EXTENSION = "browser_extension"
    ACCESSIBILITY = "accessibility"
    OCR = "ocr"
    METADATA_ONLY = "metadata_only"


class CaptureResolution(BaseModel):
    """The engine's single output: a payload plus how it was obtained."""

    model_config = ConfigDict(frozen=True)

    payload: ContextPayload = Field(..., description="Captured content")
    extractionMethod: ExtractionMethod = Field(..., description="Tier that produced the payload")
    transportStatus: str = Field(..., description="Structured status, e.g. safari_extension_ok")
    warning: Optional[str] = Field(None, description="Why a degraded path was used")
    errorCode: Optional[str] = Field(None, description="Error code for metadata-only results")

    @model_validator(mode="after")
    def _error_implies_metadata_only(self) -> "CaptureResolution":
        if self.errorCode is not None and self.extractionMethod != ExtractionMethod.METADATA_ONLY:
            raise ValueError("errorCode is only valid for metadata_only resolutions")
        return self

    def to_wire(self) -> dict:
        """JSON-ready dict with protocol field names."""
        return self.model_dump(mode="json", by_alias=True)


class OCRCaptureResult(BaseModel):
    """Text recognized from one screenshot."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: Optional[float] = Field(None, description="Mean per-line confidence (0-1)")


class DesktopPermissionReadiness(BaseModel):
    """Current state of the permissions the desktop tiers depend on."""

    model_config = ConfigDict(frozen=True)

    accessibilityTrusted: bool
    screenRecordingGranted: Optional[bool] = None
