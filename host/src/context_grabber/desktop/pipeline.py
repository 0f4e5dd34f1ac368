"""
Desktop capture resolution: accessibility, then OCR, then metadata-only.

The tiers run strictly in order and the first one producing usable text
wins. Extraction failures are routine here; they are logged and treated as
empty text, so ``resolve_desktop_capture`` always returns a resolution.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..accessibility.profiles import AccessibilityExtractionProfile, accessibility_profile_for_app
from ..config import settings
from ..models.context import ContextPayload
from ..models.resolution import (
    DESKTOP_CAPTURE_ACCESSIBILITY,
    DESKTOP_CAPTURE_METADATA_ONLY,
    DESKTOP_CAPTURE_OCR,
    ERR_EXTENSION_UNAVAILABLE,
    CaptureResolution,
    ExtractionMethod,
    OCRCaptureResult,
)
from ..utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_DESKTOP_APP_NAME = "Desktop App"
DESKTOP_ORIGIN_ID = "desktop"

AccessibilityExtractor = Callable[[Optional[int], AccessibilityExtractionProfile], Optional[str]]
OCRExtractor = Callable[[Optional[int]], Awaitable[Optional[OCRCaptureResult]]]


class DesktopCaptureContext(BaseModel):
    """The application being captured."""

    model_config = ConfigDict(frozen=True)

    appName: Optional[str] = Field(None, description="Localized application name")
    bundleIdentifier: Optional[str] = Field(None, description="Application bundle id")


class DesktopCaptureDependencies:
    """
    Extraction backends for the desktop tiers.

    ``accessibility_extractor`` is synchronous and runs in a worker thread;
    ``ocr_extractor`` is a coroutine function.
    """

    def __init__(self, accessibility_extractor: AccessibilityExtractor, ocr_extractor: OCRExtractor):
        self.accessibility_extractor = accessibility_extractor
        self.ocr_extractor = ocr_extractor

    @classmethod
    def live(cls) -> "DesktopCaptureDependencies":
        """macOS Accessibility walker plus screenshot OCR."""
        from ..accessibility.macos import extract_focused_text
        from ..ocr.step import OCRCaptureStep

        return cls(
            accessibility_extractor=extract_focused_text,
            ocr_extractor=OCRCaptureStep().extract_text,
        )


def build_desktop_origin_url(bundle_identifier: Optional[str]) -> str:
    return f"app://{bundle_identifier or 'unknown'}"


def _desktop_payload(
    context: DesktopCaptureContext,
    full_text: str,
    warnings: Optional[List[str]] = None,
) -> ContextPayload:
    app_name = context.appName or DEFAULT_DESKTOP_APP_NAME
    return ContextPayload(
        source="desktop",
        originId=context.bundleIdentifier or DESKTOP_ORIGIN_ID,
        url=build_desktop_origin_url(context.bundleIdentifier),
        title=app_name,
        fullText=full_text,
        siteName=app_name,
        extractionWarnings=warnings or [],
    )


async def _accessibility_text(
    dependencies: DesktopCaptureDependencies,
    process_identifier: Optional[int],
    profile: AccessibilityExtractionProfile,
) -> str:
    try:
        text = await asyncio.to_thread(dependencies.accessibility_extractor, process_identifier, profile)
    except Exception as e:
        logger.warning(f"Accessibility extraction failed: {e}", exc_info=True)
        return ""
    return normalize_text(text)


async def _ocr_text(
    dependencies: DesktopCaptureDependencies,
    process_identifier: Optional[int],
    attempts: int,
) -> OCRCaptureResult:
    """First non-empty OCR text within ``attempts`` calls; keeps the latest confidence."""
    latest_confidence: Optional[float] = None

    for attempt in range(1, max(1, attempts) + 1):
        try:
            extracted = await dependencies.ocr_extractor(process_identifier)
        except Exception as e:
            logger.warning(f"OCR extraction attempt {attempt} failed: {e}", exc_info=True)
            extracted = None

        latest_confidence = extracted.confidence if extracted is not None else None
        normalized = normalize_text(extracted.text if extracted is not None else None)
        if normalized:
            return OCRCaptureResult(text=normalized, confidence=latest_confidence)

        logger.debug(f"OCR attempt {attempt}/{attempts} produced no text")

    return OCRCaptureResult(text="", confidence=latest_confidence)


async def resolve_desktop_capture(
    context: DesktopCaptureContext,
    *,
    accessibility_text_override: Optional[str] = None,
    ocr_text_override: Optional[str] = None,
    process_identifier: Optional[int] = None,
    dependencies: Optional[DesktopCaptureDependencies] = None,
    ocr_retry_attempts: Optional[int] = None,
) -> CaptureResolution:
    """
    Resolve a desktop capture through the accessibility/OCR/metadata tiers.

    Text overrides default to ``DESKTOP_AX_TEXT``/``DESKTOP_OCR_TEXT`` and,
    when set, replace the corresponding live extractor entirely.
    """
    if accessibility_text_override is None:
        accessibility_text_override = settings.DESKTOP_AX_TEXT
    if ocr_text_override is None:
        ocr_text_override = settings.DESKTOP_OCR_TEXT
    attempts = ocr_retry_attempts if ocr_retry_attempts is not None else settings.OCR_RETRY_ATTEMPTS

    profile = accessibility_profile_for_app(context.bundleIdentifier, context.appName)
    minimum_text_chars = profile.minimumTextChars

    dependencies = dependencies or DesktopCaptureDependencies.live()

    # Accessibility tier
    if accessibility_text_override is not None:
        accessibility_text = normalize_text(accessibility_text_override)
    else:
        accessibility_text = await _accessibility_text(dependencies, process_identifier, profile)

    if len(accessibility_text) >= minimum_text_chars:
        logger.info(
            f"Desktop capture via accessibility ({len(accessibility_text)} chars, "
            f"app={context.appName!r})"
        )
        return CaptureResolution(
            payload=_desktop_payload(context, accessibility_text),
            extractionMethod=ExtractionMethod.ACCESSIBILITY,
            transportStatus=DESKTOP_CAPTURE_ACCESSIBILITY,
        )

    if accessibility_text:
        ax_fallback_warning = (
            f"AX extraction below threshold ({len(accessibility_text)}/{minimum_text_chars} chars); "
            "used OCR fallback text."
        )
    else:
        ax_fallback_warning = "AX extraction unavailable; used OCR fallback text."

    # OCR tier
    if ocr_text_override is not None:
        ocr = OCRCaptureResult(text=normalize_text(ocr_text_override), confidence=None)
    else:
        ocr = await _ocr_text(dependencies, process_identifier, attempts)

    if ocr.text:
        if ocr.confidence is not None:
            ocr_warning = f"OCR confidence: {ocr.confidence:.2f}."
        else:
            ocr_warning = "OCR confidence unavailable."

        logger.info(f"Desktop capture via OCR ({len(ocr.text)} chars, app={context.appName!r})")
        return CaptureResolution(
            payload=_desktop_payload(context, ocr.text, [ax_fallback_warning, ocr_warning]),
            extractionMethod=ExtractionMethod.OCR,
            transportStatus=DESKTOP_CAPTURE_OCR,
            warning=ax_fallback_warning,
        )

    # Metadata-only tier
    if accessibility_text:
        fallback_warning = (
            f"AX extraction below threshold ({len(accessibility_text)}/{minimum_text_chars} chars) "
            "and OCR extraction unavailable."
        )
        warnings = [ax_fallback_warning, "OCR extraction unavailable."]
        excerpt = accessibility_text
    else:
        fallback_warning = "AX and OCR extraction unavailable."
        warnings = [fallback_warning]
        excerpt = " ".join([
            "No extractable text captured.",
            fallback_warning,
            "Open Accessibility and Screen Recording settings from the menu and retry.",
        ])

    logger.warning(f"Desktop capture degraded to metadata only: {fallback_warning}")
    return CaptureResolution(
        payload=_desktop_payload(context, excerpt, warnings),
        extractionMethod=ExtractionMethod.METADATA_ONLY,
        transportStatus=DESKTOP_CAPTURE_METADATA_ONLY,
        warning=fallback_warning,
        errorCode=ERR_EXTENSION_UNAVAILABLE,
    )
