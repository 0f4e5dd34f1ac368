"""Desktop capture permission reporting (read-only)."""

from enum import Enum
from typing import Callable, Optional

from ..models.resolution import CaptureResolution, DesktopPermissionReadiness, ExtractionMethod

SETTINGS_URL_BASE = "x-apple.systempreferences:com.apple.preference.security"


class DesktopPermissionPane(str, Enum):
    """System Settings privacy panes the desktop tiers depend on."""
    ACCESSIBILITY = "accessibility"
    SCREEN_RECORDING = "screen_recording"

    @property
    def privacy_anchor(self) -> str:
        if self == DesktopPermissionPane.ACCESSIBILITY:
            return "Privacy_Accessibility"
        return "Privacy_ScreenCapture"

    @property
    def display_name(self) -> str:
        if self == DesktopPermissionPane.ACCESSIBILITY:
            return "Accessibility"
        return "Screen Recording"


def desktop_permission_settings_url(pane: DesktopPermissionPane) -> str:
    return f"{SETTINGS_URL_BASE}?{pane.privacy_anchor}"


def _live_accessibility_trusted() -> bool:
    from ..accessibility.macos import is_accessibility_trusted

    return is_accessibility_trusted()


def _live_screen_recording_granted() -> Optional[bool]:
    from ..ocr.screen_capture import screen_recording_granted

    return screen_recording_granted()


def desktop_permission_readiness(
    accessibility_trusted: Optional[Callable[[], bool]] = None,
    screen_recording_granted: Optional[Callable[[], Optional[bool]]] = None,
) -> DesktopPermissionReadiness:
    """Query permission state; providers default to the live macOS checks."""
    accessibility_trusted = accessibility_trusted or _live_accessibility_trusted
    screen_recording_granted = screen_recording_granted or _live_screen_recording_granted
    return DesktopPermissionReadiness(
        accessibilityTrusted=accessibility_trusted(),
        screenRecordingGranted=screen_recording_granted(),
    )


def should_prompt_desktop_permissions(
    resolution: CaptureResolution,
    readiness: DesktopPermissionReadiness,
) -> bool:
    """
    Whether the user should be pointed at System Settings.

    Only desktop captures that degraded to OCR or metadata-only qualify, and
    only while a permission is actually missing. An unknown screen recording
    state does not count as missing.
    """
    if resolution.payload.source != "desktop":
        return False

    if resolution.extractionMethod not in (ExtractionMethod.OCR, ExtractionMethod.METADATA_ONLY):
        return False

    missing_accessibility = not readiness.accessibilityTrusted
    missing_screen_recording = readiness.screenRecordingGranted is False
    return missing_accessibility or missing_screen_recording


def desktop_fallback_description(extraction_method: ExtractionMethod) -> str:
    if extraction_method == ExtractionMethod.OCR:
        return "This capture fell back to OCR text extraction."
    if extraction_method == ExtractionMethod.METADATA_ONLY:
        return "This capture fell back to metadata-only."
    return "This capture used a desktop fallback path."
