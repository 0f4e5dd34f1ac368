"""Browser target detection and extension capture."""

from .detection import (
    BrowserKind,
    BrowserTarget,
    chromium_app_name,
    detect_browser_target,
    parse_target_override,
    resolve_effective_frontmost_app,
)
from .pipeline import (
    BrowserCaptureResolver,
    build_capture_request,
    capture_browser_with_fallback,
    create_browser_metadata_fallback_resolution,
    create_metadata_only_browser_payload,
    resolve_browser_capture,
)

__all__ = [
    "BrowserCaptureResolver",
    "BrowserKind",
    "BrowserTarget",
    "build_capture_request",
    "capture_browser_with_fallback",
    "chromium_app_name",
    "create_browser_metadata_fallback_resolution",
    "create_metadata_only_browser_payload",
    "detect_browser_target",
    "parse_target_override",
    "resolve_browser_capture",
    "resolve_effective_frontmost_app",
]
