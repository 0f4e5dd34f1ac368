"""Desktop (non-browser) capture."""

from .permissions import (
    DesktopPermissionPane,
    desktop_fallback_description,
    desktop_permission_readiness,
    desktop_permission_settings_url,
    should_prompt_desktop_permissions,
)
from .pipeline import (
    DesktopCaptureContext,
    DesktopCaptureDependencies,
    build_desktop_origin_url,
    resolve_desktop_capture,
)

__all__ = [
    "DesktopCaptureContext",
    "DesktopCaptureDependencies",
    "DesktopPermissionPane",
    "build_desktop_origin_url",
    "desktop_fallback_description",
    "desktop_permission_readiness",
    "desktop_permission_settings_url",
    "resolve_desktop_capture",
    "should_prompt_desktop_permissions",
]
