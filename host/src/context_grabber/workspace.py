"""Frontmost application lookup (pyobjc AppKit)."""

import logging
from typing import Optional

from .models.context import FrontmostAppInfo

logger = logging.getLogger(__name__)


def frontmost_app() -> Optional[FrontmostAppInfo]:
    """Identity of the frontmost application, or None when unavailable."""
    try:
        from AppKit import NSWorkspace
    except ImportError:
        logger.warning("pyobjc AppKit not installed, frontmost app unknown")
        return None

    app = NSWorkspace.sharedWorkspace().frontmostApplication()
    if app is None:
        return None

    return FrontmostAppInfo(
        bundleIdentifier=app.bundleIdentifier(),
        appName=app.localizedName(),
        processIdentifier=int(app.processIdentifier()),
    )
