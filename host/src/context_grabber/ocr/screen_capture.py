"""Screen capture for the OCR tier (Quartz window list + mss)."""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import mss
from PIL import Image

logger = logging.getLogger(__name__)

WINDOW_OWNER_PID = "kCGWindowOwnerPID"
WINDOW_LAYER = "kCGWindowLayer"
WINDOW_NUMBER = "kCGWindowNumber"
WINDOW_BOUNDS = "kCGWindowBounds"


def _load_quartz():
    try:
        import Quartz
    except ImportError:
        logger.warning("pyobjc Quartz not installed, window capture not available")
        return None
    return Quartz


def select_frontmost_window(
    window_list: Sequence[Mapping[str, Any]],
    process_identifier: Optional[int],
) -> Optional[Mapping[str, Any]]:
    """
    First normal-layer window in front-to-back order.

    When ``process_identifier`` is given, windows owned by other processes are
    skipped; windows that carry no owner pid are still eligible.
    """
    for window in window_list:
        owner = window.get(WINDOW_OWNER_PID)
        if process_identifier is not None and owner is not None and int(owner) != process_identifier:
            continue

        if int(window.get(WINDOW_LAYER) or 0) != 0:
            continue

        number = window.get(WINDOW_NUMBER)
        if number is None or int(number) < 0:
            continue

        return window

    return None


def frontmost_window_id_from_window_list(
    window_list: Sequence[Mapping[str, Any]],
    process_identifier: Optional[int],
) -> Optional[int]:
    window = select_frontmost_window(window_list, process_identifier)
    if window is None:
        return None
    return int(window[WINDOW_NUMBER])


def window_region(window: Mapping[str, Any]) -> Optional[Dict[str, int]]:
    """mss region dict for a window's bounds, or None for degenerate bounds."""
    bounds = window.get(WINDOW_BOUNDS)
    if not bounds:
        return None

    width = float(bounds.get("Width", 0))
    height = float(bounds.get("Height", 0))
    if width <= 0 or height <= 0:
        return None

    return {
        "left": int(math.floor(float(bounds.get("X", 0)))),
        "top": int(math.floor(float(bounds.get("Y", 0)))),
        "width": int(math.ceil(width)),
        "height": int(math.ceil(height)),
    }


def screen_recording_granted() -> Optional[bool]:
    """Screen Recording permission state, or None when it cannot be queried."""
    quartz = _load_quartz()
    if quartz is None or not hasattr(quartz, "CGPreflightScreenCaptureAccess"):
        return None
    return bool(quartz.CGPreflightScreenCaptureAccess())


class ScreenCapturer:
    """Grabs the frontmost window of a process, or the primary display."""

    def window_list(self) -> List[Mapping[str, Any]]:
        quartz = _load_quartz()
        if quartz is None:
            return []

        windows = quartz.CGWindowListCopyWindowInfo(
            quartz.kCGWindowListOptionOnScreenOnly | quartz.kCGWindowListExcludeDesktopElements,
            quartz.kCGNullWindowID,
        )
        return list(windows or [])

    def capture_window(self, process_identifier: Optional[int]) -> Optional[Image.Image]:
        window = select_frontmost_window(self.window_list(), process_identifier)
        if window is None:
            logger.debug(f"No on-screen window found for pid={process_identifier}")
            return None

        region = window_region(window)
        if region is None:
            return None

        logger.debug(f"Capturing window {window.get(WINDOW_NUMBER)} at {region}")
        return self._grab(region)

    def capture_display(self) -> Optional[Image.Image]:
        with mss.mss() as sct:
            # monitors[0] is the virtual desktop; [1] the primary display
            monitor = sct.monitors[1] if len(sct.monitors) > 1 else sct.monitors[0]
            return self._to_image(sct.grab(monitor))

    def _grab(self, region: Dict[str, int]) -> Image.Image:
        with mss.mss() as sct:
            return self._to_image(sct.grab(region))

    @staticmethod
    def _to_image(sct_img) -> Image.Image:
        return Image.frombytes(
            "RGB", (sct_img.width, sct_img.height), sct_img.bgra, "raw", "BGRX"
        )
