"""
macOS accessibility backend (pyobjc ApplicationServices).

The frameworks are imported lazily so the rest of the package stays
importable on hosts without pyobjc; in that case AX extraction reports no
text and desktop capture falls through to OCR.
"""

import logging
from typing import Any, List, Optional

from .profiles import AccessibilityExtractionProfile
from .walker import AccessibilityAPI, AccessibilityTreeWalker

logger = logging.getLogger(__name__)

AX_ERROR_SUCCESS = 0
FOCUSED_ELEMENT_ATTRIBUTE = "AXFocusedUIElement"
FOCUSED_WINDOW_ATTRIBUTE = "AXFocusedWindow"


class MacOSAccessibilityAPI(AccessibilityAPI):
    """
    Live AXUIElement access.

    Identity uses CFHash/CFEqual, which compare the underlying accessibility
    object rather than the Python proxy wrapping it.
    """

    def __init__(self) -> None:
        self._ax = None
        self._cf = None
        try:
            import ApplicationServices
            import CoreFoundation

            self._ax = ApplicationServices
            self._cf = CoreFoundation
        except ImportError:
            logger.warning("pyobjc not installed, AX not available")

    @property
    def available(self) -> bool:
        return self._ax is not None and self._cf is not None

    def is_process_trusted(self) -> bool:
        if not self.available:
            return False
        return bool(self._ax.AXIsProcessTrusted())

    def system_wide_element(self) -> Optional[Any]:
        if not self.available:
            return None
        return self._ax.AXUIElementCreateSystemWide()

    def application_element(self, process_identifier: int) -> Optional[Any]:
        if not self.available:
            return None
        return self._ax.AXUIElementCreateApplication(process_identifier)

    def read_attribute(self, element: Any, attribute: str) -> Any:
        if not self.available or element is None:
            return None
        try:
            err, value = self._ax.AXUIElementCopyAttributeValue(element, attribute, None)
        except Exception as e:
            logger.debug(f"AX read of {attribute} failed: {e}")
            return None
        if err != AX_ERROR_SUCCESS:
            return None
        return value

    def is_element(self, value: Any) -> bool:
        if not self.available or value is None:
            return False
        try:
            return self._cf.CFGetTypeID(value) == self._ax.AXUIElementGetTypeID()
        except Exception:
            # Not a CF object (plain str, number, ...)
            return False

    def element_hash(self, element: Any) -> int:
        return int(self._cf.CFHash(element))

    def elements_equal(self, first: Any, second: Any) -> bool:
        return bool(self._cf.CFEqual(first, second))


def focused_roots(api: MacOSAccessibilityAPI, process_identifier: Optional[int]) -> List[Any]:
    """
    Traversal seeds for a capture.

    System-wide focused element first, then the target application's focused
    element and focused window. Missing seeds are skipped.
    """
    roots: List[Any] = []

    system_wide = api.system_wide_element()
    if system_wide is not None:
        focused = api.element_attribute(system_wide, FOCUSED_ELEMENT_ATTRIBUTE)
        if focused is not None:
            roots.append(focused)

    if process_identifier is not None:
        application = api.application_element(process_identifier)
        if application is not None:
            for attribute in (FOCUSED_ELEMENT_ATTRIBUTE, FOCUSED_WINDOW_ATTRIBUTE):
                element = api.element_attribute(application, attribute)
                if element is not None:
                    roots.append(element)

    return roots


def extract_focused_text(
    process_identifier: Optional[int],
    profile: AccessibilityExtractionProfile,
    api: Optional[MacOSAccessibilityAPI] = None,
) -> Optional[str]:
    """Walk the focused UI of ``process_identifier`` and return its text."""
    api = api or MacOSAccessibilityAPI()
    if not api.available:
        return None

    if not api.is_process_trusted():
        logger.info("Accessibility permission not granted; skipping AX extraction")
        return None

    roots = focused_roots(api, process_identifier)
    if not roots:
        logger.debug(f"No focused accessibility elements for pid={process_identifier}")
        return None

    return AccessibilityTreeWalker(api).collect_text_from_roots(roots, profile)


def is_accessibility_trusted() -> bool:
    return MacOSAccessibilityAPI().is_process_trusted()
