"""Accessibility tree text extraction."""

from .profiles import AccessibilityExtractionProfile, accessibility_profile_for_app
from .walker import (
    AccessibilityAPI,
    AccessibilityTraversal,
    AccessibilityTreeWalker,
    ElementIdentitySet,
    extract_string_values,
)

__all__ = [
    "AccessibilityAPI",
    "AccessibilityExtractionProfile",
    "AccessibilityTraversal",
    "AccessibilityTreeWalker",
    "ElementIdentitySet",
    "accessibility_profile_for_app",
    "extract_string_values",
]
