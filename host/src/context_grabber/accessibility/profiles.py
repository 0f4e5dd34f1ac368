"""Per-application accessibility extraction profiles."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..utils.text_utils import deduplicated

MINIMUM_ACCESSIBILITY_TEXT_CHARS = 240
DEFAULT_TRAVERSAL_DEPTH = 2
DEFAULT_TRAVERSAL_MAX_ELEMENTS = 96

DEFAULT_TEXT_ATTRIBUTES = [
    "AXSelectedText",
    "AXValue",
    "AXDescription",
    "AXTitle",
    "AXHelp",
    "AXPlaceholderValue",
    "AXLabelValue",
]

DEFAULT_CHILD_ATTRIBUTES = [
    "AXChildren",
    "AXVisibleChildren",
    "AXRows",
    "AXColumns",
    "AXContents",
]

DENSE_EDITOR_BUNDLE_PREFIXES = (
    "com.apple.dt.xcode",
    "com.jetbrains.",
    "com.microsoft.vscode",
    "com.microsoft.vscodeinsiders",
    "org.gnu.emacs",
)

TERMINAL_BUNDLE_IDENTIFIERS = frozenset({
    "com.apple.terminal",
    "com.googlecode.iterm2",
    "dev.warp.warp-stable",
})

TERMINAL_APP_NAME_HINTS = ("terminal", "iterm", "warp")


class AccessibilityExtractionProfile(BaseModel):
    """Traversal limits and attribute sets for one application."""

    model_config = ConfigDict(frozen=True)

    minimumTextChars: int = Field(..., description="AX text needed to skip OCR")
    textAttributes: List[str] = Field(..., description="Attributes read for text, in order")
    childAttributes: List[str] = Field(..., description="Attributes expanded as children")
    traversalDepth: int = Field(..., description="Deepest level that is still expanded")
    traversalMaxElements: int = Field(..., description="Hard cap on visited elements")


def is_dense_text_editor(bundle_identifier: Optional[str]) -> bool:
    normalized = (bundle_identifier or "").lower()
    return any(normalized.startswith(prefix) for prefix in DENSE_EDITOR_BUNDLE_PREFIXES)


def is_terminal(bundle_identifier: Optional[str], app_name: Optional[str]) -> bool:
    normalized_bundle = (bundle_identifier or "").lower()
    normalized_name = (app_name or "").lower()
    return normalized_bundle in TERMINAL_BUNDLE_IDENTIFIERS or any(
        hint in normalized_name for hint in TERMINAL_APP_NAME_HINTS
    )


def accessibility_profile_for_app(
    bundle_identifier: Optional[str],
    app_name: Optional[str],
) -> AccessibilityExtractionProfile:
    """
    Select the extraction profile for an application.

    Dense editors and terminals expose a lot of text in deep trees, so they
    get deeper/wider traversal, extra document attributes and a lower
    threshold. Everything else uses the default profile.
    """
    minimum_text_chars = MINIMUM_ACCESSIBILITY_TEXT_CHARS
    traversal_depth = DEFAULT_TRAVERSAL_DEPTH
    traversal_max_elements = DEFAULT_TRAVERSAL_MAX_ELEMENTS
    text_attributes = list(DEFAULT_TEXT_ATTRIBUTES)

    if is_dense_text_editor(bundle_identifier):
        minimum_text_chars = 220
        traversal_depth = 3
        traversal_max_elements = 160
        text_attributes.extend(["AXDocument", "AXFilename", "AXURL", "AXRoleDescription"])

    if is_terminal(bundle_identifier, app_name):
        minimum_text_chars = 180
        traversal_depth = 3
        traversal_max_elements = max(traversal_max_elements, 128)
        text_attributes.extend(["AXDocument", "AXRoleDescription"])

    return AccessibilityExtractionProfile(
        minimumTextChars=minimum_text_chars,
        textAttributes=deduplicated(text_attributes),
        childAttributes=list(DEFAULT_CHILD_ATTRIBUTES),
        traversalDepth=traversal_depth,
        traversalMaxElements=traversal_max_elements,
    )
