"""Browser target detection from the frontmost application identity."""

import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..models.context import FrontmostAppInfo

logger = logging.getLogger(__name__)

SAFARI_BUNDLE_IDENTIFIERS = frozenset({
    "com.apple.Safari",
    "com.apple.SafariTechnologyPreview",
})

# Chromium bundle id -> AppleScript application name
CHROMIUM_BUNDLE_IDENTIFIERS: Dict[str, str] = {
    "com.google.Chrome": "Google Chrome",
    "com.google.Chrome.canary": "Google Chrome Canary",
    "company.thebrowser.Browser": "Arc",
    "com.brave.Browser": "Brave Browser",
    "com.brave.Browser.beta": "Brave Browser Beta",
    "com.brave.Browser.nightly": "Brave Browser Nightly",
    "com.microsoft.edgemac": "Microsoft Edge",
    "com.microsoft.edgemac.Beta": "Microsoft Edge Beta",
    "com.microsoft.edgemac.Dev": "Microsoft Edge Dev",
    "com.microsoft.edgemac.Canary": "Microsoft Edge Canary",
    "com.vivaldi.Vivaldi": "Vivaldi",
    "com.operasoftware.Opera": "Opera",
    "com.operasoftware.OperaGX": "Opera GX",
}

DEFAULT_CHROMIUM_APP_NAME = "Google Chrome"


def chromium_app_name(bundle_identifier: Optional[str]) -> str:
    """AppleScript name for a Chromium bundle id, defaulting to Google Chrome."""
    if not bundle_identifier:
        return DEFAULT_CHROMIUM_APP_NAME
    return CHROMIUM_BUNDLE_IDENTIFIERS.get(bundle_identifier, DEFAULT_CHROMIUM_APP_NAME)


class BrowserKind(str, Enum):
    """Browser target variants."""
    SAFARI = "safari"
    CHROME = "chrome"
    UNSUPPORTED = "unsupported"


class BrowserTarget(BaseModel):
    """
    Which capture path a request takes.

    ``kind`` is the variant tag; ``appName``/``bundleIdentifier`` are only
    meaningful for UNSUPPORTED targets (desktop capture).
    """

    model_config = ConfigDict(frozen=True)

    kind: BrowserKind
    appName: Optional[str] = None
    bundleIdentifier: Optional[str] = None

    @classmethod
    def safari(cls) -> "BrowserTarget":
        return cls(kind=BrowserKind.SAFARI)

    @classmethod
    def chrome(cls) -> "BrowserTarget":
        return cls(kind=BrowserKind.CHROME)

    @classmethod
    def unsupported(
        cls, app_name: Optional[str] = None, bundle_identifier: Optional[str] = None
    ) -> "BrowserTarget":
        return cls(kind=BrowserKind.UNSUPPORTED, appName=app_name, bundleIdentifier=bundle_identifier)

    @property
    def is_supported(self) -> bool:
        return self.kind != BrowserKind.UNSUPPORTED

    @property
    def browser_label(self) -> str:
        """Lower-case browser name carried in payloads."""
        if self.kind == BrowserKind.SAFARI:
            return "safari"
        if self.kind == BrowserKind.CHROME:
            return "chrome"
        if self.bundleIdentifier and "Chrome" in self.bundleIdentifier:
            return "chrome"
        if self.bundleIdentifier and "Safari" in self.bundleIdentifier:
            return "safari"
        return "unknown"

    @property
    def transport_status_prefix(self) -> str:
        """Prefix of ``transportStatus`` values for this target."""
        if self.kind == BrowserKind.SAFARI:
            return "safari_extension"
        if self.kind == BrowserKind.CHROME:
            return "chrome_extension"
        return "desktop_capture"

    @property
    def display_name(self) -> str:
        if self.kind == BrowserKind.SAFARI:
            return "Safari"
        if self.kind == BrowserKind.CHROME:
            return "Chrome"
        return self.appName or "Unknown App"


def parse_target_override(value: Optional[str]) -> Optional[BrowserTarget]:
    """Map an override string ("safari"/"chrome") to a target; anything else is ignored."""
    if value is None:
        return None

    normalized = value.strip().lower()
    if normalized == "safari":
        return BrowserTarget.safari()
    if normalized == "chrome":
        return BrowserTarget.chrome()

    if normalized:
        logger.warning(f"Ignoring browser target override {value!r}: expected 'safari' or 'chrome'")
    return None


def detect_browser_target(
    bundle_identifier: Optional[str],
    app_name: Optional[str],
    override_value: Optional[str] = None,
) -> BrowserTarget:
    """
    Classify the frontmost application.

    An override wins; otherwise the bundle id decides; anything unknown is
    UNSUPPORTED and goes to desktop capture.
    """
    override = parse_target_override(override_value)
    if override is not None:
        return override

    if bundle_identifier:
        if bundle_identifier in SAFARI_BUNDLE_IDENTIFIERS:
            return BrowserTarget.safari()
        if bundle_identifier in CHROMIUM_BUNDLE_IDENTIFIERS:
            return BrowserTarget.chrome()

    return BrowserTarget.unsupported(app_name=app_name, bundle_identifier=bundle_identifier)


def resolve_effective_frontmost_app(
    current: FrontmostAppInfo,
    last_non_host: Optional[FrontmostAppInfo],
    last_known_browser: Optional[FrontmostAppInfo],
    host_process_identifier: int,
) -> FrontmostAppInfo:
    """
    Pick the app a capture should target.

    When the host itself is frontmost (its menu was clicked), the caller's
    last known browser wins, then the last non-host app. The history is
    owned by the caller.
    """
    if current.processIdentifier == host_process_identifier:
        if last_known_browser is not None:
            return last_known_browser
        if last_non_host is not None:
            return last_non_host

    return current
