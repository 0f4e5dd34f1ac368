"""Capture engine facade: detect the target and run the matching resolver."""

import logging
from typing import Optional

from .browser.detection import BrowserKind, BrowserTarget, chromium_app_name, detect_browser_target
from .browser.pipeline import (
    BrowserCaptureResolver,
    TransportFactory,
    build_capture_request,
    default_transport_factory,
)
from .config import settings
from .desktop.pipeline import DesktopCaptureDependencies
from .models.context import FrontmostAppInfo
from .models.messages import CaptureMode, NativeMessagingPingResponse
from .models.resolution import CaptureResolution

logger = logging.getLogger(__name__)


class CaptureEngine:
    """
    Entry point for a single capture.

    Holds only its collaborators; every capture builds its own request,
    transport and traversal state.
    """

    def __init__(
        self,
        transport_factory: Optional[TransportFactory] = None,
        desktop_dependencies: Optional[DesktopCaptureDependencies] = None,
    ):
        self.transport_factory = transport_factory or default_transport_factory
        self.browser_resolver = BrowserCaptureResolver(
            transport_factory=self.transport_factory,
            desktop_dependencies=desktop_dependencies,
        )

    async def capture(
        self,
        app: FrontmostAppInfo,
        *,
        target_override: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        include_selection_text: bool = True,
        mode: CaptureMode = "manual_menu",
    ) -> CaptureResolution:
        override = target_override if target_override is not None else settings.BROWSER_TARGET
        target = detect_browser_target(app.bundleIdentifier, app.appName, override)
        timeout_ms = timeout_ms or settings.CAPTURE_TIMEOUT_MS

        logger.info(
            f"Capture requested: app={app.appName!r} bundle={app.bundleIdentifier!r} "
            f"target={target.kind.value} mode={mode}"
        )

        request = build_capture_request(
            mode=mode,
            timeout_ms=timeout_ms,
            include_selection_text=include_selection_text,
        )
        chrome_app_name = (
            chromium_app_name(app.bundleIdentifier) if target.kind == BrowserKind.CHROME else None
        )

        return await self.browser_resolver.resolve(
            target,
            request,
            app.appName,
            chrome_app_name=chrome_app_name,
            process_identifier=app.processIdentifier,
            timeout_ms=timeout_ms,
        )

    async def ping(
        self, target: BrowserTarget, timeout_ms: Optional[int] = None
    ) -> NativeMessagingPingResponse:
        """
        Health-check a browser bridge.

        Raises:
            NativeMessagingTransportError: when the bridge is unreachable
        """
        transport = self.transport_factory(target, None)
        return await transport.ping(timeout_ms or settings.PING_TIMEOUT_MS)
