"""
Browser capture resolution.

Maps the outcome of one bridge exchange (reply or exception) to a
``CaptureResolution``. Every transport or protocol failure becomes a
metadata-only resolution; nothing here raises to the caller except the
multi-target helper, which reports an overall failure explicitly.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..config import settings
from ..desktop.pipeline import DesktopCaptureContext, DesktopCaptureDependencies, resolve_desktop_capture
from ..exceptions import BrowserCaptureFailedError, NativeMessagingTransportError
from ..models.context import ContextPayload
from ..models.messages import (
    PROTOCOL_VERSION,
    CaptureMode,
    ExtensionBridgeMessage,
    ExtensionCaptureResultMessage,
    ExtensionErrorMessage,
    HostCaptureRequestMessage,
    HostCaptureRequestPayload,
)
from ..models.resolution import (
    ERR_EXTENSION_UNAVAILABLE,
    ERR_PROTOCOL_VERSION,
    ERR_TIMEOUT,
    CaptureResolution,
    ExtractionMethod,
)
from ..transport.base import CaptureTransport
from ..transport.native_messaging import ChromeNativeMessagingTransport, SafariNativeMessagingTransport
from .detection import BrowserKind, BrowserTarget

logger = logging.getLogger(__name__)

TransportFactory = Callable[[BrowserTarget, Optional[str]], CaptureTransport]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_capture_request(
    mode: CaptureMode = "manual_menu",
    timeout_ms: Optional[int] = None,
    include_selection_text: bool = True,
) -> HostCaptureRequestMessage:
    """New ``host.capture.request`` with a fresh lowercase UUID."""
    request_id = str(uuid.uuid4())
    timestamp = utc_timestamp()
    return HostCaptureRequestMessage(
        id=request_id,
        timestamp=timestamp,
        payload=HostCaptureRequestPayload(
            protocolVersion=PROTOCOL_VERSION,
            requestId=request_id,
            mode=mode,
            requestedAt=timestamp,
            timeoutMs=timeout_ms or settings.CAPTURE_TIMEOUT_MS,
            includeSelectionText=include_selection_text,
        ),
    )


def create_metadata_only_browser_payload(
    browser: str,
    details: Optional[Dict[str, str]],
    warning: str,
    front_app_name: Optional[str],
) -> ContextPayload:
    details = details or {}

    title = details.get("title")
    if title is None:
        if front_app_name:
            title = f"{front_app_name} (metadata only)"
        else:
            title = f"{browser.capitalize()} (metadata only)"

    return ContextPayload(
        source="browser",
        originId=browser,
        url=details.get("url") or "about:blank",
        title=title,
        fullText="",
        siteName=details.get("site_name"),
        extractionWarnings=[warning],
    )


def create_browser_metadata_fallback_resolution(
    target: BrowserTarget,
    code: str,
    message: str,
    details: Optional[Dict[str, str]] = None,
    front_app_name: Optional[str] = None,
) -> CaptureResolution:
    warning = f"{code}: {message}"
    return CaptureResolution(
        payload=create_metadata_only_browser_payload(
            browser=target.browser_label,
            details=details,
            warning=warning,
            front_app_name=front_app_name,
        ),
        extractionMethod=ExtractionMethod.METADATA_ONLY,
        transportStatus=f"{target.transport_status_prefix}_error:{code}",
        warning=warning,
        errorCode=code,
    )


def resolve_browser_capture(
    target: BrowserTarget,
    bridge_result: Union[ExtensionBridgeMessage, BaseException],
    front_app_name: Optional[str] = None,
) -> CaptureResolution:
    """
    Map one bridge outcome to a resolution.

    ``bridge_result`` is either the decoded reply or the exception the
    transport raised.
    """
    if isinstance(bridge_result, ExtensionCaptureResultMessage):
        if bridge_result.payload.protocolVersion != PROTOCOL_VERSION:
            return create_browser_metadata_fallback_resolution(
                target,
                code=ERR_PROTOCOL_VERSION,
                message=f"Protocol version mismatch. Expected {PROTOCOL_VERSION}.",
                front_app_name=front_app_name,
            )

        return CaptureResolution(
            payload=bridge_result.payload.capture,
            extractionMethod=ExtractionMethod.BROWSER_EXTENSION,
            transportStatus=f"{target.transport_status_prefix}_ok",
        )

    if isinstance(bridge_result, ExtensionErrorMessage):
        return create_browser_metadata_fallback_resolution(
            target,
            code=bridge_result.payload.code,
            message=bridge_result.payload.message,
            details=bridge_result.payload.details,
            front_app_name=front_app_name,
        )

    if isinstance(bridge_result, NativeMessagingTransportError) and bridge_result.is_timeout:
        return create_browser_metadata_fallback_resolution(
            target,
            code=ERR_TIMEOUT,
            message="Timed out waiting for extension response.",
            front_app_name=front_app_name,
        )

    return create_browser_metadata_fallback_resolution(
        target,
        code=ERR_EXTENSION_UNAVAILABLE,
        message=str(bridge_result),
        front_app_name=front_app_name,
    )


def default_transport_factory(target: BrowserTarget, chrome_app_name: Optional[str] = None) -> CaptureTransport:
    """Native messaging transport for a supported target."""
    if target.kind == BrowserKind.SAFARI:
        return SafariNativeMessagingTransport()
    if target.kind == BrowserKind.CHROME:
        return ChromeNativeMessagingTransport(chrome_app_name=chrome_app_name)
    raise ValueError(f"No extension transport for {target.kind.value} target")


class BrowserCaptureResolver:
    """
    Runs one capture for a detected target.

    Supported browsers go through their extension transport; anything else
    is handed to the desktop resolver unchanged.
    """

    def __init__(
        self,
        transport_factory: Optional[TransportFactory] = None,
        desktop_dependencies: Optional[DesktopCaptureDependencies] = None,
    ):
        self.transport_factory = transport_factory or default_transport_factory
        self.desktop_dependencies = desktop_dependencies

    async def resolve(
        self,
        target: BrowserTarget,
        request: HostCaptureRequestMessage,
        front_app_name: Optional[str] = None,
        *,
        chrome_app_name: Optional[str] = None,
        process_identifier: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ) -> CaptureResolution:
        if not target.is_supported:
            logger.info(f"{target.display_name} is not a supported browser; using desktop capture")
            return await resolve_desktop_capture(
                DesktopCaptureContext(appName=target.appName, bundleIdentifier=target.bundleIdentifier),
                process_identifier=process_identifier,
                dependencies=self.desktop_dependencies,
            )

        timeout_ms = timeout_ms or request.payload.timeoutMs
        bridge_result: Union[ExtensionBridgeMessage, BaseException]
        try:
            transport = self.transport_factory(target, chrome_app_name)
            bridge_result = await transport.send_capture_request(request, timeout_ms)
        except Exception as e:
            logger.warning(f"{target.display_name} capture request {request.id} failed: {e}")
            bridge_result = e

        resolution = resolve_browser_capture(target, bridge_result, front_app_name)
        logger.info(
            f"{target.display_name} capture resolved: method={resolution.extractionMethod.value}, "
            f"status={resolution.transportStatus}"
        )
        return resolution


def _unreachable_message(targets: Sequence[BrowserTarget]) -> str:
    names = [target.display_name for target in targets]
    if len(names) == 1:
        return f"{names[0]} bridge is currently unreachable."
    if len(names) == 2:
        return f"Neither {names[0]} nor {names[1]} bridge is currently reachable."
    return f"None of the {', '.join(names)} bridges is currently reachable."


async def capture_browser_with_fallback(
    targets: Sequence[BrowserTarget],
    *,
    resolver: Optional[BrowserCaptureResolver] = None,
    timeout_ms: Optional[int] = None,
    include_selection_text: bool = True,
    mode: CaptureMode = "manual_cli",
    front_app_name: Optional[str] = None,
    chrome_app_name: Optional[str] = None,
) -> CaptureResolution:
    """
    Try each target in order until one returns captured content.

    Extension content, or a desktop capture without an error code, is returned
    as is. Only ``ERR_EXTENSION_UNAVAILABLE`` moves on to the next target; any
    other failure is final.

    Raises:
        BrowserCaptureFailedError: when no target produced content
    """
    resolver = resolver or BrowserCaptureResolver()
    attempted: List[BrowserTarget] = []
    last_warning: Optional[str] = None

    for target in targets:
        attempted.append(target)
        request = build_capture_request(
            mode=mode,
            timeout_ms=timeout_ms,
            include_selection_text=include_selection_text,
        )
        resolution = await resolver.resolve(
            target,
            request,
            front_app_name,
            chrome_app_name=chrome_app_name,
            timeout_ms=timeout_ms,
        )

        if resolution.extractionMethod == ExtractionMethod.BROWSER_EXTENSION or resolution.errorCode is None:
            return resolution

        code = resolution.errorCode
        warning = resolution.warning or "Unknown capture error."
        last_warning = f"{target.display_name} capture failed ({code}): {warning}"

        if code != ERR_EXTENSION_UNAVAILABLE:
            raise BrowserCaptureFailedError(
                last_warning,
                attempted_targets=[t.display_name for t in attempted],
                error_code=code,
            )

        logger.info(f"{last_warning} Trying next target.")

    if not attempted:
        message = "No browser targets to capture."
    else:
        message = f"{last_warning} {_unreachable_message(attempted)}"

    raise BrowserCaptureFailedError(
        message,
        attempted_targets=[t.display_name for t in attempted],
        error_code=ERR_EXTENSION_UNAVAILABLE,
    )
