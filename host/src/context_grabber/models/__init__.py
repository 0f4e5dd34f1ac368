"""Data models for Context Grabber."""

from .context import ContextPayload, FrontmostAppInfo, Heading, Link
from .messages import (
    PROTOCOL_VERSION,
    ExtensionBridgeMessage,
    ExtensionCaptureResultMessage,
    ExtensionErrorMessage,
    HostCaptureRequestMessage,
    HostCaptureRequestPayload,
    NativeMessagingPingResponse,
)
from .resolution import (
    CaptureResolution,
    DesktopPermissionReadiness,
    ExtractionMethod,
    OCRCaptureResult,
)

__all__ = [
    "ContextPayload",
    "FrontmostAppInfo",
    "Heading",
    "Link",
    "PROTOCOL_VERSION",
    "ExtensionBridgeMessage",
    "ExtensionCaptureResultMessage",
    "ExtensionErrorMessage",
    "HostCaptureRequestMessage",
    "HostCaptureRequestPayload",
    "NativeMessagingPingResponse",
    "CaptureResolution",
    "DesktopPermissionReadiness",
    "ExtractionMethod",
    "OCRCaptureResult",
]
