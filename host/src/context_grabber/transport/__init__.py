"""Transports for reaching browser extensions."""

from .base import CaptureTransport
from .native_messaging import (
    ChromeNativeMessagingTransport,
    NativeMessagingTransport,
    SafariNativeMessagingTransport,
)

__all__ = [
    "CaptureTransport",
    "NativeMessagingTransport",
    "SafariNativeMessagingTransport",
    "ChromeNativeMessagingTransport",
]
