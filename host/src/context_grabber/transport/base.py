"""Abstract base class for capture transports."""

from abc import ABC, abstractmethod

from ..models.messages import (
    ExtensionBridgeMessage,
    HostCaptureRequestMessage,
    NativeMessagingPingResponse,
)

DEFAULT_PING_TIMEOUT_MS = 800


class CaptureTransport(ABC):
    """
    Abstract interface for reaching a browser extension.

    Implementations can use different underlying systems:
    - Native messaging bridge process (one process per call)
    - In-memory fakes for tests and automation
    """

    def __init__(self, browser: str, **kwargs):
        """
        Initialize transport.

        Args:
            browser: Bridge family name used in errors and logs (Safari, Chrome)
            **kwargs: Transport-specific configuration
        """
        self.browser = browser

    @abstractmethod
    async def send_capture_request(
        self,
        request: HostCaptureRequestMessage,
        timeout_ms: int,
    ) -> ExtensionBridgeMessage:
        """
        Exchange one capture request for one bridge reply.

        Raises:
            NativeMessagingTransportError: on any transport failure
        """
        pass

    @abstractmethod
    async def ping(self, timeout_ms: int = DEFAULT_PING_TIMEOUT_MS) -> NativeMessagingPingResponse:
        """Lightweight health check, independent of capture traffic."""
        pass
