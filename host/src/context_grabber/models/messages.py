"""Native messaging protocol models."""

from typing import Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .context import ContextPayload

PROTOCOL_VERSION = "1"

HOST_CAPTURE_REQUEST = "host.capture.request"
EXTENSION_CAPTURE_RESULT = "extension.capture.result"
EXTENSION_ERROR = "extension.error"

CaptureMode = Literal["manual_menu", "manual_hotkey", "manual_cli"]


class GenericEnvelope(BaseModel):
    """
    Envelope fields shared by every protocol message.

    Decoded first so ``type`` can pick the typed payload decoder.
    """

    id: str
    type: str
    timestamp: str


class HostCaptureRequestPayload(BaseModel):
    """Capture request parameters sent to the extension."""

    protocolVersion: str = Field(PROTOCOL_VERSION, description="Protocol version")
    requestId: str = Field(..., description="Request identifier")
    mode: str = Field("manual_menu", description="What triggered the capture")
    requestedAt: str = Field(..., description="ISO 8601 request timestamp")
    timeoutMs: int = Field(..., description="Extension-side capture budget")
    includeSelectionText: bool = Field(True, description="Capture the selection too")


class HostCaptureRequestMessage(BaseModel):
    """Host -> extension capture request."""

    id: str
    type: Literal["host.capture.request"] = HOST_CAPTURE_REQUEST
    timestamp: str
    payload: HostCaptureRequestPayload


class ExtensionCaptureResultPayload(BaseModel):
    """Successful capture from the extension."""

    model_config = ConfigDict(frozen=True)

    protocolVersion: str
    capture: ContextPayload


class ExtensionCaptureResultMessage(BaseModel):
    """Extension -> host capture result."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["extension.capture.result"] = EXTENSION_CAPTURE_RESULT
    timestamp: str
    payload: ExtensionCaptureResultPayload


class ExtensionErrorPayload(BaseModel):
    """Error reported by the extension."""

    model_config = ConfigDict(frozen=True)

    protocolVersion: str
    code: str = Field(..., description="Error code, e.g. ERR_TIMEOUT")
    message: str = Field(..., description="Human-readable error message")
    recoverable: bool = Field(..., description="Whether a retry may succeed")
    details: Optional[Dict[str, str]] = Field(None, description="Extra context (title, url, ...)")


class ExtensionErrorMessage(BaseModel):
    """Extension -> host error."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["extension.error"] = EXTENSION_ERROR
    timestamp: str
    payload: ExtensionErrorPayload


# Decoded bridge reply
ExtensionBridgeMessage = Union[ExtensionCaptureResultMessage, ExtensionErrorMessage]


class NativeMessagingPingResponse(BaseModel):
    """Reply to a ``--ping`` bridge invocation."""

    ok: bool
    protocolVersion: str
