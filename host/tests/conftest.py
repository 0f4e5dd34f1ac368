"""Shared fixtures for Context Grabber tests."""

import sys
import textwrap
from pathlib import Path
from typing import List, Optional

import pytest

from context_grabber.accessibility.profiles import AccessibilityExtractionProfile
from context_grabber.desktop.pipeline import DesktopCaptureDependencies
from context_grabber.models.context import ContextPayload
from context_grabber.models.messages import (
    ExtensionCaptureResultMessage,
    ExtensionCaptureResultPayload,
    ExtensionErrorMessage,
    ExtensionErrorPayload,
    NativeMessagingPingResponse,
)
from context_grabber.models.resolution import OCRCaptureResult
from context_grabber.transport.base import CaptureTransport


class BridgeRepo:
    """Throwaway checkout with extension packages whose bridge CLI is a Python script."""

    def __init__(self, root: Path):
        self.root = root

    def write_bridge(self, script: str, package: str = "extension-safari") -> Path:
        package_path = self.root / "packages" / package
        (package_path / "src").mkdir(parents=True, exist_ok=True)
        (package_path / "package.json").write_text('{"name": "%s"}' % package)
        cli_path = package_path / "src" / "native-messaging-cli.ts"
        cli_path.write_text(textwrap.dedent(script))
        return cli_path

    def transport_kwargs(self) -> dict:
        # The Python interpreter stands in for bun
        return {"repo_root": str(self.root), "bun_executable": sys.executable}


@pytest.fixture
def bridge_repo(tmp_path):
    """Create a temporary repo root for bridge scripts."""
    return BridgeRepo(tmp_path)


class RecordingExtractors:
    """Desktop extractors returning canned results and counting calls."""

    def __init__(
        self,
        accessibility_text: Optional[str] = None,
        ocr_results: Optional[List[Optional[OCRCaptureResult]]] = None,
        accessibility_error: Optional[Exception] = None,
        ocr_error: Optional[Exception] = None,
    ):
        self.accessibility_text = accessibility_text
        self.ocr_results = list(ocr_results or [])
        self.accessibility_error = accessibility_error
        self.ocr_error = ocr_error
        self.accessibility_calls = 0
        self.ocr_calls = 0
        self.profiles: List[AccessibilityExtractionProfile] = []

    def accessibility(self, process_identifier, profile):
        self.accessibility_calls += 1
        self.profiles.append(profile)
        if self.accessibility_error is not None:
            raise self.accessibility_error
        return self.accessibility_text

    async def ocr(self, process_identifier):
        self.ocr_calls += 1
        if self.ocr_error is not None:
            raise self.ocr_error
        if not self.ocr_results:
            return None
        return self.ocr_results.pop(0)

    def dependencies(self) -> DesktopCaptureDependencies:
        return DesktopCaptureDependencies(
            accessibility_extractor=self.accessibility,
            ocr_extractor=self.ocr,
        )


@pytest.fixture
def make_extractors():
    """Factory for recording desktop extractors."""
    return RecordingExtractors


@pytest.fixture(autouse=True)
def clear_desktop_overrides(monkeypatch):
    """Keep developer env overrides out of the tests."""
    from context_grabber.config import settings

    monkeypatch.setattr(settings, "DESKTOP_AX_TEXT", None)
    monkeypatch.setattr(settings, "DESKTOP_OCR_TEXT", None)
    monkeypatch.setattr(settings, "BROWSER_TARGET", None)


def make_capture_message(protocol_version: str = "1", **capture_fields) -> ExtensionCaptureResultMessage:
    capture = {
        "source": "browser",
        "browser": "safari",
        "url": "https://example.com/article",
        "title": "Example Article",
        "fullText": "Article body",
    }
    capture.update(capture_fields)
    return ExtensionCaptureResultMessage(
        id="reply-1",
        timestamp="2026-01-01T00:00:00Z",
        payload=ExtensionCaptureResultPayload(
            protocolVersion=protocol_version,
            capture=ContextPayload.model_validate(capture),
        ),
    )


def make_error_message(code: str, message: str, details=None) -> ExtensionErrorMessage:
    return ExtensionErrorMessage(
        id="reply-1",
        timestamp="2026-01-01T00:00:00Z",
        payload=ExtensionErrorPayload(
            protocolVersion="1",
            code=code,
            message=message,
            recoverable=True,
            details=details,
        ),
    )


@pytest.fixture
def capture_message():
    """Factory for extension capture replies."""
    return make_capture_message


@pytest.fixture
def error_message():
    """Factory for extension error replies."""
    return make_error_message


class FakeTransport(CaptureTransport):
    """Transport returning a canned reply (or raising) and recording requests."""

    def __init__(self, browser: str = "Safari", reply=None, error: Optional[Exception] = None,
                 ping_response: Optional[NativeMessagingPingResponse] = None):
        super().__init__(browser)
        self.reply = reply
        self.error = error
        self.ping_response = ping_response or NativeMessagingPingResponse(ok=True, protocolVersion="1")
        self.requests = []
        self.ping_calls = 0

    async def send_capture_request(self, request, timeout_ms):
        self.requests.append((request, timeout_ms))
        if self.error is not None:
            raise self.error
        return self.reply

    async def ping(self, timeout_ms=800):
        self.ping_calls += 1
        if self.error is not None:
            raise self.error
        return self.ping_response


class TransportRegistry:
    """transport_factory stand-in mapping browser kinds to fake transports."""

    def __init__(self, **transports: FakeTransport):
        self.transports = transports
        self.calls = []

    def __call__(self, target, chrome_app_name=None):
        self.calls.append((target.kind.value, chrome_app_name))
        return self.transports[target.kind.value]


@pytest.fixture
def fake_transport():
    """FakeTransport class."""
    return FakeTransport


@pytest.fixture
def transport_registry():
    """TransportRegistry class."""
    return TransportRegistry
