"""Tests for the capture engine facade."""

import pytest

from context_grabber.browser.detection import BrowserTarget
from context_grabber.engine import CaptureEngine
from context_grabber.exceptions import TransportTimeoutError
from context_grabber.models.context import FrontmostAppInfo
from context_grabber.models.resolution import ExtractionMethod


SAFARI_APP = FrontmostAppInfo(bundleIdentifier="com.apple.Safari", appName="Safari", processIdentifier=11)
ARC_APP = FrontmostAppInfo(bundleIdentifier="company.thebrowser.Browser", appName="Arc", processIdentifier=12)
TERMINAL_APP = FrontmostAppInfo(bundleIdentifier="com.apple.Terminal", appName="Terminal", processIdentifier=13)


@pytest.mark.asyncio
async def test_browser_app_goes_through_extension(fake_transport, transport_registry, capture_message):
    safari = fake_transport("Safari", reply=capture_message())
    engine = CaptureEngine(transport_factory=transport_registry(safari=safari))

    resolution = await engine.capture(SAFARI_APP, timeout_ms=900, include_selection_text=False)

    assert resolution.extractionMethod == ExtractionMethod.BROWSER_EXTENSION
    request, timeout_ms = safari.requests[0]
    assert timeout_ms == 900
    assert request.payload.includeSelectionText is False
    assert request.payload.mode == "manual_menu"


@pytest.mark.asyncio
async def test_chromium_app_name_comes_from_bundle(fake_transport, transport_registry, capture_message):
    registry = transport_registry(chrome=fake_transport("Chrome", reply=capture_message()))
    engine = CaptureEngine(transport_factory=registry)

    await engine.capture(ARC_APP)

    assert registry.calls == [("chrome", "Arc")]


@pytest.mark.asyncio
async def test_desktop_app_uses_desktop_tiers(make_extractors, transport_registry):
    """Scenario: terminal frontmost with 200 chars of AX text."""
    extractors = make_extractors(accessibility_text="$ ls\n" + "x" * 195)
    registry = transport_registry()
    engine = CaptureEngine(transport_factory=registry, desktop_dependencies=extractors.dependencies())

    resolution = await engine.capture(TERMINAL_APP)

    assert resolution.extractionMethod == ExtractionMethod.ACCESSIBILITY
    assert resolution.transportStatus == "desktop_capture_accessibility"
    assert extractors.ocr_calls == 0
    assert registry.calls == []


@pytest.mark.asyncio
async def test_target_override_forces_browser(fake_transport, transport_registry, capture_message):
    registry = transport_registry(chrome=fake_transport("Chrome", reply=capture_message()))
    engine = CaptureEngine(transport_factory=registry)

    resolution = await engine.capture(TERMINAL_APP, target_override="chrome")

    assert resolution.transportStatus == "chrome_extension_ok"


@pytest.mark.asyncio
async def test_settings_target_override(fake_transport, transport_registry, capture_message, monkeypatch):
    from context_grabber.config import settings

    monkeypatch.setattr(settings, "BROWSER_TARGET", "safari")
    registry = transport_registry(safari=fake_transport("Safari", reply=capture_message()))
    engine = CaptureEngine(transport_factory=registry)

    resolution = await engine.capture(TERMINAL_APP)

    assert resolution.transportStatus == "safari_extension_ok"


@pytest.mark.asyncio
async def test_capture_timeout_becomes_metadata_only(fake_transport, transport_registry):
    registry = transport_registry(safari=fake_transport("Safari", error=TransportTimeoutError("Safari")))
    engine = CaptureEngine(transport_factory=registry)

    resolution = await engine.capture(SAFARI_APP)

    assert resolution.extractionMethod == ExtractionMethod.METADATA_ONLY
    assert resolution.errorCode == "ERR_TIMEOUT"


@pytest.mark.asyncio
async def test_ping_delegates_to_transport(fake_transport, transport_registry):
    chrome = fake_transport("Chrome")
    engine = CaptureEngine(transport_factory=transport_registry(chrome=chrome))

    response = await engine.ping(BrowserTarget.chrome())

    assert response.ok is True
    assert chrome.ping_calls == 1


@pytest.mark.asyncio
async def test_ping_errors_propagate(fake_transport, transport_registry):
    engine = CaptureEngine(
        transport_factory=transport_registry(safari=fake_transport("Safari", error=TransportTimeoutError("Safari")))
    )

    with pytest.raises(TransportTimeoutError):
        await engine.ping(BrowserTarget.safari())

