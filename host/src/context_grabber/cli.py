"""Typer CLI interface for Context Grabber."""

import asyncio
import os
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from .browser.detection import BrowserTarget, parse_target_override
from .browser.pipeline import capture_browser_with_fallback
from .config import settings
from .desktop.permissions import (
    DesktopPermissionPane,
    desktop_fallback_description,
    desktop_permission_readiness,
    desktop_permission_settings_url,
    should_prompt_desktop_permissions,
)
from .engine import CaptureEngine
from .exceptions import BrowserCaptureFailedError, NativeMessagingTransportError
from .logging_config import setup_logging
from .models.context import FrontmostAppInfo
from .models.resolution import CaptureResolution
from .workspace import frontmost_app

app = typer.Typer(
    name="context-grabber",
    help="Context Grabber - capture browser and desktop context",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(debug: bool) -> None:
    setup_logging(settings.LOG_LEVEL, debug=debug or settings.DEBUG)


def _parse_browser_option(browser: Optional[str]) -> Optional[BrowserTarget]:
    if browser is None:
        return None

    target = parse_target_override(browser)
    if target is None:
        err_console.print(
            f"[red]Error:[/red] Invalid browser: {browser}. Use 'safari' or 'chrome'"
        )
        raise typer.Exit(1)
    return target


def _print_resolution(resolution: CaptureResolution) -> None:
    console.print_json(data=resolution.to_wire())


def _print_permission_hint(resolution: CaptureResolution) -> None:
    readiness = desktop_permission_readiness()
    if not should_prompt_desktop_permissions(resolution, readiness):
        return

    lines = [desktop_fallback_description(resolution.extractionMethod)]
    if not readiness.accessibilityTrusted:
        pane = DesktopPermissionPane.ACCESSIBILITY
        lines.append(f"Grant {pane.display_name}: {desktop_permission_settings_url(pane)}")
    if readiness.screenRecordingGranted is False:
        pane = DesktopPermissionPane.SCREEN_RECORDING
        lines.append(f"Grant {pane.display_name}: {desktop_permission_settings_url(pane)}")

    err_console.print(Panel.fit("\n".join(lines), title="Permissions", border_style="yellow"))


@app.command()
def capture(
    app_name: Optional[str] = typer.Option(None, "--app", help="Application name"),
    bundle_id: Optional[str] = typer.Option(None, "--bundle-id", help="Application bundle identifier"),
    pid: Optional[int] = typer.Option(None, "--pid", help="Application process id"),
    browser: Optional[str] = typer.Option(
        None, "--browser", help="Force a browser target: 'safari' or 'chrome'"
    ),
    timeout_ms: int = typer.Option(
        settings.CAPTURE_TIMEOUT_MS, "--timeout-ms", help="Extension capture timeout"
    ),
    include_selection: bool = typer.Option(
        True, "--include-selection/--no-include-selection", help="Capture selected text too"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Capture the frontmost (or given) application and print the resolution."""
    _configure_logging(debug)
    _parse_browser_option(browser)

    if app_name is None and bundle_id is None and pid is None:
        target_app = frontmost_app()
        if target_app is None:
            err_console.print(
                "[red]Error:[/red] Unable to determine the frontmost application. "
                "Pass --app/--bundle-id."
            )
            raise typer.Exit(1)
    else:
        target_app = FrontmostAppInfo(
            bundleIdentifier=bundle_id,
            appName=app_name,
            processIdentifier=pid,
        )

    engine = CaptureEngine()
    resolution = asyncio.run(
        engine.capture(
            target_app,
            target_override=browser,
            timeout_ms=timeout_ms,
            include_selection_text=include_selection,
            mode="manual_cli",
        )
    )

    _print_resolution(resolution)
    _print_permission_hint(resolution)


@app.command("capture-browser")
def capture_browser(
    browser: Optional[str] = typer.Option(
        None, "--browser", help="Only try this browser: 'safari' or 'chrome'"
    ),
    timeout_ms: int = typer.Option(
        settings.CAPTURE_TIMEOUT_MS, "--timeout-ms", help="Extension capture timeout"
    ),
    include_selection: bool = typer.Option(
        True, "--include-selection/--no-include-selection", help="Capture selected text too"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Capture the active browser tab, trying Safari then Chrome."""
    _configure_logging(debug)
    override = _parse_browser_option(browser)
    targets: List[BrowserTarget] = (
        [override] if override is not None else [BrowserTarget.safari(), BrowserTarget.chrome()]
    )

    try:
        resolution = asyncio.run(
            capture_browser_with_fallback(
                targets,
                timeout_ms=timeout_ms,
                include_selection_text=include_selection,
                mode="manual_cli",
            )
        )
    except BrowserCaptureFailedError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    _print_resolution(resolution)


@app.command()
def ping(
    browser: str = typer.Option("safari", "--browser", help="Bridge to ping: 'safari' or 'chrome'"),
    timeout_ms: int = typer.Option(
        settings.PING_TIMEOUT_MS, "--timeout-ms", help="Ping timeout"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Check that a browser extension bridge responds."""
    _configure_logging(debug)
    target = _parse_browser_option(browser)

    try:
        response = asyncio.run(CaptureEngine().ping(target, timeout_ms=timeout_ms))
    except NativeMessagingTransportError as e:
        err_console.print(f"[red]✗[/red] {target.display_name}: {e.message}")
        raise typer.Exit(1)

    status = "[green]✓[/green]" if response.ok else "[red]✗[/red]"
    console.print(f"{status} {target.display_name} bridge ok={response.ok} protocol={response.protocolVersion}")
    if not response.ok:
        raise typer.Exit(1)


async def _ping_all(engine: CaptureEngine, targets: List[BrowserTarget], timeout_ms: int):
    return await asyncio.gather(
        *(engine.ping(target, timeout_ms=timeout_ms) for target in targets),
        return_exceptions=True,
    )


@app.command()
def doctor(
    timeout_ms: int = typer.Option(
        settings.PING_TIMEOUT_MS, "--timeout-ms", help="Ping timeout per bridge"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Report desktop permissions and bridge reachability."""
    _configure_logging(debug)

    readiness = desktop_permission_readiness()
    targets = [BrowserTarget.safari(), BrowserTarget.chrome()]
    results = asyncio.run(_ping_all(CaptureEngine(), targets, timeout_ms))

    def mark(value: Optional[bool]) -> str:
        if value is None:
            return "[yellow]?[/yellow]"
        return "[green]✓[/green]" if value else "[red]✗[/red]"

    lines = [
        f"{mark(readiness.accessibilityTrusted)} Accessibility",
        f"{mark(readiness.screenRecordingGranted)} Screen Recording",
        "",
    ]
    for target, result in zip(targets, results):
        if isinstance(result, BaseException):
            lines.append(f"{mark(False)} {target.display_name} bridge: {result}")
        else:
            lines.append(
                f"{mark(result.ok)} {target.display_name} bridge (protocol {result.protocolVersion})"
            )

    if not readiness.accessibilityTrusted:
        lines.append("")
        lines.append(desktop_permission_settings_url(DesktopPermissionPane.ACCESSIBILITY))
    if readiness.screenRecordingGranted is False:
        lines.append(desktop_permission_settings_url(DesktopPermissionPane.SCREEN_RECORDING))

    console.print(
        Panel.fit(
            "[bold]Context Grabber Doctor[/bold]\n\n"
            + "\n".join(lines)
            + f"\n\n🐛 Debug: {'enabled' if debug or settings.DEBUG else 'disabled'}"
            + f"\n📁 Working directory: {os.getcwd()}",
            border_style="green",
        )
    )


if __name__ == "__main__":
    app()
