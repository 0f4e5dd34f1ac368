"""Custom exception classes for the Context Grabber host."""

from typing import List, Sequence


class ContextGrabberError(Exception):
    """Base exception for Context Grabber errors."""

    def __init__(self, message: str, code: str = "internal", detail: str = ""):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)


class NativeMessagingTransportError(ContextGrabberError):
    """
    Errors raised by the native messaging transport.

    ``browser`` names the bridge family (Safari, Chrome) that raised the error
    so a single fallback handler can format the warning.
    """

    def __init__(self, browser: str, message: str, code: str = "transport", detail: str = ""):
        self.browser = browser
        super().__init__(message, code=code, detail=detail)

    @property
    def is_timeout(self) -> bool:
        """Whether this error represents a timeout."""
        return False


class RepoRootNotFoundError(NativeMessagingTransportError):
    """Repository root holding the extension packages could not be located."""

    def __init__(self, browser: str):
        super().__init__(
            browser,
            f"Unable to locate repository root for {browser} extension bridge.",
            code="repo_root_not_found",
        )


class ExtensionPackageNotFoundError(NativeMessagingTransportError):
    """Extension package directory is missing its package.json."""

    def __init__(self, browser: str):
        super().__init__(
            browser,
            f"{browser} extension package was not found.",
            code="extension_package_not_found",
        )


class LaunchFailedError(NativeMessagingTransportError):
    """Bridge process could not be started or fed its request."""

    def __init__(self, browser: str, reason: str):
        self.reason = reason
        super().__init__(
            browser,
            f"Failed to launch {browser} extension bridge: {reason}",
            code="launch_failed",
            detail=reason,
        )


class TransportTimeoutError(NativeMessagingTransportError):
    """Bridge process did not exit within its timeout."""

    def __init__(self, browser: str):
        super().__init__(
            browser,
            f"Timed out waiting for {browser} extension response.",
            code="timeout",
        )

    @property
    def is_timeout(self) -> bool:
        return True


class ProcessFailedError(NativeMessagingTransportError):
    """Bridge exited non-zero without a decodable reply."""

    def __init__(self, browser: str, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            browser,
            f"{browser} extension bridge failed with exit code {exit_code}: {stderr}",
            code="process_failed",
            detail=stderr,
        )


class EmptyOutputError(NativeMessagingTransportError):
    """Bridge produced no output."""

    def __init__(self, browser: str):
        super().__init__(
            browser,
            f"{browser} extension bridge returned no output.",
            code="empty_output",
        )


class InvalidJSONError(NativeMessagingTransportError):
    """Bridge output could not be decoded into a known message."""

    def __init__(self, browser: str, reason: str):
        self.reason = reason
        super().__init__(
            browser,
            f"{browser} extension bridge returned invalid JSON: {reason}",
            code="invalid_json",
            detail=reason,
        )


class BrowserCaptureFailedError(ContextGrabberError):
    """Multi-target browser capture did not produce an extension payload."""

    def __init__(self, message: str, attempted_targets: Sequence[str], error_code: str):
        self.attempted_targets: List[str] = list(attempted_targets)
        super().__init__(message, code=error_code)
