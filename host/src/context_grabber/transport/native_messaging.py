"""Native messaging transport - talks to the extension through a bridge process."""

import asyncio
import contextlib
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel, ValidationError

from .base import CaptureTransport, DEFAULT_PING_TIMEOUT_MS
from ..config import settings
from ..exceptions import (
    EmptyOutputError,
    ExtensionPackageNotFoundError,
    InvalidJSONError,
    LaunchFailedError,
    ProcessFailedError,
    RepoRootNotFoundError,
    TransportTimeoutError,
)
from ..models.messages import (
    EXTENSION_CAPTURE_RESULT,
    EXTENSION_ERROR,
    ExtensionBridgeMessage,
    ExtensionCaptureResultMessage,
    ExtensionErrorMessage,
    GenericEnvelope,
    HostCaptureRequestMessage,
    NativeMessagingPingResponse,
)

logger = logging.getLogger(__name__)

REPO_ROOT_SEARCH_DEPTH = 12
TERMINATE_GRACE_S = 0.2
DRAIN_GRACE_S = 0.5
BRIDGE_CLI_SUBPATH = "src/native-messaging-cli.ts"
BUN_FALLBACK_PATHS = ("/opt/homebrew/bin/bun", "/usr/local/bin/bun", "~/.bun/bin/bun")

_MESSAGE_DECODERS: Dict[str, type] = {
    EXTENSION_CAPTURE_RESULT: ExtensionCaptureResultMessage,
    EXTENSION_ERROR: ExtensionErrorMessage,
}


def is_debug() -> bool:
    """Check if debug logging is enabled."""
    return logger.isEnabledFor(logging.DEBUG)


class ProcessExecutionResult(NamedTuple):
    """Collected output of one bridge invocation."""
    stdout: bytes
    stderr: bytes
    exit_code: int


def has_repo_marker(root: Path, marker_subpath: str) -> bool:
    """Check whether ``root`` contains the marker file."""
    return (root / marker_subpath).is_file()


def find_repo_root(
    start: Path, marker_subpath: str, max_depth: int = REPO_ROOT_SEARCH_DEPTH
) -> Optional[Path]:
    """
    Walk upward from ``start`` looking for the marker file.

    Checks at most ``max_depth`` directories, ``start`` included.
    """
    current = start
    for _ in range(max_depth):
        if has_repo_marker(current, marker_subpath):
            return current

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _describe_validation_error(error: ValidationError) -> str:
    """Collapse a pydantic error into a one-line reason."""
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid value')}"


def _decode_stderr(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").strip()


class NativeMessagingTransport(CaptureTransport):
    """
    Transport that spawns the extension's native messaging CLI per call.

    Each call:
    - resolves the repo checkout and the ``bun`` runtime
    - runs ``bun <package>/src/native-messaging-cli.ts`` in the package dir
    - writes the request to stdin and closes it
    - drains stdout/stderr concurrently while waiting for exit
    - kills the process when the timeout elapses

    No connection is retained and nothing is retried here.
    """

    def __init__(
        self,
        browser: str,
        extension_package_subpath: str,
        repo_root: Optional[str] = None,
        bun_executable: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(browser)
        self.extension_package_subpath = extension_package_subpath
        self.repo_marker_subpath = f"{extension_package_subpath}/package.json"
        self.repo_root_override = repo_root if repo_root is not None else settings.REPO_ROOT
        self.bun_executable_override = (
            bun_executable if bun_executable is not None else settings.BUN_BIN
        )

    def _additional_env(self) -> Optional[Dict[str, str]]:
        """Extra environment for the bridge process."""
        return None

    async def send_capture_request(
        self,
        request: HostCaptureRequestMessage,
        timeout_ms: int,
    ) -> ExtensionBridgeMessage:
        """
        Send one capture request to the extension bridge.

        A decodable reply wins even when the bridge exits non-zero.
        """
        request_data = request.model_dump_json().encode("utf-8")
        result = await self.run_native_messaging(
            arguments=[],
            stdin_data=request_data,
            timeout_ms=timeout_ms,
            additional_env=self._additional_env(),
        )

        if result.stdout.strip():
            try:
                return self.decode_bridge_message(result.stdout)
            except InvalidJSONError as e:
                if result.exit_code == 0:
                    raise
                logger.debug(f"{self.browser} bridge output undecodable: {e.message}")

        if result.exit_code != 0:
            raise ProcessFailedError(self.browser, result.exit_code, _decode_stderr(result.stderr))

        return self.decode_bridge_message(result.stdout)

    async def ping(self, timeout_ms: int = DEFAULT_PING_TIMEOUT_MS) -> NativeMessagingPingResponse:
        """Run the bridge with ``--ping``."""
        result = await self.run_native_messaging(
            arguments=["--ping"],
            stdin_data=None,
            timeout_ms=timeout_ms,
        )

        if result.exit_code != 0:
            raise ProcessFailedError(self.browser, result.exit_code, _decode_stderr(result.stderr))

        if not result.stdout.strip():
            raise EmptyOutputError(self.browser)

        try:
            return NativeMessagingPingResponse.model_validate_json(result.stdout)
        except ValidationError as e:
            raise InvalidJSONError(self.browser, _describe_validation_error(e)) from e

    # Bridge message decoding

    def decode_bridge_message(self, data: bytes) -> ExtensionBridgeMessage:
        """
        Decode bridge stdout into a typed message.

        The envelope is decoded first; its ``type`` selects the payload decoder.
        """
        if not data.strip():
            raise EmptyOutputError(self.browser)

        try:
            envelope = GenericEnvelope.model_validate_json(data)
        except ValidationError as e:
            raise InvalidJSONError(self.browser, _describe_validation_error(e)) from e

        decoder = _MESSAGE_DECODERS.get(envelope.type)
        if decoder is None:
            raise InvalidJSONError(self.browser, f"Unsupported message type: {envelope.type}")

        try:
            message: BaseModel = decoder.model_validate_json(data)
        except ValidationError as e:
            raise InvalidJSONError(self.browser, _describe_validation_error(e)) from e

        return message

    # Process execution

    async def run_native_messaging(
        self,
        arguments: Sequence[str],
        stdin_data: Optional[bytes],
        timeout_ms: int,
        additional_env: Optional[Dict[str, str]] = None,
    ) -> ProcessExecutionResult:
        """Spawn the bridge CLI and collect its output within ``timeout_ms``."""
        package_path = self.extension_package_path()
        bun_executable = self.resolve_bun_executable()
        cli_path = package_path / BRIDGE_CLI_SUBPATH
        cmd = [bun_executable, str(cli_path), *arguments]

        env = None
        if additional_env:
            env = {**os.environ, **additional_env}

        logger.debug(f"Launching {self.browser} bridge: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(package_path),
                env=env,
            )
        except OSError as e:
            raise LaunchFailedError(self.browser, str(e)) from e

        # Drain both pipes concurrently so a full buffer cannot stall the child
        stdout_task = asyncio.create_task(self._drain(process.stdout))
        stderr_task = asyncio.create_task(self._drain(process.stderr))

        async def communicate() -> int:
            if process.stdin:
                if stdin_data is not None:
                    try:
                        process.stdin.write(stdin_data)
                        await process.stdin.drain()
                    except (BrokenPipeError, ConnectionResetError) as e:
                        raise LaunchFailedError(
                            self.browser, f"Failed to write request payload: {e}"
                        ) from e
                process.stdin.close()
            return await process.wait()

        try:
            try:
                exit_code = await asyncio.wait_for(
                    communicate(), timeout=max(1, timeout_ms) / 1000
                )
            except asyncio.TimeoutError:
                logger.warning(f"{self.browser} bridge timed out after {timeout_ms}ms")
                await self._terminate(process)
                await asyncio.wait({stdout_task, stderr_task}, timeout=DRAIN_GRACE_S)
                if is_debug() and stderr_task.done():
                    partial = _decode_stderr(stderr_task.result())
                    if partial:
                        logger.debug(f"{self.browser} BRIDGE STDERR (partial): {partial}")
                raise TransportTimeoutError(self.browser) from None
            except LaunchFailedError:
                await self._terminate(process)
                raise

            await asyncio.wait({stdout_task, stderr_task}, timeout=DRAIN_GRACE_S)
            stdout = stdout_task.result() if stdout_task.done() else b""
            stderr = stderr_task.result() if stderr_task.done() else b""
        finally:
            for task in (stdout_task, stderr_task):
                if not task.done():
                    task.cancel()

        if is_debug():
            logger.debug(f"{self.browser} BRIDGE EXIT: {exit_code}")
            logger.debug(f"{self.browser} BRIDGE STDOUT: {stdout.decode('utf-8', errors='replace')}")
            if stderr:
                logger.debug(f"{self.browser} BRIDGE STDERR: {_decode_stderr(stderr)}")

        return ProcessExecutionResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

    @staticmethod
    async def _drain(stream: Optional[asyncio.StreamReader]) -> bytes:
        if stream is None:
            return b""
        return await stream.read()

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the bridge and give it a short grace period to exit."""
        if process.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE_S)

    # Path resolution

    def extension_package_path(self) -> Path:
        """Directory of the extension package holding the bridge CLI."""
        repo_root = self.resolve_repo_root()
        package_path = repo_root / self.extension_package_subpath

        if not (package_path / "package.json").is_file():
            raise ExtensionPackageNotFoundError(self.browser)

        return package_path

    def resolve_repo_root(self) -> Path:
        """Explicit override first, then an upward search from known locations."""
        if self.repo_root_override:
            explicit_root = Path(self.repo_root_override).expanduser()
            if has_repo_marker(explicit_root, self.repo_marker_subpath):
                return explicit_root
            logger.warning(
                f"Configured repo root {explicit_root} has no {self.repo_marker_subpath}"
            )

        visited = set()
        for candidate in self._repo_root_candidates():
            if candidate in visited:
                continue
            visited.add(candidate)

            resolved_root = find_repo_root(candidate, self.repo_marker_subpath)
            if resolved_root is not None:
                return resolved_root

        raise RepoRootNotFoundError(self.browser)

    @staticmethod
    def _repo_root_candidates() -> List[Path]:
        candidates = [Path.cwd(), Path(__file__).resolve().parent]
        if sys.argv and sys.argv[0]:
            candidates.append(Path(sys.argv[0]).resolve().parent)
        return candidates

    def resolve_bun_executable(self) -> str:
        """Locate the ``bun`` runtime that executes the bridge CLI."""
        if self.bun_executable_override:
            explicit_path = self.bun_executable_override
            if os.path.isfile(explicit_path) and os.access(explicit_path, os.X_OK):
                return explicit_path
            raise LaunchFailedError(
                self.browser,
                f"CONTEXT_GRABBER_BUN_BIN is set but not executable: {explicit_path}",
            )

        on_path = shutil.which("bun")
        if on_path:
            return on_path

        for candidate in BUN_FALLBACK_PATHS:
            expanded = os.path.expanduser(candidate)
            if os.path.isfile(expanded) and os.access(expanded, os.X_OK):
                return expanded

        raise LaunchFailedError(
            self.browser,
            "Unable to locate bun executable. Set CONTEXT_GRABBER_BUN_BIN to the bun binary path.",
        )


class SafariNativeMessagingTransport(NativeMessagingTransport):
    """Bridge to the Safari extension package."""

    def __init__(self, **kwargs):
        super().__init__("Safari", "packages/extension-safari", **kwargs)


class ChromeNativeMessagingTransport(NativeMessagingTransport):
    """Bridge to the Chrome extension package (any Chromium browser)."""

    def __init__(self, chrome_app_name: Optional[str] = None, **kwargs):
        super().__init__("Chrome", "packages/extension-chrome", **kwargs)
        self.chrome_app_name = chrome_app_name

    def _additional_env(self) -> Optional[Dict[str, str]]:
        if not self.chrome_app_name:
            return None
        return {"CONTEXT_GRABBER_CHROME_APP_NAME": self.chrome_app_name}
