"""Bounded OCR capture step used by the desktop pipeline."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from PIL import Image

from ..config import settings
from ..models.resolution import OCRCaptureResult
from .recognizer import TesseractRecognizer
from .screen_capture import ScreenCapturer

logger = logging.getLogger(__name__)


class OCRCaptureStep:
    """
    Screenshot + recognition with a time limit on each stage.

    Blocking capture/recognition calls run on a per-stage worker thread. A
    stage that times out or fails yields None. The stage executor is shut
    down without waiting, so an overrunning thread never holds up the event
    loop shutdown; Tesseract itself is killed by its own timeout.
    """

    def __init__(
        self,
        capturer: Optional[ScreenCapturer] = None,
        recognizer: Optional[TesseractRecognizer] = None,
        capture_timeout_s: Optional[float] = None,
        recognition_timeout_s: Optional[float] = None,
    ):
        self.capturer = capturer or ScreenCapturer()
        self.capture_timeout_s = capture_timeout_s or settings.SCREEN_CAPTURE_TIMEOUT_S
        self.recognition_timeout_s = recognition_timeout_s or settings.OCR_RECOGNITION_TIMEOUT_S
        self.recognizer = recognizer or TesseractRecognizer(timeout_s=self.recognition_timeout_s)

    async def capture_image(self, process_identifier: Optional[int]) -> Optional[Image.Image]:
        """Frontmost window of the process, else the primary display."""
        image = await self._bounded(
            "window capture", self.capture_timeout_s, self.capturer.capture_window, process_identifier
        )
        if image is not None:
            return image

        logger.debug("Falling back to primary display capture")
        return await self._bounded("display capture", self.capture_timeout_s, self.capturer.capture_display)

    async def extract_text(self, process_identifier: Optional[int]) -> Optional[OCRCaptureResult]:
        image = await self.capture_image(process_identifier)
        if image is None:
            logger.info("OCR skipped: no screenshot available")
            return None

        return await self._bounded("recognition", self.recognition_timeout_s, self.recognizer.recognize, image)

    async def _bounded(self, stage: str, timeout_s: float, func: Callable[..., Any], *args) -> Any:
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocr")
        try:
            return await asyncio.wait_for(loop.run_in_executor(executor, func, *args), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"OCR {stage} timed out after {timeout_s}s")
            return None
        except Exception as e:
            logger.warning(f"OCR {stage} failed: {e}")
            return None
        finally:
            executor.shutdown(wait=False)
