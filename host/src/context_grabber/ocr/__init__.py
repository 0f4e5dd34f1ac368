"""OCR tier: screenshot capture and text recognition."""

from .recognizer import TesseractRecognizer, ocr_result_from_tesseract_data
from .screen_capture import (
    ScreenCapturer,
    frontmost_window_id_from_window_list,
    screen_recording_granted,
    select_frontmost_window,
)
from .step import OCRCaptureStep

__all__ = [
    "OCRCaptureStep",
    "ScreenCapturer",
    "TesseractRecognizer",
    "frontmost_window_id_from_window_list",
    "ocr_result_from_tesseract_data",
    "screen_recording_granted",
    "select_frontmost_window",
]
