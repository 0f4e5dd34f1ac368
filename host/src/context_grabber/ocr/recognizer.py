"""Text recognition with Tesseract."""

import logging
from statistics import mean
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytesseract
from PIL import Image
from pytesseract import Output

from ..config import settings
from ..models.resolution import OCRCaptureResult
from ..utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

LineKey = Tuple[int, int, int, int]


def ocr_result_from_tesseract_data(data: Mapping[str, List[Any]]) -> Optional[OCRCaptureResult]:
    """
    Turn ``image_to_data`` output into a result.

    Words are grouped into lines by (page, block, paragraph, line). A line's
    confidence is the mean of its word confidences scaled to 0-1; the overall
    confidence is the mean over lines. Words Tesseract marks with -1 do not
    count towards confidence.
    """
    lines: Dict[LineKey, List[Tuple[str, float]]] = {}

    for index, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue

        key = (
            int(data["page_num"][index]),
            int(data["block_num"][index]),
            int(data["par_num"][index]),
            int(data["line_num"][index]),
        )
        lines.setdefault(key, []).append((word, float(data["conf"][index])))

    segments: List[str] = []
    confidences: List[float] = []

    for words in lines.values():
        text = normalize_text(" ".join(word for word, _ in words))
        if not text:
            continue
        segments.append(text)

        valid = [conf for _, conf in words if conf >= 0]
        if valid:
            confidences.append(mean(valid) / 100.0)

    text = normalize_text("\n".join(segments))
    if not text:
        return None

    return OCRCaptureResult(
        text=text,
        confidence=mean(confidences) if confidences else None,
    )


class TesseractRecognizer:
    """Recognizes text in a PIL image via pytesseract."""

    def __init__(self, lang: Optional[str] = None, timeout_s: Optional[float] = None):
        self.lang = lang or settings.TESSERACT_LANG
        # pytesseract kills tesseract and raises RuntimeError when this expires
        self.timeout_s = timeout_s if timeout_s is not None else settings.OCR_RECOGNITION_TIMEOUT_S

    def recognize(self, image: Image.Image) -> Optional[OCRCaptureResult]:
        data = pytesseract.image_to_data(
            image, lang=self.lang, output_type=Output.DICT, timeout=self.timeout_s
        )
        result = ocr_result_from_tesseract_data(data)
        if result is None:
            logger.debug("Tesseract found no text")
        return result
