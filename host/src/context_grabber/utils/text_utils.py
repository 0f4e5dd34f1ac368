"""Text normalization shared by every extraction backend."""

import re
from typing import Iterable, List, Optional

_TRAILING_BLANKS = re.compile(r"[ \t]+\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def normalize_text(value: Optional[str]) -> str:
    """
    Canonicalize line endings and whitespace of extracted text.

    Applies, in order:
    - CRLF and lone CR -> LF
    - Spaces/tabs before a newline are dropped
    - Runs of 3+ newlines collapse to a single blank line
    - Leading/trailing whitespace is stripped

    Example:
        "Title\\r\\n\\r\\n\\r\\nBody  \\n" -> "Title\\n\\nBody"
    """
    if not value:
        return ""

    text = value.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_BLANKS.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def deduplicated(values: Iterable[str]) -> List[str]:
    """Drop repeated strings, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class SegmentCollector:
    """Accumulates unique, non-empty normalized text segments."""

    separator = "\n\n"

    def __init__(self):
        self._segments: List[str] = []
        self._seen = set()

    def add(self, text: Optional[str]) -> bool:
        """Normalize and append text; returns False if empty or already seen."""
        normalized = normalize_text(text)
        if not normalized or normalized in self._seen:
            return False
        self._seen.add(normalized)
        self._segments.append(normalized)
        return True

    def __len__(self) -> int:
        return len(self._segments)

    def joined(self) -> Optional[str]:
        """Segments joined by a blank line, or None when nothing was collected."""
        if not self._segments:
            return None
        return self.separator.join(self._segments)
